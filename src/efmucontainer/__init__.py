"""Management of eFMU containers.

An eFMU container bundles named model representations together with a
container manifest (``eFMU/__content.xml``) that is validated against the
sub-trees on every read.
"""

__version__ = "0.9.0"
