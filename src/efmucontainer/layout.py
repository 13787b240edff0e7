"""Archive layout and manifest wire constants.

An eFMU container has the same suffix as a plain FMU. It is recognised by a
reserved top-level directory holding the container manifest, the schema
directory, and one sub-directory per model representation:

    <root>/                      unpacked FMU content (optional, see activeFmu)
    <root>/eFMU/__content.xml    container manifest
    <root>/eFMU/schemas/         one schema per sub-manifest kind
    <root>/eFMU/<name>/          model representation sub-tree
"""

from __future__ import annotations

from pathlib import PurePosixPath

EFMU_DIR_NAME = "eFMU"
SCHEMA_DIR_NAME = "schemas"
CONTAINER_MANIFEST_FILE_NAME = "__content.xml"
CONTAINER_MANIFEST_SCHEMA_FILE = "efmiContainerManifest.xsd"

CONTAINER_FILE_SUFFIX = ".fmu"
FMU_FILE_SUFFIX = ".fmu"
FMU_DIR_NAME = "FMU"
SCHEMA_FILE_SUFFIX = ".xsd"
MANIFEST_FILE_SUFFIX = ".xml"

DEFAULT_CONTAINER_FILE_NAME = "container" + CONTAINER_FILE_SUFFIX

# Schema location written into the container manifest (relative to eFMU/)
CONTAINER_MANIFEST_SCHEMA_URL = str(PurePosixPath(SCHEMA_DIR_NAME, CONTAINER_MANIFEST_SCHEMA_FILE))

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
SCHEMA_LOCATION_ATTRIBUTE = f"{{{XSI_NAMESPACE}}}noNamespaceSchemaLocation"

# Container manifest elements/attributes
CONTENT_ELEMENT = "Content"
MODEL_REPRESENTATION_ELEMENT = "ModelRepresentation"
GENERATION_TIMESTAMP_ATTRIBUTE = "generationDateAndTime"
GENERATION_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
ACTIVE_FMU_ATTRIBUTE = "activeFmu"

# Sub-manifest file listing
FILES_ELEMENT = "Files"
FILE_ELEMENT = "File"

# Paths of file listing entries whose existence cannot be checked
# (e.g. system headers that are not part of the container)
UNCHECKABLE_PATH = ".."
