"""Manifest format versions.

The container manifest carries two version strings that must match the
versions supported by this package exactly:

    xsdVersion="0.9.0"   container manifest schema version
    efmiVersion="1.0.0"  eFMI standard version

There is no migration between versions; any difference is a hard failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from efmucontainer.errors import ManifestValidationError

SUPPORTED_XSD_VERSION = "0.9.0"
SUPPORTED_EFMI_VERSION = "1.0.0"


@dataclass(frozen=True)
class FormatVersion:
    """Parsed format version.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        raw: Original version string.
    """

    major: int
    minor: int
    patch: int
    raw: str

    def __str__(self) -> str:
        """Return the raw version string."""
        return self.raw


VERSION_PATTERN = re.compile(r"^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)$")


def parse_format_version(version_str: str) -> FormatVersion:
    """Parse a version string of the form X.Y.Z.

    Raises:
        ValueError: If the string doesn't match the expected format.
    """
    match = VERSION_PATTERN.match(version_str)
    if not match:
        msg = f"Invalid version string: {version_str!r}. Expected format: X.Y.Z"
        raise ValueError(msg)
    return FormatVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        raw=version_str,
    )


def check_supported_version(version_str: str, supported: str, attribute: str) -> FormatVersion:
    """Require a manifest version to equal the supported one.

    Raises:
        ManifestValidationError: If the version is malformed or differs.
    """
    try:
        version = parse_format_version(version_str)
    except ValueError as e:
        msg = f"Malformed {attribute} of container manifest: {version_str!r}"
        raise ManifestValidationError(msg) from e
    if version.raw != supported:
        msg = f"Supported {attribute} {supported} is unequal to {attribute} {version_str} of container manifest"
        raise ManifestValidationError(msg)
    return version
