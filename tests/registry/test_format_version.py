"""Tests for manifest format versions."""

from __future__ import annotations

import pytest

from efmucontainer.errors import ManifestValidationError
from efmucontainer.registry import (
    SUPPORTED_EFMI_VERSION,
    SUPPORTED_XSD_VERSION,
    FormatVersion,
    check_supported_version,
    parse_format_version,
)


class TestParseFormatVersion:
    """Tests for parse_format_version."""

    def test_valid(self) -> None:
        version = parse_format_version("0.9.0")
        assert version == FormatVersion(major=0, minor=9, patch=0, raw="0.9.0")
        assert str(version) == "0.9.0"

    @pytest.mark.parametrize("raw", ["", "1.0", "1.0.0.0", "v1.0.0", "1.0.0-rc1", " 1.0.0"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ValueError, match="Invalid version string"):
            parse_format_version(raw)


class TestCheckSupportedVersion:
    """Tests for check_supported_version."""

    def test_supported(self) -> None:
        assert check_supported_version(SUPPORTED_XSD_VERSION, SUPPORTED_XSD_VERSION, "xsdVersion").raw == "0.9.0"
        assert check_supported_version(SUPPORTED_EFMI_VERSION, SUPPORTED_EFMI_VERSION, "efmiVersion").major == 1

    def test_newer_version_rejected(self) -> None:
        """There is no forward compatibility."""
        with pytest.raises(ManifestValidationError, match="Supported xsdVersion 0.9.0 is unequal"):
            check_supported_version("0.9.1", SUPPORTED_XSD_VERSION, "xsdVersion")

    def test_malformed(self) -> None:
        with pytest.raises(ManifestValidationError, match="Malformed efmiVersion"):
            check_supported_version("one", SUPPORTED_EFMI_VERSION, "efmiVersion")
