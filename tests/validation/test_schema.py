"""Tests for schema-anchored validation and XML helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from conftest import SUB_MANIFEST_SCHEMA, sub_manifest_xml
from lxml import etree

from efmucontainer.errors import ManifestValidationError, SchemaValidationError
from efmucontainer.validation.schema import get_schema_reference, resolve_schema_path, validate_document
from efmucontainer.validation.xml import (
    get_attribute,
    get_boolean_attribute,
    load_document,
    parse_boolean,
)

if TYPE_CHECKING:
    from pathlib import Path

XSI = "http://www.w3.org/2001/XMLSchema-instance"


def _doc(location: str | None) -> etree._Element:
    root = etree.Element("Manifest", nsmap={"xsi": XSI})
    if location is not None:
        root.set(f"{{{XSI}}}noNamespaceSchemaLocation", location)
    return root


@pytest.fixture
def staged_efmu(tmp_path: Path) -> Path:
    """Minimal staged eFMU directory with a ProductionCode schema."""
    efmu = tmp_path / "eFMU"
    kind_dir = efmu / "schemas" / "ProductionCode"
    kind_dir.mkdir(parents=True)
    (kind_dir / "efmiProductionCodeManifest.xsd").write_text(SUB_MANIFEST_SCHEMA)
    (efmu / "m1").mkdir()
    return efmu


class TestSchemaReference:
    """Tests for get_schema_reference / resolve_schema_path."""

    def test_missing_attribute(self) -> None:
        with pytest.raises(SchemaValidationError, match="missing"):
            get_schema_reference(_doc(None))

    def test_outside_schema_dir(self) -> None:
        with pytest.raises(SchemaValidationError, match="does not refer to schema file"):
            get_schema_reference(_doc("other/schema.xsd"))

    def test_separators_normalised(self) -> None:
        assert get_schema_reference(_doc("..\\schemas\\a.xsd")) == "../schemas/a.xsd"

    def test_parent_anchor(self, tmp_path: Path) -> None:
        """Sub-manifests ascend one level from their own directory."""
        doc = _doc("../schemas/ProductionCode/efmiProductionCodeManifest.xsd")
        resolved = resolve_schema_path(doc, tmp_path / "eFMU" / "m1")
        assert resolved == tmp_path / "eFMU" / "schemas" / "ProductionCode" / "efmiProductionCodeManifest.xsd"

    def test_plain_anchor(self, tmp_path: Path) -> None:
        """The container manifest resolves against its own directory."""
        resolved = resolve_schema_path(_doc("schemas/efmiContainerManifest.xsd"), tmp_path / "eFMU")
        assert resolved == tmp_path / "eFMU" / "schemas" / "efmiContainerManifest.xsd"

    def test_escape_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaValidationError, match="leaves the schema directory"):
            resolve_schema_path(_doc("../schemas/../../evil.xsd"), tmp_path)


class TestValidateDocument:
    """Tests for validate_document."""

    def test_valid(self, staged_efmu: Path) -> None:
        manifest = staged_efmu / "m1" / "manifest.xml"
        manifest.write_text(sub_manifest_xml("ProductionCode", "{id}", None))

        validate_document(load_document(manifest), staged_efmu / "m1")

    def test_violation_reports_line(self, staged_efmu: Path) -> None:
        manifest = staged_efmu / "m1" / "manifest.xml"
        # kind attribute missing
        manifest.write_text(sub_manifest_xml("ProductionCode", "{id}", None).replace(' kind="ProductionCode"', ""))

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_document(load_document(manifest), staged_efmu / "m1")

        assert exc_info.value.details
        assert exc_info.value.details[0].startswith("Validation failed in line")

    def test_missing_schema_file(self, tmp_path: Path) -> None:
        (tmp_path / "m1").mkdir()
        with pytest.raises(SchemaValidationError, match="does not exist"):
            validate_document(_doc("../schemas/x.xsd"), tmp_path / "m1")

    def test_invalid_schema_file(self, tmp_path: Path) -> None:
        (tmp_path / "schemas").mkdir()
        (tmp_path / "schemas" / "x.xsd").write_text("<notaschema/>")
        with pytest.raises(SchemaValidationError, match="Invalid XML schema"):
            validate_document(_doc("schemas/x.xsd"), tmp_path)


class TestXmlHelpers:
    """Tests for the XML helpers."""

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestValidationError, match="does not exist"):
            load_document(tmp_path / "missing.xml")

    def test_load_malformed(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.xml"
        bad.write_text("<open>")
        with pytest.raises(ManifestValidationError, match="not well-formed"):
            load_document(bad)

    def test_missing_attribute(self) -> None:
        with pytest.raises(ManifestValidationError, match="misses required attribute 'id'"):
            get_attribute(etree.Element("File"), "id")

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), ("1", True), ("false", False), ("0", False)])
    def test_parse_boolean(self, raw: str, expected: bool) -> None:
        assert parse_boolean(raw) is expected

    def test_invalid_boolean_attribute(self) -> None:
        elem = etree.Element("File", needsChecksum="yes")
        with pytest.raises(ManifestValidationError, match="not a boolean"):
            get_boolean_attribute(elem, "needsChecksum")
