"""Tests for model representation entries and sub-manifest helpers."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

import pytest

from efmucontainer.errors import FileListingError, ManifestValidationError
from efmucontainer.listing import read_file_listing
from efmucontainer.registry import (
    REQUIRED_SCHEMA_KINDS,
    ModelRepresentation,
    ModelRepresentationKind,
    check_manifest_ref_id,
    derive_fmu_reference,
    sub_manifest_id,
    sub_manifest_kind,
)
from efmucontainer.validation.xml import load_document

if TYPE_CHECKING:
    from pathlib import Path


def _representation(**kwargs: object) -> ModelRepresentation:
    defaults: dict[str, object] = {
        "name": "m1",
        "kind": ModelRepresentationKind.PRODUCTION_CODE,
        "manifest": "manifest.xml",
        "checksum": "abc",
        "manifest_ref_id": "{id}",
    }
    defaults.update(kwargs)
    return ModelRepresentation(**defaults)  # type: ignore[arg-type]


class TestModelRepresentationKind:
    """Tests for ModelRepresentationKind."""

    def test_parse(self) -> None:
        assert ModelRepresentationKind.parse("BinaryCode") is ModelRepresentationKind.BINARY_CODE

    def test_parse_unknown(self) -> None:
        with pytest.raises(ManifestValidationError, match="Unknown model representation kind 'SourceCode'"):
            ModelRepresentationKind.parse("SourceCode")

    def test_schema_path(self) -> None:
        assert ModelRepresentationKind.ALGORITHM_CODE.schema_path == PurePosixPath(
            "AlgorithmCode/efmiAlgorithmCodeManifest.xsd"
        )

    def test_equation_code_schema_not_required(self) -> None:
        assert ModelRepresentationKind.EQUATION_CODE not in REQUIRED_SCHEMA_KINDS
        assert len(REQUIRED_SCHEMA_KINDS) == 4


class TestModelRepresentation:
    """Tests for ModelRepresentation."""

    def test_name_must_be_bare(self) -> None:
        with pytest.raises(ManifestValidationError, match="Invalid model representation name"):
            _representation(name="a/b")

    @pytest.mark.parametrize("name", ["schemas", "__content.xml"])
    def test_reserved_name(self, name: str) -> None:
        with pytest.raises(ManifestValidationError, match="Invalid model representation name"):
            _representation(name=name)

    def test_manifest_must_be_file_name(self) -> None:
        with pytest.raises(ManifestValidationError, match="not a file name"):
            _representation(manifest="sub/manifest.xml")

    def test_fmu_only_for_production_code(self) -> None:
        with pytest.raises(ManifestValidationError, match="may reference an FMU"):
            _representation(kind=ModelRepresentationKind.BINARY_CODE, fmu_reference="model.fmu")

    def test_fmu_is_file(self) -> None:
        assert _representation().fmu_is_file is None
        assert _representation(fmu_reference="model.fmu").fmu_is_file is True
        assert _representation(fmu_reference="FMU").fmu_is_file is False

    def test_with_checksum(self) -> None:
        entry = _representation()
        assert entry.with_checksum("def").checksum == "def"
        assert entry.checksum == "abc"

    def test_describe(self) -> None:
        lines = _representation(fmu_reference="FMU").describe(3)
        assert lines == [
            "Model representation #3",
            " name: m1",
            " kind: ProductionCode",
            " manifest: manifest.xml",
            " checksum: abc",
            " manifestRefId: {id}",
            " FMUFolder: FMU",
        ]

    def test_to_dict(self) -> None:
        data = _representation().to_dict()
        assert data["kind"] == "ProductionCode"
        assert data["fmu_reference"] is None


class TestSubManifest:
    """Tests for sub-manifest helpers."""

    def test_id_and_kind(self, make_subtree: Callable[..., Path]) -> None:
        root = make_subtree("m1", kind="AlgorithmCode", manifest_id="{abc}", fmu=None)
        document = load_document(root / "manifest.xml")

        assert sub_manifest_id(document) == "{abc}"
        assert sub_manifest_kind(document) is ModelRepresentationKind.ALGORITHM_CODE

    def test_manifest_ref_id_mismatch(self, make_subtree: Callable[..., Path]) -> None:
        root = make_subtree("m1", manifest_id="{abc}")
        document = load_document(root / "manifest.xml")

        check_manifest_ref_id(document, "{abc}")
        with pytest.raises(ManifestValidationError, match="Mismatch of manifest ids") as exc_info:
            check_manifest_ref_id(document, "{other}")
        assert exc_info.value.details == [
            "Id from container manifest: {other}",
            "Id from model representation manifest: {abc}",
        ]

    def test_derive_fmu_file(self, make_subtree: Callable[..., Path]) -> None:
        root = make_subtree("m1")
        listing = read_file_listing(load_document(root / "manifest.xml"), root)

        assert derive_fmu_reference(listing, root) == "model.fmu"

    def test_derive_fmu_folder(self, make_subtree: Callable[..., Path]) -> None:
        root = make_subtree("m1", fmu="FMU")
        listing = read_file_listing(load_document(root / "manifest.xml"), root)

        assert derive_fmu_reference(listing, root) == "FMU"

    def test_derive_without_fmu(self, make_subtree: Callable[..., Path]) -> None:
        root = make_subtree("m1", fmu=None)
        listing = read_file_listing(load_document(root / "manifest.xml"), root)

        assert derive_fmu_reference(listing, root) is None

    def test_derive_fmu_removed_after_listing(self, make_subtree: Callable[..., Path]) -> None:
        root = make_subtree("m1")
        listing = read_file_listing(load_document(root / "manifest.xml"), root)
        (root / "model.fmu").unlink()

        with pytest.raises(FileListingError, match="referenced FMU file does not exist"):
            derive_fmu_reference(listing, root)
