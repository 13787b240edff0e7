"""Tests for the error taxonomy and operation results."""

from __future__ import annotations

import zipfile
from typing import TYPE_CHECKING

import pytest

from efmucontainer.errors import (
    ChecksumMismatchError,
    ContainerEnvironmentError,
    ContainerError,
    ErrorKind,
    ManifestValidationError,
    OperationResult,
    io_boundary,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestContainerError:
    """Tests for ContainerError and its kinds."""

    def test_kinds(self) -> None:
        assert ManifestValidationError("x").kind is ErrorKind.STRUCTURAL
        assert ChecksumMismatchError("x").kind is ErrorKind.INTEGRITY
        assert ContainerEnvironmentError("x").kind is ErrorKind.ENVIRONMENT

    def test_str_includes_details(self) -> None:
        err = ManifestValidationError("Mismatch", details=["a: 1", "b: 2"])

        assert str(err) == "Mismatch\n  - a: 1\n  - b: 2"
        assert err.message == "Mismatch"


class TestIoBoundary:
    """Tests for io_boundary."""

    def test_converts_oserror(self, tmp_path: Path) -> None:
        with pytest.raises(ContainerEnvironmentError, match="Failed to read missing file"):
            with io_boundary("read missing file"):
                (tmp_path / "missing.txt").read_bytes()

    def test_converts_bad_zip(self, tmp_path: Path) -> None:
        bogus = tmp_path / "bogus.fmu"
        bogus.write_text("not a zip")

        with pytest.raises(ContainerEnvironmentError) as exc_info, io_boundary("open archive"):
            zipfile.ZipFile(bogus)

        assert isinstance(exc_info.value.__cause__, zipfile.BadZipFile)

    def test_passes_other_errors(self) -> None:
        with pytest.raises(KeyError), io_boundary("look up"):
            raise KeyError("x")

    def test_passes_container_errors(self) -> None:
        with pytest.raises(ManifestValidationError), io_boundary("validate"):
            raise ManifestValidationError("bad")


class TestOperationResult:
    """Tests for OperationResult."""

    def test_success(self) -> None:
        result = OperationResult.success("list", ["line"])

        assert result.ok
        assert result.error_kind is None
        assert result.listing == ("line",)

    def test_failure(self) -> None:
        error: ContainerError = ChecksumMismatchError("bad checksum", details=["recorded: a"])

        result = OperationResult.failure("add", error)

        assert not result.ok
        assert result.error_kind is ErrorKind.INTEGRITY
        assert result.message == "bad checksum"
        assert result.details == ("recorded: a",)

    def test_listing_not_compared(self) -> None:
        assert OperationResult.success("list", ["a"]) == OperationResult.success("list", ["b"])
