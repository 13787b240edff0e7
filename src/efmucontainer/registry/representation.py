"""Model representation entries of the container manifest."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from efmucontainer.errors import ManifestValidationError
from efmucontainer.validation.paths import categorize_fmu_reference, is_bare_name, is_file_name, is_reserved_name


class ModelRepresentationKind(str, Enum):
    """Kinds of model representations (wire values)."""

    PRODUCTION_CODE = "ProductionCode"
    BEHAVIORAL_MODEL = "BehavioralModel"
    ALGORITHM_CODE = "AlgorithmCode"
    EQUATION_CODE = "EquationCode"
    BINARY_CODE = "BinaryCode"

    @classmethod
    def parse(cls, value: str) -> ModelRepresentationKind:
        """Parse a wire value.

        Raises:
            ManifestValidationError: If the value is not a known kind.
        """
        try:
            return cls(value)
        except ValueError as e:
            known = ", ".join(k.value for k in cls)
            msg = f"Unknown model representation kind '{value}' (expected one of: {known})"
            raise ManifestValidationError(msg) from e

    @property
    def schema_path(self) -> PurePosixPath:
        """Location of the sub-manifest schema relative to the schema directory."""
        return PurePosixPath(self.value, f"efmi{self.value}Manifest.xsd")


# Kinds whose schemas must be supplied when a container is created
REQUIRED_SCHEMA_KINDS = (
    ModelRepresentationKind.BEHAVIORAL_MODEL,
    ModelRepresentationKind.ALGORITHM_CODE,
    ModelRepresentationKind.PRODUCTION_CODE,
    ModelRepresentationKind.BINARY_CODE,
)


@dataclass(frozen=True)
class ModelRepresentation:
    """Model representation registered in the container manifest.

    Every field is re-derivable from the sub-tree ``eFMU/<name>``: the
    checksum from the sub-manifest file, the id from its root element and the
    FMU reference from its file listing.

    Attributes:
        name: Unique registry key, also the sub-tree directory name.
        kind: Representation kind.
        manifest: Sub-manifest file name inside the sub-tree.
        checksum: Digest of the sub-manifest file.
        manifest_ref_id: Id declared by the sub-manifest.
        fmu_reference: Relative path of the embedded FMU file or folder
            (production code only).
    """

    name: str
    kind: ModelRepresentationKind
    manifest: str
    checksum: str
    manifest_ref_id: str
    fmu_reference: str | None = None

    def __post_init__(self) -> None:
        if not is_bare_name(self.name) or is_reserved_name(self.name):
            msg = f"Invalid model representation name: {self.name!r}"
            raise ManifestValidationError(msg)
        if not is_file_name(self.manifest):
            msg = f"Manifest of model representation '{self.name}' is not a file name: {self.manifest}"
            raise ManifestValidationError(msg)
        if self.fmu_reference is not None and self.kind is not ModelRepresentationKind.PRODUCTION_CODE:
            msg = f"Only '{ModelRepresentationKind.PRODUCTION_CODE.value}' may reference an FMU: {self.name}"
            raise ManifestValidationError(msg)

    @property
    def is_production_code(self) -> bool:
        return self.kind is ModelRepresentationKind.PRODUCTION_CODE

    @property
    def fmu_is_file(self) -> bool | None:
        """True for an FMU file, False for an FMU folder, None without reference."""
        if self.fmu_reference is None:
            return None
        return categorize_fmu_reference(self.fmu_reference)

    def with_checksum(self, checksum: str) -> ModelRepresentation:
        """Return a copy carrying a different checksum."""
        return replace(self, checksum=checksum)

    def describe(self, index: int) -> list[str]:
        """Human-readable dump lines."""
        lines = [
            f"Model representation #{index}",
            f" name: {self.name}",
            f" kind: {self.kind.value}",
            f" manifest: {self.manifest}",
            f" checksum: {self.checksum}",
            f" manifestRefId: {self.manifest_ref_id}",
        ]
        if self.fmu_reference is not None:
            label = "FMU" if self.fmu_is_file else "FMUFolder"
            lines.append(f" {label}: {self.fmu_reference}")
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "manifest": self.manifest,
            "checksum": self.checksum,
            "manifest_ref_id": self.manifest_ref_id,
            "fmu_reference": self.fmu_reference,
        }
