"""Container operations and their call arguments.

CoreCallArguments is frozen (immutable); the state machine never re-derives
anything from raw command-line input.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from efmucontainer.layout import CONTAINER_FILE_SUFFIX, DEFAULT_CONTAINER_FILE_NAME, MANIFEST_FILE_SUFFIX
from efmucontainer.validation.paths import (
    has_extension,
    is_bare_name,
    is_directory_prefix_of,
    is_file_name,
    is_reserved_name,
    is_well_formed_dir_name,
    is_well_formed_file_name,
)
from efmucontainer.validation.policy import ValidationPolicy


class ContainerOperation(str, Enum):
    """Operations on a container."""

    CREATE = "create"
    ADD = "add"
    REPLACE = "replace"
    DELETE = "delete"
    EXTRACT = "extract"
    EXTRACT_SCHEMAS = "extract-schemas"
    UNPACK = "unpack"
    TIDY_ROOT = "tidy-root"
    LIST = "list"

    @property
    def requires_initial_read(self) -> bool:
        """Whether an existing container manifest is read and validated at boot."""
        return self is not ContainerOperation.CREATE

    @property
    def writes_container(self) -> bool:
        """Whether the manifest is rewritten and the container re-packed."""
        return self in _WRITING_OPERATIONS


_WRITING_OPERATIONS = frozenset(
    {
        ContainerOperation.CREATE,
        ContainerOperation.ADD,
        ContainerOperation.REPLACE,
        ContainerOperation.DELETE,
        ContainerOperation.UNPACK,
        ContainerOperation.TIDY_ROOT,
    }
)

# Arguments that must be given per operation
REQUIRED_ARGUMENTS: dict[ContainerOperation, tuple[str, ...]] = {
    ContainerOperation.CREATE: ("input_dir", "name", "output_path"),
    ContainerOperation.ADD: ("container_path", "name", "input_dir", "manifest_file_name"),
    ContainerOperation.REPLACE: ("container_path", "name", "input_dir", "manifest_file_name"),
    ContainerOperation.DELETE: ("container_path", "name"),
    ContainerOperation.EXTRACT: ("container_path", "name", "output_path"),
    ContainerOperation.EXTRACT_SCHEMAS: ("container_path", "output_path"),
    ContainerOperation.UNPACK: ("container_path", "name"),
    ContainerOperation.TIDY_ROOT: ("container_path",),
    ContainerOperation.LIST: ("container_path",),
}


def _check_container_file(path: Path, label: str) -> None:
    if not has_extension(path.name, CONTAINER_FILE_SUFFIX):
        raise ValueError(f"{label} must have suffix {CONTAINER_FILE_SUFFIX}: {path}")
    if not is_well_formed_file_name(str(path)):
        raise ValueError(f"Invalid path for {label}: {path}")


def _check_dir(path: Path, label: str) -> None:
    if not is_well_formed_dir_name(str(path)):
        raise ValueError(f"Invalid path for {label}: {path}")


class CoreCallArguments(BaseModel):
    """Arguments of a single container operation (frozen).

    Which fields are required depends on the operation (see
    REQUIRED_ARGUMENTS). ``create`` writes to ``output_path``, all other
    writing operations update ``container_path`` in place.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    operation: ContainerOperation = Field(description="Operation to perform")
    container_path: Path | None = Field(default=None, description="Existing container (.fmu)")
    input_dir: Path | None = Field(
        default=None,
        description="Schema directory (create) or model representation directory (add/replace)",
    )
    name: str | None = Field(default=None, description="Container name (create) or model representation name")
    manifest_file_name: str | None = Field(default=None, description="Sub-manifest file name inside input_dir")
    output_path: Path | None = Field(
        default=None,
        description="Container to create, or directory to extract into",
    )
    force: bool = Field(default=False, description="Overwrite an existing output")
    policy: ValidationPolicy = Field(default_factory=ValidationPolicy)

    @model_validator(mode="before")
    @classmethod
    def default_create_output(cls, data: Any) -> Any:
        """Default the output of create to container.fmu."""
        if (
            isinstance(data, dict)
            and data.get("operation") in (ContainerOperation.CREATE, ContainerOperation.CREATE.value)
            and data.get("output_path") is None
        ):
            return {**data, "output_path": Path(DEFAULT_CONTAINER_FILE_NAME)}
        return data

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Names are single path segments."""
        if v is not None and not is_bare_name(v):
            raise ValueError(f"Name must not contain path separators: {v!r}")
        return v

    @field_validator("manifest_file_name")
    @classmethod
    def validate_manifest_file_name(cls, v: str | None) -> str | None:
        """Manifest file names are bare ``*.xml`` file names."""
        if v is None:
            return v
        if not has_extension(v, MANIFEST_FILE_SUFFIX) or not is_well_formed_file_name(v):
            raise ValueError(f"Manifest must be a {MANIFEST_FILE_SUFFIX} file: {v}")
        if not is_file_name(v):
            raise ValueError(f"Manifest must be a file name, not a path: {v}")
        return v

    @model_validator(mode="after")
    def validate_operation_arguments(self) -> CoreCallArguments:
        """Check the arguments required by the operation and their shape."""
        missing = [f for f in REQUIRED_ARGUMENTS[self.operation] if getattr(self, f) is None]
        if missing:
            raise ValueError(f"Operation '{self.operation.value}' requires: {', '.join(missing)}")

        op = self.operation
        if self.name is not None and op is not ContainerOperation.CREATE and is_reserved_name(self.name):
            raise ValueError(f"Model representation name is reserved by the container: {self.name!r}")

        if self.container_path is not None and op is not ContainerOperation.CREATE:
            _check_container_file(self.container_path, "container file")

        if op is ContainerOperation.CREATE:
            assert self.input_dir is not None and self.output_path is not None
            _check_dir(self.input_dir, "input directory with schemas")
            _check_container_file(self.output_path, "output container file")
            if is_directory_prefix_of(self.input_dir, self.output_path):
                raise ValueError(f"Output container must not be placed inside the input directory: {self.output_path}")
        elif op in (ContainerOperation.ADD, ContainerOperation.REPLACE):
            assert self.input_dir is not None and self.container_path is not None
            _check_dir(self.input_dir, "input directory")
            if is_directory_prefix_of(self.input_dir, self.container_path):
                raise ValueError(f"Container must not be placed inside the input directory: {self.container_path}")
        elif op in (ContainerOperation.EXTRACT, ContainerOperation.EXTRACT_SCHEMAS):
            assert self.output_path is not None and self.container_path is not None
            _check_dir(self.output_path, "output directory")
            if is_directory_prefix_of(self.output_path, self.container_path):
                raise ValueError(f"Container must not be placed inside the output directory: {self.container_path}")
        return self

    @property
    def target_container(self) -> Path | None:
        """Container file written by the operation (None if nothing is written)."""
        if not self.operation.writes_container:
            return None
        if self.operation is ContainerOperation.CREATE:
            return self.output_path
        return self.container_path

    def describe(self) -> list[str]:
        """Relevant arguments of the operation, one per line."""
        lines = ["Call arguments:", f" operation: {self.operation.value}"]
        for name in REQUIRED_ARGUMENTS[self.operation]:
            lines.append(f" {name}: {getattr(self, name)}")
        if self.operation in (
            ContainerOperation.CREATE,
            ContainerOperation.EXTRACT,
            ContainerOperation.EXTRACT_SCHEMAS,
        ):
            lines.append(f" force: {self.force}")
        return lines
