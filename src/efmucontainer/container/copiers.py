"""Copiers moving schema and model representation trees into a container.

Both copiers have two phases. ``boot`` checks the source without touching
the staged tree; ``run`` performs the copy. A copier is only run after a
successful boot.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from efmucontainer.checksum import checksum_directory, checksum_file
from efmucontainer.container.staging import copy_tree, remove_tree
from efmucontainer.errors import ManifestValidationError, OperationStateError, io_boundary
from efmucontainer.layout import CONTAINER_MANIFEST_SCHEMA_FILE, SCHEMA_FILE_SUFFIX
from efmucontainer.listing import FileListing, read_file_listing
from efmucontainer.registry import (
    REQUIRED_SCHEMA_KINDS,
    ContainerManifest,
    ModelRepresentation,
    ModelRepresentationKind,
    derive_fmu_reference,
    read_sub_manifest,
    sub_manifest_id,
    sub_manifest_kind,
)
from efmucontainer.validation.paths import check_file_name
from efmucontainer.validation.policy import STRICT_POLICY, ValidationPolicy

logger = logging.getLogger(__name__)


def _ignore_non_schema_files(directory: str, names: list[str]) -> set[str]:
    base = Path(directory)
    return {n for n in names if (base / n).is_file() and not n.endswith(SCHEMA_FILE_SUFFIX)}


class SchemaCopier:
    """Copies the schema directory (``*.xsd`` files only)."""

    def __init__(self, input_dir: Path, output_dir: Path, *, log: logging.Logger | None = None) -> None:
        self.input_dir = input_dir
        self.output_dir = output_dir
        self._log = log or logger
        self._booted = False

    def required_files(self) -> list[Path]:
        """Schema files a container cannot do without."""
        files = [self.input_dir / CONTAINER_MANIFEST_SCHEMA_FILE]
        files.extend(self.input_dir.joinpath(*kind.schema_path.parts) for kind in REQUIRED_SCHEMA_KINDS)
        return files

    def boot(self) -> None:
        """Check that the input directory holds all required schemas.

        Raises:
            ManifestValidationError: If the directory or a schema is missing.
        """
        self._log.info(">> Checking schema directory: %s", self.input_dir)
        if not self.input_dir.is_dir():
            msg = f"The schema directory does not exist: {self.input_dir}"
            raise ManifestValidationError(msg)
        missing = [str(p) for p in self.required_files() if not p.is_file()]
        if missing:
            msg = "Required schema files are missing"
            raise ManifestValidationError(msg, details=missing)
        self._booted = True

    def run(self) -> None:
        if not self._booted:
            msg = "Schema copier has not been booted"
            raise OperationStateError(msg)
        self._log.info(">> Copying schemas: %s -> %s", self.input_dir, self.output_dir)
        with io_boundary(f"copy schemas to {self.output_dir}", self._log):
            shutil.copytree(self.input_dir, self.output_dir, ignore=_ignore_non_schema_files, dirs_exist_ok=True)
        self._log.info("=> Schemas have been copied successfully")


class ModelRepresentationCopier:
    """Copies a model representation sub-tree into the staged container.

    Boot validates the incoming sub-manifest (schema anchored at the
    destination ``eFMU/<name>``) and cross-references its file listing
    against the input directory. Run copies the tree and builds the entry
    from the copied files.

    Attributes:
        name: Model representation name.
        input_dir: Directory holding the sub-tree.
        manifest_file_name: Sub-manifest file name inside input_dir.
        output_dir: Destination ``eFMU/<name>`` in the staged tree.
        replace: Remove an existing representation of the same name first.
        kind: Kind declared by the sub-manifest (set by boot).
        fmu_reference: FMU file or folder of production code (set by boot).
    """

    def __init__(
        self,
        name: str,
        input_dir: Path,
        manifest_file_name: str,
        output_dir: Path,
        policy: ValidationPolicy = STRICT_POLICY,
        *,
        replace: bool = False,
        log: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.input_dir = input_dir
        self.manifest_file_name = manifest_file_name
        self.output_dir = output_dir
        self.policy = policy
        self.replace = replace
        self._log = log or logger
        self.kind: ModelRepresentationKind | None = None
        self._listing: FileListing | None = None
        self.fmu_reference: str | None = None

    @property
    def input_manifest_path(self) -> Path:
        return self.input_dir / self.manifest_file_name

    def boot(self) -> None:
        """Validate the incoming sub-tree.

        Raises:
            ContainerError: If the sub-tree or its sub-manifest is invalid.
        """
        self._log.info(">> Checking model representation '%s' in %s", self.name, self.input_dir)
        if not self.input_dir.is_dir():
            msg = f"The input directory does not exist: {self.input_dir}"
            raise ManifestValidationError(msg)
        check_file_name(self.manifest_file_name)

        document = read_sub_manifest(self.input_manifest_path, self.output_dir, self.policy, log=self._log)
        # Fail early on a missing id; it is re-read from the copy in run()
        sub_manifest_id(document)
        self._listing = read_file_listing(document, self.input_dir, self.policy, log=self._log)
        self.kind = sub_manifest_kind(document)
        self._log.debug("Kind of model representation: %s", self.kind.value)
        if self.kind is ModelRepresentationKind.PRODUCTION_CODE:
            self.fmu_reference = derive_fmu_reference(self._listing, self.input_dir, log=self._log)

    def run(self, manifest: ContainerManifest) -> ModelRepresentation:
        """Copy the sub-tree and register it.

        On replace, the old sub-tree and entry are removed first; if the old
        entry was active, the active reference is cleared.

        Returns:
            The registered entry.
        """
        if self.kind is None or self._listing is None:
            msg = "Model representation copier has not been booted"
            raise OperationStateError(msg)

        if self.replace:
            self._log.info(">> Removing model representation '%s'", self.name)
            manifest.remove_entry(self.name)
            if self.output_dir.exists():
                remove_tree(self.output_dir, log=self._log)
            if manifest.is_active(self.name):
                self._log.info("Model representation '%s' was active; clearing active reference", self.name)
                manifest.clear_active()

        self._log.info(">> Copying model representation '%s'", self.name)
        copy_tree(self.input_dir, self.output_dir, log=self._log)
        if self._log.isEnabledFor(logging.DEBUG):
            with io_boundary(f"compute checksum of {self.output_dir}", self._log):
                digest = checksum_directory(self.output_dir, self.policy.checksum_algorithm, log=self._log)
            self._log.debug("Checksum of copied sub-tree: %s", digest)

        copied_manifest = self.output_dir / self.manifest_file_name
        with io_boundary(f"compute checksum of {copied_manifest}", self._log):
            checksum = checksum_file(copied_manifest, self.policy.checksum_algorithm)
        document = read_sub_manifest(
            copied_manifest,
            self.output_dir,
            self.policy.model_copy(update={"validate_schema": False}),
            log=self._log,
        )

        entry = ModelRepresentation(
            name=self.name,
            kind=self.kind,
            manifest=self.manifest_file_name,
            checksum=checksum,
            manifest_ref_id=sub_manifest_id(document),
            fmu_reference=self.fmu_reference,
        )
        manifest.add_entry(entry)
        self._log.info("=> Model representation '%s' has been copied successfully", self.name)
        return entry
