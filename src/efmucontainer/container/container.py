"""Container operation state machine.

A Container performs exactly one operation:

    UNBOOTED --boot()--> BOOTED --run()--> COMPLETED

A failing phase moves the container to FAILED, from which neither phase
can be entered again.

boot() stages the container and, for every operation except create, reads
and fully validates the manifest, then runs the operation's pre-checks.
run() mutates the staged tree and the in-memory manifest and, for writing
operations, rewrites the manifest and re-packs the container. shutdown()
always removes the staged tree.

Both phases return an OperationResult; no ContainerError escapes them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from efmucontainer.container.config import ContainerOperation, CoreCallArguments
from efmucontainer.container.copiers import ModelRepresentationCopier, SchemaCopier
from efmucontainer.container.staging import (
    StagedTree,
    copy_tree,
    extract_archive,
    remove_tree,
    top_level_names,
)
from efmucontainer.errors import (
    ContainerError,
    DuplicateModelRepresentationError,
    FileListingError,
    ManifestValidationError,
    OperationResult,
    OperationStateError,
    UnknownModelRepresentationError,
)
from efmucontainer.layout import EFMU_DIR_NAME
from efmucontainer.registry import ContainerManifest, load_container_manifest, save_container_manifest

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DUMP_HEADER = "=== Dump of content of eFMU container ==="
DUMP_FOOTER = "=== END of dump ==="


class ContainerState(str, Enum):
    """Lifecycle state of a Container."""

    UNBOOTED = "unbooted"
    BOOTED = "booted"
    COMPLETED = "completed"
    FAILED = "failed"


class Container:
    """Runs one container operation against a staged working copy.

    Usable as a context manager; leaving the block calls shutdown().
    """

    def __init__(self, args: CoreCallArguments, *, log: logging.Logger | None = None) -> None:
        self.args = args
        self._log = log or logger
        self.state = ContainerState.UNBOOTED
        self.manifest: ContainerManifest | None = None
        self._staged: StagedTree | None = None
        self._schema_copier: SchemaCopier | None = None
        self._copier: ModelRepresentationCopier | None = None

        self._boot_steps: dict[ContainerOperation, Callable[[], None]] = {
            ContainerOperation.CREATE: self._boot_create,
            ContainerOperation.ADD: self._boot_add_or_replace,
            ContainerOperation.REPLACE: self._boot_add_or_replace,
            ContainerOperation.DELETE: self._require_existing_name,
            ContainerOperation.EXTRACT: self._boot_extract,
            ContainerOperation.EXTRACT_SCHEMAS: self._check_output_dir,
            ContainerOperation.UNPACK: self._boot_unpack,
            ContainerOperation.TIDY_ROOT: lambda: None,
            ContainerOperation.LIST: lambda: None,
        }
        self._run_steps: dict[ContainerOperation, Callable[[], None]] = {
            ContainerOperation.CREATE: self._run_create,
            ContainerOperation.ADD: self._run_add_or_replace,
            ContainerOperation.REPLACE: self._run_add_or_replace,
            ContainerOperation.DELETE: self._run_delete,
            ContainerOperation.EXTRACT: self._run_extract,
            ContainerOperation.EXTRACT_SCHEMAS: self._run_extract_schemas,
            ContainerOperation.UNPACK: self._run_unpack,
            ContainerOperation.TIDY_ROOT: self._run_tidy_root,
            ContainerOperation.LIST: lambda: None,
        }

    @property
    def operation(self) -> ContainerOperation:
        return self.args.operation

    @property
    def staged(self) -> StagedTree:
        if self._staged is None:
            msg = "Container has not been staged"
            raise OperationStateError(msg)
        return self._staged

    def _require_manifest(self) -> ContainerManifest:
        if self.manifest is None:
            msg = "Container manifest has not been loaded"
            raise OperationStateError(msg)
        return self.manifest

    def _name(self) -> str:
        if self.args.name is None:
            msg = f"Operation '{self.operation.value}' requires a name"
            raise OperationStateError(msg)
        return self.args.name

    # Phases

    def boot(self) -> OperationResult:
        """Stage the container and validate everything the operation needs."""
        if self.state is not ContainerState.UNBOOTED:
            return self._fail(OperationStateError(f"Container cannot be booted in state '{self.state.value}'"))

        for line in self.args.describe():
            self._log.debug(line)
        try:
            self._staged = StagedTree(log=self._log)
            if self.operation.requires_initial_read:
                assert self.args.container_path is not None
                self.staged.unpack(self.args.container_path)
                self._log.info(">> Reading container manifest")
                self.manifest = load_container_manifest(self.staged.efmu_dir, self.args.policy, log=self._log)
            else:
                self.staged.init_empty()
            self._boot_steps[self.operation]()
        except ContainerError as e:
            self.state = ContainerState.FAILED
            return self._fail(e)

        self.state = ContainerState.BOOTED
        self._log.info("=> Booted operation '%s'", self.operation.value)
        return OperationResult.success(self.operation.value)

    def run(self) -> OperationResult:
        """Perform the operation; writing operations re-pack the container."""
        if self.state is not ContainerState.BOOTED:
            return self._fail(OperationStateError(f"Container cannot be run in state '{self.state.value}'"))

        listing: list[str] = []
        try:
            self._run_steps[self.operation]()
            if self.operation is ContainerOperation.LIST or self.operation.writes_container:
                listing = self._dump()
            if self.operation.writes_container:
                self._write()
        except ContainerError as e:
            self.state = ContainerState.FAILED
            return self._fail(e)

        self.state = ContainerState.COMPLETED
        self._log.info("=> Operation '%s' completed successfully", self.operation.value)
        return OperationResult.success(self.operation.value, listing)

    def shutdown(self) -> None:
        """Remove the staged tree (always safe to call)."""
        if self._staged is None:
            return
        try:
            self._staged.remove()
        except ContainerError as e:
            self._log.error("Failed to remove staging directory: %s", e)

    def __enter__(self) -> Container:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _fail(self, error: ContainerError) -> OperationResult:
        self._log.error("%s", error, exc_info=self._log.isEnabledFor(logging.DEBUG))
        return OperationResult.failure(self.operation.value, error)

    # Boot steps

    def _check_output_dir(self) -> None:
        output = self.args.output_path
        assert output is not None
        if output.exists() and not self.args.force:
            msg = f"Output directory already exists (use force to overwrite): {output}"
            raise ManifestValidationError(msg)

    def _require_existing_name(self) -> None:
        name = self._name()
        if not self._require_manifest().has_entry(name):
            msg = f"A model representation with name '{name}' does not exist"
            raise UnknownModelRepresentationError(msg)

    def _boot_create(self) -> None:
        output = self.args.output_path
        assert output is not None and self.args.input_dir is not None
        if output.exists() and not self.args.force:
            msg = f"Output container already exists (use force to overwrite): {output}"
            raise ManifestValidationError(msg)
        self._schema_copier = SchemaCopier(self.args.input_dir, self.staged.schema_dir, log=self._log)
        self._schema_copier.boot()

    def _boot_add_or_replace(self) -> None:
        name = self._name()
        replace = self.operation is ContainerOperation.REPLACE
        if replace:
            self._require_existing_name()
        elif self._require_manifest().has_entry(name):
            msg = f"A model representation with name '{name}' already exists"
            raise DuplicateModelRepresentationError(msg)

        assert self.args.input_dir is not None and self.args.manifest_file_name is not None
        self._copier = ModelRepresentationCopier(
            name,
            self.args.input_dir,
            self.args.manifest_file_name,
            self.staged.subtree(name),
            self.args.policy,
            replace=replace,
            log=self._log,
        )
        self._copier.boot()

    def _boot_extract(self) -> None:
        self._require_existing_name()
        self._check_output_dir()

    def _boot_unpack(self) -> None:
        self._require_existing_name()
        entry = self._require_manifest().get_entry(self._name())
        if entry.fmu_reference is None:
            msg = f"Model representation '{entry.name}' does not reference an FMU"
            raise ManifestValidationError(msg)

        fmu_path = self.staged.subtree(entry.name) / entry.fmu_reference
        if entry.fmu_is_file:
            has_reserved_dir = EFMU_DIR_NAME in top_level_names(fmu_path)
        else:
            has_reserved_dir = (fmu_path / EFMU_DIR_NAME).exists()
        if has_reserved_dir:
            msg = f"FMU contains an '{EFMU_DIR_NAME}' entry and cannot be unpacked into the container root: {entry.fmu_reference}"
            raise FileListingError(msg)

    # Run steps

    def _run_create(self) -> None:
        assert self.args.name is not None and self._schema_copier is not None
        self.manifest = ContainerManifest(name=self.args.name)
        self._log.info(">> Creating container '%s' (%s)", self.manifest.name, self.manifest.id)
        self._schema_copier.run()

    def _run_add_or_replace(self) -> None:
        if self._copier is None:
            msg = "Model representation copier has not been booted"
            raise OperationStateError(msg)
        self._copier.run(self._require_manifest())

    def _tidy_root(self) -> None:
        self._require_manifest().clear_active()
        self.staged.purge_root()

    def _run_delete(self) -> None:
        manifest = self._require_manifest()
        name = self._name()
        self._log.info(">> Removing model representation '%s'", name)
        manifest.remove_entry(name)
        remove_tree(self.staged.subtree(name), log=self._log)
        if manifest.is_active(name):
            self._tidy_root()
        self._log.info("=> Model representation has been removed successfully")

    def _replace_output_dir(self, source: Path) -> None:
        output = self.args.output_path
        assert output is not None
        if output.exists():
            remove_tree(output, log=self._log)
        copy_tree(source, output, log=self._log)

    def _run_extract(self) -> None:
        name = self._name()
        self._log.info(">> Extracting model representation '%s'", name)
        self._replace_output_dir(self.staged.subtree(name))
        self._log.info("=> Model representation has been extracted successfully")

    def _run_extract_schemas(self) -> None:
        self._log.info(">> Extracting schemas")
        self._replace_output_dir(self.staged.schema_dir)
        self._log.info("=> Schemas have been extracted successfully")

    def _run_unpack(self) -> None:
        manifest = self._require_manifest()
        entry = manifest.get_entry(self._name())
        assert entry.fmu_reference is not None
        self._tidy_root()

        self._log.info(">> Unpacking FMU of model representation '%s'", entry.name)
        fmu_path = self.staged.subtree(entry.name) / entry.fmu_reference
        if entry.fmu_is_file:
            extract_archive(fmu_path, self.staged.root, log=self._log)
        else:
            copy_tree(fmu_path, self.staged.root, log=self._log)
        manifest.set_active(entry.name)

    def _run_tidy_root(self) -> None:
        self._tidy_root()

    # Completion

    def _dump(self) -> list[str]:
        lines = [DUMP_HEADER, *self._require_manifest().describe(), DUMP_FOOTER]
        for line in lines:
            self._log.info(line)
        return lines

    def _write(self) -> None:
        target = self.args.target_container
        assert target is not None
        self._log.info(">> Writing container manifest")
        save_container_manifest(self._require_manifest(), self.staged.efmu_dir, self.args.policy, log=self._log)
        self.staged.pack(target)


def run_operation(args: CoreCallArguments, *, log: logging.Logger | None = None) -> tuple[OperationResult, Container]:
    """Boot, run and shut down a container operation.

    Returns:
        The result of the failing phase (or of run() on success) and the
        container, whose manifest stays available after shutdown.
    """
    with Container(args, log=log) as container:
        result = container.boot()
        if result.ok:
            result = container.run()
    return result, container
