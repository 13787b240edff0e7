"""Staged working copy of a container.

Every operation works on a private temporary directory: the container is
unzipped into it (or an empty tree is created), mutated, and zipped back.
The archive on disk is only replaced by the final pack, which writes to a
temporary file beside the target and renames it into place.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath

from efmucontainer.errors import ManifestValidationError, OperationStateError, io_boundary
from efmucontainer.layout import CONTAINER_MANIFEST_FILE_NAME, EFMU_DIR_NAME, SCHEMA_DIR_NAME

logger = logging.getLogger(__name__)

_TEMP_PREFIX = "efmu-"


def copy_tree(source: Path, destination: Path, *, log: logging.Logger | None = None) -> None:
    """Copy a directory tree, merging into an existing destination."""
    log = log or logger
    log.debug("Copying %s -> %s", source, destination)
    with io_boundary(f"copy {source} to {destination}", log):
        shutil.copytree(source, destination, dirs_exist_ok=True)


def remove_tree(path: Path, *, log: logging.Logger | None = None) -> None:
    """Remove a directory tree."""
    log = log or logger
    log.debug("Removing %s", path)
    with io_boundary(f"remove {path}", log):
        shutil.rmtree(path)


def top_level_names(archive_path: Path) -> set[str]:
    """First path components of all members of a zip archive."""
    with io_boundary(f"read archive {archive_path}"), zipfile.ZipFile(archive_path) as archive:
        names = archive.namelist()
    return {PurePosixPath(n).parts[0] for n in names if PurePosixPath(n).parts}


def extract_archive(archive_path: Path, destination: Path, *, log: logging.Logger | None = None) -> None:
    """Extract a zip archive into destination."""
    log = log or logger
    log.debug("Extracting %s -> %s", archive_path, destination)
    with io_boundary(f"extract {archive_path}", log), zipfile.ZipFile(archive_path) as archive:
        archive.extractall(destination)


class StagedTree:
    """Temporary directory holding the unpacked container.

    Attributes:
        root: Container root (None after removal).
    """

    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._log = log or logger
        with io_boundary("create temporary directory", self._log):
            self.root: Path | None = Path(tempfile.mkdtemp(prefix=_TEMP_PREFIX))
        self._log.debug("Staging directory: %s", self.root)

    def _require_root(self) -> Path:
        if self.root is None:
            msg = "Staged tree has already been removed"
            raise OperationStateError(msg)
        return self.root

    @property
    def efmu_dir(self) -> Path:
        return self._require_root() / EFMU_DIR_NAME

    @property
    def schema_dir(self) -> Path:
        return self.efmu_dir / SCHEMA_DIR_NAME

    @property
    def manifest_path(self) -> Path:
        return self.efmu_dir / CONTAINER_MANIFEST_FILE_NAME

    def subtree(self, name: str) -> Path:
        """Directory of a model representation."""
        return self.efmu_dir / name

    def init_empty(self) -> None:
        """Create the reserved directory of a new container."""
        with io_boundary("create reserved directory", self._log):
            self.efmu_dir.mkdir()

    def unpack(self, container_path: Path) -> None:
        """Unzip an existing container.

        Raises:
            ManifestValidationError: If the file does not exist or lacks the
                reserved directory.
            ContainerEnvironmentError: If the archive cannot be read.
        """
        if not container_path.is_file():
            msg = f"The container file does not exist: {container_path}"
            raise ManifestValidationError(msg)
        self._log.info(">> Reading zipped eFMU container: %s", container_path)
        extract_archive(container_path, self._require_root(), log=self._log)
        if not self.efmu_dir.is_dir():
            msg = f"Container has no {EFMU_DIR_NAME} directory, i.e. is no eFMU container: {container_path}"
            raise ManifestValidationError(msg)

    def pack(self, target: Path) -> None:
        """Zip the staged tree to target, replacing it atomically.

        Entries are written in sorted order; directories get their own
        entries so empty directories survive.
        """
        root = self._require_root()
        self._log.info(">> Writing zipped eFMU container: %s", target)
        with io_boundary(f"write container {target}", self._log):
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=target.name + ".", suffix=".tmp", dir=target.parent)
            os.close(fd)
            tmp_path = Path(tmp_name)
            try:
                with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                    for path in sorted(root.rglob("*")):
                        archive.write(path, path.relative_to(root).as_posix())
                os.replace(tmp_path, target)
            finally:
                if tmp_path.exists():
                    tmp_path.unlink()
        self._log.info("=> Successfully written eFMU container: %s", target)

    def purge_root(self) -> None:
        """Remove every root entry except the reserved directory."""
        root = self._require_root()
        self._log.info(">> Removing non-eFMU entities from container root")
        with io_boundary("clear container root", self._log):
            for path in root.iterdir():
                if path.name == EFMU_DIR_NAME and path.is_dir():
                    continue
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink()

    def remove(self) -> None:
        """Remove the staged tree (idempotent)."""
        if self.root is None:
            return
        root, self.root = self.root, None
        self._log.debug("Removing staging directory: %s", root)
        with io_boundary(f"remove staging directory {root}", self._log):
            shutil.rmtree(root)
