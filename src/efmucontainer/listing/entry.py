"""File listing entries of a sub-manifest's ``Files`` section."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class FileEntryRole(str, Enum):
    """Role of a listed file.

    The values are the wire values of the ``role`` attribute. The sub-manifest
    itself is never listed: it is referenced (and checksummed) by the
    container manifest instead.
    """

    CODE = "Code"
    FMU = "FMU"
    FMU_FOLDER = "FMUFolder"
    REFERENCE_DATA = "ReferenceData"
    OTHER = "other"

    @property
    def is_fmu(self) -> bool:
        """True for FMU files and FMU folders."""
        return self in (FileEntryRole.FMU, FileEntryRole.FMU_FOLDER)


@dataclass(frozen=True)
class FileListingEntry:
    """Single entry of a file listing.

    Attributes:
        id: Entry identifier from the sub-manifest.
        unique_name: File or directory name, unique within the listing.
        path: Directory of the entry relative to the sub-tree root ("./src").
        role: Role of the entry.
        needs_checksum: Whether a checksum is recorded and must be verified.
        checksum: Recorded (or repaired) checksum; None if not required.
    """

    id: str
    unique_name: str
    path: str
    role: FileEntryRole
    needs_checksum: bool
    checksum: str | None = None

    @property
    def relative_path(self) -> str:
        """Path of the entry relative to the sub-tree root, "/"-separated."""
        return PurePosixPath(self.path.replace("\\", "/"), self.unique_name).as_posix()

    def backing_path(self, subtree_root: Path) -> Path:
        """Filesystem path of the entry below subtree_root."""
        return subtree_root.joinpath(*PurePosixPath(self.relative_path).parts)

    def with_checksum(self, checksum: str) -> FileListingEntry:
        """Return a copy carrying a different checksum."""
        return replace(self, checksum=checksum)
