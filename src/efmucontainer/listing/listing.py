"""File listing cross-reference of sub-manifests.

A sub-manifest may carry a ``Files`` element enumerating the files of its
model representation. Reading it checks every entry against the sub-tree
the sub-manifest lives in:

- an entry with ``needsChecksum`` must carry a checksum, and the recorded
  value must match the digest of the backing file
- an entry without ``needsChecksum`` must not carry a checksum, and its
  backing path must exist (unless its path is "..", which marks files
  outside the container)
- FMU entries backed by a file must be readable zip archives

All entries are checked before the listing fails, so one run reports every
offending entry.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterator
from typing import TYPE_CHECKING

from efmucontainer.checksum import checksum_file
from efmucontainer.errors import (
    ChecksumMismatchError,
    ContainerError,
    ErrorKind,
    FileListingError,
    ManifestValidationError,
    io_boundary,
)
from efmucontainer.layout import FILE_ELEMENT, FILES_ELEMENT, UNCHECKABLE_PATH
from efmucontainer.listing.entry import FileEntryRole, FileListingEntry
from efmucontainer.validation.paths import (
    RELATIVE_URL_PREFIX,
    can_existence_be_ignored,
    is_absolute_path,
    to_relative_url,
)
from efmucontainer.validation.policy import STRICT_POLICY, ValidationPolicy
from efmucontainer.validation.xml import (
    child_elements,
    get_attribute,
    get_boolean_attribute,
    get_optional_attribute,
)

if TYPE_CHECKING:
    from pathlib import Path

    from lxml import etree

logger = logging.getLogger(__name__)


class FileListing:
    """Ordered set of file listing entries keyed by unique name.

    At most one entry may have an FMU role.
    """

    def __init__(self) -> None:
        self._entries: dict[str, FileListingEntry] = {}
        self._fmu_entry: FileListingEntry | None = None

    def add(self, entry: FileListingEntry) -> None:
        """Add an entry.

        Raises:
            FileListingError: If the name is taken or a second FMU entry is added.
        """
        if entry.unique_name in self._entries:
            msg = f"Unique name '{entry.unique_name}' is used multiple times in file listing"
            raise FileListingError(msg)
        if entry.role.is_fmu:
            if self._fmu_entry is not None:
                msg = "Reference to FMU is not unique in file listing"
                raise FileListingError(
                    msg,
                    details=[
                        f"1st FMU: {self._fmu_entry.relative_path}",
                        f"2nd FMU: {entry.relative_path}",
                    ],
                )
            self._fmu_entry = entry
        self._entries[entry.unique_name] = entry

    def get(self, unique_name: str) -> FileListingEntry | None:
        """Get entry by unique name."""
        return self._entries.get(unique_name)

    @property
    def entries(self) -> list[FileListingEntry]:
        """Entries in document order."""
        return list(self._entries.values())

    @property
    def fmu_entry(self) -> FileListingEntry | None:
        """The entry with FMU role, if any."""
        return self._fmu_entry

    def __contains__(self, unique_name: object) -> bool:
        return unique_name in self._entries

    def __iter__(self) -> Iterator[FileListingEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def parse_entry(elem: etree._Element) -> FileListingEntry:
    """Build an entry from a ``File`` element.

    Raises:
        ManifestValidationError: If attributes are missing or malformed.
    """
    role_value = get_attribute(elem, "role")
    try:
        role = FileEntryRole(role_value)
    except ValueError as e:
        msg = f"Unknown file role '{role_value}' (line {elem.sourceline})"
        raise ManifestValidationError(msg) from e

    path = get_attribute(elem, "path")
    if not path:
        msg = f"Empty path in file listing entry (line {elem.sourceline})"
        raise ManifestValidationError(msg)
    if is_absolute_path(path):
        msg = f"Absolute path '{path}' in file listing entry is not supported (line {elem.sourceline})"
        raise ManifestValidationError(msg)

    return FileListingEntry(
        id=get_attribute(elem, "id"),
        unique_name=get_attribute(elem, "name"),
        path=path,
        role=role,
        needs_checksum=get_boolean_attribute(elem, "needsChecksum"),
        checksum=get_optional_attribute(elem, "checksum"),
    )


def _check_fmu_archive(filepath: Path) -> None:
    try:
        with zipfile.ZipFile(filepath):
            pass
    except (zipfile.BadZipFile, OSError) as e:
        msg = f"FMU file could not be opened as zip archive: {filepath}"
        raise FileListingError(msg, details=[str(e)]) from e


def verify_entry(
    entry: FileListingEntry,
    subtree_root: Path,
    policy: ValidationPolicy = STRICT_POLICY,
    *,
    log: logging.Logger | None = None,
) -> FileListingEntry:
    """Check one entry against the sub-tree.

    Returns:
        The entry, or a copy carrying the computed checksum if checksums are
        relaxed and the recorded one did not match.

    Raises:
        FileListingError: On missing backing files or checksum attribute misuse.
        ChecksumMismatchError: On a mismatch under the strict policy.
    """
    log = log or logger
    backing = entry.backing_path(subtree_root)

    if not entry.path.startswith(RELATIVE_URL_PREFIX) and entry.path != UNCHECKABLE_PATH:
        log.warning(
            "Path of '%s' should start with '%s': %s (expected %s)",
            entry.unique_name,
            RELATIVE_URL_PREFIX,
            entry.path,
            to_relative_url(entry.path),
        )

    if entry.needs_checksum:
        if entry.checksum is None:
            msg = f"Missing checksum for file listing entry '{entry.unique_name}'"
            raise FileListingError(msg)
        if not backing.is_file():
            msg = f"File listed with checksum does not exist: {backing}"
            raise FileListingError(msg)
        with io_boundary(f"compute checksum of {backing}", log):
            actual = checksum_file(backing, policy.checksum_algorithm)
        if actual != entry.checksum:
            msg = f"Checksum mismatch for file '{entry.relative_path}'"
            details = [f"recorded: {entry.checksum}", f"computed: {actual}"]
            if policy.validate_checksums:
                raise ChecksumMismatchError(msg, details=details)
            log.warning("%s (recorded %s, computed %s); using computed value", msg, entry.checksum, actual)
            entry = entry.with_checksum(actual)
    else:
        if entry.checksum is not None:
            msg = f"Checksum given for file listing entry '{entry.unique_name}' that does not need one"
            raise FileListingError(msg)
        if not can_existence_be_ignored(entry.path) and not backing.exists():
            msg = f"Listed file or directory does not exist: {backing}"
            raise FileListingError(msg)

    if entry.role.is_fmu and backing.is_file():
        _check_fmu_archive(backing)

    return entry


def read_file_listing(
    document: etree._ElementTree | etree._Element,
    subtree_root: Path,
    policy: ValidationPolicy = STRICT_POLICY,
    *,
    log: logging.Logger | None = None,
) -> FileListing:
    """Read and cross-reference the file listing of a sub-manifest.

    Args:
        document: Parsed sub-manifest (or its root element).
        subtree_root: Directory the sub-manifest's paths are relative to.
        policy: Checksum policy and algorithm.
        log: Logger for progress output.

    Returns:
        The verified listing; empty if the document has no ``Files`` element.

    Raises:
        FileListingError: If any entry fails (all failures as details).
        ChecksumMismatchError: If the only failures are checksum mismatches.
    """
    log = log or logger
    root = document.getroot() if hasattr(document, "getroot") else document

    files_elements = child_elements(root, FILES_ELEMENT)
    listing = FileListing()
    if not files_elements:
        log.debug("No file listing in sub-manifest")
        return listing

    file_elements = child_elements(files_elements[0], FILE_ELEMENT)
    if not file_elements:
        msg = f"Element '{FILES_ELEMENT}' does not list any '{FILE_ELEMENT}'"
        raise FileListingError(msg)

    log.info("> Checking file listing (%d entries)", len(file_elements))
    failures: list[ContainerError] = []
    for elem in file_elements:
        try:
            entry = verify_entry(parse_entry(elem), subtree_root, policy, log=log)
        except ContainerError as e:
            if e.kind is ErrorKind.ENVIRONMENT:
                raise
            log.error("%s", e)
            failures.append(e)
            continue
        # Uniqueness and the single-FMU rule hold regardless of checksum policy
        listing.add(entry)

    if failures:
        details = [str(f) for f in failures]
        msg = f"File listing check failed for {len(failures)} of {len(file_elements)} entries"
        if all(f.kind is ErrorKind.INTEGRITY for f in failures):
            raise ChecksumMismatchError(msg, details=details)
        raise FileListingError(msg, details=details)

    log.info("=> File listing has been checked successfully")
    return listing
