"""Path and name rules of the archive format.

All predicates are pure (no filesystem access except for resolving relative
directories against the working directory). ``check_*`` variants raise
PathRuleError with a diagnostic instead of returning False.

Paths written into manifests always use "/" and, for relative paths, the
"./" prefix.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath

from efmucontainer.errors import PathRuleError
from efmucontainer.layout import (
    CONTAINER_MANIFEST_FILE_NAME,
    FMU_DIR_NAME,
    FMU_FILE_SUFFIX,
    SCHEMA_DIR_NAME,
    UNCHECKABLE_PATH,
)

CURRENT_DIRECTORY = "."
RELATIVE_URL_PREFIX = CURRENT_DIRECTORY + "/"

# Entries of the eFMU directory that are not model representation sub-trees
RESERVED_NAMES = frozenset({SCHEMA_DIR_NAME, CONTAINER_MANIFEST_FILE_NAME})

# Characters that are invalid in file names on at least one supported platform
_INVALID_NAME_CHARS = frozenset('<>:"|?*\0') | frozenset(chr(c) for c in range(32))


def _is_rooted(pathname: str) -> bool:
    # Accept both native and Windows notation so manifests written on one
    # platform are judged the same way on the other
    return (
        PurePosixPath(pathname).is_absolute()
        or PureWindowsPath(pathname).is_absolute()
        or PureWindowsPath(pathname).drive != ""
        or pathname.startswith(("/", "\\"))
    )


def _split(pathname: str) -> list[str]:
    return [part for part in pathname.replace("\\", "/").split("/") if part]


def is_absolute_path(pathname: str) -> bool:
    """Check if a path is absolute (rooted)."""
    return _is_rooted(pathname)


def is_file_name(pathname: str) -> bool:
    """Check if a path is a bare file name.

    A bare file name has no directory part other than an optional "./".
    """
    if not pathname or _is_rooted(pathname):
        return False
    parts = _split(pathname)
    if parts and parts[0] == CURRENT_DIRECTORY:
        parts = parts[1:]
    return len(parts) == 1 and parts[0] not in (CURRENT_DIRECTORY, "..")


def is_well_formed_dir_name(dirname: str) -> bool:
    """Check that a directory path contains no invalid characters."""
    if not dirname:
        return False
    drive = PureWindowsPath(dirname).drive
    rest = dirname[len(drive) :] if drive else dirname
    return not any(c in _INVALID_NAME_CHARS for c in rest)


def is_well_formed_file_name(filename: str) -> bool:
    """Check that the directory and base name parts contain no invalid characters."""
    if not filename:
        return False
    parts = _split(filename)
    if not parts:
        return False
    base = parts[-1]
    directory = filename[: len(filename) - len(base)]
    if directory and not is_well_formed_dir_name(directory):
        return False
    return not any(c in _INVALID_NAME_CHARS for c in base)


def has_extension(filename: str, extension: str) -> bool:
    """Check if a file name ends with the given extension (case-sensitive)."""
    return PurePath(filename.replace("\\", "/")).suffix == extension


def is_bare_name(name: str) -> bool:
    """Check that a name contains no path separators and is not special."""
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


def is_reserved_name(name: str) -> bool:
    """Check if a name is taken by the container's own entries in eFMU/."""
    return name in RESERVED_NAMES


def is_directory_prefix_of(dir1: str | Path, dir2: str | Path) -> bool:
    """Check if dir1 is equal to or a parent of dir2.

    Compares resolved absolute paths component-wise, so /a/dir is not a
    prefix of /a/dir_other.
    """
    path1 = Path(os.path.abspath(dir1))
    path2 = Path(os.path.abspath(dir2))
    return path2 == path1 or path1 in path2.parents


def can_existence_be_ignored(path: str) -> bool:
    """Check if a file listing path is the "cannot be checked" sentinel."""
    return path == UNCHECKABLE_PATH


def equals_except_relative_prefix(name: str, ref_name: str) -> bool:
    """Compare two names, ignoring an optional leading "./"."""
    if name == ref_name:
        return True
    return name in (RELATIVE_URL_PREFIX + ref_name, CURRENT_DIRECTORY + os.sep + ref_name)


def to_relative_url(pathname: str) -> str:
    """Convert a relative path to manifest notation.

    Separators become "/", a "./" prefix is prepended (except for "." and
    the sentinel path) and a trailing "/" is dropped.
    """
    url = pathname.replace("\\", "/")
    if url not in (CURRENT_DIRECTORY, UNCHECKABLE_PATH) and not url.startswith(RELATIVE_URL_PREFIX):
        url = RELATIVE_URL_PREFIX + url
    if url.endswith("/"):
        url = url[:-1]
    return url


def file_or_dir_name(qualifier: str) -> str:
    """Return the last component of a path ("a/b/" -> "b")."""
    parts = _split(qualifier)
    return parts[-1] if parts else qualifier


def categorize_fmu_reference(fmu_reference: str) -> bool:
    """Classify an FMU reference.

    Returns:
        True for an FMU file (``*.fmu``), False for an FMU folder (``FMU``).

    Raises:
        PathRuleError: If the reference is neither.
    """
    if fmu_reference.endswith(FMU_FILE_SUFFIX):
        return True
    if equals_except_relative_prefix(fmu_reference, FMU_DIR_NAME) or file_or_dir_name(fmu_reference) == FMU_DIR_NAME:
        return False
    msg = f"FMU reference is neither a {FMU_FILE_SUFFIX} file nor a {FMU_DIR_NAME} folder: {fmu_reference}"
    raise PathRuleError(msg)


def check_relative(pathname: str) -> None:
    """Raise PathRuleError if the path is absolute."""
    if is_absolute_path(pathname):
        msg = f"The path {pathname} is not a relative path"
        raise PathRuleError(msg)


def check_file_name(pathname: str) -> None:
    """Raise PathRuleError if the path is not a bare file name."""
    if not is_file_name(pathname):
        msg = f"The path {pathname} is not a file name, but an absolute/relative path"
        raise PathRuleError(msg)


def check_bare_name(name: str, kind: str) -> None:
    """Raise PathRuleError for registry names that are not bare or are reserved."""
    if not is_bare_name(name):
        msg = f"Invalid {kind} name (must not contain path separators): {name!r}"
        raise PathRuleError(msg)
    if is_reserved_name(name):
        msg = f"Invalid {kind} name (reserved by the container): {name!r}"
        raise PathRuleError(msg)


def check_extension_and_file_name(filename: str, extension: str, kind: str | None = None) -> None:
    """Raise PathRuleError unless the file has the extension and a valid name."""
    label = f"'{kind}' " if kind else ""
    if not has_extension(filename, extension):
        msg = f"Not a {label}{extension} file: {filename}"
        raise PathRuleError(msg)
    if not is_well_formed_file_name(filename):
        msg = f"Invalid path for {label}{extension} file: {filename}"
        raise PathRuleError(msg)


def check_fmu_reference(unique_name: str) -> None:
    """Raise PathRuleError unless the name is ``FMU`` or a well-formed ``*.fmu`` file."""
    if unique_name == FMU_DIR_NAME:
        return
    check_extension_and_file_name(unique_name, FMU_FILE_SUFFIX, "referenced FMU")
