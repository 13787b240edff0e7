"""Content checksums for files and directory trees.

Digests are lowercase hex strings. The algorithm is a deployment parameter
(any hashlib name); all digests of one manifest must use the same one.

Directory digest protocol:
    1. list every file and directory below the root, recursively
    2. express each entry relative to the root with "/" as separator
    3. sort the relative paths ordinally
    4. feed one running digest, per entry: UTF-8 bytes of the relative
       path, followed by the raw file bytes (files only)
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_CHECKSUM_ALGORITHM = "sha1"

_CHUNK_SIZE = 8192

logger = logging.getLogger(__name__)


def _new_hasher(algorithm: str) -> hashlib._Hash:
    try:
        return hashlib.new(algorithm)
    except ValueError as e:
        msg = f"Unsupported checksum algorithm: {algorithm!r}"
        raise ValueError(msg) from e


def _feed_file(hasher: hashlib._Hash, filepath: Path) -> None:
    with filepath.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)


def checksum_file(filepath: Path, algorithm: str = DEFAULT_CHECKSUM_ALGORITHM) -> str:
    """Compute the digest of a single file.

    Args:
        filepath: Path to file.
        algorithm: hashlib algorithm name.

    Returns:
        Hex-encoded lowercase digest.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If the algorithm is not supported.
    """
    hasher = _new_hasher(algorithm)
    _feed_file(hasher, filepath)
    return hasher.hexdigest()


def directory_entries(dirpath: Path) -> list[tuple[str, Path]]:
    """List all entries below a directory in hashing order.

    Returns:
        (relative posix path, absolute path) pairs sorted ordinally by the
        relative path.
    """
    entries = [(p.relative_to(dirpath).as_posix(), p) for p in dirpath.rglob("*")]
    entries.sort(key=lambda e: e[0])
    return entries


def checksum_directory(
    dirpath: Path,
    algorithm: str = DEFAULT_CHECKSUM_ALGORITHM,
    *,
    log: logging.Logger | None = None,
) -> str:
    """Compute the digest of a directory tree.

    The result depends only on relative path strings and file contents,
    not on filesystem traversal order or the native path separator.

    Args:
        dirpath: Root of the tree.
        algorithm: hashlib algorithm name.
        log: Logger for per-entry debug output.

    Returns:
        Hex-encoded lowercase digest.

    Raises:
        NotADirectoryError: If dirpath is not a directory.
    """
    log = log or logger
    if not dirpath.is_dir():
        msg = f"Not a directory: {dirpath}"
        raise NotADirectoryError(msg)

    hasher = _new_hasher(algorithm)
    log.debug("Computing checksum of directory %s", dirpath)
    for rel_path, entry in directory_entries(dirpath):
        hasher.update(rel_path.encode("utf-8"))
        if entry.is_file():
            log.debug(" => file: %s", rel_path)
            _feed_file(hasher, entry)
        else:
            log.debug(" => directory: %s", rel_path)
    return hasher.hexdigest()
