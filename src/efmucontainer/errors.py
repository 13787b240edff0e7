"""Error taxonomy for container operations.

Three kinds of failure are distinguished:
- STRUCTURAL: missing files, malformed paths, duplicate names, version or
  schema violations, id mismatches. Always fatal, never corrected.
- INTEGRITY: checksum mismatches. Fatal under the strict policy, downgraded
  to a warning (and repaired in memory) under the relaxed one.
- ENVIRONMENT: I/O failures and corrupt archives, caught at the boundary of
  a filesystem/archive call and converted into an operation failure.
"""

from __future__ import annotations

import shutil
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import logging


class ErrorKind(str, Enum):
    """Classification of a container failure."""

    STRUCTURAL = "structural"
    INTEGRITY = "integrity"
    ENVIRONMENT = "environment"


class ContainerError(Exception):
    """Base exception for container operations.

    Attributes:
        kind: Failure classification.
        details: Additional diagnostic lines (one fact per line).
    """

    kind: ErrorKind = ErrorKind.STRUCTURAL

    def __init__(self, message: str, *, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: list[str] = list(details or [])

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return self.message + "\n" + "\n".join(f"  - {d}" for d in self.details)


class ManifestValidationError(ContainerError):
    """Raised when a manifest or one of its entries is inconsistent."""


class SchemaValidationError(ContainerError):
    """Raised when a document violates its XML schema."""


class PathRuleError(ContainerError):
    """Raised when a path violates the archive naming conventions."""


class DuplicateModelRepresentationError(ContainerError):
    """Raised when a model representation name is already registered."""


class UnknownModelRepresentationError(ContainerError):
    """Raised when a model representation name is not registered."""


class FileListingError(ContainerError):
    """Raised when a sub-manifest file listing does not match the filesystem."""


class ChecksumMismatchError(ContainerError):
    """Raised when a recorded checksum differs from the computed one."""

    kind = ErrorKind.INTEGRITY


class OperationStateError(ContainerError):
    """Raised when the operation state machine is driven out of order."""


class ContainerEnvironmentError(ContainerError):
    """Raised when a filesystem or archive call fails."""

    kind = ErrorKind.ENVIRONMENT


@contextmanager
def io_boundary(description: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """Convert filesystem/archive faults raised inside the block.

    Args:
        description: What the block does, used in the error message.
        logger: Logger receiving the traceback at DEBUG level.

    Raises:
        ContainerEnvironmentError: If the block raised OSError, BadZipFile
            or shutil.Error.
    """
    try:
        yield
    except (OSError, zipfile.BadZipFile, shutil.Error) as e:
        if logger is not None:
            logger.debug("I/O failure while trying to %s", description, exc_info=True)
        msg = f"Failed to {description}: {e}"
        raise ContainerEnvironmentError(msg) from e


@dataclass(frozen=True)
class OperationResult:
    """Outcome of booting or running a container operation.

    Attributes:
        operation: Operation name.
        ok: True if the phase succeeded.
        error_kind: Failure classification (None on success).
        message: Human-readable diagnostic (empty on success).
        details: Additional diagnostic lines.
        listing: Content dump produced by the phase, if any.
    """

    operation: str
    ok: bool
    error_kind: ErrorKind | None = None
    message: str = ""
    details: tuple[str, ...] = ()
    listing: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def success(cls, operation: str, listing: list[str] | None = None) -> OperationResult:
        """Build a successful result."""
        return cls(operation=operation, ok=True, listing=tuple(listing or ()))

    @classmethod
    def failure(cls, operation: str, error: ContainerError) -> OperationResult:
        """Build a failed result from a container error."""
        return cls(
            operation=operation,
            ok=False,
            error_kind=error.kind,
            message=error.message,
            details=tuple(error.details),
        )
