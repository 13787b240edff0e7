"""Validation policy shared by all manifest readers."""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, ConfigDict, Field, field_validator

from efmucontainer.checksum import DEFAULT_CHECKSUM_ALGORITHM


class ValidationPolicy(BaseModel):
    """How strictly manifests are validated (frozen).

    Schema conformance has no relaxed mode: when enabled, any violation is
    fatal. Checksums can be relaxed, in which case mismatches are logged and
    the freshly computed value replaces the recorded one in memory.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    validate_schema: bool = Field(
        default=True,
        description="Validate read/written manifests against their XML schema",
    )
    validate_checksums: bool = Field(
        default=True,
        description="Treat checksum mismatches as errors (False: warn and repair)",
    )
    checksum_algorithm: str = Field(
        default=DEFAULT_CHECKSUM_ALGORITHM,
        description="hashlib algorithm used for all digests of a container",
    )

    @field_validator("checksum_algorithm", mode="before")
    @classmethod
    def validate_checksum_algorithm(cls, v: object) -> str:
        """Ensure the algorithm is available in hashlib."""
        if not isinstance(v, str):
            raise ValueError(f"checksum_algorithm must be a string, got {type(v).__name__}")
        name = v.strip().lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported checksum algorithm: {v!r}")
        return name


STRICT_POLICY = ValidationPolicy()
