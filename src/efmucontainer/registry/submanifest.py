"""Reading the sub-manifest of a model representation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from efmucontainer.errors import FileListingError, ManifestValidationError
from efmucontainer.registry.representation import ModelRepresentationKind
from efmucontainer.validation.paths import categorize_fmu_reference, check_fmu_reference
from efmucontainer.validation.policy import STRICT_POLICY, ValidationPolicy
from efmucontainer.validation.schema import validate_document
from efmucontainer.validation.xml import get_attribute, load_document

if TYPE_CHECKING:
    from pathlib import Path

    from lxml import etree

    from efmucontainer.listing import FileListing

logger = logging.getLogger(__name__)

SUB_MANIFEST_KIND = "model representation manifest"


def read_sub_manifest(
    manifest_path: Path,
    anchor_dir: Path,
    policy: ValidationPolicy = STRICT_POLICY,
    *,
    log: logging.Logger | None = None,
) -> etree._ElementTree:
    """Load a sub-manifest and validate it against its schema.

    Args:
        manifest_path: Sub-manifest file.
        anchor_dir: Directory the schema reference is resolved against. This
            is the staged ``eFMU/<name>`` directory, also for sub-manifests
            that are still outside the container.
        policy: Validation policy.
        log: Logger for progress output.

    Raises:
        ManifestValidationError: If the file is missing or malformed.
        SchemaValidationError: If schema validation is enabled and fails.
    """
    log = log or logger
    document = load_document(manifest_path, SUB_MANIFEST_KIND)
    if policy.validate_schema:
        validate_document(document, anchor_dir, description=SUB_MANIFEST_KIND, log=log)
    else:
        log.debug("Skipping schema validation of %s", manifest_path)
    return document


def sub_manifest_id(document: etree._ElementTree) -> str:
    """Id declared by the sub-manifest root."""
    return get_attribute(document.getroot(), "id")


def sub_manifest_kind(document: etree._ElementTree) -> ModelRepresentationKind:
    """Kind declared by the sub-manifest root."""
    return ModelRepresentationKind.parse(get_attribute(document.getroot(), "kind"))


def check_manifest_ref_id(document: etree._ElementTree, manifest_ref_id: str) -> None:
    """Require the sub-manifest id to equal the id recorded by the container.

    Raises:
        ManifestValidationError: If the ids differ.
    """
    manifest_id = sub_manifest_id(document)
    if manifest_id != manifest_ref_id:
        msg = "Mismatch of manifest ids"
        raise ManifestValidationError(
            msg,
            details=[
                f"Id from container manifest: {manifest_ref_id}",
                f"Id from model representation manifest: {manifest_id}",
            ],
        )


def derive_fmu_reference(
    listing: FileListing,
    subtree_root: Path,
    *,
    log: logging.Logger | None = None,
) -> str | None:
    """Derive the FMU reference from the listing's FMU entry.

    Returns:
        Path of the FMU file or folder relative to subtree_root, or None if
        the listing has no FMU entry.

    Raises:
        PathRuleError: If the entry name is neither ``FMU`` nor ``*.fmu``.
        FileListingError: If the referenced FMU is missing or has the wrong shape.
    """
    log = log or logger
    entry = listing.fmu_entry
    if entry is None:
        return None

    check_fmu_reference(entry.unique_name)
    reference = entry.relative_path
    log.debug("Found reference to FMU: %s", reference)

    fmu_path = entry.backing_path(subtree_root)
    if categorize_fmu_reference(reference):
        if not fmu_path.is_file():
            msg = f"The referenced FMU file does not exist: {fmu_path}"
            raise FileListingError(msg)
    elif not fmu_path.is_dir():
        msg = f"The referenced FMU folder does not exist: {fmu_path}"
        raise FileListingError(msg)
    return reference
