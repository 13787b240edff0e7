"""Container manifest: registry of model representations.

Stored as ``eFMU/__content.xml``:

    <Content id="{...}" xsdVersion="0.9.0" efmiVersion="1.0.0" name="demo"
             generationDateAndTime="2026-01-25T12:00:00Z" activeFmu="m1"
             xsi:noNamespaceSchemaLocation="schemas/efmiContainerManifest.xsd">
      <ModelRepresentation name="m1" kind="ProductionCode"
                           manifest="manifest.xml" checksum="..."
                           manifestRefId="..."/>
    </Content>

Reading the manifest validates every model representation against its
sub-tree (see ``read_model_representation``); a manifest is either fully
consistent or not read at all. Writing always rebuilds the document from
the in-memory registry.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from lxml import etree

from efmucontainer.checksum import checksum_file
from efmucontainer.errors import (
    ChecksumMismatchError,
    ContainerError,
    DuplicateModelRepresentationError,
    ManifestValidationError,
    UnknownModelRepresentationError,
    io_boundary,
)
from efmucontainer.layout import (
    ACTIVE_FMU_ATTRIBUTE,
    CONTAINER_MANIFEST_FILE_NAME,
    CONTAINER_MANIFEST_SCHEMA_URL,
    CONTENT_ELEMENT,
    GENERATION_TIMESTAMP_ATTRIBUTE,
    GENERATION_TIMESTAMP_FORMAT,
    MODEL_REPRESENTATION_ELEMENT,
    SCHEMA_LOCATION_ATTRIBUTE,
    XSI_NAMESPACE,
)
from efmucontainer.listing import read_file_listing
from efmucontainer.registry.representation import ModelRepresentation, ModelRepresentationKind
from efmucontainer.registry.submanifest import (
    check_manifest_ref_id,
    derive_fmu_reference,
    read_sub_manifest,
)
from efmucontainer.registry.version import (
    SUPPORTED_EFMI_VERSION,
    SUPPORTED_XSD_VERSION,
    check_supported_version,
)
from efmucontainer.validation.paths import check_bare_name, check_file_name, check_relative
from efmucontainer.validation.policy import STRICT_POLICY, ValidationPolicy
from efmucontainer.validation.schema import validate_document
from efmucontainer.validation.xml import (
    child_elements,
    get_attribute,
    get_optional_attribute,
    load_document,
    local_name,
    write_document,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONTAINER_MANIFEST_KIND = "container manifest"


def new_container_id() -> str:
    """Generate a container identifier ("{<uuid4>}")."""
    return "{" + str(uuid.uuid4()) + "}"


def generation_timestamp(now: datetime | None = None) -> str:
    """Format a generation timestamp (UTC, second resolution)."""
    now = now or datetime.now(UTC)
    return now.astimezone(UTC).strftime(GENERATION_TIMESTAMP_FORMAT)


@dataclass
class ContainerManifest:
    """In-memory container manifest.

    Attributes:
        name: Container name.
        id: Container identifier, generated on creation, preserved on read.
        xsd_version: Container manifest schema version.
        efmi_version: eFMI version.
        generated_at: Generation timestamp, refreshed on every write.
        active_name: Model representation unpacked at the container root.
        representations: Registry keyed by model representation name.
    """

    name: str
    id: str = field(default_factory=new_container_id)
    xsd_version: str = SUPPORTED_XSD_VERSION
    efmi_version: str = SUPPORTED_EFMI_VERSION
    generated_at: str = field(default="", compare=False)
    active_name: str | None = None
    representations: dict[str, ModelRepresentation] = field(default_factory=dict)

    def has_entry(self, name: str) -> bool:
        """Check if a model representation is registered."""
        return name in self.representations

    def get_entry(self, name: str) -> ModelRepresentation:
        """Get model representation by name.

        Raises:
            UnknownModelRepresentationError: If not registered.
        """
        try:
            return self.representations[name]
        except KeyError as e:
            msg = f"A model representation with name '{name}' does not exist"
            raise UnknownModelRepresentationError(msg) from e

    def add_entry(self, entry: ModelRepresentation) -> None:
        """Register a model representation.

        Raises:
            DuplicateModelRepresentationError: If the name is taken. The
                registry is left unchanged.
        """
        if entry.name in self.representations:
            msg = f"A model representation with name '{entry.name}' already exists"
            raise DuplicateModelRepresentationError(msg)
        self.representations[entry.name] = entry

    def remove_entry(self, name: str) -> ModelRepresentation:
        """Unregister a model representation and return it.

        Does not touch the active reference; callers decide whether the root
        must be tidied.

        Raises:
            UnknownModelRepresentationError: If not registered.
        """
        entry = self.get_entry(name)
        del self.representations[name]
        return entry

    @property
    def entries(self) -> list[ModelRepresentation]:
        """Entries in ascending name order."""
        return [self.representations[name] for name in sorted(self.representations)]

    @property
    def active_entry(self) -> ModelRepresentation | None:
        if self.active_name is None:
            return None
        return self.representations.get(self.active_name)

    def is_active(self, name: str) -> bool:
        return self.active_name is not None and self.active_name == name

    def set_active(self, name: str) -> None:
        """Mark a production code representation as unpacked at the root.

        Raises:
            UnknownModelRepresentationError: If not registered.
            ManifestValidationError: If it is not production code.
        """
        entry = self.get_entry(name)
        if not entry.is_production_code:
            msg = (
                f"The active model representation does not have kind "
                f"'{ModelRepresentationKind.PRODUCTION_CODE.value}' but '{entry.kind.value}'"
            )
            raise ManifestValidationError(msg)
        self.active_name = name

    def clear_active(self) -> None:
        self.active_name = None

    def check_active(self) -> None:
        """Verify the active reference, if any.

        Raises:
            ManifestValidationError: If it names a missing or non production
                code representation.
        """
        if self.active_name is None:
            return
        if not self.has_entry(self.active_name):
            msg = f"Active model representation '{self.active_name}' does not exist"
            raise ManifestValidationError(msg)
        self.set_active(self.active_name)

    def to_element(self, now: datetime | None = None) -> etree._Element:
        """Build the manifest document.

        Refreshes ``generated_at``.

        Raises:
            PathRuleError: If a manifest path is not a relative file name.
        """
        self.generated_at = generation_timestamp(now)

        root = etree.Element(CONTENT_ELEMENT, nsmap={"xsi": XSI_NAMESPACE})
        root.set("id", self.id)
        root.set("xsdVersion", self.xsd_version)
        root.set("efmiVersion", self.efmi_version)
        root.set("name", self.name)
        root.set(GENERATION_TIMESTAMP_ATTRIBUTE, self.generated_at)
        if self.active_name is not None:
            root.set(ACTIVE_FMU_ATTRIBUTE, self.active_name)
        root.set(SCHEMA_LOCATION_ATTRIBUTE, CONTAINER_MANIFEST_SCHEMA_URL)

        for entry in self.entries:
            check_relative(entry.manifest)
            check_file_name(entry.manifest)
            elem = etree.SubElement(root, MODEL_REPRESENTATION_ELEMENT)
            elem.set("name", entry.name)
            elem.set("kind", entry.kind.value)
            elem.set("manifest", entry.manifest)
            elem.set("checksum", entry.checksum)
            elem.set("manifestRefId", entry.manifest_ref_id)
        return root

    @classmethod
    def from_element(
        cls,
        root: etree._Element,
        efmu_dir: Path,
        policy: ValidationPolicy = STRICT_POLICY,
        *,
        log: logging.Logger | None = None,
    ) -> ContainerManifest:
        """Build a manifest from its document, validating every entry.

        Args:
            root: ``Content`` element.
            efmu_dir: Staged ``eFMU`` directory holding the sub-trees.
            policy: Validation policy.
            log: Logger for progress output.

        Raises:
            ContainerError: If any attribute, version or entry is invalid.
        """
        log = log or logger
        log.info("> Extracting data from container manifest")

        if local_name(root) != CONTENT_ELEMENT:
            msg = f"Unexpected root element '{local_name(root)}' of container manifest"
            raise ManifestValidationError(msg)

        container_id = get_attribute(root, "id")
        xsd_version = check_supported_version(get_attribute(root, "xsdVersion"), SUPPORTED_XSD_VERSION, "xsdVersion")
        efmi_version = check_supported_version(
            get_attribute(root, "efmiVersion"), SUPPORTED_EFMI_VERSION, "efmiVersion"
        )
        manifest = cls(
            name=get_attribute(root, "name"),
            id=container_id,
            xsd_version=str(xsd_version),
            efmi_version=str(efmi_version),
            generated_at=get_attribute(root, GENERATION_TIMESTAMP_ATTRIBUTE),
        )
        active_name = get_optional_attribute(root, ACTIVE_FMU_ATTRIBUTE)

        elems = child_elements(root, MODEL_REPRESENTATION_ELEMENT)
        log.info("> Checking %d model representation(s)", len(elems))
        for ordinal, elem in enumerate(elems):
            entry = read_model_representation(elem, ordinal, efmu_dir, manifest, policy, log=log)
            manifest.add_entry(entry)

        manifest.active_name = active_name
        manifest.check_active()

        log.info("=> Container manifest has been read successfully")
        return manifest

    def describe(self) -> list[str]:
        """Deterministic human-readable dump, entries ordered by name."""
        lines = [
            f" id: {self.id}",
            f" xsdVersion: {self.xsd_version}",
            f" efmiVersion: {self.efmi_version}",
            f" name: {self.name}",
            f" creationDate: {self.generated_at}",
        ]
        if self.active_name is not None:
            lines.append(f" activeFmu: {self.active_name}")
        for index, entry in enumerate(self.entries):
            lines.extend(entry.describe(index))
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "xsd_version": self.xsd_version,
            "efmi_version": self.efmi_version,
            "name": self.name,
            "generated_at": self.generated_at,
            "active_fmu": self.active_name,
            "model_representations": [e.to_dict() for e in self.entries],
        }


def read_model_representation(
    elem: etree._Element,
    ordinal: int,
    efmu_dir: Path,
    manifest: ContainerManifest,
    policy: ValidationPolicy = STRICT_POLICY,
    *,
    log: logging.Logger | None = None,
) -> ModelRepresentation:
    """Validate one ``ModelRepresentation`` element against its sub-tree.

    Checks, in order: required attributes, manifest is a file name, name is
    not yet registered, kind, sub-tree and sub-manifest exist, sub-manifest
    checksum, sub-manifest schema, id agreement, file listing and (for
    production code) the FMU reference. The first failure stops the chain.

    Returns:
        The verified entry; under relaxed checksums it carries the computed
        sub-manifest checksum.

    Raises:
        ContainerError: Of the failing check, with the entry ordinal prefixed.
    """
    log = log or logger
    try:
        return _read_model_representation(elem, efmu_dir, manifest, policy, log)
    except ContainerError as e:
        msg = f"Model representation #{ordinal}: {e.message}"
        raise type(e)(msg, details=e.details) from e


def _read_model_representation(
    elem: etree._Element,
    efmu_dir: Path,
    manifest: ContainerManifest,
    policy: ValidationPolicy,
    log: logging.Logger,
) -> ModelRepresentation:
    name = get_attribute(elem, "name")
    kind_value = get_attribute(elem, "kind")
    manifest_file = get_attribute(elem, "manifest")
    checksum = get_attribute(elem, "checksum")
    manifest_ref_id = get_attribute(elem, "manifestRefId")
    log.debug(
        "Model representation",
        extra={"mr_name": name, "kind": kind_value, "manifest": manifest_file, "manifest_ref_id": manifest_ref_id},
    )

    check_bare_name(name, "model representation")
    check_file_name(manifest_file)
    if manifest.has_entry(name):
        msg = f"A model representation with name '{name}' already exists"
        raise DuplicateModelRepresentationError(msg)
    kind = ModelRepresentationKind.parse(kind_value)

    subtree = efmu_dir / name
    if not subtree.is_dir():
        msg = f"The directory of model representation '{name}' does not exist: {subtree}"
        raise ManifestValidationError(msg)
    manifest_path = subtree / manifest_file
    if not manifest_path.is_file():
        msg = f"The manifest of model representation '{name}' does not exist: {manifest_path}"
        raise ManifestValidationError(msg)

    with io_boundary(f"compute checksum of {manifest_path}", log):
        actual = checksum_file(manifest_path, policy.checksum_algorithm)
    if actual != checksum:
        msg = f"Checksum mismatch for manifest of model representation '{name}'"
        if policy.validate_checksums:
            raise ChecksumMismatchError(msg, details=[f"recorded: {checksum}", f"computed: {actual}"])
        log.warning("%s (recorded %s, computed %s); using computed value", msg, checksum, actual)
        checksum = actual

    document = read_sub_manifest(manifest_path, subtree, policy, log=log)
    check_manifest_ref_id(document, manifest_ref_id)

    listing = read_file_listing(document, subtree, policy, log=log)
    fmu_reference = None
    if kind is ModelRepresentationKind.PRODUCTION_CODE:
        fmu_reference = derive_fmu_reference(listing, subtree, log=log)

    return ModelRepresentation(
        name=name,
        kind=kind,
        manifest=manifest_file,
        checksum=checksum,
        manifest_ref_id=manifest_ref_id,
        fmu_reference=fmu_reference,
    )


def load_container_manifest(
    efmu_dir: Path,
    policy: ValidationPolicy = STRICT_POLICY,
    *,
    log: logging.Logger | None = None,
) -> ContainerManifest:
    """Read and fully validate ``eFMU/__content.xml``.

    Raises:
        ContainerError: If the manifest or any model representation is invalid.
    """
    log = log or logger
    manifest_path = efmu_dir / CONTAINER_MANIFEST_FILE_NAME
    document = load_document(manifest_path, CONTAINER_MANIFEST_KIND)
    if policy.validate_schema:
        validate_document(document, efmu_dir, description=CONTAINER_MANIFEST_KIND, log=log)
    return ContainerManifest.from_element(document.getroot(), efmu_dir, policy, log=log)


def save_container_manifest(
    manifest: ContainerManifest,
    efmu_dir: Path,
    policy: ValidationPolicy = STRICT_POLICY,
    *,
    log: logging.Logger | None = None,
) -> None:
    """Rebuild and write ``eFMU/__content.xml``.

    The document is schema-validated before it is written, if enabled.

    Raises:
        ContainerError: If the rebuilt document is invalid or cannot be written.
    """
    log = log or logger
    root = manifest.to_element()
    if policy.validate_schema:
        validate_document(root.getroottree(), efmu_dir, description=CONTAINER_MANIFEST_KIND, log=log)
    manifest_path = efmu_dir / CONTAINER_MANIFEST_FILE_NAME
    log.info("> Writing container manifest: %s", manifest_path)
    write_document(root, manifest_path)
