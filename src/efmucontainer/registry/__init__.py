"""Container manifest and model representation registry.

- Container manifest (eFMU/__content.xml) with per-entry validation
- Model representation entries and kinds
- Sub-manifest reading and FMU reference derivation
- Format version checks
"""

from efmucontainer.registry.manifest import (
    ContainerManifest,
    load_container_manifest,
    new_container_id,
    read_model_representation,
    save_container_manifest,
)
from efmucontainer.registry.representation import (
    REQUIRED_SCHEMA_KINDS,
    ModelRepresentation,
    ModelRepresentationKind,
)
from efmucontainer.registry.submanifest import (
    check_manifest_ref_id,
    derive_fmu_reference,
    read_sub_manifest,
    sub_manifest_id,
    sub_manifest_kind,
)
from efmucontainer.registry.version import (
    SUPPORTED_EFMI_VERSION,
    SUPPORTED_XSD_VERSION,
    FormatVersion,
    check_supported_version,
    parse_format_version,
)

__all__ = [
    "REQUIRED_SCHEMA_KINDS",
    "SUPPORTED_EFMI_VERSION",
    "SUPPORTED_XSD_VERSION",
    "ContainerManifest",
    "FormatVersion",
    "ModelRepresentation",
    "ModelRepresentationKind",
    "check_manifest_ref_id",
    "check_supported_version",
    "derive_fmu_reference",
    "load_container_manifest",
    "new_container_id",
    "parse_format_version",
    "read_model_representation",
    "read_sub_manifest",
    "save_container_manifest",
    "sub_manifest_id",
    "sub_manifest_kind",
]
