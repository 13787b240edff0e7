"""Schema-anchored validation of manifest documents.

Every manifest declares its schema through ``xsi:noNamespaceSchemaLocation``
as a path relative to the manifest's own position in the staged tree:

    eFMU/__content.xml          -> schemas/efmiContainerManifest.xsd
    eFMU/<name>/manifest.xml    -> ../schemas/ProductionCode/efmiProductionCodeManifest.xsd

The reference is re-anchored against the directory the document lives in
(or will live in, for documents that are about to be copied) and must point
into the reserved schema directory.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from lxml import etree

from efmucontainer.errors import SchemaValidationError, io_boundary
from efmucontainer.layout import SCHEMA_DIR_NAME, SCHEMA_LOCATION_ATTRIBUTE

logger = logging.getLogger(__name__)

_PARENT_PREFIX = "../" + SCHEMA_DIR_NAME + "/"
_CURRENT_PREFIX = "./" + SCHEMA_DIR_NAME + "/"
_PLAIN_PREFIX = SCHEMA_DIR_NAME + "/"


def _root_of(document: etree._ElementTree | etree._Element) -> etree._Element:
    if isinstance(document, etree._ElementTree):
        return document.getroot()
    return document


def get_schema_reference(document: etree._ElementTree | etree._Element) -> str:
    """Return the declared schema location, normalised to "/" separators.

    Raises:
        SchemaValidationError: If the attribute is missing or does not point
            into the reserved schema directory.
    """
    root = _root_of(document)
    reference = root.get(SCHEMA_LOCATION_ATTRIBUTE)
    if reference is None:
        msg = f"Attribute for schema location is missing: {SCHEMA_LOCATION_ATTRIBUTE}"
        raise SchemaValidationError(msg)

    url = reference.replace("\\", "/")
    if not url.startswith((_PLAIN_PREFIX, _CURRENT_PREFIX, _PARENT_PREFIX)):
        msg = f"Link to schema file does not refer to schema file of eFMU container: {reference}"
        raise SchemaValidationError(msg)
    return url


def resolve_schema_path(document: etree._ElementTree | etree._Element, document_dir: Path) -> Path:
    """Resolve the schema file of a document located in document_dir.

    One level of ascent ("../schemas/...") is allowed; the remainder must
    stay inside the schema directory.

    Raises:
        SchemaValidationError: If the reference is missing or malformed.
    """
    url = get_schema_reference(document)

    base = document_dir
    if url.startswith(_PARENT_PREFIX):
        base = document_dir.parent
        url = url[len("../") :]
    elif url.startswith(_CURRENT_PREFIX):
        url = url[len("./") :]

    rel = PurePosixPath(url)
    if ".." in rel.parts:
        msg = f"Link to schema file leaves the schema directory: {url}"
        raise SchemaValidationError(msg)

    return base.joinpath(*rel.parts)


def load_schema(schema_path: Path) -> etree.XMLSchema:
    """Load an XSD file.

    Raises:
        SchemaValidationError: If the file is missing or not a valid schema.
    """
    if not schema_path.is_file():
        msg = f"The XML schema file to be validated against does not exist: {schema_path}"
        raise SchemaValidationError(msg)
    try:
        with io_boundary(f"read schema file {schema_path}"):
            return etree.XMLSchema(etree.parse(str(schema_path)))
    except (etree.XMLSyntaxError, etree.XMLSchemaParseError) as e:
        msg = f"Invalid XML schema file: {schema_path}"
        raise SchemaValidationError(msg, details=[str(e)]) from e


def validate_document(
    document: etree._ElementTree | etree._Element,
    document_dir: Path,
    *,
    description: str = "manifest",
    log: logging.Logger | None = None,
) -> None:
    """Validate a document against the schema it declares.

    Args:
        document: Parsed document (or its root element).
        document_dir: Directory in the staged tree holding the document.
        description: What is validated, used in messages.
        log: Logger for progress output.

    Raises:
        SchemaValidationError: On any violation; one detail line per offending
            node, with line information when available.
    """
    log = log or logger
    log.info("> Validating XML tree against schema (%s)", description)

    schema_path = resolve_schema_path(document, document_dir)
    log.debug("Schema file: %s", schema_path)
    schema = load_schema(schema_path)

    if schema.validate(document):
        log.info("=> XML tree has been validated successfully")
        return

    details = []
    for entry in schema.error_log:
        where = f"line {entry.line}" if entry.line else "unknown line"
        details.append(f"Validation failed in {where}: {entry.message}")
    msg = f"Schema validation of {description} encountered {len(details)} error(s)"
    raise SchemaValidationError(msg, details=details)
