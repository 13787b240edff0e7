"""XML helpers shared by manifest readers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from efmucontainer.errors import ManifestValidationError, io_boundary

if TYPE_CHECKING:
    from pathlib import Path

BOOLEAN_TRUE = "true"
BOOLEAN_FALSE = "false"


def load_document(filepath: Path, kind: str = "XML") -> etree._ElementTree:
    """Parse an XML file, keeping line information.

    Raises:
        ManifestValidationError: If the file is missing or not well-formed.
        ContainerEnvironmentError: If the file cannot be read.
    """
    if not filepath.is_file():
        msg = f"The following required '{kind}' file does not exist: {filepath}"
        raise ManifestValidationError(msg)
    parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False)
    try:
        with io_boundary(f"read {kind} file {filepath}"):
            return etree.parse(str(filepath), parser)
    except etree.XMLSyntaxError as e:
        msg = f"The {kind} file is not well-formed XML: {filepath}"
        raise ManifestValidationError(msg, details=[str(e)]) from e


def write_document(root: etree._Element, filepath: Path) -> None:
    """Write an element tree as UTF-8 with XML declaration."""
    data = etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)
    with io_boundary(f"write {filepath}"):
        filepath.write_bytes(data)


def local_name(elem: etree._Element) -> str:
    """Element tag without namespace."""
    return etree.QName(elem).localname


def get_attribute(elem: etree._Element, name: str) -> str:
    """Return a required attribute value.

    Raises:
        ManifestValidationError: If the attribute is missing.
    """
    value = elem.get(name)
    if value is None:
        line = f" (line {elem.sourceline})" if elem.sourceline else ""
        msg = f"Element '{local_name(elem)}' misses required attribute '{name}'{line}"
        raise ManifestValidationError(msg)
    return value


def get_optional_attribute(elem: etree._Element, name: str) -> str | None:
    """Return an attribute value or None if absent."""
    return elem.get(name)


def parse_boolean(value: str) -> bool:
    """Parse an xs:boolean lexical value ("true", "false", "1", "0").

    Raises:
        ValueError: For any other value.
    """
    if value in (BOOLEAN_TRUE, "1"):
        return True
    if value in (BOOLEAN_FALSE, "0"):
        return False
    msg = f"Invalid boolean value: {value!r}"
    raise ValueError(msg)


def get_boolean_attribute(elem: etree._Element, name: str) -> bool:
    """Return a required boolean attribute value.

    Raises:
        ManifestValidationError: If missing or not a valid xs:boolean.
    """
    raw = get_attribute(elem, name)
    try:
        return parse_boolean(raw)
    except ValueError as e:
        msg = f"Attribute '{name}' of element '{local_name(elem)}' is not a boolean: {raw!r}"
        raise ManifestValidationError(msg) from e


def child_elements(elem: etree._Element, name: str | None = None) -> list[etree._Element]:
    """Element children (comments and processing instructions skipped)."""
    children = [c for c in elem if isinstance(c.tag, str)]
    if name is None:
        return children
    return [c for c in children if local_name(c) == name]
