"""Path rules, XML helpers and schema-anchored validation."""

from efmucontainer.validation.schema import (
    get_schema_reference,
    load_schema,
    resolve_schema_path,
    validate_document,
)
from efmucontainer.validation.xml import (
    get_attribute,
    get_boolean_attribute,
    get_optional_attribute,
    load_document,
    parse_boolean,
    write_document,
)

__all__ = [
    "get_attribute",
    "get_boolean_attribute",
    "get_optional_attribute",
    "get_schema_reference",
    "load_document",
    "load_schema",
    "parse_boolean",
    "resolve_schema_path",
    "validate_document",
    "write_document",
]
