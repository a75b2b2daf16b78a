"""Runtime schema validation."""

from etl_base.validation.formats import FORMATS, FormatRegistry, register_default_formats
from etl_base.validation.schema import (
    MISSING,
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    NullSchema,
    NumberSchema,
    ObjectSchema,
    RecordSchema,
    Schema,
    StringSchema,
    UnionSchema,
    UnknownSchema,
    format_fields,
    parse_schema,
)
from etl_base.validation.validator import DEFAULT_OPTIONS, STRICT, SchemaValidator, ValidationOptions

register_default_formats(FORMATS)

__all__ = [
    "DEFAULT_OPTIONS",
    "FORMATS",
    "MISSING",
    "STRICT",
    "ArraySchema",
    "BooleanSchema",
    "EnumSchema",
    "FormatRegistry",
    "NullSchema",
    "NumberSchema",
    "ObjectSchema",
    "RecordSchema",
    "Schema",
    "SchemaValidator",
    "StringSchema",
    "UnionSchema",
    "UnknownSchema",
    "ValidationOptions",
    "format_fields",
    "parse_schema",
]
