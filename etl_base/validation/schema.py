"""Tagged-variant schema nodes interpreted by the SchemaValidator.

Nodes mirror the subset of JSON schema that layers and tasks exchange with
the ETL server. ``parse_schema`` builds nodes from JSON-schema-like dicts and
``Schema.to_json`` renders them back.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True, kw_only=True)
class Schema:
    default: Any = MISSING
    description: str | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def default_value(self) -> Any:
        return copy.deepcopy(self.default)

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.description is not None:
            payload["description"] = self.description
        if self.has_default:
            payload["default"] = copy.deepcopy(self.default)
        return payload


@dataclass(frozen=True, kw_only=True)
class UnknownSchema(Schema):
    pass


@dataclass(frozen=True, kw_only=True)
class StringSchema(Schema):
    format: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None

    def to_json(self) -> dict[str, Any]:
        payload = {"type": "string", **super().to_json()}
        if self.format is not None:
            payload["format"] = self.format
        if self.min_length is not None:
            payload["minLength"] = self.min_length
        if self.max_length is not None:
            payload["maxLength"] = self.max_length
        if self.pattern is not None:
            payload["pattern"] = self.pattern
        return payload


@dataclass(frozen=True, kw_only=True)
class NumberSchema(Schema):
    integer: bool = False
    minimum: float | None = None
    maximum: float | None = None

    def to_json(self) -> dict[str, Any]:
        payload = {"type": "integer" if self.integer else "number", **super().to_json()}
        if self.minimum is not None:
            payload["minimum"] = self.minimum
        if self.maximum is not None:
            payload["maximum"] = self.maximum
        return payload


@dataclass(frozen=True, kw_only=True)
class BooleanSchema(Schema):
    def to_json(self) -> dict[str, Any]:
        return {"type": "boolean", **super().to_json()}


@dataclass(frozen=True, kw_only=True)
class NullSchema(Schema):
    def to_json(self) -> dict[str, Any]:
        return {"type": "null", **super().to_json()}


@dataclass(frozen=True, kw_only=True)
class EnumSchema(Schema):
    """Closed set of allowed values; a single value models a literal."""

    values: tuple[Any, ...]

    def to_json(self) -> dict[str, Any]:
        if len(self.values) == 1:
            return {"const": self.values[0], **super().to_json()}
        return {"enum": list(self.values), **super().to_json()}


@dataclass(frozen=True, kw_only=True)
class ArraySchema(Schema):
    items: Schema = field(default_factory=UnknownSchema)
    min_items: int | None = None

    def to_json(self) -> dict[str, Any]:
        payload = {"type": "array", "items": self.items.to_json(), **super().to_json()}
        if self.min_items is not None:
            payload["minItems"] = self.min_items
        return payload


@dataclass(frozen=True, kw_only=True)
class ObjectSchema(Schema):
    """Object with declared properties.

    Every declared property is required unless named in ``optional``.
    ``additional`` is True (extra keys allowed), False (forbidden) or a schema
    that extra values must satisfy.
    """

    properties: Mapping[str, Schema] = field(default_factory=dict)
    optional: frozenset[str] = frozenset()
    additional: bool | Schema = True

    @property
    def required(self) -> list[str]:
        return [name for name in self.properties if name not in self.optional]

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": "object",
            "properties": {name: prop.to_json() for name, prop in self.properties.items()},
            **super().to_json(),
        }
        required = self.required
        if required:
            payload["required"] = required
        if isinstance(self.additional, Schema):
            payload["additionalProperties"] = self.additional.to_json()
        elif self.additional is False:
            payload["additionalProperties"] = False
        return payload


@dataclass(frozen=True, kw_only=True)
class RecordSchema(Schema):
    """Mapping of arbitrary string keys to values of one schema."""

    values: Schema = field(default_factory=UnknownSchema)

    def to_json(self) -> dict[str, Any]:
        return {
            "type": "object",
            "additionalProperties": self.values.to_json(),
            **super().to_json(),
        }


@dataclass(frozen=True, kw_only=True)
class UnionSchema(Schema):
    options: tuple[Schema, ...]

    def to_json(self) -> dict[str, Any]:
        return {"anyOf": [option.to_json() for option in self.options], **super().to_json()}


_SCALARS: dict[str, type[Schema]] = {
    "boolean": BooleanSchema,
    "null": NullSchema,
}


def parse_schema(raw: Mapping[str, Any] | bool | Schema) -> Schema:
    """Interpret a JSON-schema-like mapping as schema nodes."""
    if isinstance(raw, Schema):
        return raw
    if raw is True or raw == {}:
        return UnknownSchema()
    if not isinstance(raw, Mapping):
        raise TypeError(f"Unsupported schema declaration: {raw!r}")

    common: dict[str, Any] = {}
    if "default" in raw:
        common["default"] = copy.deepcopy(raw["default"])
    if isinstance(raw.get("description"), str):
        common["description"] = raw["description"]

    if "const" in raw:
        return EnumSchema(values=(raw["const"],), **common)
    if isinstance(raw.get("enum"), list):
        return EnumSchema(values=tuple(raw["enum"]), **common)

    for key in ("anyOf", "oneOf"):
        if isinstance(raw.get(key), list):
            return UnionSchema(options=tuple(parse_schema(option) for option in raw[key]), **common)

    schema_type = raw.get("type")
    if isinstance(schema_type, list):
        options = []
        for candidate in schema_type:
            single = dict(raw)
            single["type"] = candidate
            single.pop("default", None)
            single.pop("description", None)
            options.append(parse_schema(single))
        return UnionSchema(options=tuple(options), **common)

    if schema_type is None and ("properties" in raw or "additionalProperties" in raw):
        schema_type = "object"

    if schema_type == "object":
        properties = raw.get("properties") or {}
        additional_raw = raw.get("additionalProperties", True)
        if not properties and isinstance(additional_raw, Mapping):
            return RecordSchema(values=parse_schema(additional_raw), **common)
        required = set(raw.get("required") or [])
        additional: bool | Schema
        if isinstance(additional_raw, Mapping):
            additional = parse_schema(additional_raw)
        else:
            additional = bool(additional_raw)
        return ObjectSchema(
            properties={name: parse_schema(prop) for name, prop in properties.items()},
            optional=frozenset(name for name in properties if name not in required),
            additional=additional,
            **common,
        )

    if schema_type == "array":
        items = raw.get("items")
        return ArraySchema(
            items=parse_schema(items) if isinstance(items, Mapping) else UnknownSchema(),
            min_items=raw.get("minItems"),
            **common,
        )

    if schema_type == "string":
        return StringSchema(
            format=raw.get("format"),
            min_length=raw.get("minLength"),
            max_length=raw.get("maxLength"),
            pattern=raw.get("pattern"),
            **common,
        )

    if schema_type in ("number", "integer"):
        return NumberSchema(
            integer=schema_type == "integer",
            minimum=raw.get("minimum"),
            maximum=raw.get("maximum"),
            **common,
        )

    if schema_type in _SCALARS:
        return _SCALARS[schema_type](**common)

    if schema_type is None:
        return UnknownSchema(**common)

    raise TypeError(f"Unsupported schema type declaration: {schema_type!r}")


def format_fields(schema: Mapping[str, Any] | Schema | None, fmt: str) -> list[str]:
    """Names of top-level properties declaring the given string format."""
    if isinstance(schema, ObjectSchema):
        return [
            name
            for name, prop in schema.properties.items()
            if isinstance(prop, StringSchema) and prop.format == fmt
        ]
    if not isinstance(schema, Mapping):
        return []
    properties = schema.get("properties")
    if not isinstance(properties, Mapping):
        return []
    return [
        name
        for name, prop in properties.items()
        if isinstance(prop, Mapping) and prop.get("format") == fmt
    ]
