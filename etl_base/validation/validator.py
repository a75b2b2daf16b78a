"""Schema-driven runtime validation and normalization."""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from etl_base.errors import ValidationError
from etl_base.validation.formats import FORMATS, FormatRegistry
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
    parse_schema,
)

_NUMERIC = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


@dataclass(frozen=True)
class ValidationOptions:
    fill_defaults: bool = True
    strip_unknown: bool = True
    coerce: bool = True


DEFAULT_OPTIONS = ValidationOptions()
STRICT = ValidationOptions(fill_defaults=False, strip_unknown=False, coerce=False)


def _same(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return left is right
    return left == right


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SchemaValidator:
    """Applies defaults, strips unknown keys, coerces scalars and checks a value.

    Containers are normalized in place; the normalized value is returned since
    scalar coercion produces new objects.
    """

    def __init__(self, formats: FormatRegistry | None = None) -> None:
        self._formats = formats or FORMATS

    def validate(
        self,
        schema: Schema | Mapping[str, Any],
        value: Any,
        options: ValidationOptions = DEFAULT_OPTIONS,
    ) -> Any:
        node = parse_schema(schema)
        if options.fill_defaults:
            value = self._fill_defaults(node, value)
        if options.strip_unknown:
            self._strip_unknown(node, value)
        if options.coerce:
            value = self._coerce(node, value)
        self._check(node, value, "$")
        return value

    def check(self, schema: Schema | Mapping[str, Any], value: Any) -> Any:
        """Strict conformance check that never mutates ``value``."""
        return self.validate(schema, value, STRICT)

    def is_valid(self, schema: Schema | Mapping[str, Any], value: Any) -> bool:
        try:
            self._check(parse_schema(schema), value, "$")
        except ValidationError:
            return False
        return True

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def _fill_defaults(self, node: Schema, value: Any) -> Any:
        if value is MISSING:
            if not node.has_default:
                return MISSING
            value = node.default_value()

        if isinstance(node, ObjectSchema) and isinstance(value, dict):
            for name, prop in node.properties.items():
                filled = self._fill_defaults(prop, value.get(name, MISSING))
                if filled is not MISSING:
                    value[name] = filled
            if isinstance(node.additional, Schema):
                for name in [key for key in value if key not in node.properties]:
                    value[name] = self._fill_defaults(node.additional, value[name])
        elif isinstance(node, RecordSchema) and isinstance(value, dict):
            for name in list(value):
                value[name] = self._fill_defaults(node.values, value[name])
        elif isinstance(node, ArraySchema) and isinstance(value, list):
            for index, item in enumerate(value):
                value[index] = self._fill_defaults(node.items, item)
        elif isinstance(node, UnionSchema):
            option = self._select_option(node, value)
            if option is not None:
                return self._fill_defaults(option, value)
        return value

    # ------------------------------------------------------------------
    # Unknown property removal
    # ------------------------------------------------------------------

    def _strip_unknown(self, node: Schema, value: Any) -> None:
        if isinstance(node, ObjectSchema) and isinstance(value, dict):
            if node.properties and not isinstance(node.additional, Schema):
                for name in [key for key in value if key not in node.properties]:
                    del value[name]
            for name, item in value.items():
                prop = node.properties.get(name)
                if prop is not None:
                    self._strip_unknown(prop, item)
                elif isinstance(node.additional, Schema):
                    self._strip_unknown(node.additional, item)
        elif isinstance(node, RecordSchema) and isinstance(value, dict):
            for item in value.values():
                self._strip_unknown(node.values, item)
        elif isinstance(node, ArraySchema) and isinstance(value, list):
            for item in value:
                self._strip_unknown(node.items, item)
        elif isinstance(node, UnionSchema):
            option = self._select_option(node, value)
            if option is not None:
                self._strip_unknown(option, value)

    # ------------------------------------------------------------------
    # Coercion
    # ------------------------------------------------------------------

    def _coerce(self, node: Schema, value: Any) -> Any:
        if isinstance(node, ObjectSchema) and isinstance(value, dict):
            for name in list(value):
                prop = node.properties.get(name)
                if prop is None and isinstance(node.additional, Schema):
                    prop = node.additional
                if prop is not None:
                    value[name] = self._coerce(prop, value[name])
            return value
        if isinstance(node, RecordSchema) and isinstance(value, dict):
            for name in list(value):
                value[name] = self._coerce(node.values, value[name])
            return value
        if isinstance(node, ArraySchema) and isinstance(value, list):
            for index, item in enumerate(value):
                value[index] = self._coerce(node.items, item)
            return value
        if isinstance(node, UnionSchema):
            if any(self.is_valid(option, value) for option in node.options):
                return value
            for option in node.options:
                candidate = self._coerce(option, copy.deepcopy(value))
                if self.is_valid(option, candidate):
                    return candidate
            return value
        if isinstance(node, NumberSchema):
            return self._coerce_number(node, value)
        if isinstance(node, StringSchema):
            return self._coerce_string(value)
        if isinstance(node, BooleanSchema):
            return self._coerce_boolean(value)
        if isinstance(node, NullSchema) and value == "null":
            return None
        if isinstance(node, EnumSchema):
            for allowed in node.values:
                if _same(allowed, value):
                    return value
            for allowed in node.values:
                if not isinstance(allowed, bool) and str(allowed) == str(value):
                    return allowed
        return value

    @staticmethod
    def _coerce_number(node: NumberSchema, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, str) and _NUMERIC.match(value.strip()):
            stripped = value.strip()
            if re.fullmatch(r"[+-]?\d+", stripped):
                try:
                    return int(stripped)
                except ValueError:
                    # beyond the interpreter's integer string limit
                    return value
            number = float(stripped)
            if not math.isfinite(number):
                return value
            if number.is_integer() and node.integer:
                return int(number)
            return number
        if node.integer and isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @staticmethod
    def _coerce_string(value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @staticmethod
    def _coerce_boolean(value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
        elif _is_number(value) and value in (0, 1):
            return bool(value)
        return value

    # ------------------------------------------------------------------
    # Conformance
    # ------------------------------------------------------------------

    def _select_option(self, node: UnionSchema, value: Any) -> Schema | None:
        for option in node.options:
            if self.is_valid(option, value):
                return option
        return None

    def _fail(self, message: str, path: str, value: Any) -> None:
        snapshot = None if value is MISSING else copy.deepcopy(value)
        raise ValidationError(message, path=path, value=snapshot)

    def _check(self, node: Schema, value: Any, path: str) -> None:
        if isinstance(node, UnknownSchema):
            return

        if isinstance(node, UnionSchema):
            if self._select_option(node, value) is None:
                self._fail("value does not match any allowed schema", path, value)
            return

        if isinstance(node, EnumSchema):
            if not any(_same(allowed, value) for allowed in node.values):
                self._fail(f"expected one of {list(node.values)!r}, got {value!r}", path, value)
            return

        if isinstance(node, NullSchema):
            if value is not None:
                self._fail(f"expected null, got {type(value).__name__}", path, value)
            return

        if isinstance(node, BooleanSchema):
            if not isinstance(value, bool):
                self._fail(f"expected boolean, got {type(value).__name__}", path, value)
            return

        if isinstance(node, NumberSchema):
            self._check_number(node, value, path)
            return

        if isinstance(node, StringSchema):
            self._check_string(node, value, path)
            return

        if isinstance(node, ArraySchema):
            if not isinstance(value, list):
                self._fail(f"expected array, got {type(value).__name__}", path, value)
            if node.min_items is not None and len(value) < node.min_items:
                self._fail(f"expected at least {node.min_items} item(s), got {len(value)}", path, value)
            for index, item in enumerate(value):
                self._check(node.items, item, f"{path}[{index}]")
            return

        if isinstance(node, RecordSchema):
            if not isinstance(value, dict):
                self._fail(f"expected object, got {type(value).__name__}", path, value)
            for key, item in value.items():
                if not isinstance(key, str):
                    self._fail(f"expected string key, got {type(key).__name__}", path, value)
                self._check(node.values, item, f"{path}.{key}")
            return

        if isinstance(node, ObjectSchema):
            if not isinstance(value, dict):
                self._fail(f"expected object, got {type(value).__name__}", path, value)
            for name in node.required:
                if name not in value:
                    self._fail("missing required property", f"{path}.{name}", MISSING)
            for key, item in value.items():
                prop = node.properties.get(key)
                if prop is not None:
                    self._check(prop, item, f"{path}.{key}")
                elif node.additional is False:
                    self._fail(f"additional property {key!r} is not allowed", f"{path}.{key}", item)
                elif isinstance(node.additional, Schema):
                    self._check(node.additional, item, f"{path}.{key}")
            return

        raise TypeError(f"Unsupported schema node: {type(node).__name__}")

    def _check_number(self, node: NumberSchema, value: Any, path: str) -> None:
        if not _is_number(value) or (isinstance(value, float) and not math.isfinite(value)):
            self._fail(f"expected number, got {type(value).__name__}", path, value)
        if node.integer and not (isinstance(value, int) or value.is_integer()):
            self._fail(f"expected integer, got {value!r}", path, value)
        if node.minimum is not None and value < node.minimum:
            self._fail(f"expected number >= {node.minimum}, got {value}", path, value)
        if node.maximum is not None and value > node.maximum:
            self._fail(f"expected number <= {node.maximum}, got {value}", path, value)

    def _check_string(self, node: StringSchema, value: Any, path: str) -> None:
        if not isinstance(value, str):
            self._fail(f"expected string, got {type(value).__name__}", path, value)
        if node.min_length is not None and len(value) < node.min_length:
            self._fail(f"expected string length >= {node.min_length}, got {len(value)}", path, value)
        if node.max_length is not None and len(value) > node.max_length:
            self._fail(f"expected string length <= {node.max_length}, got {len(value)}", path, value)
        if node.pattern is not None and re.search(node.pattern, value) is None:
            self._fail(f"expected string matching {node.pattern!r}", path, value)
        if node.format is not None:
            predicate = self._formats.get(node.format)
            if predicate is None:
                self._fail(f"unknown string format {node.format!r}", path, value)
            elif not predicate(value):
                self._fail(f"expected {node.format} string, got {value!r}", path, value)
