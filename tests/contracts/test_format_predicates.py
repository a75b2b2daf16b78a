from __future__ import annotations

import pytest

from etl_base.validation import FORMATS, FormatRegistry, ObjectSchema, SchemaValidator, StringSchema
from etl_base.validation.formats import (
    is_date,
    is_date_time,
    is_email,
    is_ipv4,
    is_ipv6,
    is_time,
    is_url,
    is_uuid,
)


@pytest.mark.parametrize(
    ("predicate", "valid", "invalid"),
    [
        (is_date, ["2024-02-29", "1999-12-31"], ["2023-02-29", "2024-13-01", "24-01-01", "2024-1-1", "2024-01-01\n"]),
        (is_time, ["23:59:60", "00:00:00Z", "12:30:15.250+02:00"], ["24:00:00", "12:60:00", "1230", "12:00:00Z\n"]),
        (
            is_date_time,
            ["2024-01-01T00:00:00Z", "2024-01-01t10:00:00+05:30", "2024-01-01 10:00:00.5-07:00"],
            ["2024-01-01T00:00:00", "2024-01-01", "2024-02-30T00:00:00Z", "now", "2024-01-01T00:00:00Z\n"],
        ),
        (is_email, ["ops@example.com", "first.last+tag@sub.example.org"], ["ops@", "@example.com", "a b@example.com", "ops@example.com\n"]),
        (is_ipv4, ["10.0.0.1", "255.255.255.255"], ["256.0.0.1", "10.0.0", "::1"]),
        (is_ipv6, ["::1", "2001:db8::8a2e:370:7334"], ["10.0.0.1", "2001:db8:::1"]),
        (
            is_url,
            ["https://example.com", "http://user:pw@host:8080/path?q=1#frag", "ftp://[::1]/file"],
            ["example.com", "https://", "http://exa mple.com", "https://example.com\n"],
        ),
        (
            is_uuid,
            ["123e4567-e89b-12d3-a456-426614174000", "urn:uuid:123E4567-E89B-12D3-A456-426614174000"],
            ["123e4567e89b12d3a456426614174000", "123e4567-e89b-12d3-a456-42661417400", "123e4567-e89b-12d3-a456-426614174000\n"],
        ),
    ],
)
def test_format_predicates(predicate, valid: list[str], invalid: list[str]) -> None:
    for value in valid:
        assert predicate(value), value
    for value in invalid:
        assert not predicate(value), value


def test_default_formats_are_registered_on_import() -> None:
    assert FORMATS.names() == ["date", "date-time", "email", "ipv4", "ipv6", "time", "url", "uuid"]


def test_custom_registry_drives_validation() -> None:
    registry = FormatRegistry()
    registry.set("callsign", lambda value: value.isupper())
    validator = SchemaValidator(formats=registry)
    schema = ObjectSchema(properties={"unit": StringSchema(format="callsign")})

    assert validator.is_valid(schema, {"unit": "ALPHA"})
    assert not validator.is_valid(schema, {"unit": "alpha"})
    assert registry.has("callsign")
    assert not registry.has("date-time")
