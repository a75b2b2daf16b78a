"""Zone-localized rendering of date-time feature metadata."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from etl_base.errors import ConfigurationError
from etl_base.schemas.layer import Layer
from etl_base.validation import format_fields

logger = logging.getLogger(__name__)

NO_TIMEZONE = "no timezone"
DISPLAY_FORMAT = "%Y-%m-%d %H:%M"


def resolve_timezone(layer: Layer) -> str | None:
    """Zone name configured on the incoming flow, or None when rewriting is off."""
    if layer.incoming is None or layer.incoming.config.timezone is None:
        return None
    name = layer.incoming.config.timezone.timezone
    if not name or name.lower() == NO_TIMEZONE:
        return None
    return name


def date_time_fields(layer: Layer) -> list[str]:
    if layer.incoming is None:
        return []
    return format_fields(layer.incoming.output_schema, "date-time")


def format_in_zone(value: str | int | float, zone: ZoneInfo, zone_name: str) -> str:
    """Render an ISO-8601 string or epoch milliseconds in ``zone``."""
    if isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return f"{parsed.astimezone(zone).strftime(DISPLAY_FORMAT)} ({zone_name})"


def localize_features(
    features: Iterable[Mapping[str, Any]],
    *,
    fields: list[str],
    zone_name: str,
) -> int:
    """Rewrite ``properties.metadata[field]`` in place; returns the number of values rewritten."""
    try:
        zone = ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone: {zone_name}", code="TIMEZONE_UNKNOWN") from exc

    rewritten = 0
    for feature in features:
        metadata = (feature.get("properties") or {}).get("metadata")
        if not isinstance(metadata, dict):
            continue
        for field in fields:
            value = metadata.get(field)
            if not value:
                continue
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                logger.warning("Skipping non-date-time value for %s on feature %s", field, feature.get("id"))
                continue
            try:
                metadata[field] = format_in_zone(value, zone, zone_name)
            except (ValueError, OverflowError, OSError):
                logger.warning("Skipping unparseable date-time %r for %s on feature %s", value, field, feature.get("id"))
                continue
            rewritten += 1
    return rewritten


def localize_layer_features(layer: Layer, features: Iterable[Mapping[str, Any]]) -> int:
    zone_name = resolve_timezone(layer)
    if zone_name is None:
        return 0
    fields = date_time_fields(layer)
    if not fields:
        return 0
    return localize_features(features, fields=fields, zone_name=zone_name)
