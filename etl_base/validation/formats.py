"""String format predicates consulted by schema ``format`` declarations."""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Callable
from datetime import date

FormatPredicate = Callable[[str], bool]

_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME = re.compile(r"^(\d{2}):(\d{2}):(\d{2})(\.\d+)?(z|[+-]\d{2}(?::?\d{2})?)?$", re.IGNORECASE)
_DATE_TIME_SEPARATOR = re.compile(r"t|\s", re.IGNORECASE)
_EMAIL = re.compile(
    r"^[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$",
    re.IGNORECASE,
)
_URL = re.compile(
    r"^[a-z][a-z0-9+.-]*://"
    r"(?:[^\s:@/]+(?::[^\s:@/]*)?@)?"
    r"(?:\[[0-9a-f:.]+\]|[^\s/?#:\[\]]+)"
    r"(?::\d{1,5})?"
    r"(?:[/?#]\S*)?$",
    re.IGNORECASE,
)
_UUID = re.compile(r"^(?:urn:uuid:)?[0-9a-f]{8}-(?:[0-9a-f]{4}-){3}[0-9a-f]{12}$", re.IGNORECASE)


def is_date(value: str) -> bool:
    match = _DATE.fullmatch(value)
    if match is None:
        return False
    year, month, day = (int(part) for part in match.groups())
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def is_time(value: str) -> bool:
    match = _TIME.fullmatch(value)
    if match is None:
        return False
    hour, minute, second = (int(part) for part in match.groups()[:3])
    # 60 allows a leap second
    return hour <= 23 and minute <= 59 and second <= 60


def is_date_time(value: str) -> bool:
    parts = _DATE_TIME_SEPARATOR.split(value, maxsplit=1)
    if len(parts) != 2:
        return False
    day, clock = parts
    if not is_date(day):
        return False
    # RFC 3339 requires an explicit offset
    if not re.search(r"(z|[+-]\d{2}:?\d{2})\Z", clock, re.IGNORECASE):
        return False
    return is_time(clock)


def is_email(value: str) -> bool:
    return _EMAIL.fullmatch(value) is not None


def is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def is_url(value: str) -> bool:
    return _URL.fullmatch(value) is not None


def is_uuid(value: str) -> bool:
    return _UUID.fullmatch(value) is not None


class FormatRegistry:
    """Named string predicates, registered once at import time."""

    def __init__(self) -> None:
        self._predicates: dict[str, FormatPredicate] = {}

    def set(self, name: str, predicate: FormatPredicate) -> None:
        self._predicates[name] = predicate

    def get(self, name: str) -> FormatPredicate | None:
        return self._predicates.get(name)

    def has(self, name: str) -> bool:
        return name in self._predicates

    def names(self) -> list[str]:
        return sorted(self._predicates)


DEFAULT_FORMATS: dict[str, FormatPredicate] = {
    "date-time": is_date_time,
    "date": is_date,
    "time": is_time,
    "email": is_email,
    "ipv4": is_ipv4,
    "ipv6": is_ipv6,
    "url": is_url,
    "uuid": is_uuid,
}

FORMATS = FormatRegistry()


def register_default_formats(registry: FormatRegistry = FORMATS) -> FormatRegistry:
    for name, predicate in DEFAULT_FORMATS.items():
        registry.set(name, predicate)
    return registry
