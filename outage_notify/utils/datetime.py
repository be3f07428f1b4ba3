"""Helpers for working with timezone-aware datetimes and time-of-day values."""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)
_TIME_OF_DAY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<hour>[01]?\d|2[0-3]):(?P<minute>[0-5]\d)(?::(?P<second>[0-5]\d))?$"
)


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` to an aware UTC datetime.

    Naive values are assumed to already be expressed in UTC, which is how the
    persistence layer stores them.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def ensure_naive_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` converted to UTC without ``tzinfo``.

    SQLite drops offsets from ``DATETIME`` columns, so every timestamp is
    stored as naive UTC and re-attached on the way out.
    """

    normalized = ensure_utc(value)
    if normalized is None:
        return None
    return normalized.replace(tzinfo=None)


@lru_cache(maxsize=128)
def resolve_timezone(tz_name: str | None) -> tzinfo:
    """Resolve ``tz_name`` into a ``tzinfo`` instance.

    Accepts IANA names as well as ``UTC+05:30`` style offsets. Unknown names
    fall back to UTC.
    """

    name = (tz_name or "").strip() or _DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return timezone.utc


def is_known_timezone(tz_name: str) -> bool:
    """Return ``True`` when ``tz_name`` resolves without falling back."""

    name = (tz_name or "").strip()
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return _OFFSET_PATTERN.match(name) is not None
    return True


def parse_time_of_day(value: str | time | None) -> time | None:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string into a :class:`time`.

    Raises ``ValueError`` when the value is not a valid time of day.
    """

    if value is None or isinstance(value, time):
        return value
    candidate = value.strip()
    if not candidate:
        return None
    match = _TIME_OF_DAY_PATTERN.match(candidate)
    if match is None:
        raise ValueError(f"Invalid time format: {value}. Use HH:MM")
    return time(
        hour=int(match.group("hour")),
        minute=int(match.group("minute")),
        second=int(match.group("second") or 0),
    )


def local_time_of_day(moment: datetime, tz_name: str | None) -> time:
    """Return the wall-clock time of ``moment`` in the ``tz_name`` timezone."""

    aware = ensure_utc(moment)
    assert aware is not None
    return aware.astimezone(resolve_timezone(tz_name)).time().replace(microsecond=0)


def format_timestamp(value: datetime | None, *, default: str = "") -> str:
    """Render ``value`` for inclusion in a human readable message."""

    normalized = ensure_utc(value)
    if normalized is None:
        return default
    return normalized.strftime("%Y-%m-%d %H:%M UTC")


__all__ = [
    "ensure_naive_utc",
    "ensure_utc",
    "format_timestamp",
    "is_known_timezone",
    "local_time_of_day",
    "now_utc",
    "parse_time_of_day",
    "resolve_timezone",
]
