"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_naive_utc,
    ensure_utc,
    format_timestamp,
    is_known_timezone,
    local_time_of_day,
    now_utc,
    parse_time_of_day,
    resolve_timezone,
)

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
