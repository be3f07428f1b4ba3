"""Template rendering and the variables derived from events."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final

from outage_notify.domain.entities import Event, EventKind
from outage_notify.domain.errors import RenderError
from outage_notify.utils import format_timestamp

_PLACEHOLDER_PATTERN: Final[re.Pattern[str]] = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")

_SANITIZE_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
)
# Inline event handlers such as onclick="..." inside a tag.
_HANDLER_ATTRIBUTE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"""(<[a-z][^<>]*?)\s+on\w+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]*)""", re.IGNORECASE
)


def render(template: str, variables: Mapping[str, Any]) -> str:
    """Replace every ``{{key}}`` in ``template`` with ``str(variables[key])``.

    Placeholders without a matching variable are left untouched so an
    optional value never blocks delivery. ``None`` renders as an empty
    string. Raises :class:`RenderError` when a value cannot be turned into
    text.
    """

    if not isinstance(template, str):
        raise RenderError(f"Template must be text, got {type(template).__name__}")

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = variables[key]
        if value is None:
            return ""
        try:
            return str(value)
        except Exception as exc:
            raise RenderError(f"Cannot render variable {key}: {exc}", variable=key) from exc

    return _PLACEHOLDER_PATTERN.sub(_substitute, template)


def find_placeholders(template: str) -> list[str]:
    """Return placeholder names in order of first appearance."""

    seen: list[str] = []
    for match in _PLACEHOLDER_PATTERN.finditer(template or ""):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen


def missing_variables(template: str, variables: Mapping[str, Any]) -> list[str]:
    return [name for name in find_placeholders(template) if name not in variables]


def sanitize_content(content: str) -> str:
    """Strip script/iframe blocks, ``javascript:`` URLs and ``on*=`` tag attributes."""

    sanitized = content
    for pattern in _SANITIZE_PATTERNS:
        sanitized = pattern.sub("", sanitized)
    while True:
        stripped = _HANDLER_ATTRIBUTE_PATTERN.sub(r"\1", sanitized)
        if stripped == sanitized:
            return sanitized
        sanitized = stripped


def build_event_variables(event: Event, *, status_page_url: str) -> dict[str, Any]:
    """Derive template variables from ``event``."""

    variables: dict[str, Any] = {
        "event_id": event.id,
        "title": event.title,
        "severity": event.effective_severity.value,
        "services": ", ".join(event.affected_services),
        "regions": ", ".join(event.affected_regions),
        "description": event.description,
        "estimated_resolution": format_timestamp(event.estimated_resolution, default="Unknown"),
        "resolution_time": format_timestamp(event.actual_resolution),
        "status_page_url": status_page_url,
    }
    if event.kind is EventKind.USAGE_THRESHOLD_CROSSED:
        usage = event.usage_percent
        variables.update(
            {
                "cap_id": event.cap_id or "",
                "threshold": event.threshold_percent,
                "usage_percent": f"{usage:.1f}" if usage is not None else "",
            }
        )
    return variables


__all__ = [
    "build_event_variables",
    "find_placeholders",
    "missing_variables",
    "render",
    "sanitize_content",
]
