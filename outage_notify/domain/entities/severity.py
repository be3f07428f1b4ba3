"""Total order over outage severity levels."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Business-impact level of an event, ordered ``LOW < ... < CRITICAL``."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def ordinal(self) -> int:
        return _ORDINALS[self]

    @classmethod
    def parse(cls, value: "Severity | str") -> "Severity":
        """Return the member named by ``value`` (case-insensitive)."""

        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Invalid severity '{value}'. Must be one of: {allowed}"
            ) from None

    def at_least(self, other: "Severity") -> bool:
        return self.ordinal >= other.ordinal


_ORDINALS: dict[Severity, int] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


def severity_ordinal(value: Severity | str) -> int:
    """Map a severity name or member to its ordinal ``0..3``."""

    return Severity.parse(value).ordinal


__all__ = ["Severity", "severity_ordinal"]
