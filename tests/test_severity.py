"""Tests for the severity ordering."""

from __future__ import annotations

import pytest

from outage_notify.domain.entities import Severity, severity_ordinal


def test_ordinals_follow_business_impact() -> None:
    assert [member.ordinal for member in Severity] == [0, 1, 2, 3]
    assert Severity.CRITICAL.at_least(Severity.HIGH)
    assert Severity.MEDIUM.at_least(Severity.MEDIUM)
    assert not Severity.LOW.at_least(Severity.MEDIUM)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("low", 0), ("Medium", 1), (" HIGH ", 2), (Severity.CRITICAL, 3)],
)
def test_severity_ordinal_accepts_names_and_members(raw, expected) -> None:
    assert severity_ordinal(raw) == expected


def test_parse_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="Must be one of: low, medium, high, critical"):
        Severity.parse("catastrophic")
