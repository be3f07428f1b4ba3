"""Tests for the per user and channel eligibility rules."""

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from outage_notify.application.eligibility import (
    EligibilityEvaluator,
    SkipReason,
    in_quiet_hours,
)
from outage_notify.domain.entities import (
    Channel,
    Event,
    EventKind,
    NotificationPreference,
    Severity,
)

NOON_UTC = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _outage(severity: Severity) -> Event:
    return Event(id="evt", kind=EventKind.OUTAGE_STARTED, severity=severity)


def _usage(*, claimed: bool = True) -> Event:
    return Event(
        id="usage:u:cap:80:x",
        kind=EventKind.USAGE_THRESHOLD_CROSSED,
        subject_user_id="u",
        cap_id="cap",
        threshold_percent=80,
        usage_percent=81.0,
        claimed_at=NOON_UTC if claimed else None,
    )


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 3, 15, hour, minute, tzinfo=timezone.utc)


@pytest.fixture()
def evaluator() -> EligibilityEvaluator:
    return EligibilityEvaluator(clock=lambda: NOON_UTC)


def test_defaults_allow_email_and_in_app_only(evaluator) -> None:
    preference = NotificationPreference.defaults("u")
    event = _outage(Severity.HIGH)

    allowed = {channel for channel in Channel if evaluator.is_eligible(preference, event, channel)}

    assert allowed == {Channel.EMAIL, Channel.IN_APP}


def test_sms_requires_phone_number(evaluator) -> None:
    preference = NotificationPreference(user_id="u", sms_enabled=True)
    event = _outage(Severity.HIGH)

    assert evaluator.decide(preference, event, Channel.SMS).reason is SkipReason.CHANNEL_DISABLED

    preference.phone_number = "+15550001"
    assert evaluator.is_eligible(preference, event, Channel.SMS)


def test_outage_category_opt_out(evaluator) -> None:
    preference = NotificationPreference(user_id="u", outage_notifications=False)

    decision = evaluator.decide(preference, _outage(Severity.CRITICAL), Channel.EMAIL)

    assert decision.reason is SkipReason.CATEGORY_DISABLED
    assert evaluator.is_eligible(preference, _usage(), Channel.EMAIL)


def test_severity_equal_to_minimum_passes(evaluator) -> None:
    preference = NotificationPreference(user_id="u", minimum_severity=Severity.HIGH)

    assert evaluator.is_eligible(preference, _outage(Severity.HIGH), Channel.EMAIL)


@pytest.mark.parametrize("severity", [Severity.LOW, Severity.MEDIUM])
def test_severity_below_minimum_is_skipped(evaluator, severity) -> None:
    preference = NotificationPreference(user_id="u", minimum_severity=Severity.HIGH)

    decision = evaluator.decide(preference, _outage(severity), Channel.EMAIL)

    assert not decision
    assert decision.reason is SkipReason.BELOW_MINIMUM_SEVERITY


def test_minimum_high_admits_only_high_and_critical(evaluator) -> None:
    preference = NotificationPreference(user_id="u", minimum_severity=Severity.HIGH)

    admitted = [
        severity for severity in Severity
        if evaluator.is_eligible(preference, _outage(severity), Channel.EMAIL)
    ]

    assert admitted == [Severity.HIGH, Severity.CRITICAL]


def test_usage_alerts_clear_any_minimum(evaluator) -> None:
    preference = NotificationPreference(user_id="u", minimum_severity=Severity.CRITICAL)

    assert evaluator.is_eligible(preference, _usage(), Channel.EMAIL)


def test_unclaimed_usage_alert_is_debounced(evaluator) -> None:
    preference = NotificationPreference.defaults("u")

    decision = evaluator.decide(preference, _usage(claimed=False), Channel.EMAIL)

    assert decision.reason is SkipReason.DEBOUNCED


@pytest.mark.parametrize(
    ("moment", "inside"),
    [
        (time(21, 59), False),
        (time(22, 0), True),
        (time(23, 30), True),
        (time(0, 0), True),
        (time(5, 59), True),
        (time(6, 0), False),
        (time(12, 0), False),
    ],
)
def test_wrapping_quiet_hours_window(moment, inside) -> None:
    assert in_quiet_hours(moment, time(22, 0), time(6, 0)) is inside


@pytest.mark.parametrize(
    ("moment", "inside"),
    [(time(12, 59), False), (time(13, 0), True), (time(13, 59), True), (time(14, 0), False)],
)
def test_same_day_quiet_hours_window(moment, inside) -> None:
    assert in_quiet_hours(moment, time(13, 0), time(14, 0)) is inside


def test_equal_bounds_mean_no_quiet_hours() -> None:
    assert not in_quiet_hours(time(8, 0), time(8, 0), time(8, 0))


def test_quiet_hours_suppress_non_critical() -> None:
    evaluator = EligibilityEvaluator(clock=lambda: _at(23))
    preference = NotificationPreference(
        user_id="u", quiet_hours_start=time(22, 0), quiet_hours_end=time(6, 0)
    )

    decision = evaluator.decide(preference, _outage(Severity.HIGH), Channel.EMAIL)

    assert decision.reason is SkipReason.QUIET_HOURS


def test_critical_overrides_quiet_hours() -> None:
    evaluator = EligibilityEvaluator(clock=lambda: _at(23))
    preference = NotificationPreference(
        user_id="u", quiet_hours_start=time(22, 0), quiet_hours_end=time(6, 0)
    )

    assert evaluator.is_eligible(preference, _outage(Severity.CRITICAL), Channel.EMAIL)
    assert evaluator.is_eligible(preference, _usage(), Channel.EMAIL)


def test_quiet_hours_use_the_users_timezone(evaluator) -> None:
    # 12:00 UTC is 22:00 at UTC+10.
    preference = NotificationPreference(
        user_id="u",
        quiet_hours_start=time(21, 0),
        quiet_hours_end=time(7, 0),
        timezone="UTC+10:00",
    )

    assert not evaluator.is_eligible(preference, _outage(Severity.MEDIUM), Channel.EMAIL)

    preference.timezone = "UTC"
    assert evaluator.is_eligible(preference, _outage(Severity.MEDIUM), Channel.EMAIL)


def test_quiet_hours_with_one_bound_are_ignored() -> None:
    evaluator = EligibilityEvaluator(clock=lambda: _at(23))
    preference = NotificationPreference(user_id="u", quiet_hours_start=time(22, 0))

    assert evaluator.is_eligible(preference, _outage(Severity.MEDIUM), Channel.EMAIL)


def test_explicit_now_overrides_clock(evaluator) -> None:
    preference = NotificationPreference(
        user_id="u", quiet_hours_start=time(22, 0), quiet_hours_end=time(6, 0)
    )

    assert not evaluator.is_eligible(
        preference, _outage(Severity.MEDIUM), Channel.EMAIL, now=_at(2)
    )
