"""Tests for the dispatch state machine."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, time, timezone

import pytest

from outage_notify.application import dispatcher as dispatcher_module
from outage_notify.application.dispatcher import resolve_address
from outage_notify.domain.entities import (
    Channel,
    Event,
    EventKind,
    NotificationPreference,
    NotificationStatus,
    Recipient,
    Severity,
)
from outage_notify.domain.errors import DeliveryError, DeliveryNotStartedError, PersistenceError
from outage_notify.infrastructure.repositories import (
    NotificationRepository,
    PreferenceRepository,
    TemplateRepository,
)


def _outage(event_id: str = "evt-1", severity: Severity = Severity.HIGH, **fields) -> Event:
    fields.setdefault("title", "Fiber cut")
    fields.setdefault("affected_services", ("Internet",))
    fields.setdefault("affected_regions", ("north",))
    return Event(id=event_id, kind=EventKind.OUTAGE_STARTED, severity=severity, **fields)


def _records(session_factory, event_id: str = "evt-1"):
    with session_factory() as session:
        return list(NotificationRepository(session).list_for_event(event_id))


def _set_preferences(session_factory, user_id: str, **patch) -> None:
    with session_factory() as session:
        PreferenceRepository(session).update(user_id, patch)


def test_eligible_units_are_recorded_and_sent(make_dispatcher, session_factory, channels) -> None:
    report = make_dispatcher().dispatch(_outage())

    assert report.recipients == 2
    assert report.sent == 4
    assert report.skipped == 4
    assert report.failed == 0
    records = _records(session_factory)
    assert {(record.user_id, record.channel) for record in records} == {
        ("user-1", Channel.EMAIL),
        ("user-1", Channel.IN_APP),
        ("user-2", Channel.EMAIL),
        ("user-2", Channel.IN_APP),
    }
    assert all(record.status is NotificationStatus.SENT for record in records)
    assert all(record.sent_at is not None for record in records)
    assert sorted(address for address, _, _ in channels[Channel.EMAIL].sent) == [
        "one@example.com",
        "two@example.com",
    ]
    _, subject, body = channels[Channel.EMAIL].sent[0]
    assert subject == "Service Outage: Fiber cut"
    assert "https://status.example.com/status" in body
    assert channels[Channel.SMS].attempts == 0


def test_ineligible_units_leave_no_record(make_dispatcher, session_factory) -> None:
    _set_preferences(session_factory, "user-2", minimum_severity="critical")

    make_dispatcher().dispatch(_outage(severity=Severity.HIGH))

    assert {record.user_id for record in _records(session_factory)} == {"user-1"}


def test_sms_goes_to_the_preference_phone_number(make_dispatcher, session_factory, channels) -> None:
    _set_preferences(session_factory, "user-2", sms_enabled=True, phone_number="+1 555 0002")

    make_dispatcher().dispatch(_outage())

    assert [address for address, _, _ in channels[Channel.SMS].sent] == ["+1 555 0002"]


def test_failed_delivery_is_recorded_without_retry(make_dispatcher, session_factory, channels) -> None:
    channels[Channel.EMAIL].error = DeliveryError("SendGrid API request failed with status 500")

    report = make_dispatcher().dispatch(_outage())

    assert report.failed == 2
    assert report.sent == 2
    assert channels[Channel.EMAIL].attempts == 2
    failed = [record for record in _records(session_factory) if record.channel is Channel.EMAIL]
    assert {record.status for record in failed} == {NotificationStatus.FAILED}
    assert all(record.error_message == "SendGrid API request failed with status 500" for record in failed)
    assert all(record.sent_at is None for record in failed)


def test_unexpected_adapter_exception_marks_failed(make_dispatcher, session_factory, channels) -> None:
    channels[Channel.IN_APP].error = RuntimeError("socket closed")

    make_dispatcher().dispatch(_outage())

    in_app = [record for record in _records(session_factory) if record.channel is Channel.IN_APP]
    assert {record.error_message for record in in_app} == {"RuntimeError: socket closed"}


def test_delivery_timeout_is_recorded_as_failed(make_dispatcher, session_factory, channels) -> None:
    channels[Channel.EMAIL].delay = 0.5

    report = make_dispatcher(delivery_timeout=0.05).dispatch(_outage())

    assert report.failed == 2
    email = [record for record in _records(session_factory) if record.channel is Channel.EMAIL]
    assert all(record.status is NotificationStatus.FAILED for record in email)
    assert all("timed out" in (record.error_message or "") for record in email)


def test_hung_channel_does_not_fail_other_channels(
    make_dispatcher, directory, session_factory, channels
) -> None:
    directory.recipients = directory.recipients[:1]
    channels[Channel.EMAIL].delay = 1.0

    report = make_dispatcher(max_workers=1, delivery_timeout=0.2).dispatch(_outage())

    by_channel = {record.channel: record for record in _records(session_factory)}
    assert by_channel[Channel.EMAIL].status is NotificationStatus.FAILED
    assert by_channel[Channel.EMAIL].error_message == "Delivery timed out after 0.2s"
    assert by_channel[Channel.IN_APP].status is NotificationStatus.SENT
    assert channels[Channel.IN_APP].attempts == 1
    assert (report.sent, report.failed) == (1, 1)


def test_hung_delivery_does_not_hold_up_the_next_dispatch(
    make_dispatcher, directory, session_factory, channels
) -> None:
    directory.recipients = directory.recipients[:1]
    dispatcher = make_dispatcher(max_workers=1, delivery_timeout=0.2)
    channels[Channel.EMAIL].delay = 1.0
    dispatcher.dispatch(_outage("evt-1"))
    channels[Channel.EMAIL].delay = 0.0

    report = dispatcher.dispatch(_outage("evt-2"))

    assert (report.sent, report.failed) == (2, 0)
    assert all(
        record.status is NotificationStatus.SENT for record in _records(session_factory, "evt-2")
    )


def test_delivery_that_never_starts_is_not_a_failed_attempt(make_dispatcher, channels) -> None:
    dispatcher = make_dispatcher(delivery_timeout=0.1)
    release = threading.Event()
    busy = ThreadPoolExecutor(max_workers=1)
    busy.submit(release.wait)
    try:
        with pytest.raises(DeliveryNotStartedError):
            dispatcher._deliver(busy, Channel.EMAIL, "one@example.com", "Subject", "Body")
    finally:
        release.set()
        busy.shutdown(wait=True)

    assert channels[Channel.EMAIL].attempts == 0


def test_render_error_skips_the_unit(make_dispatcher, session_factory, channels, monkeypatch) -> None:
    class Unprintable:
        def __str__(self) -> str:
            raise RuntimeError("no text")

    build_variables = dispatcher_module.build_event_variables

    def _variables(event, *, status_page_url):
        variables = build_variables(event, status_page_url=status_page_url)
        variables["title"] = Unprintable()
        return variables

    monkeypatch.setattr(dispatcher_module, "build_event_variables", _variables)

    report = make_dispatcher().dispatch(_outage())

    assert report.skipped == 8
    assert report.errors == 0
    assert _records(session_factory) == []
    assert channels[Channel.EMAIL].attempts == 0


def test_missing_template_skips_only_that_channel(make_dispatcher, session_factory, channels) -> None:
    with session_factory() as session:
        TemplateRepository(session).set_active("outage_started_email", False)

    report = make_dispatcher().dispatch(_outage())

    assert report.sent == 2
    assert channels[Channel.EMAIL].attempts == 0
    assert {record.channel for record in _records(session_factory)} == {Channel.IN_APP}


def test_directory_failure_means_zero_recipients(make_dispatcher, directory, session_factory) -> None:
    directory.fail = True

    report = make_dispatcher().dispatch(_outage())

    assert report.recipients == 0
    assert _records(session_factory) == []


def test_directory_duplicates_are_collapsed(make_dispatcher, directory, session_factory) -> None:
    directory.recipients.append(Recipient(user_id="user-1", email="one@example.com"))

    report = make_dispatcher().dispatch(_outage())

    assert report.recipients == 2
    assert len(_records(session_factory)) == 4


def test_redispatching_an_event_creates_no_second_record(make_dispatcher, session_factory, channels) -> None:
    dispatcher = make_dispatcher()
    dispatcher.dispatch(_outage())

    second = dispatcher.dispatch(_outage())

    assert second.sent == 0
    assert second.skipped == 8
    assert len(_records(session_factory)) == 4
    assert channels[Channel.EMAIL].attempts == 2


def test_one_failing_recipient_does_not_affect_others(make_dispatcher, session_factory, channels) -> None:
    channels[Channel.EMAIL].error = DeliveryError("mailbox unavailable")
    channels[Channel.EMAIL].fail_for = {"one@example.com"}

    make_dispatcher().dispatch(_outage())

    statuses = {
        (record.user_id, record.channel): record.status for record in _records(session_factory)
    }
    assert statuses[("user-1", Channel.EMAIL)] is NotificationStatus.FAILED
    assert statuses[("user-2", Channel.EMAIL)] is NotificationStatus.SENT
    assert statuses[("user-1", Channel.IN_APP)] is NotificationStatus.SENT


def test_persistence_failure_aborts_the_unit_before_delivery(
    make_dispatcher, channels, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(self, notification):
        raise PersistenceError("disk full", event_id=notification.event_id)

    monkeypatch.setattr(NotificationRepository, "create_pending", _fail)

    report = make_dispatcher().dispatch(_outage())

    assert report.errors == 4
    assert channels[Channel.EMAIL].attempts == 0
    assert channels[Channel.IN_APP].attempts == 0


def test_invalid_email_address_is_skipped(make_dispatcher, directory, session_factory) -> None:
    directory.recipients = [Recipient(user_id="user-3", email="not-an-address")]

    make_dispatcher().dispatch(_outage())

    assert {record.channel for record in _records(session_factory)} == {Channel.IN_APP}


def test_quiet_hours_hold_back_non_critical(make_dispatcher, session_factory, clock) -> None:
    clock.moment = datetime(2024, 3, 15, 23, 0, tzinfo=timezone.utc)
    _set_preferences(
        session_factory, "user-1", quiet_hours_start=time(22, 0), quiet_hours_end=time(6, 0)
    )

    make_dispatcher().dispatch(_outage(severity=Severity.HIGH))
    make_dispatcher().dispatch(_outage("evt-2", severity=Severity.CRITICAL))

    assert {record.user_id for record in _records(session_factory)} == {"user-2"}
    assert {record.user_id for record in _records(session_factory, "evt-2")} == {"user-1", "user-2"}


def test_rendered_content_is_sanitized(make_dispatcher, channels) -> None:
    make_dispatcher().dispatch(_outage(title="Outage <script>alert(1)</script>"))

    for _, subject, body in channels[Channel.EMAIL].sent:
        assert "<script>" not in (subject or "")
        assert "<script>" not in body


def test_usage_event_reaches_only_its_subject(make_dispatcher, session_factory, clock) -> None:
    event = Event(
        id="usage:user-2:cap-1:90:2024-03-15T12:00:00+00:00",
        kind=EventKind.USAGE_THRESHOLD_CROSSED,
        subject_user_id="user-2",
        cap_id="cap-1",
        threshold_percent=90,
        usage_percent=91.0,
        claimed_at=clock(),
    )

    report = make_dispatcher().dispatch(event)

    assert report.recipients == 1
    records = _records(session_factory, event.id)
    assert {record.user_id for record in records} == {"user-2"}
    assert any("90%" in (record.subject or "") for record in records)
    assert all("91.0%" in record.body for record in records)


def test_unclaimed_usage_event_sends_nothing(make_dispatcher, session_factory) -> None:
    event = Event(
        id="usage:user-2:cap-1:90:unclaimed",
        kind=EventKind.USAGE_THRESHOLD_CROSSED,
        subject_user_id="user-2",
        threshold_percent=90,
    )

    report = make_dispatcher().dispatch(event)

    assert report.attempted == 0
    assert _records(session_factory, event.id) == []


@pytest.mark.parametrize(
    ("channel", "recipient", "phone", "expected"),
    [
        (Channel.EMAIL, Recipient("u", email="a@b.co"), None, "a@b.co"),
        (Channel.EMAIL, Recipient("u", email="a@b"), None, None),
        (Channel.SMS, Recipient("u", phone="+15550001"), None, "+15550001"),
        (Channel.SMS, Recipient("u", phone="+15550001"), "+15559999", "+15559999"),
        (Channel.SMS, Recipient("u"), "call me", None),
        (Channel.IN_APP, Recipient("u"), None, "u"),
        (Channel.PUSH, Recipient("u"), None, "u"),
    ],
)
def test_resolve_address(channel, recipient, phone, expected) -> None:
    preference = NotificationPreference(user_id="u", phone_number=phone)

    assert resolve_address(channel, recipient, preference) == expected
