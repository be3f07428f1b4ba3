"""Tests for tracked outages and the lifecycle notifications they produce."""

from __future__ import annotations

from datetime import timedelta

import pytest

from outage_notify.application.service import build_notification_service
from outage_notify.config import Settings
from outage_notify.domain.entities import (
    Channel,
    EventKind,
    NotificationStatus,
    OutageEvent,
    OutageStatus,
    Severity,
)
from outage_notify.domain.errors import PersistenceError
from outage_notify.infrastructure.repositories import (
    NotificationRepository,
    OutageEventRepository,
)


@pytest.fixture()
def service(session_factory, directory, channels, clock):
    service = build_notification_service(
        session_factory,
        settings=Settings(dispatch_max_workers=2, delivery_timeout_seconds=2),
        directory=directory,
        channels=channels,
        clock=clock,
    )
    yield service
    service.close()


def _outage(**fields) -> OutageEvent:
    fields.setdefault("id", None)
    fields.setdefault("title", "Fiber cut")
    fields.setdefault("description", "Backbone link down")
    fields.setdefault("severity", Severity.HIGH)
    fields.setdefault("affected_services", ["Internet"])
    fields.setdefault("affected_regions", ["north"])
    return OutageEvent(**fields)


def _records(session_factory, event_id: str):
    with session_factory() as session:
        return list(NotificationRepository(session).list_for_event(event_id))


def test_repository_assigns_identifier_and_first_revision(session_factory, clock) -> None:
    with session_factory() as session:
        stored = OutageEventRepository(session).create(_outage(created_at=clock()))

    assert stored.id
    assert stored.revision == 1
    assert stored.status is OutageStatus.INVESTIGATING
    assert stored.created_at == clock()
    assert stored.updated_at == clock()


def test_repository_rejects_duplicate_identifiers(session_factory) -> None:
    with session_factory() as session:
        OutageEventRepository(session).create(_outage(id="out-1"))

    with session_factory() as session, pytest.raises(PersistenceError, match="already exists"):
        OutageEventRepository(session).create(_outage(id="out-1"))


def test_repository_update_bumps_revision(session_factory, clock) -> None:
    with session_factory() as session:
        repository = OutageEventRepository(session)
        repository.create(_outage(id="out-1", created_at=clock()))

        updated = repository.update(
            "out-1",
            {"status": "identified", "severity": "critical", "affected_regions": ["south"]},
            updated_at=clock() + timedelta(minutes=5),
        )

        assert repository.update("missing", {"title": "x"}) is None

    assert updated is not None
    assert updated.revision == 2
    assert updated.status is OutageStatus.IDENTIFIED
    assert updated.severity is Severity.CRITICAL
    assert updated.affected_regions == ["south"]
    assert updated.updated_at == clock() + timedelta(minutes=5)


def test_repository_lists_active_and_recent(session_factory, clock) -> None:
    with session_factory() as session:
        repository = OutageEventRepository(session)
        for index, status in enumerate(
            [OutageStatus.INVESTIGATING, OutageStatus.RESOLVED, OutageStatus.MONITORING]
        ):
            repository.create(
                _outage(
                    id=f"out-{index}",
                    status=status,
                    created_at=clock() + timedelta(minutes=index),
                )
            )

        active = repository.list_active()
        recent = repository.list_all(limit=2)

    assert [outage.id for outage in active] == ["out-2", "out-0"]
    assert [outage.id for outage in recent] == ["out-2", "out-1"]


def test_create_outage_event_announces_start(service, session_factory, channels) -> None:
    outage = service.create_outage_event(_outage(id="out-1"))

    records = _records(session_factory, "outage:out-1:outage_started:1")
    assert {(record.user_id, record.channel) for record in records} == {
        ("user-1", Channel.EMAIL),
        ("user-1", Channel.IN_APP),
        ("user-2", Channel.EMAIL),
        ("user-2", Channel.IN_APP),
    }
    assert all(record.event_kind == EventKind.OUTAGE_STARTED.value for record in records)
    assert all(record.status is NotificationStatus.SENT for record in records)
    assert outage.revision == 1
    assert service.get_outage_event("out-1") == outage


def test_create_rejects_blank_title(service) -> None:
    with pytest.raises(ValueError, match="title"):
        service.create_outage_event(_outage(title="  "))


def test_create_resolved_outage_announces_resolution(service, session_factory, clock) -> None:
    outage = service.create_outage_event(_outage(id="out-1", status=OutageStatus.RESOLVED))

    assert outage.actual_resolution == clock()
    assert _records(session_factory, "outage:out-1:outage_started:1") == []
    assert len(_records(session_factory, "outage:out-1:outage_resolved:1")) == 4


def test_each_update_is_announced(service, session_factory) -> None:
    service.create_outage_event(_outage(id="out-1"))

    first = service.update_outage_event("out-1", {"status": "identified"})
    second = service.update_outage_event("out-1", {"description": "Crew on site"})

    assert (first.revision, second.revision) == (2, 3)
    assert second.status is OutageStatus.IDENTIFIED
    for revision in (2, 3):
        records = _records(session_factory, f"outage:out-1:outage_updated:{revision}")
        assert len(records) == 4
        assert all(record.event_kind == EventKind.OUTAGE_UPDATED.value for record in records)


def test_resolving_fills_actual_resolution(service, session_factory, channels, clock) -> None:
    service.create_outage_event(_outage(id="out-1"))
    clock.advance(timedelta(hours=2))

    resolved = service.update_outage_event("out-1", {"status": OutageStatus.RESOLVED})

    assert resolved.status is OutageStatus.RESOLVED
    assert resolved.actual_resolution == clock()
    records = _records(session_factory, "outage:out-1:outage_resolved:2")
    assert len(records) == 4
    assert service.list_active_outage_events() == []


def test_reopening_clears_actual_resolution(service) -> None:
    service.create_outage_event(_outage(id="out-1"))
    service.update_outage_event("out-1", {"status": "resolved"})

    reopened = service.update_outage_event("out-1", {"status": "investigating"})

    assert reopened.actual_resolution is None
    assert [outage.id for outage in service.list_active_outage_events()] == ["out-1"]


def test_update_unknown_outage_returns_none(service) -> None:
    assert service.update_outage_event("missing", {"status": "monitoring"}) is None


def test_update_rejects_unknown_fields_and_statuses(service) -> None:
    service.create_outage_event(_outage(id="out-1"))

    with pytest.raises(ValueError, match="Unknown outage fields: owner"):
        service.update_outage_event("out-1", {"owner": "noc"})
    with pytest.raises(ValueError):
        service.update_outage_event("out-1", {"status": "exploded"})


def test_list_outage_events_is_newest_first(service, clock) -> None:
    for index in range(3):
        service.create_outage_event(_outage(id=f"out-{index}"))
        clock.advance(timedelta(minutes=1))

    assert [outage.id for outage in service.list_outage_events(limit=2)] == ["out-2", "out-1"]
