"""Tests for the subscriber-backed affected-user directory."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from outage_notify.domain.entities import Recipient
from outage_notify.domain.errors import RecipientResolutionError
from outage_notify.infrastructure.directory import SubscriberDirectory
from outage_notify.infrastructure.repositories import SubscriberRepository


@pytest.fixture()
def directory(session_factory) -> SubscriberDirectory:
    with session_factory() as session:
        repository = SubscriberRepository(session)
        repository.save(user_id="north-net", email="a@example.com", region="north", services=["Internet"])
        repository.save(user_id="north-all", email="b@example.com", region="north")
        repository.save(user_id="north-tv", region="north", services=["TV"])
        repository.save(user_id="south-net", region="south", services=["internet"])
        repository.save(user_id="gone", region="north", services=["Internet"], is_active=False)
    return SubscriberDirectory(session_factory)


def _ids(recipients) -> list[str]:
    return [recipient.user_id for recipient in recipients]


def test_region_and_service_filters(directory) -> None:
    assert _ids(directory.resolve_affected_users(["north"], ["Internet"])) == [
        "north-net",
        "north-all",
    ]


def test_service_matching_ignores_case(directory) -> None:
    assert _ids(directory.resolve_affected_users([], ["INTERNET"])) == [
        "north-net",
        "north-all",
        "south-net",
    ]


def test_empty_filters_match_every_active_subscriber(directory) -> None:
    assert _ids(directory.resolve_affected_users([], [])) == [
        "north-net",
        "north-all",
        "north-tv",
        "south-net",
    ]


def test_get_user_returns_contact_details(directory) -> None:
    assert directory.get_user("north-net") == Recipient(user_id="north-net", email="a@example.com")
    assert directory.get_user("nobody") is None


def test_database_errors_become_resolution_errors(session_factory, monkeypatch) -> None:
    def _broken(self, regions, services):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(SubscriberRepository, "resolve_affected_users", _broken)

    with pytest.raises(RecipientResolutionError) as excinfo:
        SubscriberDirectory(session_factory).resolve_affected_users(["north"], [])

    assert excinfo.value.context == {"regions": "north", "services": ""}
