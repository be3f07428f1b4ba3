"""Shared fixtures: a throwaway SQLite database and in-memory collaborators."""

from __future__ import annotations

import os
import tempfile
import threading
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

os.environ["DATABASE_URL"] = f"sqlite:///{Path(tempfile.gettempdir()) / 'outage_notify_tests.db'}"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

import pytest

from outage_notify.application.dispatcher import Dispatcher
from outage_notify.domain.entities import Channel, Recipient
from outage_notify.domain.errors import RecipientResolutionError
from outage_notify.infrastructure.database import (
    build_engine,
    build_session_factory,
    initialize_database,
)


class FakeDirectory:
    """Directory returning a fixed recipient list, or failing on demand."""

    def __init__(self, recipients=()) -> None:
        self.recipients = list(recipients)
        self.fail = False
        self.calls: list[tuple[list[str], list[str]]] = []

    def resolve_affected_users(self, regions, services):
        self.calls.append((list(regions), list(services)))
        if self.fail:
            raise RecipientResolutionError("directory unavailable")
        return list(self.recipients)

    def get_user(self, user_id):
        if self.fail:
            raise RecipientResolutionError("directory unavailable", user_id=user_id)
        for recipient in self.recipients:
            if recipient.user_id == user_id:
                return recipient
        return None


class RecordingChannel:
    """Channel adapter that remembers what it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str | None, str]] = []
        self.attempts = 0
        self.error: Exception | None = None
        self.fail_for: set[str] = set()
        self.delay = 0.0
        self._lock = threading.Lock()

    def send(self, address, subject, body):
        with self._lock:
            self.attempts += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None and (not self.fail_for or address in self.fail_for):
            raise self.error
        with self._lock:
            self.sent.append((address, subject, body))


class FrozenClock:
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, delta: timedelta) -> None:
        self.moment = self.moment + delta


@pytest.fixture()
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'notify.db'}")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def directory():
    return FakeDirectory(
        [
            Recipient(user_id="user-1", email="one@example.com", phone="+15550001"),
            Recipient(user_id="user-2", email="two@example.com"),
        ]
    )


@pytest.fixture()
def channels():
    return {channel: RecordingChannel() for channel in Channel}


@pytest.fixture()
def make_dispatcher(session_factory, directory, channels, clock):
    created: list[Dispatcher] = []

    def factory(**options) -> Dispatcher:
        options.setdefault("status_page_url", "https://status.example.com/status")
        options.setdefault("max_workers", 4)
        options.setdefault("delivery_timeout", 2.0)
        options.setdefault("clock", clock)
        dispatcher = Dispatcher(
            session_factory,
            options.pop("directory", directory),
            options.pop("channels", channels),
            **options,
        )
        created.append(dispatcher)
        return dispatcher

    yield factory
    for dispatcher in created:
        dispatcher.close()
