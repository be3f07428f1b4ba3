"""Database configuration and session management."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from outage_notify.config import get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections are shared across the dispatch worker threads, so the
    same-thread check is disabled and a busy timeout makes concurrent writers
    wait for the lock instead of failing immediately.
    """

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS,
            },
        )
    return create_engine(database_url, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``bind``."""

    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


settings = get_settings()
engine = build_engine(settings.database_url)
SessionLocal = build_session_factory(engine)


def initialize_database(bind: Engine | None = None, *, seed_templates: bool = True) -> None:
    """Ensure all ORM models have tables and the default templates exist."""

    from outage_notify.infrastructure import models  # noqa: F401  # ensure models are imported
    from outage_notify.infrastructure.repositories import TemplateRepository
    from outage_notify.infrastructure.seed import DEFAULT_TEMPLATES

    target = bind or engine
    Base.metadata.create_all(bind=target, checkfirst=True)
    if not seed_templates:
        return

    session = build_session_factory(target)()
    try:
        created = TemplateRepository(session).ensure_defaults(DEFAULT_TEMPLATES)
    finally:
        session.close()
    if created:
        logger.info("Seeded %s default notification templates", created)


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "build_session_factory",
    "engine",
    "initialize_database",
]
