"""Turns one event into per user and channel notification attempts."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from outage_notify.application.eligibility import EligibilityEvaluator
from outage_notify.application.ports import AffectedUserDirectory, ChannelAdapter
from outage_notify.application.recipients import RecipientResolver
from outage_notify.application.rendering import (
    build_event_variables,
    missing_variables,
    render,
    sanitize_content,
)
from outage_notify.application.templates import TemplateRegistry, load_template_registry
from outage_notify.domain.entities import (
    SUPPORTED_CHANNELS,
    Channel,
    Event,
    Notification,
    NotificationPreference,
    NotificationStatus,
    Recipient,
)
from outage_notify.domain.errors import (
    DeliveryError,
    DeliveryNotStartedError,
    DuplicateNotificationError,
    PersistenceError,
    RenderError,
    TemplateNotFoundError,
)
from outage_notify.infrastructure.repositories import (
    NotificationRepository,
    PreferenceRepository,
)
from outage_notify.utils import now_utc

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")


class UnitOutcome(str, Enum):
    SKIPPED = "skipped"
    SENT = "sent"
    FAILED = "failed"
    ERROR = "error"


@dataclass
class DispatchReport:
    """Per-event tally of unit outcomes."""

    event_id: str
    recipients: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    notification_ids: list[int] = field(default_factory=list)

    def record(self, outcome: UnitOutcome, notification_id: int | None = None) -> None:
        if outcome is UnitOutcome.SENT:
            self.sent += 1
        elif outcome is UnitOutcome.FAILED:
            self.failed += 1
        elif outcome is UnitOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1
        if notification_id is not None:
            self.notification_ids.append(notification_id)

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


def resolve_address(
    channel: Channel, recipient: Recipient, preference: NotificationPreference
) -> str | None:
    """Return the transport address for ``channel`` or ``None`` when unusable."""

    if channel is Channel.EMAIL:
        address = (recipient.email or "").strip()
        return address if _EMAIL_PATTERN.match(address) else None
    if channel is Channel.SMS:
        address = (preference.phone_number or recipient.phone or "").strip()
        return address if address and _PHONE_PATTERN.match(address) else None
    return recipient.user_id.strip() or None


class Dispatcher:
    """Run resolution, eligibility, rendering, recording and delivery for events.

    Each ``(event, user, channel)`` unit opens its own session from
    ``session_factory`` and is isolated from the others: whatever goes wrong
    in one unit is logged and never stops the rest. Only eligible units with
    a template and a usable address produce a notification record, and the
    record is written before delivery is attempted.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        directory: AffectedUserDirectory,
        channels: Mapping[Channel, ChannelAdapter],
        *,
        templates: TemplateRegistry | None = None,
        evaluator: EligibilityEvaluator | None = None,
        status_page_url: str = "",
        max_workers: int = 8,
        delivery_timeout: float = 10.0,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._session_factory = session_factory
        self._resolver = RecipientResolver(directory)
        self._channels = {
            channel: channels[channel] for channel in SUPPORTED_CHANNELS if channel in channels
        }
        self._templates = templates
        self._clock = clock
        self._evaluator = evaluator or EligibilityEvaluator(clock=clock)
        self._status_page_url = status_page_url
        self._max_workers = max_workers
        self._delivery_timeout = delivery_timeout
        self._lock = threading.Lock()
        self._delivery_pools: set[ThreadPoolExecutor] = set()

    @property
    def channels(self) -> tuple[Channel, ...]:
        return tuple(self._channels)

    def close(self) -> None:
        """Cancel deliveries still queued by dispatches in progress."""

        with self._lock:
            pools = list(self._delivery_pools)
        for pool in pools:
            pool.shutdown(wait=False, cancel_futures=True)

    def dispatch(self, event: Event) -> DispatchReport:
        report = DispatchReport(event_id=event.id)
        recipients = self._resolver.resolve(event)
        report.recipients = len(recipients)
        if not recipients:
            logger.info("No recipients for event %s", event.id, extra={"event_id": event.id})
            return report

        registry = self._snapshot_templates()
        if registry is None:
            report.errors += len(recipients)
            return report

        variables = build_event_variables(event, status_page_url=self._status_page_url)
        workers = max(1, min(self._max_workers, len(recipients)))
        # One delivery thread per unit so a hung adapter never holds up another unit.
        delivery_pool = ThreadPoolExecutor(
            max_workers=max(1, len(recipients) * len(self._channels)),
            thread_name_prefix="notify-delivery",
        )
        with self._lock:
            self._delivery_pools.add(delivery_pool)
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify-unit") as pool:
                futures = [
                    pool.submit(
                        self._process_recipient,
                        event,
                        recipient,
                        registry,
                        variables,
                        delivery_pool,
                    )
                    for recipient in recipients
                ]
                for future in futures:
                    for outcome, notification_id in future.result():
                        report.record(outcome, notification_id)
        finally:
            with self._lock:
                self._delivery_pools.discard(delivery_pool)
            delivery_pool.shutdown(wait=False)

        logger.info(
            "Dispatched event %s: %s sent, %s failed, %s skipped, %s errors",
            event.id,
            report.sent,
            report.failed,
            report.skipped,
            report.errors,
            extra={"event_id": event.id, "event_kind": event.kind.value},
        )
        return report

    def _snapshot_templates(self) -> TemplateRegistry | None:
        if self._templates is not None:
            return self._templates
        try:
            with self._session_factory() as session:
                return load_template_registry(session)
        except Exception as exc:
            logger.error("Could not load notification templates: %s", exc, exc_info=exc)
            return None

    def _process_recipient(
        self,
        event: Event,
        recipient: Recipient,
        registry: TemplateRegistry,
        variables: Mapping[str, Any],
        delivery_pool: ThreadPoolExecutor,
    ) -> list[tuple[UnitOutcome, int | None]]:
        context = {"event_id": event.id, "user_id": recipient.user_id}
        try:
            with self._session_factory() as session:
                preference = PreferenceRepository(session).get_or_create(recipient.user_id)
        except Exception as exc:
            logger.error(
                "Could not load preferences for %s: %s",
                recipient.user_id,
                exc,
                exc_info=exc,
                extra=context,
            )
            return [(UnitOutcome.ERROR, None)] * len(self._channels)

        outcomes: list[tuple[UnitOutcome, int | None]] = []
        for channel in self._channels:
            try:
                outcomes.append(
                    self._process_unit(
                        event, recipient, preference, channel, registry, variables, delivery_pool
                    )
                )
            except Exception as exc:
                logger.error(
                    "Unexpected failure dispatching event %s to %s via %s",
                    event.id,
                    recipient.user_id,
                    channel.value,
                    exc_info=exc,
                    extra={**context, "channel": channel.value},
                )
                outcomes.append((UnitOutcome.ERROR, None))
        return outcomes

    def _process_unit(
        self,
        event: Event,
        recipient: Recipient,
        preference: NotificationPreference,
        channel: Channel,
        registry: TemplateRegistry,
        variables: Mapping[str, Any],
        delivery_pool: ThreadPoolExecutor,
    ) -> tuple[UnitOutcome, int | None]:
        context = {"event_id": event.id, "user_id": recipient.user_id, "channel": channel.value}

        decision = self._evaluator.decide(preference, event, channel)
        if not decision:
            logger.debug(
                "Skipping %s for %s: %s",
                channel.value,
                recipient.user_id,
                decision.reason.value if decision.reason else "ineligible",
                extra=context,
            )
            return UnitOutcome.SKIPPED, None

        try:
            template = registry.lookup(event.kind, channel)
        except TemplateNotFoundError as exc:
            logger.warning("%s; skipping", exc, extra=context)
            return UnitOutcome.SKIPPED, None

        address = resolve_address(channel, recipient, preference)
        if address is None:
            logger.warning(
                "No valid %s address for %s; skipping",
                channel.value,
                recipient.user_id,
                extra=context,
            )
            return UnitOutcome.SKIPPED, None

        missing = missing_variables(template.body_template, variables)
        if template.subject_template:
            missing += missing_variables(template.subject_template, variables)
        if missing:
            logger.warning(
                "Template %s has unresolved variables: %s",
                template.name,
                ", ".join(sorted(set(missing))),
                extra=context,
            )
        try:
            subject = (
                sanitize_content(render(template.subject_template, variables))
                if template.subject_template
                else None
            )
            body = sanitize_content(render(template.body_template, variables))
        except RenderError as exc:
            logger.warning(
                "Could not render template %s: %s; skipping", template.name, exc, extra=context
            )
            return UnitOutcome.SKIPPED, None

        with self._session_factory() as session:
            repository = NotificationRepository(session)
            try:
                record = repository.create_pending(
                    Notification(
                        id=None,
                        event_id=event.id,
                        event_kind=event.kind.value,
                        user_id=recipient.user_id,
                        channel=channel,
                        status=NotificationStatus.PENDING,
                        recipient=address,
                        subject=subject,
                        body=body,
                        created_at=self._clock(),
                    )
                )
            except DuplicateNotificationError:
                logger.info("Notification already recorded; skipping", extra=context)
                return UnitOutcome.SKIPPED, None
            except PersistenceError as exc:
                logger.error(
                    "Could not record notification, not delivering: %s", exc, extra=context
                )
                return UnitOutcome.ERROR, None

            assert record.id is not None
            try:
                error = self._deliver(delivery_pool, channel, address, subject, body)
            except DeliveryNotStartedError as exc:
                logger.error(
                    "%s; notification %s left pending", exc, record.id, extra=context
                )
                return UnitOutcome.ERROR, record.id
            if error is None:
                repository.mark_sent(record.id, sent_at=self._clock())
                logger.info("Sent %s notification to %s", channel.value, recipient.user_id, extra=context)
                return UnitOutcome.SENT, record.id

            repository.mark_failed(record.id, error_message=error)
            logger.warning(
                "Delivery via %s to %s failed: %s",
                channel.value,
                recipient.user_id,
                error,
                extra=context,
            )
            return UnitOutcome.FAILED, record.id

    def _deliver(
        self,
        pool: ThreadPoolExecutor,
        channel: Channel,
        address: str,
        subject: str | None,
        body: str,
    ) -> str | None:
        """Hand the message to the channel adapter; return an error message on failure.

        The timeout runs from the moment the adapter is called. A call that
        never left the queue raises :class:`DeliveryNotStartedError`.
        """

        adapter = self._channels[channel]
        started = threading.Event()

        def _send() -> None:
            started.set()
            adapter.send(address, subject, body)

        try:
            future = pool.submit(_send)
        except RuntimeError as exc:
            raise DeliveryNotStartedError(
                f"Delivery via {channel.value} was cancelled", channel=channel.value
            ) from exc
        if not started.wait(self._delivery_timeout) and future.cancel():
            raise DeliveryNotStartedError(
                f"Delivery via {channel.value} did not start within {self._delivery_timeout:g}s",
                channel=channel.value,
            )
        try:
            future.result(timeout=self._delivery_timeout)
        except FutureTimeoutError:
            return f"Delivery timed out after {self._delivery_timeout:g}s"
        except DeliveryError as exc:
            return exc.message or type(exc).__name__
        except Exception as exc:
            return f"{type(exc).__name__}: {exc}"
        return None


__all__ = ["DispatchReport", "Dispatcher", "UnitOutcome", "resolve_address"]
