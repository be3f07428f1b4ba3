"""Persistence layer for the subscriber directory."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import true
from sqlalchemy.orm import Session

from outage_notify.domain.entities import Recipient
from outage_notify.infrastructure.models import SubscriberModel


class SubscriberRepository:
    """Look up customers affected by a set of regions and services."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def resolve_affected_users(
        self, regions: Iterable[str], services: Iterable[str]
    ) -> Sequence[Recipient]:
        """Return active subscribers matching ``regions`` and ``services``.

        An empty region list means every region is affected; likewise for
        services. Subscribers with no recorded services are treated as using
        all of them.
        """

        region_list = [region for region in regions if region]
        wanted_services = {service.lower() for service in services if service}

        query = self.session.query(SubscriberModel).filter(SubscriberModel.is_active == true())
        if region_list:
            query = query.filter(SubscriberModel.region.in_(region_list))
        query = query.order_by(SubscriberModel.id.asc())

        recipients: list[Recipient] = []
        for model in query.all():
            subscribed = {str(service).lower() for service in model.services or []}
            if wanted_services and subscribed and not (wanted_services & subscribed):
                continue
            recipients.append(self._to_recipient(model))
        return recipients

    def get_user(self, user_id: str) -> Recipient | None:
        model = (
            self.session.query(SubscriberModel)
            .filter(SubscriberModel.user_id == user_id)
            .one_or_none()
        )
        return self._to_recipient(model) if model else None

    def save(
        self,
        *,
        user_id: str,
        email: str | None = None,
        phone: str | None = None,
        region: str | None = None,
        services: Iterable[str] = (),
        is_active: bool = True,
    ) -> Recipient:
        model = (
            self.session.query(SubscriberModel)
            .filter(SubscriberModel.user_id == user_id)
            .one_or_none()
        ) or SubscriberModel(user_id=user_id)
        model.email = email
        model.phone = phone
        model.region = region
        model.services = list(services)
        model.is_active = is_active
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_recipient(model)

    @staticmethod
    def _to_recipient(model: SubscriberModel) -> Recipient:
        return Recipient(user_id=model.user_id, email=model.email, phone=model.phone)


__all__ = ["SubscriberRepository"]
