"""Domain entity describing a notification recipient."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Recipient:
    """A user affected by an event, with the contact details known for them."""

    user_id: str
    email: str | None = None
    phone: str | None = None


__all__ = ["Recipient"]
