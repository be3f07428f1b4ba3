"""Delivery channels supported by the notification engine."""

from __future__ import annotations

from enum import Enum


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    IN_APP = "in_app"
    PUSH = "push"


SUPPORTED_CHANNELS: tuple[Channel, ...] = (
    Channel.EMAIL,
    Channel.SMS,
    Channel.IN_APP,
    Channel.PUSH,
)


__all__ = ["Channel", "SUPPORTED_CHANNELS"]
