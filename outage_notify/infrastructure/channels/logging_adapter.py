"""Channel adapter used when no transport is configured for a channel."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LoggingChannelAdapter:
    """Record the outgoing message in the application log.

    Stands in for SMS and push providers, which are wired in by deployments
    that own those transports.
    """

    def __init__(self, channel_name: str) -> None:
        self.channel_name = channel_name

    def send(self, address: str, subject: str | None, body: str) -> None:
        logger.info(
            "%s notification handed off to %s",
            self.channel_name,
            address,
            extra={"channel": self.channel_name, "recipient": address, "subject": subject},
        )


__all__ = ["LoggingChannelAdapter"]
