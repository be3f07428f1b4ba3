"""Email channel adapter delivering notifications via SendGrid."""

from __future__ import annotations

import html
import json
import logging
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from outage_notify.config import Settings, get_settings
from outage_notify.domain.errors import DeliveryError

logger = logging.getLogger(__name__)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_failure(status_code: Any, details: str | None) -> str:
    if status_code and details:
        return f"SendGrid API request failed with status {status_code}: {details}"
    if status_code:
        return f"SendGrid API request failed with status {status_code}"
    if details:
        return f"SendGrid API request failed: {details}"
    return "SendGrid API request failed"


def render_html(body: str) -> str:
    """Wrap a plain-text notification body into minimal HTML paragraphs."""

    paragraphs = [chunk.strip() for chunk in body.split("\n\n") if chunk.strip()]
    return "".join(
        f"<p>{html.escape(paragraph).replace(chr(10), '<br>')}</p>" for paragraph in paragraphs
    )


class SendGridEmailAdapter:
    """Send notification emails using the configured SendGrid credentials."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def send(self, address: str, subject: str | None, body: str) -> None:
        settings = self.settings
        if not (settings.sendgrid_api_key and settings.sendgrid_sender):
            logger.info("SendGrid configuration incomplete; email delivery unavailable")
            raise DeliveryError("Email delivery is not configured", recipient=address)

        message = Mail(
            from_email=settings.sendgrid_sender,
            to_emails=address,
            subject=subject or "",
            html_content=render_html(body),
            plain_text_content=body,
        )

        try:
            client = SendGridAPIClient(settings.sendgrid_api_key)
            client.client.timeout = settings.sendgrid_timeout_seconds
            response = client.send(message)
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            details = _extract_sendgrid_error_details(getattr(exc, "body", None))
            description = _describe_failure(status_code, details)
            logger.error(description)
            raise DeliveryError(description, recipient=address) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            details = _extract_sendgrid_error_details(getattr(response, "body", None))
            description = _describe_failure(status_code, details)
            logger.error(description)
            raise DeliveryError(description, recipient=address)


__all__ = ["SendGridEmailAdapter", "render_html"]
