"""Email channel sender backed by the SendGrid REST API."""

from __future__ import annotations

import json
import logging
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from bms.config import Settings, get_settings
from bms.domain.entities import RenderedMessage, SendResult

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ERROR = "Email provider not configured"


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
                field = item.get("field")
                if message and field:
                    messages.append(f"{message} (field: {field})")
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


def _describe_sendgrid_exception(exc: Exception) -> str:
    """Log a SendGrid API error and return the message stored on the record."""

    status_code = getattr(exc, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(exc, "body", None))

    if status_code and details:
        logger.error(
            "SendGrid API request failed with status %s: %s", status_code, details
        )
        return f"SendGrid error {status_code}: {details}"
    if status_code:
        logger.error("SendGrid API request failed with status %s", status_code)
        return f"SendGrid error {status_code}"
    if details:
        logger.error("SendGrid API request failed: %s", details)
        return f"SendGrid error: {details}"
    logger.exception("Error sending email via SendGrid: %s", exc)
    return str(exc) or exc.__class__.__name__


def _describe_unsuccessful_response(response: Any) -> str:
    """Log details from an unsuccessful SendGrid response object."""

    status_code = getattr(response, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(response, "body", None))

    if details:
        logger.error(
            "SendGrid API responded with status %s: %s", status_code, details
        )
        return f"SendGrid responded with status {status_code}: {details}"
    logger.error("SendGrid API responded with status %s", status_code)
    return f"SendGrid responded with status {status_code}"


def plain_text_to_html(body: str) -> str:
    """Return a minimal HTML rendering of a plain text body."""

    return body.replace("\n", "<br>")


class EmailSender:
    """Send rendered notifications by email."""

    channel = "email"

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.sendgrid_api_key and self._settings.sendgrid_sender)

    def send(self, to: str, message: RenderedMessage) -> SendResult:
        """Send ``message`` to the ``to`` address."""

        if not self.is_configured:
            if self._settings.is_production:
                logger.warning("SendGrid configuration incomplete; email to %s not sent", to)
                return SendResult.failed(NOT_CONFIGURED_ERROR)
            logger.info(
                "SendGrid not configured; simulating email to %s with subject %r",
                to,
                message.subject,
            )
            return SendResult.ok()

        mail = Mail(
            from_email=(self._settings.sendgrid_sender, self._settings.email_from_name),
            to_emails=to,
            subject=message.subject,
            plain_text_content=message.body,
            html_content=message.html_body or plain_text_to_html(message.body),
        )

        try:
            client = SendGridAPIClient(self._settings.sendgrid_api_key)
            response = client.send(mail)
        except Exception as exc:
            return SendResult.failed(_describe_sendgrid_exception(exc))

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            return SendResult.failed(_describe_unsuccessful_response(response))

        logger.info("Email sent to %s", to)
        return SendResult.ok()


__all__ = ["EmailSender", "NOT_CONFIGURED_ERROR", "plain_text_to_html"]
