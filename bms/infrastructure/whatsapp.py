"""SMS channel sender delivering messages over WhatsApp.

Supports the Twilio WhatsApp API, WhatsApp Business style REST APIs and a
generic bearer-token REST endpoint. Without credentials the sender runs in mock
mode.
"""

from __future__ import annotations

import logging

import requests

from bms.config import Settings, get_settings
from bms.domain.entities import RenderedMessage, SendResult

logger = logging.getLogger(__name__)

PROVIDER_TWILIO = "twilio"
PROVIDER_WHATSAPP_BUSINESS = "whatsapp-business"
PROVIDER_GENERIC = "generic"
PROVIDER_MOCK = "mock"

NOT_CONFIGURED_ERROR = "WhatsApp provider not configured"
TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
_PREVIEW_LENGTH = 100


def normalize_phone_number(phone: str) -> str:
    """Return ``phone`` with surrounding whitespace removed and a leading ``+``."""

    phone = phone.strip()
    return phone if phone.startswith("+") else f"+{phone}"


class WhatsAppSender:
    """Send rendered notifications as WhatsApp messages."""

    channel = "sms"

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._session = session or requests.Session()
        self._timeout = self._settings.http_timeout_seconds
        self.provider = self._resolve_provider()

    def _resolve_provider(self) -> str:
        provider = self._settings.whatsapp_provider
        settings = self._settings
        if provider == PROVIDER_TWILIO:
            if not (
                settings.twilio_account_sid
                and (settings.twilio_auth_token or settings.whatsapp_api_key)
                and settings.twilio_whatsapp_from
            ):
                logger.warning(
                    "Twilio not fully configured. Required: TWILIO_ACCOUNT_SID, "
                    "TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_FROM"
                )
                return PROVIDER_MOCK
            return PROVIDER_TWILIO
        if provider in (PROVIDER_WHATSAPP_BUSINESS, PROVIDER_GENERIC):
            if not (settings.whatsapp_api_key and settings.whatsapp_api_url):
                logger.warning("WHATSAPP_API_KEY or WHATSAPP_API_URL not configured")
                return PROVIDER_MOCK
            return provider
        return PROVIDER_MOCK

    def send(self, to: str, message: RenderedMessage) -> SendResult:
        """Send the body of ``message`` to the phone number ``to``."""

        phone = normalize_phone_number(to)
        text = message.body

        if self.provider == PROVIDER_MOCK:
            return self._send_mock(phone, text)

        try:
            if self.provider == PROVIDER_TWILIO:
                response = self._post_twilio(phone, text)
                label = "Twilio"
            else:
                response = self._post_generic(phone, text)
                label = "WhatsApp"
        except requests.RequestException as exc:
            logger.error("Failed to send WhatsApp message to %s: %s", phone, exc)
            return SendResult.failed(str(exc) or exc.__class__.__name__)

        if not response.ok:
            error = f"{label} API error: {response.status_code} - {response.text}"
            logger.error("Failed to send WhatsApp message to %s: %s", phone, error)
            return SendResult.failed(error)

        logger.info("WhatsApp message sent to %s via %s", phone, self.provider)
        return SendResult.ok()

    def _send_mock(self, phone: str, text: str) -> SendResult:
        if self._settings.is_production:
            logger.warning("WhatsApp provider not configured; message to %s not sent", phone)
            return SendResult.failed(NOT_CONFIGURED_ERROR)
        preview = text[:_PREVIEW_LENGTH] + ("..." if len(text) > _PREVIEW_LENGTH else "")
        logger.info("Mock mode - would send WhatsApp to %s: %s", phone, preview)
        return SendResult.ok()

    def _post_twilio(self, phone: str, text: str) -> requests.Response:
        settings = self._settings
        url = TWILIO_MESSAGES_URL.format(account_sid=settings.twilio_account_sid)
        auth_token = settings.twilio_auth_token or settings.whatsapp_api_key
        return self._session.post(
            url,
            data={
                "From": f"whatsapp:{settings.twilio_whatsapp_from}",
                "To": f"whatsapp:{phone}",
                "Body": text,
            },
            auth=(settings.twilio_account_sid, auth_token),
            timeout=self._timeout,
        )

    def _post_generic(self, phone: str, text: str) -> requests.Response:
        payload: dict[str, str] = {"to": phone, "message": text}
        if self.provider == PROVIDER_WHATSAPP_BUSINESS:
            payload["recipient"] = phone
            payload["text"] = text
        return self._session.post(
            self._settings.whatsapp_api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self._settings.whatsapp_api_key}"},
            timeout=self._timeout,
        )


__all__ = [
    "NOT_CONFIGURED_ERROR",
    "PROVIDER_GENERIC",
    "PROVIDER_MOCK",
    "PROVIDER_TWILIO",
    "PROVIDER_WHATSAPP_BUSINESS",
    "WhatsAppSender",
    "normalize_phone_number",
]
