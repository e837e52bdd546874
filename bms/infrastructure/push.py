"""Push channel sender using the Web Push protocol with VAPID keys."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import requests
from pywebpush import WebPushException, webpush

from bms.config import Settings, get_settings
from bms.domain.entities import RenderedMessage, SendResult

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ERROR = "Push provider not configured"
INVALID_SUBSCRIPTION_ERROR = "Invalid push subscription"


def build_push_payload(message: RenderedMessage) -> str:
    """Serialize ``message`` into the JSON payload read by the service worker."""

    return json.dumps(
        {"title": message.subject, "body": message.body, "url": message.link},
        ensure_ascii=False,
    )


class PushSender:
    """Send rendered notifications to a browser push subscription."""

    channel = "push"

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return bool(
            self._settings.vapid_private_key
            and self._settings.vapid_public_key
            and self._settings.vapid_subject
        )

    def send(self, to: Mapping[str, Any], message: RenderedMessage) -> SendResult:
        """Push ``message`` to the subscription described by ``to``."""

        endpoint = to.get("endpoint") if isinstance(to, Mapping) else None
        if not endpoint or not isinstance(to.get("keys"), Mapping):
            return SendResult.failed(INVALID_SUBSCRIPTION_ERROR)

        if not self.is_configured:
            if self._settings.is_production:
                logger.warning("VAPID keys not configured; push to %s not sent", endpoint)
                return SendResult.failed(NOT_CONFIGURED_ERROR)
            logger.info(
                "Push not configured; simulating push %r to %s", message.subject, endpoint
            )
            return SendResult.ok()

        try:
            webpush(
                subscription_info=dict(to),
                data=build_push_payload(message),
                vapid_private_key=self._settings.vapid_private_key,
                vapid_claims={"sub": self._settings.vapid_subject},
                timeout=self._settings.http_timeout_seconds,
            )
        except WebPushException as exc:
            status_code = getattr(exc.response, "status_code", None)
            logger.error("Web Push to %s failed with status %s: %s", endpoint, status_code, exc)
            if status_code:
                return SendResult.failed(f"Web Push error {status_code}: {exc.message}")
            return SendResult.failed(f"Web Push error: {exc.message}")
        except requests.RequestException as exc:
            logger.error("Web Push to %s failed: %s", endpoint, exc)
            return SendResult.failed(str(exc) or exc.__class__.__name__)

        logger.info("Push notification sent to %s", endpoint)
        return SendResult.ok()


__all__ = [
    "INVALID_SUBSCRIPTION_ERROR",
    "NOT_CONFIGURED_ERROR",
    "PushSender",
    "build_push_payload",
]
