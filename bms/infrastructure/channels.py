"""Factory for the channel senders used by the notification service."""

from __future__ import annotations

from bms.config import Settings, get_settings
from bms.domain.entities import CHANNEL_EMAIL, CHANNEL_PUSH, CHANNEL_SMS

from .email import EmailSender
from .push import PushSender
from .whatsapp import WhatsAppSender


def build_channel_senders(settings: Settings | None = None) -> dict[str, object]:
    """Return one configured sender per external channel."""

    settings = settings or get_settings()
    return {
        CHANNEL_EMAIL: EmailSender(settings),
        CHANNEL_SMS: WhatsAppSender(settings),
        CHANNEL_PUSH: PushSender(settings),
    }


__all__ = ["build_channel_senders"]
