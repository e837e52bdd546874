"""Domain entity describing how a recipient wants to be notified."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time


@dataclass(frozen=True)
class NotificationPreferences:
    """Fully resolved channel, type and quiet-window preferences."""

    email_enabled: bool
    sms_enabled: bool
    in_app_enabled: bool
    push_enabled: bool
    email_types: tuple[str, ...] = field(default_factory=tuple)
    sms_types: tuple[str, ...] = field(default_factory=tuple)
    push_types: tuple[str, ...] = field(default_factory=tuple)
    quiet_hours_enabled: bool = False
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None
    do_not_disturb_enabled: bool = False
    do_not_disturb_until: datetime | None = None
    preferred_language: str = "en"


__all__ = ["NotificationPreferences"]
