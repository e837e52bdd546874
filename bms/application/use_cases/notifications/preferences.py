"""Resolve recipient notification preferences and evaluate delivery gates."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime, time
from typing import Any

from bms.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
    NOTIFICATION_TYPE_INVOICE_CREATED,
    NOTIFICATION_TYPE_LEASE_EXPIRING,
    NOTIFICATION_TYPE_PAYMENT_DUE,
    NOTIFICATION_TYPE_PAYMENT_RECEIVED,
    NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
    SUPPRESSED_DO_NOT_DISTURB,
    SUPPRESSED_QUIET_HOURS,
    Notification,
    NotificationPreferences,
)
from bms.utils import (
    ensure_app_timezone,
    minute_of_day,
    now_in_app_timezone,
    parse_clock_time,
    parse_datetime,
)

_MINUTES_PER_DAY = 24 * 60
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

DEFAULT_PREFERENCES = NotificationPreferences(
    email_enabled=True,
    sms_enabled=True,
    in_app_enabled=True,
    push_enabled=True,
    email_types=(
        NOTIFICATION_TYPE_INVOICE_CREATED,
        NOTIFICATION_TYPE_PAYMENT_DUE,
        NOTIFICATION_TYPE_PAYMENT_RECEIVED,
        NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
        NOTIFICATION_TYPE_LEASE_EXPIRING,
    ),
    sms_types=(
        NOTIFICATION_TYPE_INVOICE_CREATED,
        NOTIFICATION_TYPE_PAYMENT_DUE,
        NOTIFICATION_TYPE_PAYMENT_RECEIVED,
        NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
    ),
    push_types=(),
    quiet_hours_enabled=False,
    quiet_hours_start=time(22, 0),
    quiet_hours_end=time(8, 0),
    do_not_disturb_enabled=False,
    do_not_disturb_until=None,
    preferred_language="en",
)

_BOOLEAN_FIELDS = (
    "email_enabled",
    "sms_enabled",
    "in_app_enabled",
    "push_enabled",
)
_TYPE_LIST_FIELDS = ("email_types", "sms_types", "push_types")


def _normalize_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``raw`` with camelCase keys converted to snake_case."""

    return {_CAMEL_BOUNDARY.sub("_", str(key)).lower(): value for key, value in raw.items()}


def _as_type_list(value: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str) or not isinstance(value, Iterable):
        return default
    return tuple(str(item) for item in value if item)


def resolve_preferences(raw: Mapping[str, Any] | None) -> NotificationPreferences:
    """Merge a stored preference bag with :data:`DEFAULT_PREFERENCES`.

    Missing or malformed values fall back to the defaults, so callers always
    receive a fully populated :class:`NotificationPreferences`.
    """

    if not raw:
        return DEFAULT_PREFERENCES

    values = _normalize_keys(raw)
    updates: dict[str, Any] = {}

    for name in _BOOLEAN_FIELDS:
        value = values.get(name)
        if isinstance(value, bool):
            updates[name] = value

    for name in _TYPE_LIST_FIELDS:
        if name in values:
            updates[name] = _as_type_list(values[name], getattr(DEFAULT_PREFERENCES, name))

    start = parse_clock_time(values.get("quiet_hours_start"))
    end = parse_clock_time(values.get("quiet_hours_end"))
    if start is not None:
        updates["quiet_hours_start"] = start
    if end is not None:
        updates["quiet_hours_end"] = end
    quiet_enabled = values.get("quiet_hours_enabled")
    if isinstance(quiet_enabled, bool):
        updates["quiet_hours_enabled"] = quiet_enabled
    elif start is not None and end is not None:
        updates["quiet_hours_enabled"] = True

    until = parse_datetime(values.get("do_not_disturb_until"))
    updates["do_not_disturb_until"] = until
    dnd_enabled = values.get("do_not_disturb_enabled")
    if isinstance(dnd_enabled, bool):
        updates["do_not_disturb_enabled"] = dnd_enabled
    else:
        updates["do_not_disturb_enabled"] = until is not None

    language = values.get("preferred_language")
    if isinstance(language, str) and language.strip():
        updates["preferred_language"] = language.strip()

    return replace(DEFAULT_PREFERENCES, **updates)


def serialize_preferences(preferences: NotificationPreferences) -> dict[str, Any]:
    """Return the JSON bag stored on tenant and user records."""

    until = ensure_app_timezone(preferences.do_not_disturb_until)
    return {
        "email_enabled": preferences.email_enabled,
        "sms_enabled": preferences.sms_enabled,
        "in_app_enabled": preferences.in_app_enabled,
        "push_enabled": preferences.push_enabled,
        "email_types": list(preferences.email_types),
        "sms_types": list(preferences.sms_types),
        "push_types": list(preferences.push_types),
        "quiet_hours_enabled": preferences.quiet_hours_enabled,
        "quiet_hours_start": _format_clock(preferences.quiet_hours_start),
        "quiet_hours_end": _format_clock(preferences.quiet_hours_end),
        "do_not_disturb_enabled": preferences.do_not_disturb_enabled,
        "do_not_disturb_until": until.isoformat() if until else None,
        "preferred_language": preferences.preferred_language,
    }


def _format_clock(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value else None


def _type_allowed(notification_type: str, allowed: tuple[str, ...]) -> bool:
    return not allowed or notification_type in allowed


def should_send_via_channel(
    channel: str, notification_type: str, preferences: NotificationPreferences
) -> bool:
    """Return ``True`` when ``channel`` may deliver ``notification_type``."""

    if channel == CHANNEL_IN_APP:
        return preferences.in_app_enabled
    if channel == CHANNEL_EMAIL:
        return preferences.email_enabled and _type_allowed(
            notification_type, preferences.email_types
        )
    if channel == CHANNEL_SMS:
        return preferences.sms_enabled and _type_allowed(
            notification_type, preferences.sms_types
        )
    if channel == CHANNEL_PUSH:
        return preferences.push_enabled and _type_allowed(
            notification_type, preferences.push_types
        )
    return False


def is_within_quiet_hours(preferences: NotificationPreferences, now: datetime) -> bool:
    """Return ``True`` when ``now`` falls inside the recipient's quiet hours.

    The window is compared on minute-of-day in the application timezone and may
    span midnight. A window whose start equals its end is empty.
    """

    start = preferences.quiet_hours_start
    end = preferences.quiet_hours_end
    if not preferences.quiet_hours_enabled or start is None or end is None:
        return False
    local_now = ensure_app_timezone(now)
    start_minute = minute_of_day(start)
    elapsed = (minute_of_day(local_now) - start_minute) % _MINUTES_PER_DAY
    window = (minute_of_day(end) - start_minute) % _MINUTES_PER_DAY
    return elapsed < window


def is_do_not_disturb_active(preferences: NotificationPreferences, now: datetime) -> bool:
    until = preferences.do_not_disturb_until
    if not preferences.do_not_disturb_enabled or until is None:
        return False
    return ensure_app_timezone(until) > ensure_app_timezone(now)


def suppression_reason(
    notification: Notification,
    preferences: NotificationPreferences,
    now: datetime | None = None,
) -> str | None:
    """Return why ``notification`` must not be sent right now, if it must not."""

    if notification.is_emergency():
        return None
    now = now or now_in_app_timezone()
    if is_do_not_disturb_active(preferences, now):
        return SUPPRESSED_DO_NOT_DISTURB
    if is_within_quiet_hours(preferences, now):
        return SUPPRESSED_QUIET_HOURS
    return None


def should_send_notification(
    notification: Notification,
    preferences: NotificationPreferences,
    now: datetime | None = None,
) -> bool:
    """Global gate: ``False`` while do-not-disturb or quiet hours are active."""

    return suppression_reason(notification, preferences, now) is None


__all__ = [
    "DEFAULT_PREFERENCES",
    "is_do_not_disturb_active",
    "is_within_quiet_hours",
    "resolve_preferences",
    "serialize_preferences",
    "should_send_notification",
    "should_send_via_channel",
    "suppression_reason",
]
