"""Notification dispatch: persistence, preference gates and channel delivery."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.orm import Session

from bms.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    NOTIFICATION_CHANNELS,
    NOTIFICATION_TYPES,
    ChannelDeliveryStatus,
    ContactInfo,
    DeliveryStatus,
    InAppDeliveryStatus,
    Notification,
    NotificationInput,
    NotificationPreferences,
    RenderedMessage,
    SendResult,
    Tenant,
    User,
    initial_delivery_status,
)
from bms.infrastructure.repositories import (
    NotificationRepository,
    TenantRepository,
    UserRepository,
)
from bms.utils import now_in_app_timezone

from .preferences import (
    DEFAULT_PREFERENCES,
    resolve_preferences,
    serialize_preferences,
    should_send_via_channel,
    suppression_reason,
)
from .templates import render_message

logger = logging.getLogger(__name__)

UNREAD_SCAN_LIMIT = 1000

PREFERENCES_SOURCE_TENANT = "tenant"
PREFERENCES_SOURCE_USER = "user"
PREFERENCES_SOURCE_DEFAULT = "default"

_NULLABLE_PREFERENCE_FIELDS = frozenset({"do_not_disturb_until"})

_CONTACT_LABELS = {
    CHANNEL_EMAIL: "email",
    CHANNEL_SMS: "phone",
    CHANNEL_PUSH: "push subscription",
}


class ChannelSender(Protocol):
    """Contract shared by the email, WhatsApp and Web Push senders."""

    def send(self, to: Any, message: RenderedMessage) -> SendResult:
        ...


def _contact_address(contact: ContactInfo, channel: str) -> Any:
    if channel == CHANNEL_EMAIL:
        return contact.email
    if channel == CHANNEL_SMS:
        return contact.phone
    if channel == CHANNEL_PUSH:
        return contact.push_subscription
    return None


def _normalize_channels(channels: Sequence[str]) -> list[str]:
    normalized: list[str] = []
    for channel in channels:
        if channel not in NOTIFICATION_CHANNELS:
            msg = f"Unsupported notification channel: {channel}"
            raise ValueError(msg)
        if channel not in normalized:
            normalized.append(channel)
    if not normalized:
        msg = "At least one notification channel is required"
        raise ValueError(msg)
    return normalized


class NotificationService:
    """Create notifications and deliver them through the configured channels.

    The service is request scoped: it works on the given SQLAlchemy ``session``
    and sends through ``senders``, a mapping of channel name to sender. ``clock``
    defaults to :func:`~bms.utils.now_in_app_timezone`.
    """

    def __init__(
        self,
        session: Session,
        senders: Mapping[str, ChannelSender] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.session = session
        self.senders: dict[str, ChannelSender] = dict(senders or {})
        self.clock = clock or now_in_app_timezone
        self.notifications = NotificationRepository(session)
        self.tenants = TenantRepository(session)
        self.users = UserRepository(session)

    def create_notification(self, data: NotificationInput) -> Notification:
        """Persist ``data`` and immediately attempt delivery.

        Validation errors raise :class:`ValueError`. Failures while sending are
        logged and never propagate: the stored record is always returned.
        """

        if data.type not in NOTIFICATION_TYPES:
            msg = f"Unsupported notification type: {data.type}"
            raise ValueError(msg)
        if data.user_id is not None and data.tenant_id is not None:
            msg = "A notification targets either a user or a tenant, not both"
            raise ValueError(msg)
        channels = _normalize_channels(data.channels)

        now = self.clock()
        notification = Notification(
            id=None,
            organization_id=data.organization_id,
            user_id=data.user_id,
            tenant_id=data.tenant_id,
            type=data.type,
            title=data.title,
            message=data.message,
            channels=channels,
            delivery_status=initial_delivery_status(channels),
            link=data.link,
            metadata=dict(data.metadata) if data.metadata else None,
            created_at=now,
            updated_at=now,
        )
        saved = self.notifications.create(notification)

        try:
            return self.send_notification(saved)
        except Exception:
            logger.exception("Failed to dispatch notification %s", saved.id)
            self.session.rollback()
        return self.notifications.get(saved.id) or saved

    def send_notification(self, notification: Notification) -> Notification:
        """Deliver ``notification`` on every channel its recipient allows.

        Channels already marked as sent are left untouched, so calling this
        again only attempts the channels still pending.
        """

        if notification.id is None:
            msg = "Only persisted notifications can be sent"
            raise ValueError(msg)

        recipient = self._load_recipient(notification)
        preferences = self._preferences_for(recipient)
        now = self.clock()

        reason = suppression_reason(notification, preferences, now)
        if reason is not None:
            logger.info(
                "Notification %s suppressed for recipient (%s)", notification.id, reason
            )
            return self.notifications.update_delivery(
                notification.id,
                delivery_status=notification.delivery_status,
                suppressed_reason=reason,
                updated_at=now,
            )

        statuses: dict[str, DeliveryStatus] = dict(notification.delivery_status)
        contact = self._contact_for(recipient)
        changed = False

        for channel in notification.channels:
            if not should_send_via_channel(channel, notification.type, preferences):
                continue
            current = statuses.get(channel)
            if current is not None and current.sent:
                continue
            if channel == CHANNEL_IN_APP:
                statuses[channel] = InAppDeliveryStatus(sent=True)
            else:
                statuses[channel] = self._deliver(notification, channel, contact)
            changed = True

        if not changed and notification.suppressed_reason is None:
            return notification
        return self.notifications.update_delivery(
            notification.id,
            delivery_status=statuses,
            suppressed_reason=None,
            updated_at=now,
        )

    def mark_as_read(
        self,
        notification_id: int,
        user_id: int | None = None,
        *,
        tenant_id: int | None = None,
    ) -> bool:
        """Mark the in-app copy of a notification as read.

        Returns ``False`` when the notification does not exist, has no in-app
        channel, or belongs to a different user (or, when ``tenant_id`` is
        given, to a different tenant).
        """

        notification = self.notifications.get(notification_id)
        if notification is None or CHANNEL_IN_APP not in notification.channels:
            return False
        if notification.user_id is not None and notification.user_id != user_id:
            return False
        if (
            tenant_id is not None
            and notification.tenant_id is not None
            and notification.tenant_id != tenant_id
        ):
            return False
        return self.notifications.mark_in_app_read(notification_id, read_at=self.clock())

    def get_notifications(
        self,
        *,
        user_id: int | None = None,
        tenant_id: int | None = None,
        organization_id: str | None = None,
        limit: int = 20,
    ) -> Sequence[Notification]:
        return self.notifications.list_for_recipient(
            user_id=user_id,
            tenant_id=tenant_id,
            organization_id=organization_id,
            limit=limit,
        )

    def get_unread_count(
        self,
        *,
        user_id: int | None = None,
        tenant_id: int | None = None,
        organization_id: str | None = None,
    ) -> int:
        notifications = self.notifications.list_for_recipient(
            user_id=user_id,
            tenant_id=tenant_id,
            organization_id=organization_id,
            limit=UNREAD_SCAN_LIMIT,
        )
        return sum(1 for notification in notifications if notification.is_unread())

    def get_preferences(
        self, *, user_id: int | None = None, tenant_id: int | None = None
    ) -> tuple[NotificationPreferences, str]:
        """Return the effective preferences and where they came from."""

        if tenant_id is not None:
            tenant = self.tenants.get(tenant_id)
            if tenant is not None and tenant.notification_preferences:
                return (
                    resolve_preferences(tenant.notification_preferences),
                    PREFERENCES_SOURCE_TENANT,
                )
        if user_id is not None:
            user = self.users.get(user_id)
            if user is not None and user.notification_preferences:
                return (
                    resolve_preferences(user.notification_preferences),
                    PREFERENCES_SOURCE_USER,
                )
        return DEFAULT_PREFERENCES, PREFERENCES_SOURCE_DEFAULT

    def update_preferences(
        self,
        changes: Mapping[str, Any],
        *,
        user_id: int | None = None,
        tenant_id: int | None = None,
    ) -> NotificationPreferences:
        """Merge ``changes`` into the stored preferences of a tenant or user.

        The tenant record is updated when ``tenant_id`` names an existing
        tenant; otherwise the user record is. ``None`` only clears
        ``do_not_disturb_until``; for every other field it leaves the stored
        value unchanged.
        """

        tenant = self.tenants.get(tenant_id) if tenant_id is not None else None
        if tenant is not None:
            merged = self._merge_preferences(tenant.notification_preferences, changes)
            self.tenants.update_notification_preferences(tenant.id, merged)
        elif user_id is not None:
            user = self.users.get(user_id)
            if user is None:
                msg = f"User with id {user_id} not found"
                raise ValueError(msg)
            merged = self._merge_preferences(user.notification_preferences, changes)
            self.users.update_notification_preferences(user_id, merged)
        elif tenant_id is not None:
            msg = f"Tenant with id {tenant_id} not found"
            raise ValueError(msg)
        else:
            msg = "A user or tenant is required to update preferences"
            raise ValueError(msg)
        return resolve_preferences(merged)

    @staticmethod
    def _merge_preferences(
        stored: Mapping[str, Any] | None, changes: Mapping[str, Any]
    ) -> dict[str, Any]:
        changes = {
            key: value
            for key, value in changes.items()
            if value is not None or key in _NULLABLE_PREFERENCE_FIELDS
        }
        merged = serialize_preferences(resolve_preferences(stored))
        # Let the resolver infer the flags when only the window was changed.
        if "quiet_hours_enabled" not in changes and (
            "quiet_hours_start" in changes or "quiet_hours_end" in changes
        ):
            merged.pop("quiet_hours_enabled")
        if "do_not_disturb_enabled" not in changes and "do_not_disturb_until" in changes:
            merged.pop("do_not_disturb_enabled")
        merged.update(changes)
        return serialize_preferences(resolve_preferences(merged))

    def _load_recipient(self, notification: Notification) -> Tenant | User | None:
        if notification.tenant_id is not None:
            return self.tenants.get(
                notification.tenant_id, organization_id=notification.organization_id
            )
        if notification.user_id is not None:
            return self.users.get(notification.user_id)
        return None

    @staticmethod
    def _preferences_for(recipient: Tenant | User | None) -> NotificationPreferences:
        if recipient is None or not recipient.notification_preferences:
            return DEFAULT_PREFERENCES
        return resolve_preferences(recipient.notification_preferences)

    @staticmethod
    def _contact_for(recipient: Tenant | User | None) -> ContactInfo:
        if isinstance(recipient, Tenant):
            return ContactInfo.from_tenant(recipient)
        if isinstance(recipient, User):
            return ContactInfo.from_user(recipient)
        return ContactInfo()

    def _deliver(
        self, notification: Notification, channel: str, contact: ContactInfo
    ) -> ChannelDeliveryStatus:
        sender = self.senders.get(channel)
        if sender is None:
            return ChannelDeliveryStatus(
                sent=True, delivered=False, error=f"{channel} channel not configured"
            )

        address = _contact_address(contact, channel)
        if not address:
            label = _CONTACT_LABELS.get(channel, channel)
            return ChannelDeliveryStatus(
                sent=True, delivered=False, error=f"Recipient {label} not found"
            )

        try:
            message = render_message(notification, channel)
            result = sender.send(address, message)
        except Exception as exc:
            logger.exception(
                "Unexpected error sending notification %s via %s", notification.id, channel
            )
            return ChannelDeliveryStatus(sent=True, delivered=False, error=str(exc))
        return ChannelDeliveryStatus(
            sent=True, delivered=result.success, error=result.error
        )


__all__ = [
    "ChannelSender",
    "NotificationService",
    "PREFERENCES_SOURCE_DEFAULT",
    "PREFERENCES_SOURCE_TENANT",
    "PREFERENCES_SOURCE_USER",
    "UNREAD_SCAN_LIMIT",
]
