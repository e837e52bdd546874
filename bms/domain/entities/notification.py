"""Domain entities describing notifications and their per-channel delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Union

NOTIFICATION_TYPE_INVOICE_CREATED = "invoice_created"
NOTIFICATION_TYPE_PAYMENT_DUE = "payment_due"
NOTIFICATION_TYPE_PAYMENT_RECEIVED = "payment_received"
NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED = "complaint_status_changed"
NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED = "work_order_assigned"
NOTIFICATION_TYPE_WORK_ORDER_COMPLETED = "work_order_completed"
NOTIFICATION_TYPE_LEASE_EXPIRING = "lease_expiring"
NOTIFICATION_TYPE_VISITOR_ARRIVED = "visitor_arrived"
NOTIFICATION_TYPE_SHIFT_ASSIGNMENT = "shift_assignment"
NOTIFICATION_TYPE_SHIFT_REMINDER = "shift_reminder"
NOTIFICATION_TYPE_SECURITY_INCIDENT = "security_incident"
NOTIFICATION_TYPE_SYSTEM = "system"

NOTIFICATION_TYPES: tuple[str, ...] = (
    NOTIFICATION_TYPE_INVOICE_CREATED,
    NOTIFICATION_TYPE_PAYMENT_DUE,
    NOTIFICATION_TYPE_PAYMENT_RECEIVED,
    NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
    NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
    NOTIFICATION_TYPE_WORK_ORDER_COMPLETED,
    NOTIFICATION_TYPE_LEASE_EXPIRING,
    NOTIFICATION_TYPE_VISITOR_ARRIVED,
    NOTIFICATION_TYPE_SHIFT_ASSIGNMENT,
    NOTIFICATION_TYPE_SHIFT_REMINDER,
    NOTIFICATION_TYPE_SECURITY_INCIDENT,
    NOTIFICATION_TYPE_SYSTEM,
)

CHANNEL_IN_APP = "in_app"
CHANNEL_EMAIL = "email"
CHANNEL_SMS = "sms"
CHANNEL_PUSH = "push"

NOTIFICATION_CHANNELS: tuple[str, ...] = (
    CHANNEL_IN_APP,
    CHANNEL_EMAIL,
    CHANNEL_SMS,
    CHANNEL_PUSH,
)

PRIORITY_EMERGENCY = "emergency"
PRIORITY_URGENT = "urgent"
EMERGENCY_PRIORITIES = frozenset({PRIORITY_EMERGENCY, PRIORITY_URGENT})

SUPPRESSED_QUIET_HOURS = "quiet_hours"
SUPPRESSED_DO_NOT_DISTURB = "do_not_disturb"


@dataclass
class ChannelDeliveryStatus:
    """Outcome of a single delivery attempt through an external channel."""

    sent: bool = False
    delivered: bool = False
    error: str | None = None


@dataclass
class InAppDeliveryStatus:
    """State of the in-app copy of a notification."""

    sent: bool = False
    read: bool = False
    read_at: datetime | None = None


DeliveryStatus = Union[ChannelDeliveryStatus, InAppDeliveryStatus]


def initial_delivery_status(channels: Iterable[str]) -> dict[str, DeliveryStatus]:
    """Return the unsent status map for ``channels``."""

    statuses: dict[str, DeliveryStatus] = {}
    for channel in channels:
        if channel == CHANNEL_IN_APP:
            statuses[channel] = InAppDeliveryStatus()
        else:
            statuses[channel] = ChannelDeliveryStatus()
    return statuses


@dataclass
class NotificationInput:
    """Data supplied by callers to create a notification."""

    type: str
    title: str
    message: str
    channels: list[str]
    organization_id: str | None = None
    user_id: int | None = None
    tenant_id: int | None = None
    link: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class Notification:
    """Message addressed to a tenant, a user or a whole organization."""

    id: int | None
    organization_id: str | None
    user_id: int | None
    tenant_id: int | None
    type: str
    title: str
    message: str
    channels: list[str]
    delivery_status: dict[str, DeliveryStatus] = field(default_factory=dict)
    link: str | None = None
    metadata: dict[str, Any] | None = None
    suppressed_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def priority(self) -> str | None:
        """Return the priority flag carried in ``metadata``, if any."""

        if not self.metadata:
            return None
        value = self.metadata.get("priority")
        return str(value).strip().lower() if value else None

    def is_emergency(self) -> bool:
        """Return ``True`` when the notification bypasses suppression windows."""

        return self.priority in EMERGENCY_PRIORITIES

    def in_app_status(self) -> InAppDeliveryStatus | None:
        status = self.delivery_status.get(CHANNEL_IN_APP)
        return status if isinstance(status, InAppDeliveryStatus) else None

    def is_unread(self) -> bool:
        """Return ``True`` when the in-app copy has not been read yet."""

        if CHANNEL_IN_APP not in self.channels:
            return False
        status = self.in_app_status()
        return status is not None and not status.read


__all__ = [
    "CHANNEL_EMAIL",
    "CHANNEL_IN_APP",
    "CHANNEL_PUSH",
    "CHANNEL_SMS",
    "ChannelDeliveryStatus",
    "DeliveryStatus",
    "EMERGENCY_PRIORITIES",
    "InAppDeliveryStatus",
    "NOTIFICATION_CHANNELS",
    "NOTIFICATION_TYPES",
    "NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED",
    "NOTIFICATION_TYPE_INVOICE_CREATED",
    "NOTIFICATION_TYPE_LEASE_EXPIRING",
    "NOTIFICATION_TYPE_PAYMENT_DUE",
    "NOTIFICATION_TYPE_PAYMENT_RECEIVED",
    "NOTIFICATION_TYPE_SECURITY_INCIDENT",
    "NOTIFICATION_TYPE_SHIFT_ASSIGNMENT",
    "NOTIFICATION_TYPE_SHIFT_REMINDER",
    "NOTIFICATION_TYPE_SYSTEM",
    "NOTIFICATION_TYPE_VISITOR_ARRIVED",
    "NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED",
    "NOTIFICATION_TYPE_WORK_ORDER_COMPLETED",
    "Notification",
    "NotificationInput",
    "PRIORITY_EMERGENCY",
    "PRIORITY_URGENT",
    "SUPPRESSED_DO_NOT_DISTURB",
    "SUPPRESSED_QUIET_HOURS",
    "initial_delivery_status",
]
