"""Domain entities exposed by the application."""

from .invoice import (
    INVOICE_STATUS_OVERDUE,
    INVOICE_STATUS_SENT,
    InvoiceReminderTarget,
)
from .message import RenderedMessage, SendResult
from .notification import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    NOTIFICATION_CHANNELS,
    NOTIFICATION_TYPES,
    NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
    NOTIFICATION_TYPE_INVOICE_CREATED,
    NOTIFICATION_TYPE_LEASE_EXPIRING,
    NOTIFICATION_TYPE_PAYMENT_DUE,
    NOTIFICATION_TYPE_PAYMENT_RECEIVED,
    NOTIFICATION_TYPE_SECURITY_INCIDENT,
    NOTIFICATION_TYPE_SHIFT_ASSIGNMENT,
    NOTIFICATION_TYPE_SHIFT_REMINDER,
    NOTIFICATION_TYPE_SYSTEM,
    NOTIFICATION_TYPE_VISITOR_ARRIVED,
    NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
    NOTIFICATION_TYPE_WORK_ORDER_COMPLETED,
    PRIORITY_EMERGENCY,
    PRIORITY_URGENT,
    SUPPRESSED_DO_NOT_DISTURB,
    SUPPRESSED_QUIET_HOURS,
    ChannelDeliveryStatus,
    DeliveryStatus,
    InAppDeliveryStatus,
    Notification,
    NotificationInput,
    initial_delivery_status,
)
from .preferences import NotificationPreferences
from .recipient import ContactInfo, Tenant, User

__all__ = [
    "CHANNEL_EMAIL",
    "CHANNEL_IN_APP",
    "CHANNEL_PUSH",
    "CHANNEL_SMS",
    "ChannelDeliveryStatus",
    "ContactInfo",
    "DeliveryStatus",
    "INVOICE_STATUS_OVERDUE",
    "INVOICE_STATUS_SENT",
    "InAppDeliveryStatus",
    "InvoiceReminderTarget",
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
    "NotificationPreferences",
    "PRIORITY_EMERGENCY",
    "PRIORITY_URGENT",
    "RenderedMessage",
    "SUPPRESSED_DO_NOT_DISTURB",
    "SUPPRESSED_QUIET_HOURS",
    "SendResult",
    "Tenant",
    "User",
    "initial_delivery_status",
]
