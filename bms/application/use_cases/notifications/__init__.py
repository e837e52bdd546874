"""Notification use cases: dispatch, preferences, templates and reporting."""

from .analytics import get_notification_statistics, get_notification_trends
from .events import (
    notify_complaint_status_changed,
    notify_critical_security_incident,
    notify_invoice_created,
    notify_lease_expiring,
    notify_payment_due,
    notify_payment_received,
    notify_shift_assignment,
    notify_shift_reminder,
    notify_visitor_arrived,
    notify_work_order_assigned,
    notify_work_order_completed,
)
from .payment_reminders import (
    PaymentReminderSettings,
    ReminderRunResult,
    process_payment_reminders,
)
from .preferences import (
    DEFAULT_PREFERENCES,
    resolve_preferences,
    should_send_notification,
    should_send_via_channel,
)
from .service import NotificationService
from .templates import render_message

__all__ = [
    "DEFAULT_PREFERENCES",
    "NotificationService",
    "PaymentReminderSettings",
    "ReminderRunResult",
    "get_notification_statistics",
    "get_notification_trends",
    "notify_complaint_status_changed",
    "notify_critical_security_incident",
    "notify_invoice_created",
    "notify_lease_expiring",
    "notify_payment_due",
    "notify_payment_received",
    "notify_shift_assignment",
    "notify_shift_reminder",
    "notify_visitor_arrived",
    "notify_work_order_assigned",
    "notify_work_order_completed",
    "process_payment_reminders",
    "render_message",
    "resolve_preferences",
    "should_send_notification",
    "should_send_via_channel",
]
