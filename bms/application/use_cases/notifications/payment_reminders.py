"""Scheduled payment reminders for outstanding invoices."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from bms.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_SMS,
    NOTIFICATION_TYPE_PAYMENT_DUE,
    InvoiceReminderTarget,
    NotificationInput,
    SendResult,
)
from bms.utils import now_in_app_timezone

from .service import NotificationService
from .templates import format_amount, format_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentReminderSettings:
    """Reminder schedule of an organization.

    ``days_before_due`` and ``days_after_due`` list the offsets (in days) from
    the due date on which a reminder is sent. With ``escalation_enabled`` an
    invoice overdue beyond the last ``days_after_due`` offset is reminded
    daily.
    """

    days_before_due: tuple[int, ...] = (7, 3, 0)
    days_after_due: tuple[int, ...] = (3, 7, 14, 30)
    escalation_enabled: bool = True
    reminder_channels: tuple[str, ...] = (CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_SMS)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "PaymentReminderSettings":
        """Build settings from an organization's stored JSON, keeping defaults."""

        defaults = cls()
        if not raw:
            return defaults

        def _offsets(*keys: str, fallback: tuple[int, ...]) -> tuple[int, ...]:
            for key in keys:
                value = raw.get(key)
                if value:
                    return tuple(int(item) for item in value)
            return fallback

        escalation = raw.get("escalation_enabled", raw.get("escalationEnabled"))
        channels = raw.get("reminder_channels") or raw.get("reminderChannels")
        return cls(
            days_before_due=_offsets(
                "days_before_due", "daysBeforeDue", fallback=defaults.days_before_due
            ),
            days_after_due=_offsets(
                "days_after_due", "daysAfterDue", fallback=defaults.days_after_due
            ),
            escalation_enabled=(
                escalation if isinstance(escalation, bool) else defaults.escalation_enabled
            ),
            reminder_channels=(
                tuple(channels) if channels else defaults.reminder_channels
            ),
        )


@dataclass
class ReminderRunResult:
    reminders_sent: int = 0
    errors: list[str] = field(default_factory=list)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def compose_payment_reminder(
    invoice: InvoiceReminderTarget, days_until_due: int
) -> tuple[str, str]:
    """Return the ``(title, message)`` of a reminder for ``invoice``."""

    number = invoice.invoice_number
    amount = format_amount(invoice.total, invoice.currency)
    if days_until_due > 0:
        return (
            f"Payment Reminder: Invoice {number}",
            f"Your invoice {number} is due in {days_until_due} day{_plural(days_until_due)}. "
            f"Amount: {amount}. Due date: {format_date(invoice.due_date)}",
        )
    if days_until_due == 0:
        return (
            f"Payment Due Today: Invoice {number}",
            f"Your invoice {number} is due today. Amount: {amount}. "
            "Please make payment as soon as possible.",
        )
    days_overdue = abs(days_until_due)
    return (
        f"Overdue Invoice: {number}",
        f"Your invoice {number} is {days_overdue} day{_plural(days_overdue)} overdue. "
        f"Amount: {amount}. Please make payment immediately.",
    )


def send_payment_reminder(
    service: NotificationService,
    invoice: InvoiceReminderTarget,
    days_until_due: int,
    settings: PaymentReminderSettings | None = None,
) -> SendResult:
    """Create a ``payment_due`` notification for ``invoice``."""

    settings = settings or PaymentReminderSettings()
    try:
        tenant = service.tenants.get(
            invoice.tenant_id, organization_id=invoice.organization_id
        )
        if tenant is None:
            return SendResult.failed("Tenant not found")

        title, message = compose_payment_reminder(invoice, days_until_due)
        service.create_notification(
            NotificationInput(
                organization_id=invoice.organization_id,
                tenant_id=invoice.tenant_id,
                type=NOTIFICATION_TYPE_PAYMENT_DUE,
                title=title,
                message=message,
                channels=list(settings.reminder_channels),
                link=f"/tenant/invoices/{invoice.id}",
                metadata={
                    "invoice_id": invoice.id,
                    "invoice_number": invoice.invoice_number,
                    "amount": invoice.total,
                    "currency": invoice.currency,
                    "due_date": format_date(invoice.due_date),
                    "days_until_due": days_until_due,
                },
            )
        )
    except Exception as exc:
        logger.exception("Error sending payment reminder for invoice %s", invoice.id)
        return SendResult.failed(str(exc) or "Unknown error")
    return SendResult.ok()


def _is_reminder_day(days_until_due: int, settings: PaymentReminderSettings) -> bool:
    if days_until_due >= 0:
        return days_until_due in settings.days_before_due
    days_overdue = -days_until_due
    if days_overdue in settings.days_after_due:
        return True
    if settings.escalation_enabled:
        return days_overdue > max((*settings.days_after_due, 0))
    return False


def process_payment_reminders(
    service: NotificationService,
    invoices: Iterable[InvoiceReminderTarget],
    settings: PaymentReminderSettings | None = None,
    *,
    today: date | None = None,
) -> ReminderRunResult:
    """Send the reminders due ``today`` for ``invoices``.

    Meant to run once a day. Each eligible invoice receives at most one
    reminder per run; only ``sent`` and ``overdue`` invoices are considered.
    """

    settings = settings or PaymentReminderSettings()
    today = today or now_in_app_timezone().date()
    result = ReminderRunResult()

    for invoice in invoices:
        if not invoice.is_remindable():
            continue
        days_until_due = (invoice.due_date - today).days
        if not _is_reminder_day(days_until_due, settings):
            continue
        outcome = send_payment_reminder(service, invoice, days_until_due, settings)
        if outcome.success:
            result.reminders_sent += 1
        else:
            result.errors.append(f"Invoice {invoice.id}: {outcome.error or 'Unknown error'}")

    logger.info(
        "Payment reminder run finished: %s sent, %s errors",
        result.reminders_sent,
        len(result.errors),
    )
    return result


__all__ = [
    "PaymentReminderSettings",
    "ReminderRunResult",
    "compose_payment_reminder",
    "process_payment_reminders",
    "send_payment_reminder",
]
