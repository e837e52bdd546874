"""Channel templates for notification messages."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from html import escape
from typing import Any

from bms.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_PUSH,
    CHANNEL_SMS,
    NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
    NOTIFICATION_TYPE_INVOICE_CREATED,
    NOTIFICATION_TYPE_PAYMENT_DUE,
    NOTIFICATION_TYPE_PAYMENT_RECEIVED,
    NOTIFICATION_TYPE_VISITOR_ARRIVED,
    NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
    Notification,
    RenderedMessage,
)
from bms.utils import now_in_app_timezone, parse_datetime

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "ETB"
SIGN_OFF = "Thank you,\nBMS System"
PORTAL_PAYMENT_HINT = "Please log in to your tenant portal to view details and make payment."
PORTAL_DETAILS_HINT = "Please log in to your tenant portal to view details."

Renderer = Callable[[Mapping[str, Any]], RenderedMessage]
Rows = Sequence[tuple[str, str]]


def format_amount(value: Any, currency: str = DEFAULT_CURRENCY) -> str:
    """Return ``value`` as ``"ETB 1,500"`` (two decimals only when fractional)."""

    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    if amount.is_integer():
        return f"{currency} {int(amount):,}"
    return f"{currency} {amount:,.2f}"


def format_date(value: Any) -> str:
    """Return ``value`` as ``YYYY-MM-DD``; unparseable values render empty."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    parsed = parse_datetime(value)
    if parsed is not None:
        return parsed.date().isoformat()
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10]).isoformat()
        except ValueError:
            return ""
    return ""


def format_datetime(value: Any) -> str:
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime("%Y-%m-%d %H:%M")


def _text(metadata: Mapping[str, Any], key: str) -> str:
    value = metadata.get(key)
    return "" if value is None else str(value)


def _int(metadata: Mapping[str, Any], key: str) -> int:
    try:
        return int(metadata.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def _currency(metadata: Mapping[str, Any]) -> str:
    return _text(metadata, "currency") or DEFAULT_CURRENCY


def _email(
    subject: str,
    intro: str,
    rows: Rows,
    closing: str,
    *,
    sign_off: str = SIGN_OFF,
) -> RenderedMessage:
    lines = [f"{label}: {value}" for label, value in rows]
    body = (
        f"Dear Tenant,\n\n{intro}\n\n" + "\n".join(lines) + f"\n\n{closing}\n\n{sign_off}"
    )
    table = "".join(
        f"<tr><td><strong>{escape(label)}:</strong></td><td>{escape(value)}</td></tr>"
        for label, value in rows
    )
    html_body = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f"<h2>{escape(subject)}</h2>"
        "<p>Dear Tenant,</p>"
        f"<p>{escape(intro)}</p>"
        f'<table style="width: 100%; border-collapse: collapse;">{table}</table>'
        f"<p>{escape(closing)}</p>"
        f"<p>{escape(sign_off).replace(chr(10), '<br>')}</p>"
        "</div>"
    )
    return RenderedMessage(subject=subject, body=body, html_body=html_body)


def _whatsapp(
    header: str, icon: str, rows: Rows, closing: str, *, sign_off: str = SIGN_OFF
) -> RenderedMessage:
    lines = "\n".join(f"{label}: {value}" for label, value in rows)
    body = f"{icon} {header}\n\n{lines}\n\n{closing}\n\n{sign_off}"
    return RenderedMessage(subject=header, body=body)


def _invoice_rows(metadata: Mapping[str, Any], *, label: str) -> list[tuple[str, str]]:
    return [
        (label, _text(metadata, "invoice_number")),
        ("Amount", format_amount(metadata.get("amount"), _currency(metadata))),
        ("Due Date", format_date(metadata.get("due_date"))),
    ]


def _payment_rows(metadata: Mapping[str, Any], *, label: str) -> list[tuple[str, str]]:
    rows: list[tuple[str, str]] = []
    if metadata.get("invoice_number"):
        rows.append((label, _text(metadata, "invoice_number")))
    rows.append(("Amount", format_amount(metadata.get("amount"), _currency(metadata))))
    paid_on = format_date(metadata.get("paid_at")) or now_in_app_timezone().date().isoformat()
    rows.append(("Date", paid_on))
    return rows


def _complaint_rows(metadata: Mapping[str, Any]) -> list[tuple[str, str]]:
    rows = [
        ("Complaint ID", _text(metadata, "complaint_id")),
        ("New Status", _text(metadata, "status")),
    ]
    if metadata.get("message"):
        rows.append(("Message", _text(metadata, "message")))
    return rows


def email_invoice_created(metadata: Mapping[str, Any]) -> RenderedMessage:
    return _email(
        f"New Invoice: {_text(metadata, 'invoice_number')}",
        "A new invoice has been created for you.",
        _invoice_rows(metadata, label="Invoice Number"),
        PORTAL_PAYMENT_HINT,
    )


def email_payment_due(metadata: Mapping[str, Any]) -> RenderedMessage:
    days = _int(metadata, "days_until_due")
    rows = _invoice_rows(metadata, label="Invoice Number") + [("Days Remaining", str(days))]
    return _email(
        f"Payment Reminder: Invoice {_text(metadata, 'invoice_number')} due in {days} day(s)",
        "This is a reminder that your invoice payment is due soon.",
        rows,
        "Please make payment before the due date to avoid any late fees.",
    )


def email_payment_received(metadata: Mapping[str, Any]) -> RenderedMessage:
    return _email(
        f"Payment Received: {format_amount(metadata.get('amount'), _currency(metadata))}",
        "Your payment has been received successfully.",
        _payment_rows(metadata, label="Invoice Number"),
        "Thank you for your payment.",
        sign_off="BMS System",
    )


def email_complaint_status_changed(metadata: Mapping[str, Any]) -> RenderedMessage:
    return _email(
        f"Complaint Status Updated: {_text(metadata, 'status')}",
        "Your complaint status has been updated.",
        _complaint_rows(metadata),
        PORTAL_DETAILS_HINT,
    )


def whatsapp_invoice_created(metadata: Mapping[str, Any]) -> RenderedMessage:
    return _whatsapp(
        "New Invoice Created",
        "\U0001f4c4",
        _invoice_rows(metadata, label="Invoice"),
        PORTAL_PAYMENT_HINT,
    )


def whatsapp_payment_due(metadata: Mapping[str, Any]) -> RenderedMessage:
    rows = _invoice_rows(metadata, label="Invoice")
    rows.append(("Days Remaining", str(_int(metadata, "days_until_due"))))
    return _whatsapp(
        "Payment Reminder",
        "⏰",
        rows,
        "Please make payment before the due date to avoid any late fees.",
    )


def whatsapp_payment_received(metadata: Mapping[str, Any]) -> RenderedMessage:
    return _whatsapp(
        "Payment Received",
        "✅",
        _payment_rows(metadata, label="Invoice"),
        "Thank you for your payment.",
        sign_off="BMS System",
    )


def whatsapp_complaint_status_changed(metadata: Mapping[str, Any]) -> RenderedMessage:
    return _whatsapp(
        "Complaint Status Updated",
        "\U0001f4cb",
        _complaint_rows(metadata),
        PORTAL_DETAILS_HINT,
    )


def whatsapp_work_order_assigned(metadata: Mapping[str, Any]) -> RenderedMessage:
    rows = [
        ("Work Order ID", _text(metadata, "work_order_id")),
        ("Priority", _text(metadata, "priority")),
    ]
    if metadata.get("due_date"):
        rows.append(("Due Date", format_date(metadata.get("due_date"))))
    return _whatsapp(
        "Work Order Assigned",
        "\U0001f527",
        rows,
        "Please log in to view details and update status.",
    )


def _visitor_info(metadata: Mapping[str, Any]) -> tuple[str, str]:
    name = _text(metadata, "visitor_name") or "A visitor"
    phone = _text(metadata, "visitor_phone")
    visitor = f"{name} ({phone})" if phone else name
    unit = ""
    if metadata.get("unit_number"):
        unit = f"Unit {_text(metadata, 'unit_number')}"
        if metadata.get("floor"):
            unit += f", Floor {_text(metadata, 'floor')}"
    return visitor, unit


def whatsapp_visitor_arrived(metadata: Mapping[str, Any]) -> RenderedMessage:
    visitor, unit = _visitor_info(metadata)
    rows = [("Visitor", visitor), ("Building", _text(metadata, "building_name"))]
    if unit:
        rows.append(("Unit", unit))
    rows.append(("Entry Time", format_datetime(metadata.get("entry_time"))))
    return _whatsapp(
        "Visitor Arrived",
        "\U0001f6aa",
        rows,
        "Please check your tenant portal for more details.",
    )


def push_payment_due(metadata: Mapping[str, Any]) -> RenderedMessage:
    days = _int(metadata, "days_until_due")
    amount = format_amount(metadata.get("amount"), _currency(metadata))
    return RenderedMessage(
        subject=f"Payment due in {days} day(s)",
        body=(
            f"Invoice {_text(metadata, 'invoice_number')}: {amount} "
            f"due {format_date(metadata.get('due_date'))}"
        ),
    )


def push_visitor_arrived(metadata: Mapping[str, Any]) -> RenderedMessage:
    visitor, _ = _visitor_info(metadata)
    building = _text(metadata, "building_name") or "the building"
    return RenderedMessage(subject="Visitor Arrived", body=f"{visitor} has arrived at {building}")


TEMPLATES: dict[tuple[str, str], Renderer] = {
    (CHANNEL_EMAIL, NOTIFICATION_TYPE_INVOICE_CREATED): email_invoice_created,
    (CHANNEL_EMAIL, NOTIFICATION_TYPE_PAYMENT_DUE): email_payment_due,
    (CHANNEL_EMAIL, NOTIFICATION_TYPE_PAYMENT_RECEIVED): email_payment_received,
    (CHANNEL_EMAIL, NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED): email_complaint_status_changed,
    (CHANNEL_SMS, NOTIFICATION_TYPE_INVOICE_CREATED): whatsapp_invoice_created,
    (CHANNEL_SMS, NOTIFICATION_TYPE_PAYMENT_DUE): whatsapp_payment_due,
    (CHANNEL_SMS, NOTIFICATION_TYPE_PAYMENT_RECEIVED): whatsapp_payment_received,
    (CHANNEL_SMS, NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED): whatsapp_complaint_status_changed,
    (CHANNEL_SMS, NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED): whatsapp_work_order_assigned,
    (CHANNEL_SMS, NOTIFICATION_TYPE_VISITOR_ARRIVED): whatsapp_visitor_arrived,
    (CHANNEL_PUSH, NOTIFICATION_TYPE_PAYMENT_DUE): push_payment_due,
    (CHANNEL_PUSH, NOTIFICATION_TYPE_VISITOR_ARRIVED): push_visitor_arrived,
}


def render_default(notification: Notification) -> RenderedMessage:
    """Plain rendering built from the notification's own title and message."""

    return RenderedMessage(
        subject=notification.title,
        body=notification.message,
        link=notification.link,
    )


def render_message(notification: Notification, channel: str) -> RenderedMessage:
    """Return the rendering of ``notification`` for ``channel``.

    A type-specific template is used when one exists and the notification
    carries metadata; every other case falls back to :func:`render_default`.
    """

    renderer = TEMPLATES.get((channel, notification.type))
    if renderer is None or not notification.metadata:
        logger.debug(
            "Using default %s template for %s notification %s",
            channel,
            notification.type,
            notification.id,
        )
        return render_default(notification)

    rendered = renderer(notification.metadata)
    return RenderedMessage(
        subject=rendered.subject,
        body=rendered.body,
        html_body=rendered.html_body,
        link=notification.link,
    )


__all__ = [
    "TEMPLATES",
    "format_amount",
    "format_date",
    "format_datetime",
    "render_default",
    "render_message",
]
