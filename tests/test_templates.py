"""Tests for channel template selection and rendering."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from bms.application.use_cases.notifications.templates import (
    format_amount,
    format_date,
    render_message,
)
from bms.domain.entities import Notification


def _notification(notification_type: str, metadata: dict | None, **overrides) -> Notification:
    values = {
        "id": 7,
        "organization_id": "org-1",
        "user_id": None,
        "tenant_id": 3,
        "type": notification_type,
        "title": "Fallback title",
        "message": "Fallback message",
        "channels": ["email", "sms", "push"],
        "link": "/tenant/invoices/inv-1",
        "metadata": metadata,
    }
    values.update(overrides)
    return Notification(**values)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1500, "ETB 1,500"),
        (1500.0, "ETB 1,500"),
        (1500.5, "ETB 1,500.50"),
        ("2500", "ETB 2,500"),
        (None, "ETB 0"),
        ("oops", "ETB 0"),
    ],
)
def test_format_amount(value, expected) -> None:
    assert format_amount(value) == expected


def test_format_date_accepts_dates_and_iso_strings() -> None:
    assert format_date(date(2025, 3, 1)) == "2025-03-01"
    assert format_date("2025-03-01") == "2025-03-01"
    assert format_date("2025-03-01T00:00:00Z") == "2025-03-01"
    assert format_date(None) == ""


def test_email_invoice_created_template() -> None:
    rendered = render_message(
        _notification(
            "invoice_created",
            {"invoice_number": "INV-001", "amount": 1500, "due_date": "2025-03-01"},
        ),
        "email",
    )

    assert rendered.subject == "New Invoice: INV-001"
    assert rendered.body.startswith("Dear Tenant,\n\nA new invoice has been created for you.")
    assert "Invoice Number: INV-001" in rendered.body
    assert "Amount: ETB 1,500" in rendered.body
    assert "Due Date: 2025-03-01" in rendered.body
    assert rendered.body.endswith("Thank you,\nBMS System")
    assert rendered.html_body is not None
    assert "<h2>New Invoice: INV-001</h2>" in rendered.html_body
    assert rendered.link == "/tenant/invoices/inv-1"


def test_email_payment_due_subject() -> None:
    rendered = render_message(
        _notification(
            "payment_due",
            {
                "invoice_number": "INV-002",
                "amount": 980.25,
                "due_date": "2025-03-05",
                "days_until_due": 3,
            },
        ),
        "email",
    )

    assert rendered.subject == "Payment Reminder: Invoice INV-002 due in 3 day(s)"
    assert "Days Remaining: 3" in rendered.body
    assert "Amount: ETB 980.25" in rendered.body


def test_email_payment_received_without_invoice_number() -> None:
    rendered = render_message(
        _notification("payment_received", {"amount": 2000, "paid_at": "2025-02-10"}),
        "email",
    )

    assert rendered.subject == "Payment Received: ETB 2,000"
    assert "Invoice Number" not in rendered.body
    assert "Date: 2025-02-10" in rendered.body
    assert rendered.body.endswith("Thank you for your payment.\n\nBMS System")


def test_email_html_escapes_metadata() -> None:
    rendered = render_message(
        _notification(
            "complaint_status_changed",
            {"complaint_id": "C-1", "status": "resolved", "message": "<b>fixed</b>"},
        ),
        "email",
    )

    assert rendered.subject == "Complaint Status Updated: resolved"
    assert "Message: <b>fixed</b>" in rendered.body
    assert "&lt;b&gt;fixed&lt;/b&gt;" in rendered.html_body


def test_whatsapp_work_order_template() -> None:
    rendered = render_message(
        _notification(
            "work_order_assigned",
            {"work_order_id": "WO-9", "priority": "high", "due_date": "2025-01-20"},
        ),
        "sms",
    )

    assert rendered.body.startswith("\U0001f527 Work Order Assigned\n\n")
    assert "Work Order ID: WO-9" in rendered.body
    assert "Priority: high" in rendered.body
    assert "Due Date: 2025-01-20" in rendered.body
    assert rendered.html_body is None


def test_whatsapp_visitor_arrived_template() -> None:
    rendered = render_message(
        _notification(
            "visitor_arrived",
            {
                "visitor_name": "Sara",
                "visitor_phone": "+251933000000",
                "building_name": "Bole Tower",
                "unit_number": "4B",
                "floor": 4,
                "entry_time": "2025-01-15T09:30:00+03:00",
            },
        ),
        "sms",
    )

    assert rendered.body.startswith("\U0001f6aa Visitor Arrived")
    assert "Visitor: Sara (+251933000000)" in rendered.body
    assert "Unit: Unit 4B, Floor 4" in rendered.body
    assert "Entry Time: 2025-01-15 09:30" in rendered.body


def test_push_payment_due_short_form() -> None:
    rendered = render_message(
        _notification(
            "payment_due",
            {"invoice_number": "INV-3", "amount": 100, "due_date": "2025-01-18", "days_until_due": 3},
        ),
        "push",
    )

    assert rendered.subject == "Payment due in 3 day(s)"
    assert rendered.body == "Invoice INV-3: ETB 100 due 2025-01-18"


def test_missing_metadata_uses_default_variant() -> None:
    rendered = render_message(_notification("invoice_created", None), "email")

    assert rendered.subject == "Fallback title"
    assert rendered.body == "Fallback message"
    assert rendered.html_body is None
    assert rendered.link == "/tenant/invoices/inv-1"


def test_missing_renderer_uses_default_variant() -> None:
    rendered = render_message(
        _notification("lease_expiring", {"unit_number": "4B"}), "email"
    )

    assert rendered.subject == "Fallback title"
    assert rendered.body == "Fallback message"


def test_default_variant_is_logged(caplog) -> None:
    logger_name = "bms.application.use_cases.notifications.templates"
    with caplog.at_level(logging.DEBUG, logger=logger_name):
        render_message(_notification("system", {"note": "x"}), "sms")

    assert "Using default sms template for system notification 7" in caplog.text
