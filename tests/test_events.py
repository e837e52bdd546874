"""Tests for the domain event notification helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from bms.application.use_cases.notifications import events
from bms.utils import get_app_timezone


def _at(hour: int) -> datetime:
    return datetime(2025, 1, 15, hour, 0, tzinfo=get_app_timezone())


def test_notify_invoice_created(make_service, make_tenant, senders) -> None:
    tenant = make_tenant()

    notification = events.notify_invoice_created(
        make_service(),
        organization_id="org-1",
        tenant_id=tenant.id,
        invoice_id="inv-1",
        invoice_number="INV-001",
        amount=1500,
        due_date=date(2025, 2, 1),
    )

    assert notification is not None
    assert notification.title == "New Invoice: INV-001"
    assert notification.message == (
        "A new invoice has been created for you. Amount: ETB 1,500. Due date: 2025-02-01"
    )
    assert notification.channels == ["in_app", "email", "sms"]
    assert notification.link == "/tenant/invoices/inv-1"
    assert notification.metadata["due_date"] == "2025-02-01"
    assert senders["email"].calls[0][1].subject == "New Invoice: INV-001"


def test_event_for_unknown_tenant_is_skipped(make_service, caplog) -> None:
    with caplog.at_level("WARNING"):
        notification = events.notify_payment_received(
            make_service(),
            organization_id="org-1",
            tenant_id=999,
            payment_id="pay-1",
            amount=500,
        )

    assert notification is None
    assert "Tenant 999 not found" in caplog.text


def test_event_failures_are_swallowed(make_service, make_tenant, monkeypatch, caplog) -> None:
    tenant = make_tenant()
    service = make_service()

    def _boom(data):
        raise RuntimeError("boom")

    monkeypatch.setattr(service, "create_notification", _boom)

    with caplog.at_level("ERROR"):
        result = events.notify_complaint_status_changed(
            service,
            organization_id="org-1",
            tenant_id=tenant.id,
            complaint_id="c-1",
            status="resolved",
        )

    assert result is None
    assert "Error creating complaint_status_changed notification" in caplog.text


def test_notify_visitor_arrived_message(make_service, make_tenant) -> None:
    tenant = make_tenant()

    notification = events.notify_visitor_arrived(
        make_service(),
        organization_id="org-1",
        tenant_id=tenant.id,
        visitor_name="Sara",
        visitor_phone="+251933000000",
        building_name="Bole Tower",
        unit_number="4B",
        floor=4,
        entry_time=_at(9),
    )

    assert notification.message == (
        "Sara (+251933000000) has arrived at Bole Tower - Unit 4B, Floor 4. "
        "Entry time: 2025-01-15 09:00"
    )
    assert notification.metadata["entry_time"].startswith("2025-01-15T09:00:00")


def test_notify_lease_expiring_includes_manager(make_service, make_tenant, make_user) -> None:
    tenant = make_tenant()
    manager = make_user()

    created = events.notify_lease_expiring(
        make_service(),
        organization_id="org-1",
        tenant_id=tenant.id,
        tenant_name="Abebe",
        unit_number="4B",
        end_date=date(2025, 2, 14),
        days_until_expiry=30,
        building_manager_user_id=manager.id,
    )

    assert [n.title for n in created] == [
        "Lease Expiring in 30 day(s)",
        "Lease Expiring: Abebe - Unit 4B",
    ]
    assert created[1].user_id == manager.id
    assert created[1].metadata["tenant_id"] == tenant.id


def test_shift_assignment(make_service, make_user) -> None:
    guard = make_user(name="Guard")

    notification = events.notify_shift_assignment(
        make_service(),
        organization_id="org-1",
        user_id=guard.id,
        shift_id="shift-1",
        shift_type="night",
        start_time=_at(22),
        end_time=_at(22) + timedelta(hours=8),
        building_name="Bole Tower",
    )

    assert notification.title == "Shift Assignment: night shift"
    assert notification.channels == ["in_app", "email"]
    assert "from 2025-01-15 22:00 to 2025-01-16 06:00" in notification.message


def test_shift_reminder(make_service, make_user, senders) -> None:
    guard = make_user(
        name="Guard", notification_preferences={"sms_types": ["shift_reminder"]}
    )

    notification = events.notify_shift_reminder(
        make_service(),
        organization_id="org-1",
        user_id=guard.id,
        shift_id="shift-2",
        shift_type="morning",
        start_time=_at(6),
    )

    assert notification.type == "shift_reminder"
    assert notification.title == "Shift Reminder: morning shift starting soon"
    assert notification.message == "Your morning shift at Building starts at 2025-01-15 06:00."
    assert notification.channels == ["in_app", "sms"]
    assert notification.link == "/security/shifts/shift-2"
    assert notification.delivery_status["in_app"].sent is True
    assert notification.delivery_status["sms"].delivered is True
    assert senders["sms"].calls[0][0] == "+251922000000"


def test_critical_incident_ignores_low_severity(make_service, make_user) -> None:
    manager = make_user()

    created = events.notify_critical_security_incident(
        make_service(),
        organization_id="org-1",
        recipient_user_ids=[manager.id],
        incident_id="inc-1",
        incident_title="Broken gate",
        incident_type="vandalism",
        severity="low",
        status="open",
        building_name="Bole Tower",
    )

    assert created == []


def test_critical_incident_bypasses_quiet_hours(make_service, make_user) -> None:
    manager = make_user(
        notification_preferences={"quiet_hours_start": "22:00", "quiet_hours_end": "08:00"}
    )
    admin = make_user(email="admin@example.com")

    created = events.notify_critical_security_incident(
        make_service(_at(23)),
        organization_id="org-1",
        recipient_user_ids=[manager.id, admin.id, manager.id],
        incident_id="inc-2",
        incident_title="Fire alarm",
        incident_type="fire",
        severity="critical",
        status="open",
        building_name="Bole Tower",
    )

    assert [n.user_id for n in created] == [manager.id, admin.id]
    first = created[0]
    assert first.metadata["priority"] == "urgent"
    assert first.suppressed_reason is None
    assert first.delivery_status["in_app"].sent is True
    assert first.message == (
        "A critical severity fire incident has been reported at Bole Tower by "
        "Security Staff. Status: open."
    )
