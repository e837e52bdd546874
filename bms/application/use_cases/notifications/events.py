"""Helpers that turn building events into notifications.

Every helper logs and swallows its own failures so the business operation that
triggered the event is never interrupted by notification problems.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from bms.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_IN_APP,
    CHANNEL_SMS,
    NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
    NOTIFICATION_TYPE_INVOICE_CREATED,
    NOTIFICATION_TYPE_LEASE_EXPIRING,
    NOTIFICATION_TYPE_PAYMENT_DUE,
    NOTIFICATION_TYPE_PAYMENT_RECEIVED,
    NOTIFICATION_TYPE_SECURITY_INCIDENT,
    NOTIFICATION_TYPE_SHIFT_ASSIGNMENT,
    NOTIFICATION_TYPE_SHIFT_REMINDER,
    NOTIFICATION_TYPE_VISITOR_ARRIVED,
    NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
    NOTIFICATION_TYPE_WORK_ORDER_COMPLETED,
    PRIORITY_URGENT,
    Notification,
    NotificationInput,
)

from .service import NotificationService
from .templates import format_amount, format_date, format_datetime

logger = logging.getLogger(__name__)

CRITICAL_INCIDENT_SEVERITIES = frozenset({"high", "critical"})


def _emit(
    service: NotificationService, event: str, data: NotificationInput
) -> Notification | None:
    try:
        return service.create_notification(data)
    except Exception:
        logger.exception("Error creating %s notification", event)
        return None


def _tenant_exists(
    service: NotificationService, tenant_id: int, organization_id: str, event: str
) -> bool:
    try:
        tenant = service.tenants.get(tenant_id, organization_id=organization_id)
    except Exception:
        logger.exception("Error loading tenant %s for %s event", tenant_id, event)
        return False
    if tenant is None:
        logger.warning(
            "Tenant %s not found in organization %s for %s event",
            tenant_id,
            organization_id,
            event,
        )
        return False
    return True


def notify_invoice_created(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    invoice_id: str,
    invoice_number: str | None,
    amount: float,
    due_date: date,
) -> Notification | None:
    """Tell a tenant that a new invoice has been issued."""

    event = NOTIFICATION_TYPE_INVOICE_CREATED
    if not _tenant_exists(service, tenant_id, organization_id, event):
        return None
    number = invoice_number or invoice_id
    data = NotificationInput(
        organization_id=organization_id,
        tenant_id=tenant_id,
        type=NOTIFICATION_TYPE_INVOICE_CREATED,
        title=f"New Invoice: {number}",
        message=(
            "A new invoice has been created for you. "
            f"Amount: {format_amount(amount)}. Due date: {format_date(due_date)}"
        ),
        channels=[CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_SMS],
        link=f"/tenant/invoices/{invoice_id}",
        metadata={
            "invoice_id": invoice_id,
            "invoice_number": number,
            "amount": amount,
            "due_date": format_date(due_date),
        },
    )
    return _emit(service, event, data)


def notify_payment_due(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    invoice_id: str,
    invoice_number: str | None,
    amount: float,
    due_date: date,
    days_until_due: int,
) -> Notification | None:
    event = NOTIFICATION_TYPE_PAYMENT_DUE
    if not _tenant_exists(service, tenant_id, organization_id, event):
        return None
    data = NotificationInput(
        organization_id=organization_id,
        tenant_id=tenant_id,
        type=NOTIFICATION_TYPE_PAYMENT_DUE,
        title=f"Payment Reminder: {days_until_due} day(s) remaining",
        message=(
            f"Your invoice payment is due in {days_until_due} day(s). "
            f"Amount: {format_amount(amount)}. Due date: {format_date(due_date)}"
        ),
        channels=[CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_SMS],
        link=f"/tenant/invoices/{invoice_id}",
        metadata={
            "invoice_id": invoice_id,
            "invoice_number": invoice_number or invoice_id,
            "amount": amount,
            "due_date": format_date(due_date),
            "days_until_due": days_until_due,
        },
    )
    return _emit(service, event, data)


def notify_payment_received(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    payment_id: str,
    amount: float,
    invoice_id: str | None = None,
    invoice_number: str | None = None,
) -> Notification | None:
    event = NOTIFICATION_TYPE_PAYMENT_RECEIVED
    if not _tenant_exists(service, tenant_id, organization_id, event):
        return None
    metadata: dict[str, Any] = {"payment_id": payment_id, "amount": amount}
    if invoice_id:
        metadata["invoice_id"] = invoice_id
    if invoice_number:
        metadata["invoice_number"] = invoice_number
    data = NotificationInput(
        organization_id=organization_id,
        tenant_id=tenant_id,
        type=NOTIFICATION_TYPE_PAYMENT_RECEIVED,
        title=f"Payment Received: {format_amount(amount)}",
        message=f"Your payment of {format_amount(amount)} has been received successfully.",
        channels=[CHANNEL_IN_APP],
        link="/tenant/payments",
        metadata=metadata,
    )
    return _emit(service, event, data)


def notify_complaint_status_changed(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    complaint_id: str,
    status: str,
    message: str | None = None,
) -> Notification | None:
    event = NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED
    if not _tenant_exists(service, tenant_id, organization_id, event):
        return None
    data = NotificationInput(
        organization_id=organization_id,
        tenant_id=tenant_id,
        type=NOTIFICATION_TYPE_COMPLAINT_STATUS_CHANGED,
        title=f"Complaint Status Updated: {status}",
        message=message or f"Your complaint status has been updated to: {status}",
        channels=[CHANNEL_IN_APP, CHANNEL_EMAIL],
        link=f"/tenant/complaints/{complaint_id}",
        metadata={"complaint_id": complaint_id, "status": status, "message": message},
    )
    return _emit(service, event, data)


def notify_work_order_assigned(
    service: NotificationService,
    *,
    organization_id: str,
    user_id: int,
    work_order_id: str,
    priority: str,
    due_date: date | None = None,
) -> Notification | None:
    """Tell a technician about a newly assigned work order.

    The work order priority is stored as the notification priority, so urgent
    work orders bypass quiet hours and do-not-disturb.
    """

    due = f". Due date: {format_date(due_date)}" if due_date else ""
    data = NotificationInput(
        organization_id=organization_id,
        user_id=user_id,
        type=NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED,
        title=f"Work Order Assigned: {work_order_id}",
        message=f"A new work order has been assigned to you. Priority: {priority}{due}",
        channels=[CHANNEL_IN_APP, CHANNEL_SMS],
        link=f"/technician/work-orders/{work_order_id}",
        metadata={
            "work_order_id": work_order_id,
            "priority": priority,
            "due_date": format_date(due_date) if due_date else None,
        },
    )
    return _emit(service, NOTIFICATION_TYPE_WORK_ORDER_ASSIGNED, data)


def notify_work_order_completed(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    work_order_id: str,
) -> Notification | None:
    data = NotificationInput(
        organization_id=organization_id,
        tenant_id=tenant_id,
        type=NOTIFICATION_TYPE_WORK_ORDER_COMPLETED,
        title=f"Work Order Completed: {work_order_id}",
        message=f"Work order {work_order_id} has been completed.",
        channels=[CHANNEL_IN_APP],
        link="/tenant/complaints",
        metadata={"work_order_id": work_order_id},
    )
    return _emit(service, NOTIFICATION_TYPE_WORK_ORDER_COMPLETED, data)


def notify_visitor_arrived(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    visitor_name: str,
    building_name: str,
    entry_time: datetime,
    visitor_phone: str | None = None,
    unit_number: str | None = None,
    floor: int | None = None,
    channels: Sequence[str] = (CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_SMS),
) -> Notification | None:
    event = NOTIFICATION_TYPE_VISITOR_ARRIVED
    if not _tenant_exists(service, tenant_id, organization_id, event):
        return None
    unit = ""
    if unit_number:
        unit = f"Unit {unit_number}" + (f", Floor {floor}" if floor else "")
    visitor = f"{visitor_name} ({visitor_phone})" if visitor_phone else visitor_name
    location = f"{building_name} - {unit}" if unit else building_name
    data = NotificationInput(
        organization_id=organization_id,
        tenant_id=tenant_id,
        type=NOTIFICATION_TYPE_VISITOR_ARRIVED,
        title="Visitor Arrived",
        message=(
            f"{visitor} has arrived at {location}. "
            f"Entry time: {format_datetime(entry_time)}"
        ),
        channels=list(channels),
        link="/tenant/visitors",
        metadata={
            "visitor_name": visitor_name,
            "visitor_phone": visitor_phone,
            "unit_number": unit_number,
            "floor": floor,
            "building_name": building_name,
            "entry_time": entry_time,
        },
    )
    return _emit(service, event, data)


def notify_lease_expiring(
    service: NotificationService,
    *,
    organization_id: str,
    tenant_id: int,
    tenant_name: str,
    unit_number: str,
    end_date: date,
    days_until_expiry: int,
    channels: Sequence[str] = (CHANNEL_IN_APP, CHANNEL_EMAIL),
    building_manager_user_id: int | None = None,
) -> list[Notification]:
    """Warn a tenant (and optionally the building manager) about a lease end."""

    event = NOTIFICATION_TYPE_LEASE_EXPIRING
    created: list[Notification] = []
    if not _tenant_exists(service, tenant_id, organization_id, event):
        return created
    metadata = {
        "tenant_name": tenant_name,
        "unit_number": unit_number,
        "end_date": format_date(end_date),
        "days_until_expiry": days_until_expiry,
    }
    tenant_notification = _emit(
        service,
        event,
        NotificationInput(
            organization_id=organization_id,
            tenant_id=tenant_id,
            type=NOTIFICATION_TYPE_LEASE_EXPIRING,
            title=f"Lease Expiring in {days_until_expiry} day(s)",
            message=(
                f"Dear {tenant_name}, your lease for unit {unit_number} is expiring in "
                f"{days_until_expiry} day(s) on {format_date(end_date)}. "
                "Please contact management to discuss renewal options."
            ),
            channels=list(channels),
            link="/tenant/lease",
            metadata=metadata,
        ),
    )
    if tenant_notification is not None:
        created.append(tenant_notification)

    if building_manager_user_id is not None:
        if service.users.get(building_manager_user_id) is None:
            logger.warning(
                "Building manager %s not found for lease expiry of tenant %s",
                building_manager_user_id,
                tenant_id,
            )
            return created
        manager_notification = _emit(
            service,
            event,
            NotificationInput(
                organization_id=organization_id,
                user_id=building_manager_user_id,
                type=NOTIFICATION_TYPE_LEASE_EXPIRING,
                title=f"Lease Expiring: {tenant_name} - Unit {unit_number}",
                message=(
                    f"Lease for tenant {tenant_name} (unit {unit_number}) is expiring in "
                    f"{days_until_expiry} day(s) on {format_date(end_date)}."
                ),
                channels=[CHANNEL_IN_APP],
                link=f"/org/tenants/{tenant_id}",
                metadata={"tenant_id": tenant_id, **metadata},
            ),
        )
        if manager_notification is not None:
            created.append(manager_notification)
    return created


def notify_shift_assignment(
    service: NotificationService,
    *,
    organization_id: str,
    user_id: int,
    shift_id: str,
    shift_type: str,
    start_time: datetime,
    end_time: datetime,
    building_name: str | None = None,
) -> Notification | None:
    building = building_name or "Building"
    data = NotificationInput(
        organization_id=organization_id,
        user_id=user_id,
        type=NOTIFICATION_TYPE_SHIFT_ASSIGNMENT,
        title=f"Shift Assignment: {shift_type} shift",
        message=(
            f"You have been assigned a {shift_type} shift at {building} from "
            f"{format_datetime(start_time)} to {format_datetime(end_time)}."
        ),
        channels=[CHANNEL_IN_APP, CHANNEL_EMAIL],
        link=f"/security/shifts/{shift_id}",
        metadata={
            "shift_id": shift_id,
            "shift_type": shift_type,
            "start_time": start_time,
            "end_time": end_time,
        },
    )
    return _emit(service, NOTIFICATION_TYPE_SHIFT_ASSIGNMENT, data)


def notify_shift_reminder(
    service: NotificationService,
    *,
    organization_id: str,
    user_id: int,
    shift_id: str,
    shift_type: str,
    start_time: datetime,
    building_name: str | None = None,
) -> Notification | None:
    """Remind a security staff member that their shift starts soon."""

    building = building_name or "Building"
    data = NotificationInput(
        organization_id=organization_id,
        user_id=user_id,
        type=NOTIFICATION_TYPE_SHIFT_REMINDER,
        title=f"Shift Reminder: {shift_type} shift starting soon",
        message=(
            f"Your {shift_type} shift at {building} starts at "
            f"{format_datetime(start_time)}."
        ),
        channels=[CHANNEL_IN_APP, CHANNEL_SMS],
        link=f"/security/shifts/{shift_id}",
        metadata={
            "shift_id": shift_id,
            "shift_type": shift_type,
            "start_time": start_time,
        },
    )
    return _emit(service, NOTIFICATION_TYPE_SHIFT_REMINDER, data)


def notify_critical_security_incident(
    service: NotificationService,
    *,
    organization_id: str,
    recipient_user_ids: Iterable[int],
    incident_id: str,
    incident_title: str,
    incident_type: str,
    severity: str,
    status: str,
    building_name: str,
    reporter_name: str | None = None,
) -> list[Notification]:
    """Alert managers about a high or critical security incident.

    Lower severities are ignored. The alert is sent with urgent priority so it
    reaches recipients during quiet hours and do-not-disturb.
    """

    if severity.lower() not in CRITICAL_INCIDENT_SEVERITIES:
        return []

    reporter = reporter_name or "Security Staff"
    created: list[Notification] = []
    for user_id in dict.fromkeys(recipient_user_ids):
        notification = _emit(
            service,
            NOTIFICATION_TYPE_SECURITY_INCIDENT,
            NotificationInput(
                organization_id=organization_id,
                user_id=user_id,
                type=NOTIFICATION_TYPE_SECURITY_INCIDENT,
                title=f"Security Incident: {incident_title}",
                message=(
                    f"A {severity} severity {incident_type} incident has been reported at "
                    f"{building_name} by {reporter}. Status: {status}."
                ),
                channels=[CHANNEL_IN_APP, CHANNEL_EMAIL, CHANNEL_SMS],
                link=f"/security/incidents/{incident_id}",
                metadata={
                    "incident_id": incident_id,
                    "severity": severity,
                    "priority": PRIORITY_URGENT,
                },
            ),
        )
        if notification is not None:
            created.append(notification)
    return created


__all__ = [
    "CRITICAL_INCIDENT_SEVERITIES",
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
]
