"""Domain entity describing an invoice that may need a payment reminder."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

INVOICE_STATUS_SENT = "sent"
INVOICE_STATUS_OVERDUE = "overdue"
REMINDABLE_INVOICE_STATUSES = frozenset({INVOICE_STATUS_SENT, INVOICE_STATUS_OVERDUE})


@dataclass(frozen=True)
class InvoiceReminderTarget:
    """Subset of invoice data needed to compose a payment reminder."""

    id: str
    organization_id: str
    tenant_id: int
    invoice_number: str
    total: float
    due_date: date
    status: str
    currency: str = "ETB"

    def is_remindable(self) -> bool:
        return self.status in REMINDABLE_INVOICE_STATUSES


__all__ = [
    "INVOICE_STATUS_OVERDUE",
    "INVOICE_STATUS_SENT",
    "InvoiceReminderTarget",
    "REMINDABLE_INVOICE_STATUSES",
]
