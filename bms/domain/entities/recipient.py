"""Domain entities for the people notifications are addressed to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Tenant:
    """Occupant of a unit; receives billing and building notifications."""

    id: int | None
    organization_id: str | None
    name: str
    email: str | None
    primary_phone: str | None
    push_subscription: dict[str, Any] | None = None
    notification_preferences: dict[str, Any] | None = None


@dataclass
class User:
    """Staff member of an organization (admin, manager, technician, guard)."""

    id: int | None
    organization_id: str | None
    name: str
    email: str | None
    phone: str | None
    push_subscription: dict[str, Any] | None = None
    notification_preferences: dict[str, Any] | None = None


@dataclass(frozen=True)
class ContactInfo:
    """Delivery addresses resolved for a notification recipient."""

    email: str | None = None
    phone: str | None = None
    push_subscription: dict[str, Any] | None = None

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "ContactInfo":
        return cls(
            email=tenant.email or None,
            phone=tenant.primary_phone or None,
            push_subscription=tenant.push_subscription or None,
        )

    @classmethod
    def from_user(cls, user: User) -> "ContactInfo":
        return cls(
            email=user.email or None,
            phone=user.phone or None,
            push_subscription=user.push_subscription or None,
        )


__all__ = ["ContactInfo", "Tenant", "User"]
