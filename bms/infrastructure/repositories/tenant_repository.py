"""Persistence layer for tenant data."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from bms.domain.entities import Tenant
from bms.infrastructure.models import TenantModel


class TenantRepository:
    """Look up tenants and maintain their notification settings."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, tenant_id: int, *, organization_id: str | None = None) -> Tenant | None:
        query = self.session.query(TenantModel).filter(TenantModel.id == tenant_id)
        if organization_id:
            query = query.filter(TenantModel.organization_id == organization_id)
        model = query.first()
        return self._to_entity(model) if model else None

    def create(self, tenant: Tenant) -> Tenant:
        model = TenantModel(
            organization_id=tenant.organization_id,
            name=tenant.name,
            email=tenant.email,
            primary_phone=tenant.primary_phone,
            push_subscription=tenant.push_subscription,
            notification_preferences=tenant.notification_preferences,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_notification_preferences(
        self, tenant_id: int, preferences: dict[str, Any]
    ) -> Tenant:
        model = self.session.get(TenantModel, tenant_id)
        if model is None:
            msg = f"Tenant with id {tenant_id} not found"
            raise ValueError(msg)
        model.notification_preferences = dict(preferences)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: TenantModel) -> Tenant:
        return Tenant(
            id=model.id,
            organization_id=model.organization_id,
            name=model.name,
            email=model.email,
            primary_phone=model.primary_phone,
            push_subscription=model.push_subscription,
            notification_preferences=model.notification_preferences,
        )


__all__ = ["TenantRepository"]
