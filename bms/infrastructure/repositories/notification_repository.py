"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any, Mapping

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from bms.domain.entities import (
    CHANNEL_IN_APP,
    ChannelDeliveryStatus,
    DeliveryStatus,
    InAppDeliveryStatus,
    Notification,
)
from bms.infrastructure.models import NotificationModel
from bms.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
    parse_datetime,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        now = now_in_app_timezone()
        model.organization_id = notification.organization_id
        model.user_id = notification.user_id
        model.tenant_id = notification.tenant_id
        model.type = notification.type
        model.title = notification.title
        model.message = notification.message
        model.channels = list(notification.channels)
        model.delivery_status = serialize_delivery_status(notification.delivery_status)
        model.link = notification.link
        model.metadata_ = _json_safe(notification.metadata) if notification.metadata else None
        model.suppressed_reason = notification.suppressed_reason
        model.created_at = ensure_app_naive_datetime(notification.created_at or now)
        model.updated_at = ensure_app_naive_datetime(notification.updated_at or now)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_delivery(
        self,
        notification_id: int,
        *,
        delivery_status: Mapping[str, DeliveryStatus],
        suppressed_reason: str | None,
        updated_at: datetime,
    ) -> Notification:
        """Persist the delivery outcome of a dispatch in a single write."""

        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        model.delivery_status = serialize_delivery_status(delivery_status)
        model.suppressed_reason = suppressed_reason
        model.updated_at = ensure_app_naive_datetime(updated_at)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_in_app_read(self, notification_id: int, *, read_at: datetime) -> bool:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return False
        statuses = dict(model.delivery_status or {})
        in_app = dict(statuses.get(CHANNEL_IN_APP) or {})
        in_app.update(
            {
                "sent": True,
                "read": True,
                "read_at": ensure_app_timezone(read_at).isoformat(),
            }
        )
        statuses[CHANNEL_IN_APP] = in_app
        model.delivery_status = statuses
        model.updated_at = ensure_app_naive_datetime(read_at)
        self.session.add(model)
        self.session.commit()
        return True

    def list_for_recipient(
        self,
        *,
        user_id: int | None = None,
        tenant_id: int | None = None,
        organization_id: str | None = None,
        limit: int | None = 20,
    ) -> Sequence[Notification]:
        """Return the notifications visible to the given recipient, newest first.

        With an ``organization_id`` every notification of the organization is
        visible to staff users; tenants only see their own records, and callers
        identified as both see their own plus organization-wide records.
        """

        query = self.session.query(NotificationModel)
        if organization_id:
            query = query.filter(NotificationModel.organization_id == organization_id)
            if user_id is not None and tenant_id is not None:
                query = query.filter(
                    or_(
                        NotificationModel.user_id == user_id,
                        NotificationModel.tenant_id == tenant_id,
                        and_(
                            NotificationModel.user_id.is_(None),
                            NotificationModel.tenant_id.is_(None),
                        ),
                    )
                )
            elif tenant_id is not None:
                query = query.filter(NotificationModel.tenant_id == tenant_id)
        elif user_id is not None and tenant_id is not None:
            query = query.filter(
                or_(
                    NotificationModel.user_id == user_id,
                    NotificationModel.tenant_id == tenant_id,
                )
            )
        elif user_id is not None:
            query = query.filter(NotificationModel.user_id == user_id)
        elif tenant_id is not None:
            query = query.filter(NotificationModel.tenant_id == tenant_id)

        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_for_organization(
        self,
        organization_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.organization_id == organization_id
        )
        if start is not None:
            query = query.filter(
                NotificationModel.created_at >= ensure_app_naive_datetime(start)
            )
        if end is not None:
            query = query.filter(
                NotificationModel.created_at <= ensure_app_naive_datetime(end)
            )
        query = query.order_by(NotificationModel.created_at.asc())
        return [self._to_entity(model) for model in query.all()]

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            organization_id=model.organization_id,
            user_id=model.user_id,
            tenant_id=model.tenant_id,
            type=model.type,
            title=model.title,
            message=model.message,
            channels=list(model.channels or []),
            delivery_status=deserialize_delivery_status(model.delivery_status or {}),
            link=model.link,
            metadata=dict(model.metadata_) if model.metadata_ else None,
            suppressed_reason=model.suppressed_reason,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


def serialize_delivery_status(
    statuses: Mapping[str, DeliveryStatus],
) -> dict[str, dict[str, Any]]:
    """Return the JSON document stored for ``statuses``."""

    payload: dict[str, dict[str, Any]] = {}
    for channel, status in statuses.items():
        if isinstance(status, InAppDeliveryStatus):
            read_at = ensure_app_timezone(status.read_at)
            payload[channel] = {
                "sent": status.sent,
                "read": status.read,
                "read_at": read_at.isoformat() if read_at else None,
            }
        else:
            payload[channel] = {
                "sent": status.sent,
                "delivered": status.delivered,
                "error": status.error,
            }
    return payload


def deserialize_delivery_status(
    payload: Mapping[str, Mapping[str, Any]],
) -> dict[str, DeliveryStatus]:
    statuses: dict[str, DeliveryStatus] = {}
    for channel, raw in payload.items():
        raw = raw or {}
        if channel == CHANNEL_IN_APP:
            statuses[channel] = InAppDeliveryStatus(
                sent=bool(raw.get("sent")),
                read=bool(raw.get("read")),
                read_at=parse_datetime(raw.get("read_at")),
            )
        else:
            statuses[channel] = ChannelDeliveryStatus(
                sent=bool(raw.get("sent")),
                delivered=bool(raw.get("delivered")),
                error=raw.get("error"),
            )
    return statuses


def _json_safe(value: Any) -> Any:
    """Convert datetimes nested inside ``value`` into ISO strings."""

    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


__all__ = [
    "NotificationRepository",
    "deserialize_delivery_status",
    "serialize_delivery_status",
]
