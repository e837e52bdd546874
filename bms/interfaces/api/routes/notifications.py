"""Endpoints exposing notification dispatch, preferences and analytics."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from bms.application.use_cases.notifications import (
    NotificationService,
    get_notification_statistics,
    get_notification_trends,
)
from bms.application.use_cases.notifications.analytics import TREND_PERIODS
from bms.application.use_cases.notifications.preferences import serialize_preferences
from bms.domain.entities import (
    InAppDeliveryStatus,
    Notification,
    NotificationInput,
    NotificationPreferences,
)
from bms.infrastructure.database import get_db
from bms.infrastructure.security import Principal
from bms.interfaces.api.dependencies import (
    get_current_principal,
    get_notification_service,
    require_organization,
    require_staff,
)
from bms.interfaces.api.schemas import (
    ChannelStatusRead,
    InAppStatusRead,
    NotificationCreate,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
    NotificationStatisticsRead,
    NotificationTrendPointRead,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    delivery_status: dict[str, InAppStatusRead | ChannelStatusRead] = {}
    for channel, state in notification.delivery_status.items():
        if isinstance(state, InAppDeliveryStatus):
            delivery_status[channel] = InAppStatusRead(
                sent=state.sent, read=state.read, read_at=state.read_at
            )
        else:
            delivery_status[channel] = ChannelStatusRead(
                sent=state.sent, delivered=state.delivered, error=state.error
            )
    return NotificationRead(
        id=notification.id or 0,
        organization_id=notification.organization_id,
        user_id=notification.user_id,
        tenant_id=notification.tenant_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        channels=list(notification.channels),
        delivery_status=delivery_status,
        link=notification.link,
        metadata=notification.metadata,
        suppressed_reason=notification.suppressed_reason,
        created_at=notification.created_at,
        updated_at=notification.updated_at,
    )


def _preferences_to_schema(
    preferences: NotificationPreferences, source: str
) -> NotificationPreferencesRead:
    return NotificationPreferencesRead(**serialize_preferences(preferences), source=source)


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationRead]:
    """Return the most recent notifications visible to the caller."""

    notifications = service.get_notifications(
        user_id=principal.user_id,
        tenant_id=principal.tenant_id,
        organization_id=principal.organization_id,
        limit=limit,
    )
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
) -> UnreadCountRead:
    count = service.get_unread_count(
        user_id=principal.user_id,
        tenant_id=principal.tenant_id,
        organization_id=principal.organization_id,
    )
    return UnreadCountRead(count=count)


def _ensure_recipient_in_organization(
    service: NotificationService, payload: NotificationCreate, organization_id: str
) -> None:
    if payload.tenant_id is not None:
        tenant = service.tenants.get(payload.tenant_id, organization_id=organization_id)
        in_organization = tenant is not None
    elif payload.user_id is not None:
        user = service.users.get(payload.user_id)
        in_organization = user is not None and user.organization_id == organization_id
    else:
        return
    if not in_organization:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Recipient does not belong to your organization",
        )


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    principal: Principal = Depends(require_staff),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    """Create a notification in the caller's organization and dispatch it.

    Only staff members may create notifications directly; tenants receive them
    through building events.
    """

    _ensure_recipient_in_organization(service, payload, principal.organization_id)
    data = NotificationInput(
        organization_id=principal.organization_id,
        **payload.model_dump(),
    )
    try:
        notification = service.create_notification(data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _notification_to_schema(notification)


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: int,
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
) -> Response:
    marked = service.mark_as_read(
        notification_id, principal.user_id, tenant_id=principal.tenant_id
    )
    if not marked:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/preferences", response_model=NotificationPreferencesRead)
def read_preferences(
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferencesRead:
    preferences, source = service.get_preferences(
        user_id=principal.user_id, tenant_id=principal.tenant_id
    )
    return _preferences_to_schema(preferences, source)


@router.patch("/preferences", response_model=NotificationPreferencesRead)
def update_preferences(
    payload: NotificationPreferencesUpdate,
    principal: Principal = Depends(get_current_principal),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferencesRead:
    """Update the caller's preferences; tenants update their tenant record."""

    try:
        service.update_preferences(
            payload.model_dump(exclude_unset=True),
            user_id=principal.user_id,
            tenant_id=principal.tenant_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    preferences, source = service.get_preferences(
        user_id=principal.user_id, tenant_id=principal.tenant_id
    )
    return _preferences_to_schema(preferences, source)


@router.get("/analytics/statistics", response_model=NotificationStatisticsRead)
def notification_statistics(
    start: datetime | None = None,
    end: datetime | None = None,
    principal: Principal = Depends(require_organization),
    db: Session = Depends(get_db),
) -> NotificationStatisticsRead:
    statistics = get_notification_statistics(
        db, principal.organization_id, start=start, end=end
    )
    return NotificationStatisticsRead.model_validate(asdict(statistics))


@router.get("/analytics/trends", response_model=list[NotificationTrendPointRead])
def notification_trends(
    period: str = Query("monthly"),
    periods: int = Query(12, ge=1, le=366),
    principal: Principal = Depends(require_organization),
    db: Session = Depends(get_db),
) -> list[NotificationTrendPointRead]:
    if period not in TREND_PERIODS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"period must be one of: {', '.join(TREND_PERIODS)}",
        )
    points = get_notification_trends(
        db, principal.organization_id, period=period, periods=periods
    )
    return [NotificationTrendPointRead.model_validate(point) for point in points]
