"""Delivery statistics and trends for an organization's notifications."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from bms.domain.entities import (
    CHANNEL_IN_APP,
    NOTIFICATION_CHANNELS,
    ChannelDeliveryStatus,
    InAppDeliveryStatus,
    Notification,
)
from bms.infrastructure.repositories import NotificationRepository
from bms.utils import ensure_app_timezone, now_in_app_timezone

PERIOD_DAILY = "daily"
PERIOD_MONTHLY = "monthly"
PERIOD_QUARTERLY = "quarterly"
TREND_PERIODS = (PERIOD_DAILY, PERIOD_MONTHLY, PERIOD_QUARTERLY)


@dataclass
class ChannelStatistics:
    sent: int = 0
    delivered: int = 0
    failed: int = 0
    read: int = 0


@dataclass
class NotificationStatistics:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_channel: dict[str, ChannelStatistics] = field(default_factory=dict)
    delivery_rate: int = 0
    read_rate: int = 0


@dataclass(frozen=True)
class NotificationTrendPoint:
    period: str
    total: int
    delivered: int
    read: int


def _percentage(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _is_delivered(notification: Notification) -> bool:
    """In-app copies count as delivered once stored; other channels need a confirmation."""

    for channel in notification.channels:
        status = notification.delivery_status.get(channel)
        if isinstance(status, InAppDeliveryStatus) and status.sent:
            return True
        if isinstance(status, ChannelDeliveryStatus) and status.delivered:
            return True
    return False


def _is_read(notification: Notification) -> bool:
    status = notification.in_app_status()
    return status is not None and status.read


def get_notification_statistics(
    session: Session,
    organization_id: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> NotificationStatistics:
    """Aggregate delivery outcomes of the organization's notifications.

    Rates are rounded percentages. ``delivery_rate`` compares delivered with
    sent attempts over every channel; ``read_rate`` compares read with sent
    in-app copies.
    """

    notifications = NotificationRepository(session).list_for_organization(
        organization_id, start=start, end=end
    )
    by_channel = {channel: ChannelStatistics() for channel in NOTIFICATION_CHANNELS}
    by_type: Counter[str] = Counter()

    for notification in notifications:
        by_type[notification.type] += 1
        for channel in notification.channels:
            status = notification.delivery_status.get(channel)
            stats = by_channel.get(channel)
            if stats is None or status is None or not status.sent:
                continue
            stats.sent += 1
            if isinstance(status, InAppDeliveryStatus):
                stats.delivered += 1
                if status.read:
                    stats.read += 1
            elif status.delivered:
                stats.delivered += 1
            elif status.error:
                stats.failed += 1

    total_sent = sum(stats.sent for stats in by_channel.values())
    total_delivered = sum(stats.delivered for stats in by_channel.values())
    in_app = by_channel[CHANNEL_IN_APP]
    return NotificationStatistics(
        total=len(notifications),
        by_type=dict(by_type),
        by_channel=by_channel,
        delivery_rate=_percentage(total_delivered, total_sent),
        read_rate=_percentage(in_app.read, in_app.sent),
    )


def format_period(value: date, period: str) -> str:
    if period == PERIOD_DAILY:
        return value.strftime("%Y-%m-%d")
    if period == PERIOD_MONTHLY:
        return value.strftime("%Y-%m")
    if period == PERIOD_QUARTERLY:
        return f"{value.year}-Q{(value.month - 1) // 3 + 1}"
    msg = f"Unsupported trend period: {period}"
    raise ValueError(msg)


def _shift_months(value: date, months: int) -> date:
    index = value.year * 12 + value.month - 1 - months
    return date(index // 12, index % 12 + 1, 1)


def _period_starts(today: date, period: str, periods: int) -> list[date]:
    if period == PERIOD_DAILY:
        return [today - timedelta(days=offset) for offset in range(periods)]
    step = 3 if period == PERIOD_QUARTERLY else 1
    return [_shift_months(today, offset * step) for offset in range(periods)]


def get_notification_trends(
    session: Session,
    organization_id: str,
    *,
    period: str = PERIOD_MONTHLY,
    periods: int = 12,
    now: datetime | None = None,
) -> list[NotificationTrendPoint]:
    """Return the last ``periods`` buckets, oldest first, including empty ones."""

    if period not in TREND_PERIODS:
        msg = f"Unsupported trend period: {period}"
        raise ValueError(msg)
    if periods < 1:
        msg = "At least one period is required"
        raise ValueError(msg)

    today = (ensure_app_timezone(now) or now_in_app_timezone()).date()
    starts = reversed(_period_starts(today, period, periods))
    labels = [format_period(start, period) for start in starts]
    buckets = {label: [0, 0, 0] for label in labels}

    notifications = NotificationRepository(session).list_for_organization(organization_id)
    for notification in notifications:
        if notification.created_at is None:
            continue
        bucket = buckets.get(format_period(notification.created_at.date(), period))
        if bucket is None:
            continue
        bucket[0] += 1
        if _is_delivered(notification):
            bucket[1] += 1
        if _is_read(notification):
            bucket[2] += 1

    return [
        NotificationTrendPoint(period=label, total=total, delivered=delivered, read=read)
        for label, (total, delivered, read) in buckets.items()
    ]


__all__ = [
    "ChannelStatistics",
    "NotificationStatistics",
    "NotificationTrendPoint",
    "PERIOD_DAILY",
    "PERIOD_MONTHLY",
    "PERIOD_QUARTERLY",
    "TREND_PERIODS",
    "format_period",
    "get_notification_statistics",
    "get_notification_trends",
]
