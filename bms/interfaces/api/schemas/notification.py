"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bms.domain.entities import NOTIFICATION_CHANNELS, NOTIFICATION_TYPES

_CLOCK_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


def _check_types(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    unknown = [value for value in values if value not in NOTIFICATION_TYPES]
    if unknown:
        raise ValueError(f"Unsupported notification types: {', '.join(unknown)}")
    return values


class NotificationCreate(BaseModel):
    """Payload used to create and dispatch a notification."""

    type: str
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    channels: list[str] = Field(..., min_length=1)
    user_id: int | None = None
    tenant_id: int | None = None
    link: str | None = Field(default=None, max_length=500)
    metadata: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str) -> str:
        if value not in NOTIFICATION_TYPES:
            raise ValueError(f"Unsupported notification type: {value}")
        return value

    @field_validator("channels")
    @classmethod
    def _validate_channels(cls, value: list[str]) -> list[str]:
        unknown = [channel for channel in value if channel not in NOTIFICATION_CHANNELS]
        if unknown:
            raise ValueError(f"Unsupported notification channels: {', '.join(unknown)}")
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _validate_recipient(self) -> "NotificationCreate":
        if self.user_id is not None and self.tenant_id is not None:
            raise ValueError("Provide either user_id or tenant_id, not both")
        return self


class ChannelStatusRead(BaseModel):
    sent: bool
    delivered: bool
    error: str | None = None


class InAppStatusRead(BaseModel):
    sent: bool
    read: bool
    read_at: datetime | None = None


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    organization_id: str | None
    user_id: int | None
    tenant_id: int | None
    type: str
    title: str
    message: str
    channels: list[str]
    delivery_status: dict[str, InAppStatusRead | ChannelStatusRead]
    link: str | None = None
    metadata: dict[str, Any] | None = None
    suppressed_reason: str | None = None
    created_at: datetime | None
    updated_at: datetime | None


class UnreadCountRead(BaseModel):
    count: int


class NotificationPreferencesRead(BaseModel):
    email_enabled: bool
    sms_enabled: bool
    in_app_enabled: bool
    push_enabled: bool
    email_types: list[str]
    sms_types: list[str]
    push_types: list[str]
    quiet_hours_enabled: bool
    quiet_hours_start: str | None
    quiet_hours_end: str | None
    do_not_disturb_enabled: bool
    do_not_disturb_until: datetime | None
    preferred_language: str
    source: str = Field(..., description="tenant, user or default")


class NotificationPreferencesUpdate(BaseModel):
    """Partial update of a recipient's notification preferences."""

    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    in_app_enabled: bool | None = None
    push_enabled: bool | None = None
    email_types: list[str] | None = None
    sms_types: list[str] | None = None
    push_types: list[str] | None = None
    quiet_hours_enabled: bool | None = None
    quiet_hours_start: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    quiet_hours_end: str | None = Field(default=None, pattern=_CLOCK_PATTERN)
    do_not_disturb_enabled: bool | None = None
    do_not_disturb_until: datetime | None = None
    preferred_language: str | None = Field(default=None, min_length=2, max_length=10)

    model_config = ConfigDict(extra="forbid")

    @field_validator("email_types", "sms_types", "push_types")
    @classmethod
    def _validate_types(cls, value: list[str] | None) -> list[str] | None:
        return _check_types(value)


class ChannelStatisticsRead(BaseModel):
    sent: int
    delivered: int
    failed: int
    read: int


class NotificationStatisticsRead(BaseModel):
    total: int
    by_type: dict[str, int]
    by_channel: dict[str, ChannelStatisticsRead]
    delivery_rate: int
    read_rate: int

    model_config = ConfigDict(from_attributes=True)


class NotificationTrendPointRead(BaseModel):
    period: str
    total: int
    delivered: int
    read: int

    model_config = ConfigDict(from_attributes=True)


__all__ = [
    "ChannelStatisticsRead",
    "ChannelStatusRead",
    "InAppStatusRead",
    "NotificationCreate",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "NotificationRead",
    "NotificationStatisticsRead",
    "NotificationTrendPointRead",
    "UnreadCountRead",
]
