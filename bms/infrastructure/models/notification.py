"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from bms.infrastructure.database import Base
from bms.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for notifications and their delivery status."""

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(64), nullable=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    tenant_id = Column(Integer, nullable=True, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    delivery_status = Column(JSON, nullable=False, default=dict)
    link = Column(String(500), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    suppressed_reason = Column(String(50), nullable=True)
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )
    updated_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["NotificationModel"]
