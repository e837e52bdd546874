"""SQLAlchemy model for the tenant table."""

from sqlalchemy import Column, DateTime, Integer, JSON, String

from bms.infrastructure.database import Base
from bms.utils import now_in_app_naive_datetime


class TenantModel(Base):
    """Database representation of a tenant and its contact channels."""

    __tablename__ = "tenant"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(64), nullable=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(120), nullable=True)
    primary_phone = Column(String(32), nullable=True)
    push_subscription = Column(JSON, nullable=True)
    notification_preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_in_app_naive_datetime)


__all__ = ["TenantModel"]
