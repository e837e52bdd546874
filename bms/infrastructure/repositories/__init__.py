"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .tenant_repository import TenantRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "TenantRepository",
    "UserRepository",
]
