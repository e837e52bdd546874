"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .tenant import TenantModel
from .user import UserModel

__all__ = [
    "NotificationModel",
    "TenantModel",
    "UserModel",
]
