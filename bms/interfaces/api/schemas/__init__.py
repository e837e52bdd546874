from .notification import (
    ChannelStatisticsRead,
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
