"""Aggregate application use cases."""

from .notifications import NotificationService

__all__ = ["NotificationService"]
