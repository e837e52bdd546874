"""Persistence layer for user data."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from bms.domain.entities import User
from bms.infrastructure.models import UserModel


class UserRepository:
    """Look up users and maintain their notification settings."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel(
            organization_id=user.organization_id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            push_subscription=user.push_subscription,
            notification_preferences=user.notification_preferences,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_notification_preferences(
        self, user_id: int, preferences: dict[str, Any]
    ) -> User:
        model = self.session.get(UserModel, user_id)
        if model is None:
            msg = f"User with id {user_id} not found"
            raise ValueError(msg)
        model.notification_preferences = dict(preferences)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            organization_id=model.organization_id,
            name=model.name,
            email=model.email,
            phone=model.phone,
            push_subscription=model.push_subscription,
            notification_preferences=model.notification_preferences,
        )


__all__ = ["UserRepository"]
