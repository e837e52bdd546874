"""Shared fixtures for the notification test-suite."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any, Callable

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENVIRONMENT"] = "test"
os.environ["APP_TIMEZONE"] = "Africa/Addis_Ababa"

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bms.application.use_cases.notifications import NotificationService
from bms.config import Settings, reset_settings_cache
from bms.domain.entities import RenderedMessage, SendResult, Tenant, User
from bms.infrastructure import models  # noqa: F401  # register ORM tables
from bms.infrastructure.database import Base
from bms.infrastructure.repositories import TenantRepository, UserRepository
from bms.utils import get_app_timezone

ORGANIZATION_ID = "org-1"


class FakeSender:
    """Channel sender double that records every call."""

    def __init__(self, result: SendResult | None = None, error: Exception | None = None):
        self.result = result or SendResult.ok()
        self.error = error
        self.calls: list[tuple[Any, RenderedMessage]] = []

    def send(self, to: Any, message: RenderedMessage) -> SendResult:
        self.calls.append((to, message))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def _reset_caches():
    reset_settings_cache()
    get_app_timezone.cache_clear()
    yield
    reset_settings_cache()
    get_app_timezone.cache_clear()


@pytest.fixture()
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def senders() -> dict[str, FakeSender]:
    return {"email": FakeSender(), "sms": FakeSender(), "push": FakeSender()}


def local_time(*args: int) -> datetime:
    """Return an aware datetime in the application timezone."""

    return datetime(*args, tzinfo=get_app_timezone())


@pytest.fixture()
def make_service(session, senders) -> Callable[..., NotificationService]:
    def _factory(now: datetime | None = None, **overrides: Any) -> NotificationService:
        moment = now or local_time(2025, 1, 15, 10, 0)
        return NotificationService(
            session, overrides.get("senders", senders), clock=lambda: moment
        )

    return _factory


@pytest.fixture()
def make_tenant(session) -> Callable[..., Tenant]:
    def _factory(**overrides: Any) -> Tenant:
        values: dict[str, Any] = {
            "id": None,
            "organization_id": ORGANIZATION_ID,
            "name": "Abebe Kebede",
            "email": "abebe@example.com",
            "primary_phone": "251911000000",
            "push_subscription": None,
            "notification_preferences": None,
        }
        values.update(overrides)
        return TenantRepository(session).create(Tenant(**values))

    return _factory


@pytest.fixture()
def make_user(session) -> Callable[..., User]:
    def _factory(**overrides: Any) -> User:
        values: dict[str, Any] = {
            "id": None,
            "organization_id": ORGANIZATION_ID,
            "name": "Building Manager",
            "email": "manager@example.com",
            "phone": "+251922000000",
            "push_subscription": None,
            "notification_preferences": None,
        }
        values.update(overrides)
        return UserRepository(session).create(User(**values))

    return _factory


@pytest.fixture()
def settings_factory() -> Callable[..., Settings]:
    def _factory(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "database_url": "sqlite://",
            "secret_key": "test-secret-key",
            "environment": "development",
        }
        values.update(overrides)
        return Settings(**values)

    return _factory
