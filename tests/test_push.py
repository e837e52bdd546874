"""Tests for the Web Push sender."""

from __future__ import annotations

import json
import types

import pytest
from pywebpush import WebPushException

from bms.domain.entities import RenderedMessage
from bms.infrastructure import push as push_module

SUBSCRIPTION = {
    "endpoint": "https://push.example.com/send/abc",
    "keys": {"p256dh": "public-key", "auth": "auth-secret"},
}
MESSAGE = RenderedMessage(
    subject="Visitor Arrived", body="Sara has arrived at Bole Tower", link="/tenant/visitors"
)


def _configured(settings_factory, **overrides):
    return settings_factory(
        vapid_public_key="public",
        vapid_private_key="private",
        vapid_subject="mailto:ops@example.com",
        **overrides,
    )


def test_build_push_payload() -> None:
    assert json.loads(push_module.build_push_payload(MESSAGE)) == {
        "title": "Visitor Arrived",
        "body": "Sara has arrived at Bole Tower",
        "url": "/tenant/visitors",
    }


def test_send_calls_webpush(settings_factory, monkeypatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(push_module, "webpush", lambda **kwargs: calls.append(kwargs))
    sender = push_module.PushSender(_configured(settings_factory))

    result = sender.send(SUBSCRIPTION, MESSAGE)

    assert result.success is True
    (call,) = calls
    assert call["subscription_info"] == SUBSCRIPTION
    assert call["vapid_private_key"] == "private"
    assert call["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert json.loads(call["data"])["title"] == "Visitor Arrived"


@pytest.mark.parametrize("subscription", [{}, {"endpoint": "https://push"}, None])
def test_invalid_subscription(settings_factory, subscription) -> None:
    result = push_module.PushSender(_configured(settings_factory)).send(subscription, MESSAGE)

    assert result.success is False
    assert result.error == "Invalid push subscription"


def test_webpush_failure_is_reported(settings_factory, monkeypatch, caplog) -> None:
    def _fail(**kwargs):
        raise WebPushException("Push failed", response=types.SimpleNamespace(status_code=410))

    monkeypatch.setattr(push_module, "webpush", _fail)
    sender = push_module.PushSender(_configured(settings_factory))

    with caplog.at_level("ERROR"):
        result = sender.send(SUBSCRIPTION, MESSAGE)

    assert result.success is False
    assert result.error == "Web Push error 410: Push failed"
    assert "status 410" in caplog.text


def test_unconfigured_push(settings_factory, monkeypatch) -> None:
    monkeypatch.setattr(push_module, "webpush", pytest.fail)

    assert push_module.PushSender(settings_factory()).send(SUBSCRIPTION, MESSAGE).success is True
    production = push_module.PushSender(settings_factory(environment="production"))
    assert production.send(SUBSCRIPTION, MESSAGE).error == "Push provider not configured"
