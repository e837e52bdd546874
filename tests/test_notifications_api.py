"""Integration tests for the notification API endpoints."""

from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from bms.infrastructure.database import get_db
from bms.infrastructure.security import create_access_token
from bms.interfaces.api.dependencies import get_channel_senders


@pytest.fixture()
def client(session, senders):
    """Return a test client bound to the per-test database session."""

    from main import create_app

    app = create_app()
    app.dependency_overrides[get_db] = lambda: session
    app.dependency_overrides[get_channel_senders] = lambda: senders
    return TestClient(app)


def _headers(**claims) -> dict[str, str]:
    token = create_access_token({"organization_id": "org-1", **claims})
    return {"Authorization": f"Bearer {token}"}


def _create(client, headers, **overrides):
    payload = {
        "type": "invoice_created",
        "title": "New Invoice: INV-1",
        "message": "A new invoice has been created for you.",
        "channels": ["in_app", "email"],
    }
    payload.update(overrides)
    return client.post("/notifications/", json=payload, headers=headers)


def test_requests_without_valid_token_are_rejected(client) -> None:
    assert client.get("/notifications/").status_code == 401
    response = client.get(
        "/notifications/", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401
    no_recipient = _headers()
    assert client.get("/notifications/", headers=no_recipient).status_code == 401


def test_create_and_list_notifications(client, make_tenant, make_user, senders) -> None:
    tenant = make_tenant()
    staff = _headers(user_id=make_user().id)

    response = _create(client, staff, tenant_id=tenant.id)

    assert response.status_code == 201
    body = response.json()
    assert body["organization_id"] == "org-1"
    assert body["delivery_status"]["in_app"]["sent"] is True
    assert body["delivery_status"]["email"] == {"sent": True, "delivered": True, "error": None}
    assert senders["email"].calls[0][0] == "abebe@example.com"

    listed = client.get("/notifications/", headers=_headers(tenant_id=tenant.id))
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [body["id"]]


def test_create_validates_payload(client, make_user) -> None:
    staff = _headers(user_id=make_user().id)

    assert _create(client, staff, type="unknown").status_code == 422
    assert _create(client, staff, channels=["fax"]).status_code == 422
    assert _create(client, staff, channels=[]).status_code == 422
    assert _create(client, staff, user_id=1, tenant_id=2).status_code == 422


def test_unread_count_and_mark_read(client, make_tenant, make_user) -> None:
    tenant = make_tenant()
    staff = _headers(user_id=make_user().id)
    tenant_headers = _headers(tenant_id=tenant.id)
    created = _create(client, staff, tenant_id=tenant.id).json()
    _create(client, staff, tenant_id=tenant.id)

    assert client.get("/notifications/unread-count", headers=tenant_headers).json() == {
        "count": 2
    }

    response = client.post(f"/notifications/{created['id']}/read", headers=tenant_headers)
    assert response.status_code == 204

    assert client.get("/notifications/unread-count", headers=tenant_headers).json() == {
        "count": 1
    }
    other_tenant = _headers(tenant_id=tenant.id + 100)
    assert client.post(f"/notifications/{created['id']}/read", headers=other_tenant).status_code == 404
    assert client.post("/notifications/9999/read", headers=tenant_headers).status_code == 404


def test_preferences_round_trip(client, make_tenant) -> None:
    tenant = make_tenant()
    headers = _headers(tenant_id=tenant.id)

    initial = client.get("/notifications/preferences", headers=headers)
    assert initial.status_code == 200
    assert initial.json()["source"] == "default"
    assert initial.json()["quiet_hours_start"] == "22:00"

    updated = client.patch(
        "/notifications/preferences",
        json={"sms_enabled": False, "quiet_hours_start": "23:00", "quiet_hours_end": "06:30"},
        headers=headers,
    )

    assert updated.status_code == 200
    body = updated.json()
    assert body["source"] == "tenant"
    assert body["sms_enabled"] is False
    assert body["quiet_hours_enabled"] is True
    assert body["quiet_hours_end"] == "06:30"


def test_preferences_update_validation(client, make_tenant) -> None:
    headers = _headers(tenant_id=make_tenant().id)

    assert client.patch(
        "/notifications/preferences", json={"quiet_hours_start": "25:00"}, headers=headers
    ).status_code == 422
    assert client.patch(
        "/notifications/preferences", json={"email_types": ["nope"]}, headers=headers
    ).status_code == 422
    assert client.patch(
        "/notifications/preferences", json={"unknown": True}, headers=headers
    ).status_code == 422
    missing = _headers(tenant_id=9999)
    assert client.patch(
        "/notifications/preferences", json={"sms_enabled": False}, headers=missing
    ).status_code == 404


def test_analytics_endpoints(client, make_tenant, make_user) -> None:
    tenant = make_tenant()
    staff = _headers(user_id=make_user().id)
    _create(client, staff, tenant_id=tenant.id)

    statistics = client.get("/notifications/analytics/statistics", headers=staff)
    trends = client.get(
        "/notifications/analytics/trends", params={"period": "daily", "periods": 7}, headers=staff
    )

    assert statistics.status_code == 200
    assert statistics.json()["total"] == 1
    assert statistics.json()["by_channel"]["email"]["delivered"] == 1
    assert trends.status_code == 200
    assert len(trends.json()) == 7
    assert client.get(
        "/notifications/analytics/trends", params={"period": "weekly"}, headers=staff
    ).status_code == 400


def test_analytics_require_organization(client) -> None:
    token = create_access_token({"user_id": 1})

    response = client.get(
        "/notifications/analytics/statistics",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 403


def test_tenants_cannot_create_notifications(client, make_tenant, senders) -> None:
    recipient = make_tenant(
        email="resident@example.com",
        notification_preferences={"do_not_disturb_until": "2099-01-01T00:00:00+03:00"},
    )
    caller = make_tenant(name="Other Tenant", email="other@example.com")

    response = _create(
        client,
        _headers(tenant_id=caller.id),
        type="system",
        channels=["email"],
        tenant_id=recipient.id,
        metadata={"priority": "urgent"},
    )

    assert response.status_code == 403
    assert senders["email"].calls == []
    listed = client.get("/notifications/", headers=_headers(tenant_id=recipient.id))
    assert listed.json() == []


def test_tenant_users_cannot_create_notifications(client, make_tenant, make_user) -> None:
    tenant = make_tenant()
    headers = _headers(user_id=make_user().id, tenant_id=tenant.id)

    assert _create(client, headers, tenant_id=tenant.id).status_code == 403


def test_create_requires_organization(client, make_user, make_tenant) -> None:
    token = create_access_token({"user_id": make_user().id})

    response = _create(
        client, {"Authorization": f"Bearer {token}"}, tenant_id=make_tenant().id
    )

    assert response.status_code == 403


def test_create_rejects_recipients_outside_organization(
    client, make_tenant, make_user, senders
) -> None:
    staff = _headers(user_id=make_user().id)
    foreign_tenant = make_tenant(organization_id="org-2")
    foreign_user = make_user(organization_id="org-2", email="guard@example.com")

    assert _create(client, staff, tenant_id=foreign_tenant.id).status_code == 403
    assert _create(client, staff, user_id=foreign_user.id).status_code == 403
    assert _create(client, staff, tenant_id=9999).status_code == 403
    assert senders["email"].calls == []


def test_preferences_null_does_not_reset_saved_value(client, make_tenant) -> None:
    headers = _headers(tenant_id=make_tenant().id)

    client.patch("/notifications/preferences", json={"email_enabled": False}, headers=headers)
    response = client.patch(
        "/notifications/preferences", json={"email_enabled": None}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["email_enabled"] is False


def test_preferences_update_falls_back_to_user(client, make_user) -> None:
    user = make_user()
    headers = _headers(user_id=user.id, tenant_id=9999)

    response = client.patch(
        "/notifications/preferences", json={"push_enabled": False}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["source"] == "user"
    assert response.json()["push_enabled"] is False


def test_channel_senders_are_built_once() -> None:
    get_channel_senders.cache_clear()
    try:
        senders = get_channel_senders()

        assert get_channel_senders() is senders
        assert set(senders) == {"email", "sms", "push"}
    finally:
        get_channel_senders.cache_clear()
