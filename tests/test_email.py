"""Unit tests for the SendGrid email sender."""

from __future__ import annotations

import json
import types

import pytest

from bms.domain.entities import RenderedMessage
from bms.infrastructure import email as email_module


MESSAGE = RenderedMessage(subject="Subject", body="Line one\nLine two")


class RecordingClient:
    """Stand-in for ``SendGridAPIClient`` returning a canned response."""

    instances: list["RecordingClient"] = []
    status_code = 202

    def __init__(self, api_key: str):
        self.api_key = api_key
        self.messages: list = []
        RecordingClient.instances.append(self)

    def send(self, message):
        self.messages.append(message)
        return types.SimpleNamespace(status_code=self.status_code, body=None)


@pytest.fixture(autouse=True)
def _reset_client():
    RecordingClient.instances = []
    RecordingClient.status_code = 202
    yield


def _configured(settings_factory, **overrides):
    return settings_factory(
        sendgrid_api_key="SG.fake", sendgrid_sender="sender@example.com", **overrides
    )


def test_send_without_configuration_simulates_success(settings_factory, monkeypatch, caplog) -> None:
    """Outside production a missing SendGrid setup only logs the email."""

    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)
    sender = email_module.EmailSender(settings_factory())

    with caplog.at_level("INFO"):
        result = sender.send("user@example.com", MESSAGE)

    assert result.success is True
    assert RecordingClient.instances == []
    assert "simulating email to user@example.com" in caplog.text


def test_send_without_configuration_fails_in_production(settings_factory) -> None:
    sender = email_module.EmailSender(settings_factory(environment="production"))

    result = sender.send("user@example.com", MESSAGE)

    assert result.success is False
    assert result.error == "Email provider not configured"


def test_send_success(settings_factory, monkeypatch) -> None:
    """A 2xx SendGrid response should produce a successful result."""

    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)
    sender = email_module.EmailSender(_configured(settings_factory))

    result = sender.send("user@example.com", MESSAGE)

    assert result.success is True
    assert result.error is None
    (client,) = RecordingClient.instances
    assert client.api_key == "SG.fake"
    payload = client.messages[0].get()
    assert payload["subject"] == "Subject"
    assert payload["from"] == {"email": "sender@example.com", "name": "BMS System"}
    contents = {item["type"]: item["value"] for item in payload["content"]}
    assert contents["text/plain"] == "Line one\nLine two"
    assert contents["text/html"] == "Line one<br>Line two"


def test_send_reports_unsuccessful_status(settings_factory, monkeypatch, caplog) -> None:
    RecordingClient.status_code = 500
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)
    sender = email_module.EmailSender(_configured(settings_factory))

    with caplog.at_level("ERROR"):
        result = sender.send("user@example.com", MESSAGE)

    assert result.success is False
    assert result.error == "SendGrid responded with status 500"
    assert "responded with status 500" in caplog.text


def test_send_logs_forbidden_error(settings_factory, monkeypatch, caplog) -> None:
    """Forbidden responses from SendGrid should surface meaningful details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "field": None,
                    }
                ]
            }
        ).encode()

    class FailingClient(RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)
    sender = email_module.EmailSender(_configured(settings_factory))

    with caplog.at_level("ERROR"):
        result = sender.send("user@example.com", MESSAGE)

    assert result.success is False
    assert result.error == "SendGrid error 403: The provided authorization grant is invalid."
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


def test_send_unexpected_exception(settings_factory, monkeypatch, caplog) -> None:
    class BrokenClient(RecordingClient):
        def send(self, message):
            raise ConnectionError("connection reset")

    monkeypatch.setattr(email_module, "SendGridAPIClient", BrokenClient)
    sender = email_module.EmailSender(_configured(settings_factory))

    with caplog.at_level("ERROR"):
        result = sender.send("user@example.com", MESSAGE)

    assert result.success is False
    assert result.error == "connection reset"
    assert "Error sending email via SendGrid" in caplog.text


def test_settings_require_complete_sendgrid_pair(settings_factory) -> None:
    with pytest.raises(ValueError):
        settings_factory(sendgrid_api_key="SG.fake")
