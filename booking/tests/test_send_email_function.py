from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from google.api_core import exceptions as core_exceptions

from functions.send_email import main as fn


def _request(payload) -> MagicMock:
    req = MagicMock()
    req.get_json.return_value = payload
    return req


@pytest.fixture
def email_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENDER_EMAIL", "coach@example.com")
    monkeypatch.setenv("RECIPIENT_EMAIL", "coach@example.com")
    monkeypatch.setenv("SENDGRID_API_KEY", "SG.test")


def test_sends_through_sendgrid(email_env) -> None:
    with patch("functions.send_email.main.requests.post") as post:
        body, status = fn.send_email_notification(
            _request({"arguments": {"subject": "GRT BOOKING prod", "body": "BOOKING 06:00"}})
        )

    assert status == 200
    assert json.loads(body["body"]) == {"message": "Email sent successfully!"}
    sent = post.call_args.kwargs["json"]
    assert sent["subject"] == "GRT BOOKING prod"
    assert sent["personalizations"] == [{"to": [{"email": "coach@example.com"}]}]
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer SG.test"


def test_missing_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SENDER_EMAIL", raising=False)
    monkeypatch.delenv("RECIPIENT_EMAIL", raising=False)

    with patch("functions.send_email.main.requests.post") as post:
        body, status = fn.send_email_notification(_request({"arguments": {"subject": "s", "body": "b"}}))

    assert status == 500
    assert body["errors"][0]["message"] == "Email configuration missing. Cannot send email."
    post.assert_not_called()


def test_missing_arguments(email_env) -> None:
    body, status = fn.send_email_notification(_request({"subject": "s"}))
    assert status == 400


def test_delivery_failure(email_env) -> None:
    with patch("functions.send_email.main.requests.post", side_effect=requests.ConnectionError("refused")):
        body, status = fn.send_email_notification(_request({"arguments": {"subject": "s", "body": "b"}}))

    assert status == 500
    assert body["errors"][0]["message"].startswith("Failed to send email: refused")


def test_secret_manager_failure_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENDER_EMAIL", "coach@example.com")
    monkeypatch.setenv("RECIPIENT_EMAIL", "coach@example.com")
    monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
    client = MagicMock()
    client.access_secret_version.side_effect = core_exceptions.PermissionDenied("no access")

    with (
        patch("functions.send_email.main.google.auth.default", return_value=(None, "grt-project")),
        patch("functions.send_email.main.secretmanager.SecretManagerServiceClient", return_value=client),
        patch("functions.send_email.main.requests.post") as post,
    ):
        body, status = fn.send_email_notification(_request({"arguments": {"subject": "s", "body": "b"}}))

    assert status == 500
    assert body["errors"][0]["message"].startswith("Failed to send email:")
    post.assert_not_called()
