from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from booking.config import Settings
from booking.emailer import send_email
from booking.errors import EmailError


def _settings(**overrides) -> Settings:
    values = dict(email_function_url="https://fn.example.com/send", email_function_auth=False)
    values.update(overrides)
    return Settings(**values)


def _response(payload) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


def test_send_email_posts_arguments_and_returns_message() -> None:
    payload = {"statusCode": 200, "body": json.dumps({"message": "Email sent successfully!"})}
    with patch("booking.emailer.requests.post", return_value=_response(payload)) as post:
        message = send_email("GRT BOOKING prod", "BOOKING 06:00, 2025-07-15", _settings())

    assert message == "Email sent successfully!"
    assert post.call_args.args[0] == "https://fn.example.com/send"
    assert post.call_args.kwargs["json"] == {
        "arguments": {"subject": "GRT BOOKING prod", "body": "BOOKING 06:00, 2025-07-15"}
    }
    assert post.call_args.kwargs["headers"] == {}


def test_send_email_attaches_id_token_when_enabled() -> None:
    payload = {"statusCode": 200, "body": json.dumps({"message": "ok"})}
    with (
        patch("booking.emailer.id_token.fetch_id_token", return_value="TOKEN"),
        patch("booking.emailer.requests.post", return_value=_response(payload)) as post,
    ):
        assert send_email("s", "b", _settings(email_function_auth=True)) == "ok"

    assert post.call_args.kwargs["headers"] == {"Authorization": "Bearer TOKEN"}


def test_send_email_reports_function_errors() -> None:
    payload = {"statusCode": 500, "errors": [{"message": "Email configuration missing. Cannot send email."}]}
    with patch("booking.emailer.requests.post", return_value=_response(payload)):
        with pytest.raises(EmailError, match="Email configuration missing"):
            send_email("s", "b", _settings())


def test_send_email_without_body_is_an_error() -> None:
    with patch("booking.emailer.requests.post", return_value=_response({"statusCode": 200})):
        with pytest.raises(EmailError, match="no valid response data"):
            send_email("s", "b", _settings())


def test_send_email_wraps_transport_errors() -> None:
    with patch("booking.emailer.requests.post", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(EmailError, match="Error sending email: refused"):
            send_email("s", "b", _settings())


def test_send_email_requires_url() -> None:
    with patch("booking.emailer.requests.post") as post:
        with pytest.raises(EmailError, match="EMAIL_FUNCTION_URL"):
            send_email("s", "b", _settings(email_function_url=None))
    post.assert_not_called()


def test_send_email_keeps_function_error_text_on_http_error() -> None:
    payload = {"statusCode": 500, "errors": [{"message": "Email configuration missing. Cannot send email."}]}
    resp = _response(payload)
    resp.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    with patch("booking.emailer.requests.post", return_value=resp):
        with pytest.raises(EmailError, match="Email configuration missing"):
            send_email("s", "b", _settings())


def test_send_email_http_error_without_json_body() -> None:
    resp = _response(None)
    resp.json.side_effect = ValueError("not json")
    resp.raise_for_status.side_effect = requests.HTTPError("502 Bad Gateway")
    with patch("booking.emailer.requests.post", return_value=resp):
        with pytest.raises(EmailError, match="502 Bad Gateway"):
            send_email("s", "b", _settings())
