"""
Client side of the e‑mail notification function.

``send_email`` posts the subject/body to the ``send_email_notification``
Cloud Function (see functions/send_email/main.py) and returns the message
the function reports back.
"""
from __future__ import annotations

import json
import logging

import google.auth.transport.requests
import requests
from google.auth import exceptions as auth_exceptions
from google.oauth2 import id_token

from .config import Settings
from .errors import EmailError

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Email sent successfully!"


def _auth_headers(url: str) -> dict:
    # The function only accepts callers holding an ID token for its URL
    token = id_token.fetch_id_token(google.auth.transport.requests.Request(), url)
    return {"Authorization": f"Bearer {token}"}


def _parse_response(data) -> str:
    if not isinstance(data, dict):
        raise EmailError("Email sent, but no valid response data received.")

    errors = data.get("errors")
    if errors:
        message = ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
        logger.error("Errors from email function: %s", errors)
        raise EmailError(f"Failed to send email: {message}")

    body = data.get("body")
    if not body:
        logger.warning("Email sent, but no valid response data received: %s", data)
        raise EmailError("Email sent, but no valid response data received.")

    try:
        parsed = json.loads(body) if isinstance(body, str) else body
    except ValueError as e:
        raise EmailError(f"Could not parse email function response: {body!r}") from e
    logger.debug("Email function response: %s", parsed)
    return (parsed or {}).get("message") or DEFAULT_MESSAGE


def send_email(subject: str, body: str, settings: Settings) -> str:
    """
    Send a notification e‑mail through the remote function.

    Returns the function's success message; raises EmailError on any
    failure (configuration, transport, or an error reported by the function).
    """
    url = settings.email_function_url
    if not url:
        raise EmailError("Error sending email: EMAIL_FUNCTION_URL is not configured")

    logger.info("Sending email with subject %r", subject)
    try:
        headers = _auth_headers(url) if settings.email_function_auth else {}
        resp = requests.post(
            url,
            json={"arguments": {"subject": subject, "body": body}},
            headers=headers,
            timeout=settings.email_timeout_seconds,
        )
        try:
            data = resp.json()
        except ValueError:
            data = None
        # the function puts its own error text in the body, even on 4xx/5xx
        if isinstance(data, dict) and data.get("errors"):
            _parse_response(data)
        resp.raise_for_status()
        message = _parse_response(data)
    except EmailError as e:
        raise EmailError(f"Error sending email: {e}") from e
    except (requests.RequestException, ValueError, auth_exceptions.GoogleAuthError) as e:
        logger.error("Error in send_email: %s", e)
        raise EmailError(f"Error sending email: {e}") from e

    logger.info("Email sent: %s", message)
    return message
