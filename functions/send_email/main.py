"""
main.py  –  HTTP Cloud Function that forwards booking notifications by e‑mail
──────────────────────────────────────────────────────────────────────────────
Deploy:
    gcloud functions deploy send_email_notification --runtime python312 \
        --trigger-http --no-allow-unauthenticated \
        --set-env-vars SENDER_EMAIL=...,RECIPIENT_EMAIL=...

Request body:   {"arguments": {"subject": "...", "body": "..."}}
Response body:  {"statusCode": 200, "body": "{\"message\": \"Email sent successfully!\"}"}

Delivery goes through SendGrid's v3 API; the API key lives in Secret Manager.
"""

import json
import logging
import os

import google.auth
import google.auth.exceptions
import requests
from google.api_core import exceptions as core_exceptions
from google.cloud import secretmanager

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
logger = logging.getLogger("send_email_notification")

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


# ───────────────────────────────────────────────────────────────
# 1.  Retrieve the SendGrid key from Google Secret Manager
# ───────────────────────────────────────────────────────────────
def get_sendgrid_key() -> str:
    if os.getenv("SENDGRID_API_KEY"):
        return os.environ["SENDGRID_API_KEY"]
    _, project_id = google.auth.default()
    project_id = project_id or os.getenv("GCP_PROJECT")
    if not project_id:
        raise RuntimeError("GCP project ID not found")
    secret = os.getenv("SENDGRID_SECRET", "sendgrid-api-key")
    sm = secretmanager.SecretManagerServiceClient()
    name = f"projects/{project_id}/secrets/{secret}/versions/latest"
    return sm.access_secret_version(name=name).payload.data.decode()


# ───────────────────────────────────────────────────────────────
# 2.  Hand the message to SendGrid
# ───────────────────────────────────────────────────────────────
def deliver(sender: str, recipient: str, subject: str, body: str) -> None:
    resp = requests.post(
        SENDGRID_URL,
        headers={
            "Authorization": f"Bearer {get_sendgrid_key()}",
            "Content-Type": "application/json",
        },
        json={
            "personalizations": [{"to": [{"email": recipient}]}],
            "from": {"email": sender},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        },
        timeout=20,
    )
    resp.raise_for_status()


def _error(status: int, message: str):
    return {"statusCode": status, "errors": [{"message": message}]}, status


# ───────────────────────────────────────────────────────────────
# 3.  Entry point
# ───────────────────────────────────────────────────────────────
def send_email_notification(request):
    event = request.get_json(silent=True) or {}
    logger.info("Received request to send email: %s", event)

    args = event.get("arguments") or {}
    subject, body = args.get("subject"), args.get("body")
    if not isinstance(subject, str) or not isinstance(body, str) or not subject:
        return _error(400, "Both 'subject' and 'body' arguments are required.")

    sender = os.getenv("SENDER_EMAIL")
    recipient = os.getenv("RECIPIENT_EMAIL")
    if not sender or not recipient:
        logger.error("SENDER_EMAIL or RECIPIENT_EMAIL environment variables are not set.")
        return _error(500, "Email configuration missing. Cannot send email.")

    try:
        deliver(sender, recipient, subject, body)
    except (requests.RequestException, RuntimeError, core_exceptions.GoogleAPICallError,
            google.auth.exceptions.GoogleAuthError) as err:
        logger.exception("Failed to send email")
        return _error(500, f"Failed to send email: {err}")

    logger.info("Email sent successfully!")
    return {"statusCode": 200, "body": json.dumps({"message": "Email sent successfully!"})}, 200
