from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _split_csv(raw: str) -> frozenset[str]:
    return frozenset(p.strip().lower() for p in raw.split(",") if p.strip())


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        value = int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e
    if value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True)
class Settings:
    gcp_project: str | None = None

    slots_collection: str = "slots"
    waitlist_collection: str = "waitlist"
    page_size: int = 1000

    # Grid shape: 7 days starting today, 13 hourly slots from 06:00
    days: int = 7
    first_hour: int = 6
    slot_count: int = 13

    # Seconds between grid re-reads in the UI
    refresh_seconds: int = 15

    admin_emails: frozenset[str] = frozenset()
    admin_usernames: frozenset[str] = frozenset()

    # "google" uses st.login (OIDC); "email" is the plain e-mail form,
    # only honoured on localhost
    auth_provider: str = "google"

    email_function_url: str | None = None
    email_function_auth: bool = True
    email_timeout_seconds: float = 20.0

    production_domain: str = "grandrivertennis.ca"


def load_settings(dotenv_path: str | None = None) -> Settings:
    load_dotenv(dotenv_path=dotenv_path, override=False)

    auth_provider = os.getenv("AUTH_PROVIDER", "google").strip().lower()
    if auth_provider not in {"email", "google"}:
        raise RuntimeError(f"Invalid AUTH_PROVIDER value: {auth_provider!r}. Expected 'email' or 'google'.")

    email_auth_raw = os.getenv("EMAIL_FUNCTION_AUTH", "1").strip().lower()

    return Settings(
        gcp_project=os.getenv("GCP_PROJECT") or None,
        slots_collection=os.getenv("SLOTS_COLLECTION", "slots"),
        waitlist_collection=os.getenv("WAITLIST_COLLECTION", "waitlist"),
        page_size=_int_env("PAGE_SIZE", 1000, minimum=1),
        days=_int_env("SCHEDULE_DAYS", 7, minimum=1),
        first_hour=_int_env("FIRST_HOUR", 6),
        slot_count=_int_env("SLOT_COUNT", 13, minimum=1),
        refresh_seconds=_int_env("REFRESH_SECONDS", 15, minimum=1),
        admin_emails=_split_csv(os.getenv("ADMIN_EMAILS", "")),
        admin_usernames=_split_csv(os.getenv("ADMIN_USERNAMES", "")),
        auth_provider=auth_provider,
        email_function_url=os.getenv("EMAIL_FUNCTION_URL") or None,
        email_function_auth=email_auth_raw not in {"0", "false", "no"},
        email_timeout_seconds=float(_int_env("EMAIL_TIMEOUT_SECONDS", 20, minimum=1)),
        production_domain=os.getenv("PRODUCTION_DOMAIN", "grandrivertennis.ca").strip().lower(),
    )
