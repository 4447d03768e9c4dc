# ----- booking/auth.py -----
"""
Sign‑in helpers.

Identity comes from the Streamlit OIDC login (``st.login``, Google) and
``st.user``; the provider itself is declared in ``.streamlit/secrets.toml``.

AUTH_PROVIDER=email swaps in a plain e‑mail form for local development.
It is honoured only when the page is served from localhost, and form users
are never admins since nothing verifies the address they type.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import streamlit as st

from .config import Settings
from .models import Booker


@dataclass(frozen=True)
class User:
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: bool = False

    @property
    def identifier(self) -> Optional[str]:
        """Key used for the waitlist: e‑mail, else username."""
        return self.email or self.username or None

    def as_booker(self) -> Booker:
        return Booker(self.username, self.first_name, self.last_name, self.email)


def is_admin(settings: Settings, username: Optional[str], email: Optional[str]) -> bool:
    if email and email.lower() in settings.admin_emails:
        return True
    return bool(username) and username.lower() in settings.admin_usernames


def uses_email_form(settings: Settings, local: bool) -> bool:
    return settings.auth_provider == "email" and local


def login(settings: Settings, local: bool) -> None:
    """Render the sign‑in control for the configured provider."""
    if not uses_email_form(settings, local):
        if st.button("Sign in with Google", type="primary"):
            st.login("google")
        return

    email = st.text_input("Email").strip().lower()
    first_name = st.text_input("First name (optional)").strip()
    last_name = st.text_input("Last name (optional)").strip()
    if st.button("Sign in") and email:
        st.session_state["user"] = email
        st.session_state["first_name"] = first_name or None
        st.session_state["last_name"] = last_name or None
        st.rerun()


def current_user(settings: Settings, local: bool) -> Optional[User]:
    if not uses_email_form(settings, local):
        if not st.user.is_logged_in:
            return None
        sub = st.user.get("sub")
        email = st.user.get("email")
        username = f"google_{sub}" if sub else email
        return User(
            username=username,
            email=email,
            first_name=st.user.get("given_name"),
            last_name=st.user.get("family_name"),
            is_admin=is_admin(settings, username, email),
        )

    email = st.session_state.get("user")
    if not email:
        return None
    return User(
        username=email,
        email=email,
        first_name=st.session_state.get("first_name"),
        last_name=st.session_state.get("last_name"),
        is_admin=False,
    )


def sign_out(settings: Settings, local: bool) -> None:
    if not uses_email_form(settings, local):
        st.logout()
        return
    for key in ("user", "first_name", "last_name"):
        st.session_state.pop(key, None)
    st.rerun()
