"""
Work out which deployment the app is running in from the request hostname.

Used only to tag notification e‑mails ("GRT BOOKING prod") so bookings made
while testing locally or on a preview branch are easy to tell apart.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

import streamlit as st

logger = logging.getLogger(__name__)

# branch.d123abc.amplifyapp.com  or  d123abc.amplifyapp.com
_AMPLIFY_HOST = re.compile(r"^(?:([^.]+)\.)?(d[a-z0-9]+)\.amplifyapp\.com$")
# service-abc123xyz-uc.a.run.app
_CLOUD_RUN_HOST = re.compile(r"^[a-z0-9-]+\.a\.run\.app$")


_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


def _bare_host(hostname: str) -> str:
    host = hostname.strip().lower()
    if host.startswith("["):                      # [::1]:8501
        return host[1:].split("]", 1)[0]
    return host.split(":", 1)[0]


def is_local_host(hostname: Optional[str]) -> bool:
    return bool(hostname) and _bare_host(hostname) in _LOCAL_HOSTS


def environment_name(hostname: Optional[str], production_domain: str = "grandrivertennis.ca") -> str:
    if not hostname:
        return "unknown"
    host = _bare_host(hostname)

    if host in _LOCAL_HOSTS:
        return "sandbox"

    match = _AMPLIFY_HOST.match(host)
    if match:
        return match.group(1) or "main"

    if _CLOUD_RUN_HOST.match(host):
        return "main"

    if host == production_domain or host.startswith(f"prod.{production_domain}"):
        return "prod"
    if host == f"www.{production_domain}":
        return "prod"

    return "unknown"


def current_hostname() -> Optional[str]:
    try:
        return st.context.headers.get("Host")
    except Exception:  # outside a Streamlit script run
        logger.debug("No Streamlit request context; hostname unknown")
        return None
