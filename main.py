"""
main.py  –  Streamlit tennis lesson booking page
────────────────────────────────────────────────
Run locally:
    streamlit run main.py

Slots and the group lesson waitlist live in Firestore (see booking/db.py);
booking notifications go out through the send_email_notification function.
"""

import logging

import streamlit as st

from booking.actions import (
    cell_label,
    dedupe_waitlist,
    is_clickable,
    is_in_waitlist,
    remove_booking_as_admin,
    toggle_slot,
    toggle_waitlist,
)
from booking.auth import current_user, login, sign_out
from booking.config import load_settings
from booking.db import get_store
from booking.emailer import send_email
from booking.env import current_hostname, environment_name, is_local_host
from booking.errors import StoreError
from booking.logging_setup import setup_logging
from booking.reconcile import reconcile_slots
from booking.schedule import slot_key, time_slots, upcoming_dates

logger = logging.getLogger("booking.app")

st.set_page_config(page_title="Grand River Tennis Lessons", page_icon="🎾", layout="wide")


# ───────────────────────────────────────────────────────────────
# 1.  Settings, Firestore store, deployment name
# ───────────────────────────────────────────────────────────────
@st.cache_resource
def _bootstrap():
    setup_logging()
    settings = load_settings()
    return settings, get_store(settings)


settings, store = _bootstrap()
hostname = current_hostname()
environment = environment_name(hostname, settings.production_domain)
local = is_local_host(hostname)
user = current_user(settings, local)


def _flash(message: str) -> None:
    # shown as a toast on the next grid refresh
    st.session_state["flash"] = message


def _notify(subject: str, body: str):
    return send_email(subject, body, settings)


# ───────────────────────────────────────────────────────────────
# 2.  Header: sign in / sign out
# ───────────────────────────────────────────────────────────────
_, right = st.columns([5, 1])
with right:
    if user:
        if st.button("Sign out"):
            sign_out(settings, local)
    elif st.button("Sign In / Sign Up", type="primary"):
        st.session_state["show_auth"] = True

st.title("Grand River Tennis Lessons")
if environment not in {"prod", "main"}:
    st.caption(f"Environment: {environment}")

if not user and st.session_state.get("show_auth"):
    with st.container(border=True):
        login(settings, local)
elif user and st.session_state.pop("show_auth", False):
    st.toast("Successfully signed in!")

st.markdown(
    """
Hello! My name is Gabriel, and I'm looking to share my love for tennis and provide affordable
lessons to people of all ages and skill levels. I have experience coaching private lessons,
assistant coaching for a tennis camp, and being a hitting partner for top junior OTA players.

The lessons will take place at the public WCI courts. Please note that in using a public court
to keep costs low, we are limited to a couple tins of balls and there's a **chance the courts
will be occupied, especially during evening hours.** In this case, we'll train just as
effectively off-court, working on technique, volleys, and hitting against a wall until a court
becomes available.

Lessons are **$30 for a 1-hour session**, with your **first lesson only $10!** You can also come
with friends and split the cost. Click on an available space in the calendar to book a lesson,
and I'll personally send you an email to confirm. Currently, I'm only accepting **cash payments**.

If you want to cancel a booking, simply click your slot on the calendar. Please try to avoid
canceling within 3 hours of the lesson, but if you forget, there are no fees or worries.
"""
)


# ───────────────────────────────────────────────────────────────
# 3.  Dialogs
# ───────────────────────────────────────────────────────────────
@st.dialog("Booker details")
def booker_dialog(details):
    st.write(f"**Date:** {details.date_slot}")
    st.write(f"**Time:** {details.time_slot}")
    st.write(f"**Name:** {details.first_name} {details.last_name}")
    st.write(f"**Email:** {details.email}")
    if st.button("Remove booking", type="primary"):
        result = remove_booking_as_admin(store, user, details.id)
        _flash(result.message)
        st.rerun()


@st.dialog("Group lesson waitlist")
def waitlist_dialog(entries):
    if not entries:
        st.write("No one is on the waitlist yet.")
        return
    st.table(
        [
            {
                "Name": e.full_name,
                "Email": e.email,
                "Joined": e.created_at.strftime("%Y-%m-%d %H:%M") if e.created_at else "",
            }
            for e in entries
        ]
    )


# ───────────────────────────────────────────────────────────────
# 4.  Schedule setup, once per session and again when the day rolls over
# ───────────────────────────────────────────────────────────────
times = time_slots(settings.first_hour, settings.slot_count)


def _ensure_schedule(dates) -> bool:
    """Reconcile the slots collection unless this session already did it today."""
    today = dates[0].storage
    if st.session_state.get("schedule_day") == today:
        return True
    try:
        report = reconcile_slots(store, dates, times)
    except StoreError:
        logger.exception("Error during schedule setup for %s", today)
        return False
    logger.info("Schedule ready for %s: %d deleted, %d created, %d failures",
                today, len(report.deleted), len(report.created), len(report.failures))
    st.session_state["schedule_day"] = today
    return True


with st.spinner("Loading schedule..."):
    if not _ensure_schedule(upcoming_dates(days=settings.days)):
        st.error("Failed to initialize schedule. Please try again.")
        st.stop()


# ───────────────────────────────────────────────────────────────
# 5.  Schedule grid + waitlist, re‑read every few seconds
# ───────────────────────────────────────────────────────────────
@st.fragment(run_every=settings.refresh_seconds)
def schedule_grid():
    if "flash" in st.session_state:
        st.toast(st.session_state.pop("flash"))

    # a page left open past midnight moves on to the new week
    dates = upcoming_dates(days=settings.days)
    if not _ensure_schedule(dates):
        st.error("Could not update the schedule. Retrying shortly...")
        return

    try:
        slots = store.list_slots()
        entries = dedupe_waitlist(store.list_waitlist()) if user else []
    except StoreError:
        logger.exception("Error reading schedule")
        st.error("Could not load the schedule. Retrying shortly...")
        return

    by_key = {s.key: s for s in slots}

    header = st.columns([1] + [2] * len(dates))
    header[0].markdown("**Time**")
    for col, d in zip(header[1:], dates):
        col.markdown(f"**{d.display}**")

    for t in times:
        row = st.columns([1] + [2] * len(dates))
        row[0].markdown(t)
        for col, d in zip(row[1:], dates):
            slot = by_key.get(slot_key(d.storage, t))
            label = cell_label(slot, user)
            kind = "primary" if label == "Your booking" else "secondary"
            if col.button(label, key=f"slot-{d.storage}-{t}", type=kind, width="stretch",
                          disabled=not is_clickable(slot, user)):
                result = toggle_slot(store, user, slots, d.storage, t, environment, _notify)
                if result.needs_sign_in:
                    st.session_state["show_auth"] = True
                    _flash(result.message)
                    st.rerun()
                if result.booker_details is not None:
                    st.toast(result.message)
                    booker_dialog(result.booker_details)
                else:
                    _flash(result.message)
                    st.rerun(scope="fragment")

    st.divider()
    st.subheader("Group lessons")
    st.markdown(
        "Interested in **group sessions**? I'm looking to organize longer group sessions at a "
        "private court with a mix of tennis drills and singles/doubles matches. Sign up for the "
        "waitlist, and once I have enough interest, I'll email everyone to work something out."
    )
    in_waitlist = is_in_waitlist(user.identifier, entries) if user else False
    label = "Leave the group lesson waitlist" if in_waitlist else "Join the group lesson waitlist"
    if st.button(label, key="waitlist-toggle"):
        result = toggle_waitlist(store, user, entries, in_waitlist)
        if result.needs_sign_in:
            st.session_state["show_auth"] = True
            _flash(result.message)
            st.rerun()
        _flash(result.message)
        st.rerun(scope="fragment")

    if user and user.is_admin:
        if st.button(f"View waitlist ({len(entries)})", key="waitlist-view"):
            waitlist_dialog(entries)


schedule_grid()
