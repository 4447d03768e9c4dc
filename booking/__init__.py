"""
Package initialiser for the `booking` helper package.

Re-exports the pieces the Streamlit page wires together so other modules
can do:

    from booking import get_store, load_settings, toggle_slot
"""
from .actions import ActionResult, remove_booking_as_admin, toggle_slot, toggle_waitlist
from .config import Settings, load_settings
from .db import FirestoreStore, get_db, get_store
from .reconcile import reconcile_slots

__all__ = [
    "ActionResult",
    "FirestoreStore",
    "Settings",
    "get_db",
    "get_store",
    "load_settings",
    "reconcile_slots",
    "remove_booking_as_admin",
    "toggle_slot",
    "toggle_waitlist",
]
