"""
What happens when someone clicks a slot, the waitlist button, or an admin
removes a booking.

Every function returns an ActionResult whose ``message`` is shown to the
user as is.  Store errors never escape: they are logged and turned into one
of a handful of generic messages, with "permission denied" the only case
singled out.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .auth import User
from .errors import EmailError, PermissionDeniedError, SlotExistsError, SlotTakenError, StoreError
from .models import BookerDetails, Slot, WaitlistEntry
from .schedule import display_date, format_display_name, slot_id

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], object]

SIGN_IN_TO_BOOK = "Please sign in to book or unbook a slot."
SIGN_IN_FOR_WAITLIST = "Please sign in to manage your waitlist status."


@dataclass(frozen=True)
class ActionResult:
    message: str
    ok: bool = True
    booker_details: Optional[BookerDetails] = None
    needs_sign_in: bool = False


def _notify(notifier: Optional[Notifier], subject: str, body: str) -> None:
    # The booking already went through; a lost e-mail is only logged
    if notifier is None:
        return
    try:
        notifier(subject, body)
    except EmailError as e:
        logger.warning("Notification e-mail %r not sent: %s", subject, e)


def _booking_email(kind: str, environment: str, time_slot: str, date_slot: str, user: User) -> tuple[str, str]:
    subject = f"GRT {kind} {environment}"
    body = f"{kind} {time_slot}, {date_slot}, {user.email}, {user.first_name}, {user.last_name}"
    return subject, body


def find_slot(slots: Iterable[Slot], date_slot: str, time_slot: str) -> Optional[Slot]:
    return next((s for s in slots if s.date_slot == date_slot and s.time_slot == time_slot), None)


def _already_booked(slot: Slot, user: User) -> ActionResult:
    when = f"{display_date(slot.date_slot)} {slot.time_slot}"
    if not user.is_admin:
        # who booked it is only shown to admins
        return ActionResult(f"Slot {when} is already booked.", ok=False)
    name = format_display_name(slot.booked_by_first_name, slot.booked_by_last_name,
                               slot.booked_by_email, slot.booked_by_username)
    return ActionResult(
        f"Slot {when} is already booked by {name}.",
        ok=False,
        booker_details=BookerDetails.from_slot(slot),
    )


def cell_label(slot: Optional[Slot], user: Optional[User]) -> str:
    if slot is None or not slot.is_booked:
        return "Available"
    if user and slot.booked_by_username == user.username:
        return "Your booking"
    if user and user.is_admin:
        name = format_display_name(slot.booked_by_first_name, slot.booked_by_last_name,
                                   slot.booked_by_email, slot.booked_by_username)
        return f"Booked by {name}"
    return "🔒 Booked"


def is_clickable(slot: Optional[Slot], user: Optional[User]) -> bool:
    """Other people's bookings are locked for everyone but admins."""
    if slot is None or not slot.is_booked:
        return True
    return bool(user) and (user.is_admin or slot.booked_by_username == user.username)


def _lost_claim(store, user: User, doc_id: str, when: str) -> ActionResult:
    try:
        fresh = next((s for s in store.list_slots() if s.id == doc_id), None)
    except StoreError:
        logger.exception("Could not re-read slot after a lost claim")
        fresh = None
    if fresh is not None and fresh.is_booked:
        return _already_booked(fresh, user)
    return ActionResult(f"Slot {when} is already booked.", ok=False)


def toggle_slot(
    store,
    user: Optional[User],
    slots: Iterable[Slot],
    date_slot: str,
    time_slot: str,
    environment: str = "unknown",
    notifier: Optional[Notifier] = None,
) -> ActionResult:
    logger.info("Slot clicked: %s %s by %s", date_slot, time_slot, user.username if user else None)
    if user is None:
        return ActionResult(SIGN_IN_TO_BOOK, ok=False, needs_sign_in=True)

    when = f"{display_date(date_slot)} {time_slot}"
    target = find_slot(slots, date_slot, time_slot)
    doc_id = target.id if target else slot_id(date_slot, time_slot)
    try:
        if target is None:
            # Only reachable when setup failed or the collection was wiped
            logger.info("Creating and booking missing slot %s %s", date_slot, time_slot)
            try:
                store.create_slot(date_slot, time_slot, user.as_booker())
            except SlotExistsError:
                # created elsewhere since our last read; book it the normal way
                logger.info("Slot %s appeared meanwhile, claiming it", doc_id)
                store.claim_slot(doc_id, user.as_booker())
                _notify(notifier, *_booking_email("BOOKING", environment, time_slot, date_slot, user))
                return ActionResult(f"Slot {when} booked.")
            _notify(notifier, *_booking_email("BOOKING", environment, time_slot, date_slot, user))
            return ActionResult(f"New slot {when} created and booked!")

        if target.booked_by_username == user.username:
            logger.info("Unbooking own slot %s", target.id)
            store.update_booker(target.id, None)
            _notify(notifier, *_booking_email("UNBOOKING", environment, time_slot, date_slot, user))
            return ActionResult(f"Slot {when} unbooked.")

        if target.is_booked:
            return _already_booked(target, user)

        logger.info("Booking slot %s", target.id)
        store.claim_slot(target.id, user.as_booker())
        _notify(notifier, *_booking_email("BOOKING", environment, target.time_slot, target.date_slot, user))
        return ActionResult(f"Slot {when} booked.")
    except SlotTakenError:
        logger.info("Slot %s %s was taken before it could be claimed", date_slot, time_slot)
        return _lost_claim(store, user, doc_id, when)
    except PermissionDeniedError:
        logger.exception("Permission denied booking/unbooking %s %s", date_slot, time_slot)
        return ActionResult(
            "Permission denied: You do not have authorization to book this slot. "
            "Please ensure you are signed in correctly.",
            ok=False,
        )
    except StoreError:
        logger.exception("Error booking/unbooking %s %s", date_slot, time_slot)
        return ActionResult("Failed to update slot. Please try again. Check console for details.", ok=False)


def remove_booking_as_admin(store, user: Optional[User], doc_id: str) -> ActionResult:
    logger.info("Admin removal requested for slot %s", doc_id)
    if user is None or not user.is_admin:
        return ActionResult("Unauthorized: Only the admin can remove other users' bookings.", ok=False)
    try:
        store.update_booker(doc_id, None)
    except PermissionDeniedError:
        logger.exception("Permission denied removing booking %s", doc_id)
        return ActionResult(
            "Permission denied: You do not have authorization to remove this booking. "
            "Please ensure you are signed in correctly.",
            ok=False,
        )
    except StoreError:
        logger.exception("Error removing booking %s as admin", doc_id)
        return ActionResult("Failed to remove booking due to an unexpected error. Please check console.", ok=False)
    return ActionResult("Booking successfully removed by admin.")


# ---- waitlist -----------------------------------------------------------
def dedupe_waitlist(entries: Iterable[WaitlistEntry]) -> list[WaitlistEntry]:
    """Keep the oldest entry per e‑mail, oldest first."""
    def _order(e: WaitlistEntry):
        return (e.created_at is None, e.created_at.timestamp() if e.created_at else 0.0, e.id)

    seen: set[str] = set()
    out = []
    for entry in sorted(entries, key=_order):
        key = entry.email.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(entry)
    return out


def find_waitlist_entry(identifier: Optional[str], entries: Iterable[WaitlistEntry]) -> Optional[WaitlistEntry]:
    if not identifier:
        return None
    return next((e for e in entries if e.email == identifier), None)


def is_in_waitlist(identifier: Optional[str], entries: Iterable[WaitlistEntry]) -> bool:
    return find_waitlist_entry(identifier, entries) is not None


def toggle_waitlist(
    store,
    user: Optional[User],
    entries: Iterable[WaitlistEntry],
    in_waitlist: Optional[bool] = None,
) -> ActionResult:
    """
    Join or leave the group lesson waitlist.

    ``in_waitlist`` is what the page showed when the button was clicked;
    when omitted it is worked out from ``entries``.
    """
    if user is None:
        return ActionResult(SIGN_IN_FOR_WAITLIST, ok=False, needs_sign_in=True)

    identifier = user.identifier
    if not identifier:
        return ActionResult(
            "Could not retrieve your user identifier. Please ensure your profile has an email or username.",
            ok=False,
        )

    entries = list(entries)
    if in_waitlist is None:
        in_waitlist = is_in_waitlist(identifier, entries)
    try:
        if in_waitlist:
            entry = find_waitlist_entry(identifier, entries)
            if entry is None:
                return ActionResult(
                    "Could not find your waitlist entry to remove. Please try refreshing.", ok=False
                )
            store.delete_waitlist_entry(entry.id)
            return ActionResult("You have been removed from the group lesson waitlist.")
        store.add_waitlist_entry(identifier, user.first_name, user.last_name)
        return ActionResult(
            "You have been added to the group lesson waitlist! We'll notify you when spots become available."
        )
    except PermissionDeniedError:
        logger.exception("Permission denied managing waitlist for %s", identifier)
        return ActionResult(
            "Permission denied: You do not have authorization to manage your waitlist status. "
            "Please ensure you are signed in correctly.",
            ok=False,
        )
    except StoreError:
        logger.exception("Error managing waitlist for %s", identifier)
        return ActionResult("Failed to update waitlist status. Please try again.", ok=False)
