from __future__ import annotations

import datetime as dt

from booking.models import BookerDetails, Slot, WaitlistEntry


def test_slot_from_document_free_slot() -> None:
    slot = Slot.from_document("2025-07-15_06:00", {"dateSlot": "2025-07-15", "timeSlot": "06:00"})
    assert slot is not None
    assert not slot.is_booked
    assert slot.key == "2025-07-15-06:00"


def test_slot_from_document_rejects_malformed_rows() -> None:
    assert Slot.from_document(None, {"dateSlot": "2025-07-15", "timeSlot": "06:00"}) is None
    assert Slot.from_document("x", None) is None
    assert Slot.from_document("x", {"dateSlot": "2025-07-15"}) is None
    assert Slot.from_document("x", {"dateSlot": "2025-07-15", "timeSlot": 6}) is None
    assert Slot.from_document("x", {"dateSlot": "2025-07-15", "timeSlot": "06:00", "bookedByEmail": 5}) is None


def test_waitlist_entry_parses_iso_created_at() -> None:
    entry = WaitlistEntry.from_document("w1", {"email": "a@x.com", "createdAt": "2025-07-01T10:00:00+00:00"})
    assert entry is not None
    assert entry.created_at == dt.datetime(2025, 7, 1, 10, tzinfo=dt.timezone.utc)
    assert entry.full_name == "N/A"


def test_waitlist_entry_rejects_bad_types() -> None:
    assert WaitlistEntry.from_document("w1", {"firstName": "A"}) is None
    assert WaitlistEntry.from_document("w1", {"email": "a@x.com", "lastName": 3}) is None
    assert WaitlistEntry.from_document("w1", {"email": "a@x.com", "createdAt": "yesterday"}) is None


def test_booker_details_fill_missing_fields() -> None:
    slot = Slot("id1", "2025-07-15", "06:00", booked_by_username="u1", booked_by_email="a@x.com")
    details = BookerDetails.from_slot(slot)
    assert details.first_name == "N/A"
    assert details.last_name == "N/A"
    assert details.email == "a@x.com"
