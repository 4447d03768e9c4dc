from __future__ import annotations

import datetime as dt
import itertools

import pytest

from booking.auth import User
from booking.errors import SlotExistsError, SlotTakenError, StoreError
from booking.models import Booker, Slot, WaitlistEntry, empty_booker_fields
from booking.schedule import slot_id


class FakeStore:
    """In-memory stand-in for FirestoreStore. No network."""

    def __init__(self, slots=(), waitlist=()):
        self.slots: dict[str, Slot] = {s.id: s for s in slots}
        self.waitlist: dict[str, WaitlistEntry] = {e.id: e for e in waitlist}
        self.calls: list[tuple] = []
        # method name -> exception, or (method name, id) -> exception
        self.fail: dict = {}
        self._ids = itertools.count(1)

    def _check(self, method: str, key=None) -> None:
        self.calls.append((method, key))
        err = self.fail.get((method, key)) or self.fail.get(method)
        if err is not None:
            raise err

    def list_slots(self):
        self._check("list_slots")
        return list(self.slots.values())

    def create_slot(self, date_slot, time_slot, booker: Booker | None = None):
        doc_id = slot_id(date_slot, time_slot)
        self._check("create_slot", doc_id)
        if doc_id in self.slots:
            raise SlotExistsError(f"Already exists: {doc_id}")
        fields = booker.to_fields() if booker else empty_booker_fields()
        slot = Slot(doc_id, date_slot, time_slot, fields["bookedByUsername"], fields["bookedByFirstName"],
                    fields["bookedByLastName"], fields["bookedByEmail"])
        self.slots[doc_id] = slot
        return slot

    def delete_slot(self, doc_id):
        self._check("delete_slot", doc_id)
        self.slots.pop(doc_id, None)

    def update_booker(self, doc_id, booker: Booker | None):
        self._check("update_booker", doc_id)
        old = self.slots[doc_id]
        fields = booker.to_fields() if booker else empty_booker_fields()
        self.slots[doc_id] = Slot(doc_id, old.date_slot, old.time_slot, fields["bookedByUsername"],
                                  fields["bookedByFirstName"], fields["bookedByLastName"], fields["bookedByEmail"])

    def claim_slot(self, doc_id, booker: Booker):
        self._check("claim_slot", doc_id)
        if doc_id not in self.slots:
            raise StoreError(f"Slot {doc_id} does not exist")
        current = self.slots[doc_id].booked_by_username
        if current == booker.username:
            return
        if current is not None:
            raise SlotTakenError(doc_id)
        self.update_booker(doc_id, booker)

    def list_waitlist(self):
        self._check("list_waitlist")
        return list(self.waitlist.values())

    def add_waitlist_entry(self, email, first_name=None, last_name=None):
        self._check("add_waitlist_entry", email)
        entry = WaitlistEntry(f"w{next(self._ids)}", email, first_name, last_name,
                              dt.datetime(2025, 7, 1, tzinfo=dt.timezone.utc))
        self.waitlist[entry.id] = entry
        return entry

    def delete_waitlist_entry(self, doc_id):
        self._check("delete_waitlist_entry", doc_id)
        self.waitlist.pop(doc_id, None)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def alice() -> User:
    return User(username="google_111", email="alice@example.com", first_name="Alice", last_name="Smith")


@pytest.fixture
def bob() -> User:
    return User(username="google_222", email="bob@example.com", first_name="Bob", last_name="Jones")


@pytest.fixture
def admin() -> User:
    return User(username="google_999", email="coach@example.com", first_name="Gabriel", last_name="S",
                is_admin=True)


@pytest.fixture
def make_store():
    return FakeStore
