"""
Record kinds stored in Firestore.

Slot
    One lesson slot, document ID "{YYYY-MM-DD}_{HH:MM}".  The four
    ``booked_by_*`` fields are all null while the slot is free.
WaitlistEntry
    One person waiting for group lessons.

``from_document`` returns ``None`` for rows that don't have the required
fields, so loaders can silently drop junk written by older app versions.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .schedule import slot_key

BOOKER_FIELDS = ("bookedByUsername", "bookedByFirstName", "bookedByLastName", "bookedByEmail")


def _optional_str(data: Mapping[str, Any], field: str) -> tuple[bool, Optional[str]]:
    value = data.get(field)
    if value is None or isinstance(value, str):
        return True, value
    return False, None


@dataclass(frozen=True)
class Booker:
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    def to_fields(self) -> dict:
        return {
            "bookedByUsername": self.username,
            "bookedByFirstName": self.first_name,
            "bookedByLastName": self.last_name,
            "bookedByEmail": self.email,
        }


def empty_booker_fields() -> dict:
    return {field: None for field in BOOKER_FIELDS}


@dataclass(frozen=True)
class Slot:
    id: str
    date_slot: str
    time_slot: str
    booked_by_username: Optional[str] = None
    booked_by_first_name: Optional[str] = None
    booked_by_last_name: Optional[str] = None
    booked_by_email: Optional[str] = None

    @property
    def key(self) -> str:
        return slot_key(self.date_slot, self.time_slot)

    @property
    def is_booked(self) -> bool:
        return self.booked_by_username is not None

    @classmethod
    def from_document(cls, doc_id: Any, data: Optional[Mapping[str, Any]]) -> Optional["Slot"]:
        if not isinstance(doc_id, str) or not doc_id or not isinstance(data, Mapping):
            return None
        date_slot, time_slot = data.get("dateSlot"), data.get("timeSlot")
        if not isinstance(date_slot, str) or not isinstance(time_slot, str):
            return None
        values = []
        for field in BOOKER_FIELDS:
            ok, value = _optional_str(data, field)
            if not ok:
                return None
            values.append(value)
        return cls(doc_id, date_slot, time_slot, *values)

    def to_document(self) -> dict:
        return {
            "dateSlot": self.date_slot,
            "timeSlot": self.time_slot,
            "bookedByUsername": self.booked_by_username,
            "bookedByFirstName": self.booked_by_first_name,
            "bookedByLastName": self.booked_by_last_name,
            "bookedByEmail": self.booked_by_email,
        }


@dataclass(frozen=True)
class WaitlistEntry:
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    @classmethod
    def from_document(cls, doc_id: Any, data: Optional[Mapping[str, Any]]) -> Optional["WaitlistEntry"]:
        if not isinstance(doc_id, str) or not doc_id or not isinstance(data, Mapping):
            return None
        email = data.get("email")
        if not isinstance(email, str):
            return None
        ok_first, first_name = _optional_str(data, "firstName")
        ok_last, last_name = _optional_str(data, "lastName")
        if not (ok_first and ok_last):
            return None
        created_at = data.get("createdAt")
        if isinstance(created_at, str):
            try:
                created_at = dt.datetime.fromisoformat(created_at)
            except ValueError:
                return None
        elif created_at is not None and not isinstance(created_at, dt.datetime):
            return None
        return cls(doc_id, email, first_name, last_name, created_at)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or "N/A"


@dataclass(frozen=True)
class BookerDetails:
    id: str
    date_slot: str
    time_slot: str
    first_name: str
    last_name: str
    email: str

    @classmethod
    def from_slot(cls, slot: Slot) -> "BookerDetails":
        return cls(
            id=slot.id,
            date_slot=slot.date_slot,
            time_slot=slot.time_slot,
            first_name=slot.booked_by_first_name or "N/A",
            last_name=slot.booked_by_last_name or "N/A",
            email=slot.booked_by_email or "N/A",
        )
