"""
Slot grid helpers: which dates and times the schedule shows, and how they
are written to Firestore and shown on screen.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass


@dataclass(frozen=True)
class ScheduleDate:
    date: dt.date
    display: str    # "Mon, Jul 15"
    storage: str    # "2025-07-15"


def time_slots(first_hour: int = 6, count: int = 13) -> list[str]:
    return [f"{first_hour + i:02d}:00" for i in range(count)]


def format_date(date: dt.date, fmt: str = "storage") -> str:
    if fmt == "display":
        return f"{date:%a, %b} {date.day}"
    if fmt == "storage":
        return date.isoformat()
    raise ValueError(f"Unknown date format: {fmt!r}")


def parse_storage_date(date_slot: str) -> dt.date:
    return dt.date.fromisoformat(date_slot)


def display_date(date_slot: str) -> str:
    """Display form of a stored "YYYY-MM-DD" date (falls back to the raw text)."""
    try:
        return format_date(parse_storage_date(date_slot), "display")
    except ValueError:
        return date_slot


def upcoming_dates(today: dt.date | None = None, days: int = 7) -> list[ScheduleDate]:
    today = today or dt.date.today()
    out = []
    for i in range(days):
        day = today + dt.timedelta(days=i)
        out.append(ScheduleDate(day, format_date(day, "display"), format_date(day, "storage")))
    return out


def slot_key(date_slot: str, time_slot: str) -> str:
    return f"{date_slot}-{time_slot}"


def slot_id(date_slot: str, time_slot: str) -> str:
    # Firestore document ID, same shape the original reserve_slot used
    return f"{date_slot}_{time_slot}"


def expected_slot_keys(dates: list[ScheduleDate], times: list[str]) -> list[str]:
    return [slot_key(d.storage, t) for d in dates for t in times]


def format_display_name(
    first_name: str | None,
    last_name: str | None,
    email: str | None,
    username: str | None,
) -> str:
    if first_name and last_name:
        return f"{first_name} {last_name[0]}."
    if email:
        return email
    return username or "Unknown"
