"""
Bring the ``slots`` collection in line with the grid currently on screen.

One pass: drop rows for dates/times outside the grid and any duplicate of a
(date, time) pair, create the missing free slots, then read everything back.
A failed delete or create is logged and the pass carries on; a failed read
propagates to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import SlotExistsError, StoreError
from .models import Slot
from .schedule import ScheduleDate, slot_key

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    deleted: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)
    slots: list[Slot] = field(default_factory=list)


def plan(existing: list[Slot], dates: list[ScheduleDate], times: list[str]):
    """Return (ids_to_delete, (date, time) pairs to create)."""
    expected = {slot_key(d.storage, t) for d in dates for t in times}

    kept: dict[str, Slot] = {}
    to_delete: list[str] = []
    for slot in existing:
        if slot.key in expected and slot.key not in kept:
            kept[slot.key] = slot
        else:
            to_delete.append(slot.id)

    to_create = [
        (d.storage, t)
        for d in dates
        for t in times
        if slot_key(d.storage, t) not in kept
    ]
    return to_delete, to_create


def reconcile_slots(store, dates: list[ScheduleDate], times: list[str]) -> ReconcileReport:
    report = ReconcileReport()
    existing = store.list_slots()
    to_delete, to_create = plan(existing, dates, times)

    if to_delete:
        logger.info("Deleting %d stale/duplicate slots: %s", len(to_delete), to_delete)
    for doc_id in to_delete:
        try:
            store.delete_slot(doc_id)
            report.deleted.append(doc_id)
        except StoreError as e:
            logger.warning("Could not delete slot %s: %s", doc_id, e)
            report.failures.append((doc_id, str(e)))

    if to_create:
        logger.info("Creating %d new slots", len(to_create))
    for date_slot, time_slot in to_create:
        key = slot_key(date_slot, time_slot)
        try:
            store.create_slot(date_slot, time_slot)
            report.created.append(key)
        except SlotExistsError:
            # another session created it after we listed
            logger.info("Slot %s already exists, keeping it", key)
        except StoreError as e:
            logger.warning("Could not create slot %s: %s", key, e)
            report.failures.append((key, str(e)))

    report.slots = store.list_slots()
    logger.debug("Schedule after setup: %d slots", len(report.slots))
    return report
