"""
Firestore helper layer used by the Streamlit app.

Classes
-------
FirestoreStore
    Reads and writes the ``slots`` and ``waitlist`` collections.
    ``claim_slot`` books a free slot inside a transaction and raises
    SlotTakenError when someone else snapped it first; ``create_slot``
    raises SlotExistsError instead of overwriting.  Unbooking is
    last‑write‑wins.

Functions
---------
get_db(project=None)
    Singleton Firestore client built with Application Default
    Credentials (ADC).  Works both locally and on Cloud Run.
get_store(settings)
    FirestoreStore bound to that client and the configured collections.
"""
from __future__ import annotations

import datetime as dt
import functools
import logging
from typing import Callable, Iterator, Optional, TypeVar

from google.cloud import firestore
from google.cloud import exceptions as gexc
from google.cloud.firestore import transactional
from google.cloud.firestore_v1.field_path import FieldPath

from .config import Settings
from .errors import SlotTakenError, StoreError, translate_cloud_error
from .models import Booker, Slot, WaitlistEntry, empty_booker_fields
from .schedule import slot_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


@functools.lru_cache(maxsize=None)
def get_db(project: Optional[str] = None) -> firestore.Client:
    # project ID inferred from ADC when not given
    return firestore.Client(project=project)


def _cloud_call(fn: Callable[..., T], *args, **kwargs) -> T:
    try:
        return fn(*args, **kwargs)
    except gexc.GoogleCloudError as err:          # network / perms
        raise translate_cloud_error(err) from err


def claim_in_transaction(transaction, ref, booker: Booker) -> None:
    snapshot = ref.get(transaction=transaction)
    if not snapshot.exists:
        raise StoreError(f"Slot {ref.id} does not exist")
    current = (snapshot.to_dict() or {}).get("bookedByUsername")
    if current == booker.username:
        return
    if current is not None:
        raise SlotTakenError(f"Slot {ref.id} already taken")
    transaction.update(ref, booker.to_fields())


class FirestoreStore:
    def __init__(self, client: firestore.Client, slots_collection: str = "slots",
                 waitlist_collection: str = "waitlist", page_size: int = 1000):
        self.client = client
        self.slots = client.collection(slots_collection)
        self.waitlist = client.collection(waitlist_collection)
        self.page_size = page_size

    # ---- paging ---------------------------------------------------------
    def _iter_pages(self, collection) -> Iterator[list]:
        last = None
        while True:
            query = collection.order_by(FieldPath.document_id()).limit(self.page_size)
            if last is not None:
                query = query.start_after(last)
            page = list(query.stream())
            if page:
                yield page
            if len(page) < self.page_size:
                return
            last = page[-1]

    def _list(self, collection, parse) -> list:
        items = []
        for page in _cloud_call(lambda: list(self._iter_pages(collection))):
            for doc in page:
                item = parse(doc.id, doc.to_dict())
                if item is None:
                    logger.warning("Skipping malformed document %s/%s", collection.id, doc.id)
                    continue
                items.append(item)
        return items

    # ---- slots ----------------------------------------------------------
    def list_slots(self) -> list[Slot]:
        return self._list(self.slots, Slot.from_document)

    def create_slot(self, date_slot: str, time_slot: str, booker: Optional[Booker] = None) -> Slot:
        fields = booker.to_fields() if booker else empty_booker_fields()
        slot = Slot(slot_id(date_slot, time_slot), date_slot, time_slot,
                    fields["bookedByUsername"], fields["bookedByFirstName"],
                    fields["bookedByLastName"], fields["bookedByEmail"])
        # create() refuses to overwrite, so a booking made elsewhere survives
        _cloud_call(self.slots.document(slot.id).create, slot.to_document())
        return slot

    def delete_slot(self, doc_id: str) -> None:
        _cloud_call(self.slots.document(doc_id).delete)

    def update_booker(self, doc_id: str, booker: Optional[Booker]) -> None:
        fields = booker.to_fields() if booker else empty_booker_fields()
        _cloud_call(self.slots.document(doc_id).update, fields)

    def claim_slot(self, doc_id: str, booker: Booker) -> None:
        """
        Book a free slot; fail if someone else snapped it first.

        Raises
        ------
        SlotTakenError
            The slot is booked by another user.  Re‑claiming a slot the
            same user already holds is a no‑op.
        StoreError
            The slot document does not exist.
        """
        doc_ref = self.slots.document(doc_id)
        # Firestore transactions retry automatically on contention
        _cloud_call(transactional(claim_in_transaction), self.client.transaction(), doc_ref, booker)

    # ---- waitlist -------------------------------------------------------
    def list_waitlist(self) -> list[WaitlistEntry]:
        return self._list(self.waitlist, WaitlistEntry.from_document)

    def add_waitlist_entry(self, email: str, first_name: Optional[str] = None,
                           last_name: Optional[str] = None) -> WaitlistEntry:
        created_at = dt.datetime.now(dt.timezone.utc)
        ref = self.waitlist.document()
        _cloud_call(ref.set, {
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "createdAt": created_at,
        })
        return WaitlistEntry(ref.id, email, first_name, last_name, created_at)

    def delete_waitlist_entry(self, doc_id: str) -> None:
        _cloud_call(self.waitlist.document(doc_id).delete)


def get_store(settings: Settings) -> FirestoreStore:
    return FirestoreStore(
        get_db(settings.gcp_project),
        slots_collection=settings.slots_collection,
        waitlist_collection=settings.waitlist_collection,
        page_size=settings.page_size,
    )
