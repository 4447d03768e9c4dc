"""
Exceptions raised by the booking helpers.

Firestore / HTTP failures are translated into these so the Streamlit layer
only has to tell "permission denied" apart from everything else.
"""
from google.cloud import exceptions as gexc


class BookingError(Exception):
    pass


class StoreError(BookingError):
    pass


class PermissionDeniedError(StoreError):
    pass


class SlotTakenError(BookingError):
    pass


class SlotExistsError(StoreError):
    pass


class EmailError(BookingError):
    pass


def translate_cloud_error(err: gexc.GoogleCloudError) -> StoreError:
    # Forbidden covers PermissionDenied (403) as well
    if isinstance(err, gexc.Forbidden):
        return PermissionDeniedError(f"Permission denied: {err}")
    # AlreadyExists is a Conflict (409)
    if isinstance(err, gexc.Conflict):
        return SlotExistsError(f"Already exists: {err}")
    return StoreError(f"Firestore error: {err}")
