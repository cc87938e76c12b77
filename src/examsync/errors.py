"""Error taxonomy for the sync engine."""


class SyncError(Exception):
    """Base class for sync failures."""


class ExternalSourceError(SyncError):
    """The remote hall system could not be read (transport, timeout, non-2xx, bad payload)."""

    def __init__(self, message: str, status_code: int = 0, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ReconciliationError(SyncError):
    """A write to the mirror store failed; the surrounding transaction was rolled back."""


class UnresolvedReferenceWarning(UserWarning):
    """A participant occupancy points at a hall or room the mirror doesn't know yet.

    Never raised: collected on the reconcile result and logged.
    """

    def __init__(self, hall_id: int, room_id: int, start_time):
        self.hall_id = hall_id
        self.room_id = room_id
        self.start_time = start_time
        super().__init__(
            f"Building or room not found: hallId={hall_id}, roomId={room_id}"
        )

    def as_dict(self) -> dict:
        return {
            "hall_id": self.hall_id,
            "room_id": self.room_id,
            "start_time": self.start_time.isoformat(),
        }
