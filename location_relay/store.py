# location_relay/store.py
import threading
import time
from typing import Optional

from .models import LocationRecord


class LocationStore:
    """
    Holds the single most recent LocationRecord for the process lifetime.

    Every accepted submission replaces the record wholesale (last write wins).
    Records are never mutated after being stored, so readers can keep the
    instance they got without copying.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._record = LocationRecord()
        self._updates = 0
        self.started_at = time.monotonic()

    def replace(self, record: LocationRecord) -> None:
        with self._lock:
            self._record = record
            self._updates += 1

    def current(self) -> LocationRecord:
        with self._lock:
            return self._record

    @property
    def has_data(self) -> bool:
        return not self.current().is_empty

    @property
    def update_count(self) -> int:
        with self._lock:
            return self._updates

    def uptime(self, now: Optional[float] = None) -> float:
        return (now if now is not None else time.monotonic()) - self.started_at
