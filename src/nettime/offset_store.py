"""Thread-safe storage for the server reference time and local clock offset."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from threading import Lock
from typing import Callable

from nettime.http_date import to_utc


class OffsetStore:
    """
    Holds the last server reference time and the derived clock offset.

    The pair is only ever written and read together under one lock, so a
    reader can never see a new reference time with a stale offset.

    Example:
        store = OffsetStore()
        store.commit(server_datetime)
        adjusted = store.current_adjusted_time(ignorable_delay=2.0)
    """

    def __init__(self, time_provider: Callable[[], float] | None = None) -> None:
        self._time_provider = time_provider or time.time
        self._lock = Lock()
        self._reference_time: datetime | None = None
        self._offset = 0.0

    @property
    def offset(self) -> float:
        """Signed offset in seconds (server minus local)."""
        with self._lock:
            return self._offset

    @property
    def reference_time(self) -> datetime | None:
        """Server time captured by the last successful commit, if any."""
        with self._lock:
            return self._reference_time

    def snapshot(self) -> tuple[datetime | None, float]:
        """Return ``(reference_time, offset)`` read atomically."""
        with self._lock:
            return self._reference_time, self._offset

    def commit(self, reference_time: datetime) -> float:
        """
        Record a new server reference time and recompute the offset.

        Args:
            reference_time: Server time at the moment the response arrived.
                Naive datetimes are treated as UTC.

        Returns:
            The new offset in seconds.
        """
        reference_time = to_utc(reference_time)
        with self._lock:
            offset = reference_time.timestamp() - self._time_provider()
            self._reference_time = reference_time
            self._offset = offset
        return offset

    def set_offset(self, offset: float) -> None:
        """Set the offset directly, deriving a matching reference time."""
        with self._lock:
            now = self._time_provider()
            self._offset = float(offset)
            self._reference_time = datetime.fromtimestamp(now + offset, tz=timezone.utc)

    def current_adjusted_time(self, ignorable_delay: float) -> float:
        """
        Return the local time corrected by the offset, as epoch seconds.

        Offsets whose magnitude does not exceed ``ignorable_delay`` are treated
        as network noise and the unadjusted local time is returned.
        """
        with self._lock:
            offset = self._offset
        now = self._time_provider()
        if abs(offset) > ignorable_delay:
            return now + offset
        return now
