from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AuditClock:
    """
    Source of create/modify/delete timestamps.

    Timestamps are naive UTC and strictly increasing, so two writes in the same
    tick never share a stamp. ``whole_seconds`` truncates to second precision
    for columns without fractional seconds (MySQL DATETIME).
    """

    def __init__(self, source: Optional[Callable[[], datetime]] = None, whole_seconds: bool = False) -> None:
        self._source = source or utc_now
        self._whole_seconds = whole_seconds
        self._step = timedelta(seconds=1) if whole_seconds else timedelta(microseconds=1)
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._source()
            if self._whole_seconds:
                current = current.replace(microsecond=0)
            if self._last is not None and current <= self._last:
                current = self._last + self._step
            self._last = current
            return current
