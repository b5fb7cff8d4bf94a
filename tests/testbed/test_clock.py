from __future__ import annotations

import threading
from datetime import datetime

from storecheck.testbed import AuditClock

FROZEN = datetime(2024, 5, 21, 12, 0, 0, 250_000)


def test_timestamps_strictly_increase_on_a_frozen_source() -> None:
    clock = AuditClock(source=lambda: FROZEN)
    stamps = [clock.now() for _ in range(5)]
    assert stamps[0] == FROZEN
    assert all(a < b for a, b in zip(stamps, stamps[1:]))


def test_whole_seconds() -> None:
    clock = AuditClock(source=lambda: FROZEN, whole_seconds=True)
    first, second = clock.now(), clock.now()
    assert first == datetime(2024, 5, 21, 12, 0, 0)
    assert second == datetime(2024, 5, 21, 12, 0, 1)


def test_default_source_is_naive_utc() -> None:
    assert AuditClock().now().tzinfo is None


def test_unique_across_threads() -> None:
    clock = AuditClock(source=lambda: FROZEN)
    stamps: list[datetime] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(50):
            stamp = clock.now()
            with lock:
                stamps.append(stamp)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(stamps)) == 200
