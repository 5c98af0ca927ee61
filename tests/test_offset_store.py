"""Tests for the thread-safe offset store."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from nettime.offset_store import OffsetStore

LOCAL_NOW = 1_736_703_840.0  # 2025-01-12 17:44:00 UTC


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_store_starts_unset_with_zero_offset() -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))

    assert store.offset == 0.0
    assert store.reference_time is None
    assert store.snapshot() == (None, 0.0)
    assert store.current_adjusted_time(2.0) == LOCAL_NOW


def test_commit_records_reference_and_offset() -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))
    reference = datetime.fromtimestamp(LOCAL_NOW + 90, tz=timezone.utc)

    offset = store.commit(reference)

    assert offset == pytest.approx(90.0)
    assert store.offset == pytest.approx(90.0)
    assert store.reference_time == reference


def test_commit_treats_naive_datetime_as_utc() -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))
    naive = datetime(2025, 1, 12, 17, 43, 0)

    assert store.commit(naive) == pytest.approx(-60.0)
    assert store.reference_time is not None
    assert store.reference_time.tzinfo is timezone.utc


def test_commit_overwrites_previous_reference() -> None:
    clock = FakeClock(LOCAL_NOW)
    store = OffsetStore(clock)
    store.commit(datetime.fromtimestamp(LOCAL_NOW + 100, tz=timezone.utc))

    clock.now += 10
    latest = datetime.fromtimestamp(LOCAL_NOW - 50, tz=timezone.utc)
    store.commit(latest)

    assert store.snapshot() == (latest, pytest.approx(-60.0))


@pytest.mark.parametrize("offset", [0.0, 0.5, -1.5, 2.0, -2.0])
def test_offsets_within_threshold_are_ignored(offset: float) -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))
    store.set_offset(offset)

    assert store.current_adjusted_time(2.0) == LOCAL_NOW


@pytest.mark.parametrize("offset", [2.001, -2.5, 60.0, -3600.0])
def test_offsets_beyond_threshold_are_applied(offset: float) -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))
    store.set_offset(offset)

    assert store.current_adjusted_time(2.0) == pytest.approx(LOCAL_NOW + offset)


def test_zero_threshold_applies_any_nonzero_offset() -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))
    store.set_offset(0.25)

    assert store.current_adjusted_time(0.0) == pytest.approx(LOCAL_NOW + 0.25)


def test_set_offset_derives_matching_reference_time() -> None:
    store = OffsetStore(FakeClock(LOCAL_NOW))
    store.set_offset(30.0)

    reference, offset = store.snapshot()
    assert offset == 30.0
    assert reference == datetime.fromtimestamp(LOCAL_NOW, tz=timezone.utc) + timedelta(
        seconds=30
    )


def test_concurrent_reads_during_commits_never_see_torn_state() -> None:
    clock = FakeClock(LOCAL_NOW)
    store = OffsetStore(clock)
    stop = threading.Event()
    errors: list[str] = []

    def writer() -> None:
        step = 0
        while not stop.is_set():
            step += 1
            store.commit(datetime.fromtimestamp(LOCAL_NOW + step, tz=timezone.utc))

    def reader() -> int:
        reads = 0
        for _ in range(2000):
            reference, offset = store.snapshot()
            if reference is not None and reference.timestamp() - LOCAL_NOW != offset:
                errors.append(f"torn read: {reference} / {offset}")
            store.current_adjusted_time(2.0)
            reads += 1
        return reads

    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    try:
        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(lambda _: reader(), range(10)))
    finally:
        stop.set()
        writer_thread.join(timeout=5)

    assert not writer_thread.is_alive()
    assert results == [2000] * 10
    assert errors == []
