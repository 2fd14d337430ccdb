"""Shared fixtures: a hand-driven clock, tick source and notifier."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

import pytest

from nudge.focus.persistence import SessionPersistence
from nudge.focus.session_timer import SessionTimer
from nudge.storage.kv_store import MemoryStore


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 2, 9, 0, 0)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class RecordingTickSource:
    """Tick source that never fires; tests call timer.tick() themselves."""

    def __init__(self) -> None:
        self.callback: Callable[[], None] | None = None
        self.starts = 0
        self.cancels = 0

    @property
    def active(self) -> bool:
        return self.callback is not None

    def start(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self.callback = callback
        self.starts += 1

    def cancel(self) -> None:
        self.callback = None
        self.cancels += 1


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.scheduled: list[tuple[int, str, str, str]] = []
        self.cancelled: list[str] = []

    def schedule(self, after_seconds: int, title: str, body: str, identifier: str) -> None:
        if self.fail:
            raise RuntimeError("notification service unavailable")
        self.scheduled.append((after_seconds, title, body, identifier))

    def cancel(self, identifier: str) -> None:
        if self.fail:
            raise RuntimeError("notification service unavailable")
        self.cancelled.append(identifier)


class BrokenStore:
    """Store whose every operation fails."""

    def get(self, key: str) -> bytes | None:
        raise OSError("disk unavailable")

    def set(self, key: str, value: bytes) -> None:
        raise OSError("disk unavailable")

    def remove(self, key: str) -> None:
        raise OSError("disk unavailable")

    def update(self, values, remove=()) -> None:
        raise OSError("disk unavailable")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def ticks() -> RecordingTickSource:
    return RecordingTickSource()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def persistence(store) -> SessionPersistence:
    return SessionPersistence(store)


@pytest.fixture
def timer(persistence, notifier, ticks, clock) -> SessionTimer:
    return SessionTimer(persistence, notifier, ticks=ticks, clock=clock)


@pytest.fixture
def run_ticks(clock):
    """Advance the clock one second at a time, ticking after each step."""

    def run(timer: SessionTimer, seconds: int) -> None:
        for _ in range(seconds):
            clock.advance(1)
            timer.tick()

    return run


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()
