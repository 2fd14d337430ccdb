"""Tests for session persistence through the key-value store."""

from nudge.focus.persistence import (
    KEY_IS_BREAK,
    KEY_MODE,
    KEY_REMAINING_MS,
    KEY_STOPPED,
    KEY_TOTAL_MS,
    SessionPersistence,
)
from nudge.focus.state import FocusMode, SessionState
from nudge.storage.kv_store import JsonFileStore


def test_save_writes_json_values(persistence, store):
    persistence.save(
        SessionState(mode=FocusMode.FOCUS, remaining_ms=1000, total_ms=60_000),
        manually_stopped=False,
        is_break=False,
    )

    assert store.get(KEY_MODE) == b'"focus"'
    assert store.get(KEY_REMAINING_MS) == b"1000"
    assert store.get(KEY_TOTAL_MS) == b"60000"
    assert store.get(KEY_STOPPED) == b"false"
    assert store.get(KEY_IS_BREAK) == b"false"


def test_save_without_flags_leaves_them_alone(persistence, store):
    state = SessionState(mode=FocusMode.BREAK_TIME, remaining_ms=300_000, total_ms=300_000)
    persistence.save(state, manually_stopped=False, is_break=True)

    state.remaining_ms = 200_000
    persistence.save(state)

    loaded = persistence.load()
    assert loaded.remaining_ms == 200_000
    assert loaded.is_break is True
    assert loaded.mode == FocusMode.BREAK_TIME


def test_break_mode_uses_short_name(persistence, store):
    persistence.save(SessionState(mode=FocusMode.BREAK_TIME, remaining_ms=1, total_ms=1))
    assert store.get(KEY_MODE) == b'"break"'


def test_clear_keeps_only_stopped_flag(persistence, store):
    persistence.save(
        SessionState(mode=FocusMode.FOCUS, remaining_ms=1000, total_ms=60_000),
        manually_stopped=False,
        is_break=False,
    )

    persistence.clear(manually_stopped=True)

    assert store.keys() == [KEY_STOPPED]
    assert persistence.load() is None
    assert persistence.was_manually_stopped() is True


def test_load_empty_store(persistence):
    assert persistence.load() is None
    assert persistence.was_manually_stopped() is False


def test_load_malformed_value(persistence, store):
    store.set(KEY_MODE, b'"focus"')
    store.set(KEY_REMAINING_MS, b"not json")
    assert persistence.load() is None


def test_load_unknown_mode(persistence, store):
    store.set(KEY_MODE, b'"sleeping"')
    assert persistence.load() is None


def test_load_rejects_remaining_over_total(persistence, store):
    store.set(KEY_MODE, b'"focus"')
    store.set(KEY_REMAINING_MS, b"90000")
    store.set(KEY_TOTAL_MS, b"60000")
    assert persistence.load() is None


def test_storage_errors_are_swallowed(broken_store):
    persistence = SessionPersistence(broken_store)

    persistence.save(SessionState(mode=FocusMode.FOCUS, remaining_ms=1, total_ms=1), manually_stopped=False)
    persistence.clear(manually_stopped=True)

    assert persistence.load() is None
    assert persistence.was_manually_stopped() is False


class CountingFileStore(JsonFileStore):
    def __init__(self, path):
        super().__init__(path)
        self.writes = 0

    def _write_all(self, data):
        self.writes += 1
        super()._write_all(data)


def test_save_and_clear_write_the_file_once_each(tmp_path):
    store = CountingFileStore(tmp_path / "session.json")
    persistence = SessionPersistence(store)

    persistence.save(
        SessionState(mode=FocusMode.FOCUS, remaining_ms=1000, total_ms=60_000),
        manually_stopped=False,
        is_break=False,
    )
    assert store.writes == 1

    persistence.clear(manually_stopped=True)
    assert store.writes == 2
    assert persistence.load() is None
    assert persistence.was_manually_stopped() is True
