"""Crash-safe persistence of the in-progress session.

Every field lives under its own key so a partial update (pause/resume do
not touch the stopped/break flags) leaves the other keys alone. Each save
or clear goes to the store as one batched update. Values are
JSON-encoded bytes. Storage problems are logged and otherwise ignored: a
session that cannot be saved keeps running, and one that cannot be read
back is treated as absent.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from nudge.focus.state import FocusMode, SessionState
from nudge.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

KEY_REMAINING_MS = "nudge.session.remaining_ms"
KEY_TOTAL_MS = "nudge.session.total_ms"
KEY_MODE = "nudge.session.mode"
KEY_STOPPED = "nudge.session.stopped"
KEY_IS_BREAK = "nudge.session.is_break"

SESSION_KEYS = (KEY_TOTAL_MS, KEY_REMAINING_MS, KEY_MODE, KEY_IS_BREAK)


@dataclass
class PersistedSession:
    """Session fields as last written to storage."""
    mode: FocusMode
    remaining_ms: int
    total_ms: int
    manually_stopped: bool = False
    is_break: bool = False


class SessionPersistence:
    """Reads and writes session state through a key-value store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save(
        self,
        state: SessionState,
        manually_stopped: bool | None = None,
        is_break: bool | None = None,
    ) -> None:
        """Write the session; flags are only written when given."""
        values = {
            KEY_REMAINING_MS: state.remaining_ms,
            KEY_TOTAL_MS: state.total_ms,
            KEY_MODE: state.mode.value,
        }
        if manually_stopped is not None:
            values[KEY_STOPPED] = manually_stopped
        if is_break is not None:
            values[KEY_IS_BREAK] = is_break

        try:
            self.store.update(self._encode(values))
        except Exception as e:
            logger.warning(f"Failed to persist session: {e}")

    def clear(self, manually_stopped: bool) -> None:
        """Drop the session, keeping only the stopped flag."""
        try:
            self.store.update(self._encode({KEY_STOPPED: manually_stopped}), remove=SESSION_KEYS)
        except Exception as e:
            logger.warning(f"Failed to clear persisted session: {e}")

    def was_manually_stopped(self) -> bool:
        try:
            return bool(self._get(KEY_STOPPED, False))
        except Exception as e:
            logger.warning(f"Failed to read stopped flag: {e}")
            return False

    def load(self) -> PersistedSession | None:
        """Read the persisted session, or None if there is nothing usable."""
        try:
            raw_mode = self._get(KEY_MODE)
            if raw_mode is None:
                return None

            session = PersistedSession(
                mode=FocusMode(raw_mode),
                remaining_ms=int(self._get(KEY_REMAINING_MS, 0)),
                total_ms=int(self._get(KEY_TOTAL_MS, 0)),
                manually_stopped=bool(self._get(KEY_STOPPED, False)),
                is_break=bool(self._get(KEY_IS_BREAK, False)),
            )
        except Exception as e:
            logger.warning(f"Ignoring unreadable persisted session: {e}")
            return None

        if session.remaining_ms < 0 or session.remaining_ms > session.total_ms:
            logger.warning(
                f"Ignoring persisted session with remaining={session.remaining_ms} "
                f"total={session.total_ms}"
            )
            return None

        return session

    @staticmethod
    def _encode(values: dict[str, Any]) -> dict[str, bytes]:
        return {key: json.dumps(value).encode("utf-8") for key, value in values.items()}

    def _get(self, key: str, default: Any = None) -> Any:
        raw = self.store.get(key)
        if raw is None:
            return default
        return json.loads(raw.decode("utf-8"))
