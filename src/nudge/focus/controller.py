"""Controller that wires the session timer to storage, notifications and stats."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from nudge.core.config import FocusConfig
from nudge.focus.clock import Clock, TickSource
from nudge.focus.persistence import SessionPersistence
from nudge.focus.session_timer import SessionTimer
from nudge.focus.state import FocusMode, SessionState
from nudge.focus.stats import StatsRecorder
from nudge.notifications.scheduler import NotificationScheduler, NullNotificationScheduler
from nudge.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class FocusController:
    """Main interface for running focus sessions.

    Usage:
        controller = FocusController(store, ticks=AsyncioTickSource(), notifier=notifier, stats=recorder)
        controller.bootstrap()   # resume a session left over from last run

        controller.start_focus(25)
        controller.pause()
        controller.resume()
        controller.start_break()
        controller.stop()

        await controller.drain()  # wait for pending stats writes
    """

    def __init__(
        self,
        store: KeyValueStore,
        ticks: TickSource,
        notifier: NotificationScheduler | None = None,
        stats: StatsRecorder | None = None,
        config: FocusConfig | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or FocusConfig()
        self.stats = stats
        self.persistence = SessionPersistence(store)

        if notifier is None or not self.config.notifications_enabled:
            notifier = NullNotificationScheduler()

        self.timer = SessionTimer(
            self.persistence,
            notifier,
            ticks=ticks,
            clock=clock,
            default_minutes=self.config.default_focus_minutes,
            default_break_minutes=self.config.default_break_minutes,
        )
        self.timer.on_focus_complete = self._on_focus_complete
        self.timer.on_phase_complete = self._on_phase_complete

        self._pending: set[asyncio.Task] = set()
        self.completed_this_run = 0

    def bootstrap(self) -> SessionState | None:
        """Restore the session persisted by a previous run, if any."""
        persisted = self.persistence.load()
        if not self.timer.restore(persisted):
            return None
        return self.timer.state

    # Intents

    def start_focus(self, minutes: int | None = None) -> None:
        self.timer.start(minutes)

    def start_break(self, minutes: int | None = None) -> None:
        """Start a break; an active focus interval is stopped first."""
        if self.timer.mode in (FocusMode.FOCUS, FocusMode.PAUSED):
            self.timer.stop(manually=True)
        self.timer.start_break(minutes)

    def pause(self) -> None:
        self.timer.pause()

    def resume(self) -> None:
        self.timer.resume()

    def toggle_pause(self) -> None:
        if self.timer.mode == FocusMode.PAUSED:
            self.timer.resume()
        else:
            self.timer.pause()

    def stop(self) -> None:
        self.timer.stop(manually=True)

    def set_preset(self, minutes: int) -> None:
        self.timer.set_preset(minutes)

    # Completion hooks

    def _on_focus_complete(self, minutes: int) -> None:
        self.completed_this_run += 1
        if self.stats is None:
            return

        try:
            task = asyncio.get_running_loop().create_task(
                self._record_focus(minutes, self.timer.clock.now())
            )
        except RuntimeError:
            logger.warning(f"No event loop, {minutes} min focus session not recorded")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_focus(self, minutes: int, completed_at: datetime) -> None:
        try:
            await self.stats.record_focus(minutes, completed_at)
        except Exception as e:
            logger.error(f"Failed to record focus session: {e}")

    def _on_phase_complete(self, mode: FocusMode) -> None:
        if mode == FocusMode.FOCUS and self.config.auto_start_breaks:
            logger.info("Focus complete, starting break")
            self.timer.start_break()

    async def drain(self) -> None:
        """Wait for outstanding stats writes."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def get_status(self) -> dict[str, Any]:
        """Get a status summary of the current session."""
        status = self.timer.state.to_dict()
        status["preset_minutes"] = self.timer.selected_preset
        status["completed_this_run"] = self.completed_this_run
        return status
