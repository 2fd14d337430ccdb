"""Focus/break countdown timer state machine."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta
from typing import Callable

from nudge.focus.clock import Clock, SystemClock, TickSource
from nudge.focus.persistence import PersistedSession, SessionPersistence
from nudge.focus.state import COUNTING_MODES, FocusMode, SessionState
from nudge.notifications.scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

NOTIFICATION_ID = "nudge.session.end"
NOTIFICATION_TITLE = "Session Complete"

MS_PER_MINUTE = 60_000
ONE_MS = timedelta(milliseconds=1)

Listener = Callable[[SessionState], None]


class SessionTimer:
    """Single-interval countdown with crash-safe persistence.

    Usage:
        timer = SessionTimer(persistence, notifier, ticks=AsyncioTickSource())
        timer.subscribe(lambda state: print(state.remaining_display))
        timer.on_focus_complete = lambda minutes: print(f"{minutes} min done")

        timer.start(25)
        timer.pause()
        timer.resume()
        timer.stop()
        timer.start_break(5)

    Remaining time is recomputed from the expected end time on every tick
    rather than decremented, so late or coalesced ticks (or a suspended
    process) do not make the countdown drift.
    """

    def __init__(
        self,
        persistence: SessionPersistence,
        notifier: NotificationScheduler,
        ticks: TickSource,
        clock: Clock | None = None,
        default_minutes: int = 25,
        default_break_minutes: int = 5,
    ):
        self.persistence = persistence
        self.notifier = notifier
        self.ticks = ticks
        self.clock = clock or SystemClock()
        self.default_break_minutes = default_break_minutes

        self.custom_minutes = default_minutes
        self.selected_preset = default_minutes

        self._state = SessionState()
        self._listeners: list[Listener] = []

        # Callbacks
        self.on_tick: Listener | None = None
        self.on_phase_complete: Callable[[FocusMode], None] | None = None
        self.on_focus_complete: Callable[[int], None] | None = None

    @property
    def state(self) -> SessionState:
        """Get current timer state (copy)."""
        return replace(self._state)

    @property
    def mode(self) -> FocusMode:
        return self._state.mode

    @property
    def remaining_ms(self) -> int:
        return self._state.remaining_ms

    @property
    def total_ms(self) -> int:
        return self._state.total_ms

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a state snapshot after every change.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_preset(self, minutes: int) -> None:
        """Remember a focus duration for start() calls without one."""
        self.selected_preset = minutes
        self.custom_minutes = minutes

    # Intents

    def start(self, minutes: int | None = None) -> None:
        """Start a focus interval, replacing whatever is running."""
        mins = max(1, minutes if minutes is not None else self.custom_minutes)
        self._begin_interval(FocusMode.FOCUS, mins)
        logger.info(f"Focus session started: {mins} min")

    def start_break(self, minutes: int | None = None) -> None:
        """Start a break interval, replacing whatever is running."""
        mins = max(1, minutes if minutes is not None else self.default_break_minutes)
        self._begin_interval(FocusMode.BREAK_TIME, mins)
        logger.info(f"Break started: {mins} min")

    def pause(self) -> None:
        if self._state.mode != FocusMode.FOCUS:
            logger.debug(f"pause() ignored in {self._state.mode.value} mode")
            return

        self._state.mode = FocusMode.PAUSED
        self.ticks.cancel()
        self._state.expected_end = None
        self._cancel_notification()
        self.persistence.save(self._state)
        self._publish()
        logger.info(f"Focus session paused with {self._state.remaining_display} left")

    def resume(self) -> None:
        if self._state.mode != FocusMode.PAUSED:
            logger.debug(f"resume() ignored in {self._state.mode.value} mode")
            return

        self._state.mode = FocusMode.FOCUS
        self._begin_countdown()
        self._schedule_notification(max(1, self._state.remaining_ms // 1000))
        self.persistence.save(self._state)
        self._publish()
        logger.info("Focus session resumed")

    def stop(self, manually: bool = True) -> None:
        """Stop from any mode and forget the persisted session."""
        previous = self._state.mode
        self.ticks.cancel()
        self._cancel_notification()
        self._state.mode = FocusMode.IDLE
        self._state.expected_end = None
        self._state.remaining_ms = 0
        self.persistence.clear(manually_stopped=manually)
        self._publish()
        logger.info(f"Session stopped from {previous.value} mode (manual={manually})")

    def restore(self, persisted: PersistedSession | None) -> bool:
        """Rebuild a session read back from storage at startup.

        The stored remaining time is used as-is; time that passed while the
        process was not running is not subtracted.
        """
        if persisted is None or persisted.mode == FocusMode.IDLE:
            return False

        self._state = SessionState(
            mode=persisted.mode,
            remaining_ms=persisted.remaining_ms,
            total_ms=persisted.total_ms,
        )

        if self._state.remaining_ms == 0 and persisted.mode in COUNTING_MODES:
            self._complete()
            return True

        if persisted.mode in COUNTING_MODES:
            self._begin_countdown()
            self._schedule_notification(max(1, self._state.remaining_ms // 1000))
        else:
            self.ticks.cancel()

        self.persistence.save(self._state)
        self._publish()
        logger.info(
            f"Restored {persisted.mode.value} session with {self._state.remaining_display} left"
        )
        return True

    # Countdown

    def tick(self) -> None:
        """Recompute remaining time; completes the interval at zero."""
        if self._state.mode not in COUNTING_MODES:
            return

        self._sync_remaining()
        self.persistence.save(self._state)

        snapshot = self.state
        if self.on_tick:
            try:
                self.on_tick(snapshot)
            except Exception as e:
                logger.error(f"Error in on_tick callback: {e}")
        self._publish(snapshot)

        if self._state.remaining_ms == 0:
            self._complete()

    def _sync_remaining(self) -> None:
        if self._state.expected_end is not None:
            left = (self._state.expected_end - self.clock.now()) // ONE_MS
        else:
            left = self._state.remaining_ms - 1000
        self._state.remaining_ms = min(self._state.total_ms, max(0, left))

    def _begin_interval(self, mode: FocusMode, minutes: int) -> None:
        self._state.total_ms = minutes * MS_PER_MINUTE
        self._state.remaining_ms = self._state.total_ms
        self._state.mode = mode
        self._begin_countdown()
        self._schedule_notification(minutes * 60)
        self.persistence.save(
            self._state,
            manually_stopped=False,
            is_break=mode == FocusMode.BREAK_TIME,
        )
        self._publish()

    def _begin_countdown(self) -> None:
        self._state.expected_end = self.clock.now() + timedelta(milliseconds=self._state.remaining_ms)
        self.ticks.start(self.tick, 1.0)

    def _complete(self) -> None:
        """Handle an interval that ran out on its own."""
        self.ticks.cancel()
        completed = self._state.mode

        minutes = None
        if (
            not self.persistence.was_manually_stopped()
            and completed == FocusMode.FOCUS
            and self._state.total_ms > 0
        ):
            minutes = max(1, self._state.total_ms // MS_PER_MINUTE)

        self._state.mode = FocusMode.IDLE
        self._state.expected_end = None
        self._state.remaining_ms = 0
        self.persistence.clear(manually_stopped=False)
        self._publish()

        logger.info(f"{completed.value} interval complete")

        if minutes is not None and self.on_focus_complete:
            try:
                self.on_focus_complete(minutes)
            except Exception as e:
                logger.error(f"Error in on_focus_complete callback: {e}")

        if self.on_phase_complete:
            try:
                self.on_phase_complete(completed)
            except Exception as e:
                logger.error(f"Error in on_phase_complete callback: {e}")

    # Side effects

    def _schedule_notification(self, after_seconds: int) -> None:
        body = "Break finished." if self._state.mode == FocusMode.BREAK_TIME else "Focus session finished."
        try:
            self.notifier.schedule(max(1, after_seconds), NOTIFICATION_TITLE, body, NOTIFICATION_ID)
        except Exception as e:
            logger.warning(f"Could not schedule notification: {e}")

    def _cancel_notification(self) -> None:
        try:
            self.notifier.cancel(NOTIFICATION_ID)
        except Exception as e:
            logger.warning(f"Could not cancel notification: {e}")

    def _publish(self, snapshot: SessionState | None = None) -> None:
        snapshot = snapshot or self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Error in session listener: {e}")
