"""Local notification scheduling for session completion alerts."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class NotificationScheduler(Protocol):
    """Fire-and-forget local notifications."""

    def schedule(self, after_seconds: int, title: str, body: str, identifier: str) -> None: ...

    def cancel(self, identifier: str) -> None: ...


class NullNotificationScheduler:
    """Used when notifications are disabled."""

    def schedule(self, after_seconds: int, title: str, body: str, identifier: str) -> None:
        logger.debug(f"Notifications disabled, not scheduling {identifier}")

    def cancel(self, identifier: str) -> None:
        pass


class LoopNotificationScheduler:
    """Delivers notifications from the running asyncio event loop.

    Usage:
        scheduler = LoopNotificationScheduler(deliver=lambda t, b: print(t, b))
        scheduler.schedule(1500, "Session Complete", "Focus session finished.", "nudge.session.end")
        scheduler.cancel("nudge.session.end")

    A notification scheduled under an identifier that is already pending
    replaces the pending one. `schedule` raises RuntimeError when called
    outside a running event loop.
    """

    def __init__(self, deliver: Callable[[str, str], None]):
        self._deliver = deliver
        self._pending: dict[str, asyncio.TimerHandle] = {}

    def schedule(self, after_seconds: int, title: str, body: str, identifier: str) -> None:
        loop = asyncio.get_running_loop()
        self.cancel(identifier)
        self._pending[identifier] = loop.call_later(
            max(1, after_seconds), self._fire, identifier, title, body
        )
        logger.debug(f"Notification {identifier} scheduled in {after_seconds}s")

    def cancel(self, identifier: str) -> None:
        handle = self._pending.pop(identifier, None)
        if handle is not None:
            handle.cancel()

    @property
    def pending(self) -> list[str]:
        return sorted(self._pending)

    def _fire(self, identifier: str, title: str, body: str) -> None:
        self._pending.pop(identifier, None)
        try:
            self._deliver(title, body)
        except Exception as e:
            logger.error(f"Failed to deliver notification {identifier}: {e}")
