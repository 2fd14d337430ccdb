"""Wall clock and periodic tick sources for the session timer."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Local wall-clock time."""

    def now(self) -> datetime:
        return datetime.now()


class TickSource(Protocol):
    """Something that calls back periodically until cancelled."""

    @property
    def active(self) -> bool: ...

    def start(self, callback: Callable[[], None], interval: float = 1.0) -> None: ...

    def cancel(self) -> None: ...


class AsyncioTickSource:
    """Calls `callback` every `interval` seconds on the running event loop.

    Starting again replaces the previous loop, so there is never more than
    one tick task alive.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._tick_loop(callback, interval))

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _tick_loop(self, callback: Callable[[], None], interval: float) -> None:
        """Main tick loop."""
        while True:
            await asyncio.sleep(interval)
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in tick callback: {e}")
