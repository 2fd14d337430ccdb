"""Session state shared by the timer and its persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class FocusMode(Enum):
    """Current phase of the session state machine."""
    IDLE = "idle"
    FOCUS = "focus"
    PAUSED = "paused"
    BREAK_TIME = "break"


COUNTING_MODES = (FocusMode.FOCUS, FocusMode.BREAK_TIME)


@dataclass
class SessionState:
    """Current state of the session timer."""
    mode: FocusMode = FocusMode.IDLE
    remaining_ms: int = 0
    total_ms: int = 0
    expected_end: datetime | None = None

    @property
    def is_counting_down(self) -> bool:
        return self.mode in COUNTING_MODES

    @property
    def remaining_display(self) -> str:
        """Format time remaining as MM:SS, rounding partial seconds up."""
        seconds = -(-self.remaining_ms // 1000)
        minutes, seconds = divmod(seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def progress_percent(self) -> float:
        """Progress through the current interval (0-100)."""
        if self.total_ms <= 0 or self.mode == FocusMode.IDLE:
            return 0.0
        elapsed = self.total_ms - self.remaining_ms
        return min(100.0, max(0.0, (elapsed / self.total_ms) * 100))

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "remaining_ms": self.remaining_ms,
            "total_ms": self.total_ms,
            "remaining": self.remaining_display,
            "progress_percent": round(self.progress_percent, 1),
            "expected_end": self.expected_end.isoformat() if self.expected_end else None,
        }
