"""Focus session timer, persistence and statistics."""

from nudge.focus.clock import AsyncioTickSource, Clock, SystemClock, TickSource
from nudge.focus.controller import FocusController
from nudge.focus.persistence import PersistedSession, SessionPersistence
from nudge.focus.session_timer import SessionTimer
from nudge.focus.state import FocusMode, SessionState
from nudge.focus.stats import FocusCompletion, FocusStats, StatsRecorder

__all__ = [
    "AsyncioTickSource",
    "Clock",
    "SystemClock",
    "TickSource",
    "FocusController",
    "PersistedSession",
    "SessionPersistence",
    "SessionTimer",
    "FocusMode",
    "SessionState",
    "FocusCompletion",
    "FocusStats",
    "StatsRecorder",
]
