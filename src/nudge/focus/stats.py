"""Statistics for focus sessions that ran to completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from nudge.storage.database import Database

logger = logging.getLogger(__name__)


@dataclass
class FocusCompletion:
    """One finished focus interval."""
    minutes: int
    completed_at: datetime = field(default_factory=datetime.now)
    id: int | None = None

    @property
    def date(self) -> date:
        return self.completed_at.date()

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> FocusCompletion:
        return cls(
            id=row.get("id"),
            minutes=row.get("minutes", 0),
            completed_at=datetime.fromisoformat(row["completed_at"]),
        )

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "completed_at": self.completed_at.isoformat(),
            "date": self.date.isoformat(),
            "minutes": self.minutes,
        }


@dataclass
class FocusStats:
    """Aggregate focus statistics."""
    sessions_completed: int = 0
    total_focus_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_session_date: date | None = None

    def format_total(self) -> str:
        hours, mins = divmod(self.total_focus_minutes, 60)
        if hours > 0:
            return f"{hours}h {mins}m"
        return f"{mins}m"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions_completed": self.sessions_completed,
            "total_focus_minutes": self.total_focus_minutes,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_session_date": self.last_session_date.isoformat() if self.last_session_date else None,
        }


def compute_streaks(days: list[date], today: date) -> tuple[int, int]:
    """Return (current, longest) runs of consecutive days.

    The current streak counts back from today, or from yesterday when
    nothing has been completed yet today.
    """
    unique = sorted(set(days), reverse=True)
    if not unique:
        return 0, 0

    current = 0
    if unique[0] >= today - timedelta(days=1):
        expected = unique[0]
        for d in unique:
            if d != expected:
                break
            current += 1
            expected = d - timedelta(days=1)

    longest = 1
    run = 1
    for i in range(1, len(unique)):
        if unique[i] == unique[i - 1] - timedelta(days=1):
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return current, longest


class StatsRecorder:
    """Records completed focus sessions and derives stats from them.

    Usage:
        recorder = StatsRecorder(db)
        await recorder.record_focus(25)
        stats = await recorder.get_stats()
        print(stats.current_streak)
    """

    def __init__(self, db: Database):
        self.db = db

    async def record_focus(self, minutes: int, completed_at: datetime | None = None) -> FocusCompletion:
        """Store one completed focus session."""
        completion = FocusCompletion(minutes=max(1, minutes), completed_at=completed_at or datetime.now())
        completion.id = await self.db.insert("focus_completions", completion.to_db_dict())
        logger.info(f"Recorded {completion.minutes} min focus session")
        return completion

    async def get_stats(self, today: date | None = None) -> FocusStats:
        today = today or date.today()

        totals = await self.db.fetch_one(
            "SELECT COUNT(*) AS sessions, COALESCE(SUM(minutes), 0) AS minutes FROM focus_completions"
        )
        rows = await self.db.fetch_all(
            "SELECT DISTINCT date FROM focus_completions ORDER BY date DESC"
        )
        days = [date.fromisoformat(row["date"]) for row in rows]
        current, longest = compute_streaks(days, today)

        return FocusStats(
            sessions_completed=totals["sessions"] if totals else 0,
            total_focus_minutes=totals["minutes"] if totals else 0,
            current_streak=current,
            longest_streak=longest,
            last_session_date=days[0] if days else None,
        )

    async def history(self, days: int = 7, today: date | None = None) -> list[dict[str, Any]]:
        """Per-day minutes and session counts, oldest first, including empty days."""
        today = today or date.today()
        start = today - timedelta(days=days - 1)

        rows = await self.db.fetch_all(
            """SELECT date, COUNT(*) AS sessions, SUM(minutes) AS minutes
               FROM focus_completions
               WHERE date >= ? AND date <= ?
               GROUP BY date""",
            (start.isoformat(), today.isoformat()),
        )
        by_date = {row["date"]: row for row in rows}

        result = []
        for offset in range(days):
            day = (start + timedelta(days=offset)).isoformat()
            row = by_date.get(day)
            result.append({
                "date": day,
                "sessions": row["sessions"] if row else 0,
                "minutes": row["minutes"] if row else 0,
            })
        return result

    async def recent(self, limit: int = 10) -> list[FocusCompletion]:
        rows = await self.db.fetch_all(
            "SELECT * FROM focus_completions ORDER BY completed_at DESC LIMIT ?",
            (limit,),
        )
        return [FocusCompletion.from_db_row(row) for row in rows]
