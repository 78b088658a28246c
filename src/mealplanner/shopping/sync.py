"""Tracks whether a week's shopping list is behind its meal plan."""

import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone


@dataclass
class SyncStatus:
    """Meal-plan changes recorded since a week's list was last generated."""

    week_start: date
    pending_changes: int
    last_change_at: datetime | None
    last_synced_at: datetime | None

    @property
    def has_pending_changes(self) -> bool:
        return self.pending_changes > 0


@dataclass
class _WeekSync:
    pending_changes: int = 0
    last_change_at: datetime | None = None
    last_synced_at: datetime | None = None


class SyncTracker:
    """
    In-memory, thread-safe record of meal-plan changes per week.

    Dates are bucketed to the most recent `week_start_day` (0 = Monday) on
    or before them, so any day of a week maps to the same entry.
    """

    def __init__(self, week_start_day: int = 0):
        if not 0 <= week_start_day <= 6:
            raise ValueError(f"week_start_day must be 0-6, got {week_start_day}")
        self.week_start_day = week_start_day
        self._weeks: dict[date, _WeekSync] = {}
        self._lock = threading.Lock()

    def week_start(self, day: date) -> date:
        offset = (day.weekday() - self.week_start_day) % 7
        return day - timedelta(days=offset)

    def mark_pending(self, affected_date: date) -> None:
        """Record that a meal on affected_date was added, changed or swapped."""
        with self._lock:
            week = self._weeks.setdefault(self.week_start(affected_date), _WeekSync())
            week.pending_changes += 1
            week.last_change_at = datetime.now(timezone.utc)

    def mark_synced(self, start_date: date) -> None:
        """Record that the list for the week containing start_date was regenerated."""
        with self._lock:
            week = self._weeks.setdefault(self.week_start(start_date), _WeekSync())
            week.pending_changes = 0
            week.last_synced_at = datetime.now(timezone.utc)

    def has_pending_changes(self, start_date: date) -> bool:
        return self.pending_change_count(start_date) > 0

    def pending_change_count(self, start_date: date) -> int:
        with self._lock:
            week = self._weeks.get(self.week_start(start_date))
            return week.pending_changes if week else 0

    def last_synced_at(self, start_date: date) -> datetime | None:
        with self._lock:
            week = self._weeks.get(self.week_start(start_date))
            return week.last_synced_at if week else None

    def status(self, start_date: date) -> SyncStatus:
        week_start = self.week_start(start_date)
        with self._lock:
            week = self._weeks.get(week_start) or _WeekSync()
            return SyncStatus(
                week_start=week_start,
                pending_changes=week.pending_changes,
                last_change_at=week.last_change_at,
                last_synced_at=week.last_synced_at,
            )
