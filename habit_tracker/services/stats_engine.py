"""
Statistics engine — streaks and completion rate derived from a habit's logs.

Definitions
-----------
  total_completed / total_missed
      Counts across the whole history.

  completion_rate
      round_half_up(100 * completed / (completed + missed)), 0 with no logs.

  current_streak
      Walk backwards one calendar day at a time starting at `today`:
        completed → +1, keep walking
        missed    → stop
        no log    → keep walking, no increment
      A day without a record never breaks the walk, so an unlogged "today"
      does not zero yesterday's streak. The walk inspects at most
      STREAK_WALK_LIMIT_DAYS days and ends early once it passes the oldest log.

  longest_streak
      Chronological scan: completed → +1, missed → reset to 0. Calendar gaps
      do not reset. Maximum value seen.

Public API
----------
compute_stats(logs, today)                    -> StatsSnapshot   (pure)
recompute(store, habit_id, user_id, today)    -> HabitStats      (flush only, no commit)

Recompute is idempotent: unchanged logs + unchanged `today` give the same row,
including `last_updated` (only touched when a derived value changes).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Iterable, Optional

from habit_tracker.core.config import settings
from habit_tracker.models.habit_log import HabitLog, LogStatus
from habit_tracker.models.habit_stats import HabitStats

if TYPE_CHECKING:
    from habit_tracker.services.store import HabitStore

logger = logging.getLogger(__name__)


def _today() -> date:
    return date.today()


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StatsSnapshot:
    current_streak: int = 0
    longest_streak: int = 0
    total_completed: int = 0
    total_missed: int = 0
    completion_rate: int = 0
    last_completed_date: Optional[date] = None


EMPTY_STATS = StatsSnapshot()


# ---------------------------------------------------------------------------
# Pure computation
# ---------------------------------------------------------------------------

def _status(log: HabitLog) -> str:
    s = log.status
    return s.value if hasattr(s, "value") else str(s)


def completion_rate(completed: int, missed: int) -> int:
    total = completed + missed
    if total == 0:
        return 0
    pct = Decimal(100 * completed) / Decimal(total)
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _current_streak(by_date: dict[date, str], today: date, oldest: date, limit: int) -> int:
    streak = 0
    check = today
    for _ in range(limit):
        if check < oldest:
            break
        status = by_date.get(check)
        if status == LogStatus.completed.value:
            streak += 1
        elif status == LogStatus.missed.value:
            break
        check -= timedelta(days=1)
    return streak


def _longest_streak(chronological: list[tuple[date, str]]) -> int:
    longest = running = 0
    for _, status in chronological:
        if status == LogStatus.completed.value:
            running += 1
            longest = max(longest, running)
        elif status == LogStatus.missed.value:
            running = 0
    return longest


def compute_stats(
    logs: Iterable[HabitLog],
    today: date,
    walk_limit: Optional[int] = None,
) -> StatsSnapshot:
    """Derive a StatsSnapshot from a habit's full log history. Never raises on empty input."""
    limit = walk_limit if walk_limit is not None else settings.STREAK_WALK_LIMIT_DAYS

    # newest first; one entry per date is guaranteed by the store
    entries = sorted(((log.date, _status(log)) for log in logs), key=lambda e: e[0], reverse=True)
    if not entries:
        return EMPTY_STATS

    completed = sum(1 for _, s in entries if s == LogStatus.completed.value)
    missed = sum(1 for _, s in entries if s == LogStatus.missed.value)
    last_completed = next(
        (d for d, s in entries if s == LogStatus.completed.value), None
    )

    by_date = dict(entries)
    current = _current_streak(by_date, today, oldest=entries[-1][0], limit=limit)
    longest = _longest_streak(list(reversed(entries)))

    return StatsSnapshot(
        current_streak=current,
        longest_streak=longest,
        total_completed=completed,
        total_missed=missed,
        completion_rate=completion_rate(completed, missed),
        last_completed_date=last_completed,
    )


def snapshot_of(stats: Optional[HabitStats]) -> StatsSnapshot:
    """StatsSnapshot view of a stored row (zero default when there is none yet)."""
    if stats is None:
        return EMPTY_STATS
    return StatsSnapshot(
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        total_completed=stats.total_completed,
        total_missed=stats.total_missed,
        completion_rate=stats.completion_rate,
        last_completed_date=stats.last_completed_date,
    )


# ---------------------------------------------------------------------------
# Persisting recompute
# ---------------------------------------------------------------------------

def recompute(
    store: "HabitStore",
    habit_id: int,
    user_id: str,
    today: Optional[date] = None,
) -> HabitStats:
    """
    Reload every log of the habit, recompute and upsert its stats row.

    Flushes but does NOT commit; the caller owns the transaction so the log
    write and this recompute land together.
    """
    logs = store.get_logs_for_habit(habit_id, user_id)
    snapshot = compute_stats(logs, today or _today())
    stats = store.upsert_stats(habit_id, user_id, snapshot)
    logger.debug(
        "Recomputed stats habit=%s current=%s longest=%s rate=%s",
        habit_id, snapshot.current_streak, snapshot.longest_streak, snapshot.completion_rate,
    )
    return stats
