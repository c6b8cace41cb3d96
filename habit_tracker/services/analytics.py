"""
Analytics service — aggregates over a user's logs, plus missed-day detection.

Public API
----------
habit_history(store, habit_id, user_id, start, end)    -> list[HabitLog]
weekly_summary(store, user_id, weeks_back, today)      -> list[WeekSummary]
monthly_summary(store, user_id, months_back, today)    -> list[MonthSummary]
weekday_summary(store, user_id, days_back, today)      -> WeekdayBreakdown
mark_missed_days(store, user_id, today)                -> MissedDaysResult

Weeks start on Sunday. Every week / month in the window is returned, in
chronological order, including those with no logs (all zeros).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from habit_tracker.core.errors import HabitNotFoundError, ValidationError
from habit_tracker.models.habit_log import HabitLog, LogStatus
from habit_tracker.services.habit_logs import publish_day
from habit_tracker.services.schedule import day_of_week, is_due
from habit_tracker.services.stats_engine import completion_rate, recompute
from habit_tracker.services.store import HabitStore

logger = logging.getLogger(__name__)

MAX_WEEKS_BACK = 52
MAX_MONTHS_BACK = 24
MAX_DAYS_BACK = 366

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class WeekSummary:
    week_start: date
    completed: int = 0
    missed: int = 0

    @property
    def total(self) -> int:
        return self.completed + self.missed


@dataclass
class MonthSummary:
    month: str          # YYYY-MM
    completed: int = 0
    missed: int = 0

    @property
    def total(self) -> int:
        return self.completed + self.missed

    @property
    def completion_rate(self) -> int:
        return completion_rate(self.completed, self.missed)


@dataclass
class WeekdaySummary:
    day_of_week: int    # 0 = Sunday
    completed: int = 0
    missed: int = 0

    @property
    def name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    @property
    def completion_rate(self) -> int:
        return completion_rate(self.completed, self.missed)


@dataclass
class WeekdayBreakdown:
    start: date
    end: date
    days: list[WeekdaySummary]

    @property
    def best_day(self) -> Optional[WeekdaySummary]:
        """Weekday with the most completions; the earliest one wins a tie. None if nothing was completed."""
        best = None
        for summary in self.days:
            if summary.completed and (best is None or summary.completed > best.completed):
                best = summary
        return best


@dataclass
class MissedDaysResult:
    day: date
    marked_habit_ids: list[int] = field(default_factory=list)
    recomputed: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return date.today()


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def start_of_week(day: date) -> date:
    """Sunday on or before `day`."""
    return day - timedelta(days=day_of_week(day))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def _month_end(year: int, month: int) -> date:
    ny, nm = _shift_month(year, month, 1)
    return date(ny, nm, 1) - timedelta(days=1)


def _count(bucket, log: HabitLog) -> None:
    status = _ev(log.status)
    if status == LogStatus.completed.value:
        bucket.completed += 1
    elif status == LogStatus.missed.value:
        bucket.missed += 1


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def habit_history(
    store: HabitStore,
    habit_id: int,
    user_id: str,
    start: date,
    end: date,
) -> list[HabitLog]:
    """Logs of one habit with start <= date <= end, newest first."""
    if start > end:
        raise ValidationError("start must be on or before end.", field="start")
    if store.get_habit(habit_id, user_id) is None:
        raise HabitNotFoundError(habit_id)
    return store.get_logs_in_range(user_id, start, end, habit_id=habit_id)


def weekly_summary(
    store: HabitStore,
    user_id: str,
    weeks_back: int = 4,
    today: Optional[date] = None,
) -> list[WeekSummary]:
    """Completed / missed counts per week, from `weeks_back` weeks ago through the current week."""
    if not 0 <= weeks_back <= MAX_WEEKS_BACK:
        raise ValidationError(f"weeks_back must be between 0 and {MAX_WEEKS_BACK}.", field="weeks_back")
    ref = today or _today()
    current = start_of_week(ref)
    first = current - timedelta(weeks=weeks_back)
    end = current + timedelta(days=6)

    buckets = {}
    for i in range(weeks_back + 1):
        ws = first + timedelta(weeks=i)
        buckets[ws] = WeekSummary(week_start=ws)
    for log in store.get_logs_in_range(user_id, first, end):
        _count(buckets[start_of_week(log.date)], log)
    return [buckets[ws] for ws in sorted(buckets)]


def monthly_summary(
    store: HabitStore,
    user_id: str,
    months_back: int = 6,
    today: Optional[date] = None,
) -> list[MonthSummary]:
    """Completed / missed / rate per calendar month, from `months_back` months ago through this month."""
    if not 0 <= months_back <= MAX_MONTHS_BACK:
        raise ValidationError(
            f"months_back must be between 0 and {MAX_MONTHS_BACK}.", field="months_back"
        )
    ref = today or _today()
    fy, fm = _shift_month(ref.year, ref.month, -months_back)
    first = date(fy, fm, 1)
    end = _month_end(ref.year, ref.month)

    buckets: dict[str, MonthSummary] = {}
    for i in range(months_back + 1):
        y, m = _shift_month(fy, fm, i)
        key = f"{y:04d}-{m:02d}"
        buckets[key] = MonthSummary(month=key)
    for log in store.get_logs_in_range(user_id, first, end):
        _count(buckets[log.date.strftime("%Y-%m")], log)
    return [buckets[k] for k in sorted(buckets)]


def weekday_summary(
    store: HabitStore,
    user_id: str,
    days_back: int = 90,
    today: Optional[date] = None,
) -> WeekdayBreakdown:
    """Completed / missed counts per day of week over the last `days_back` days, today included."""
    if not 1 <= days_back <= MAX_DAYS_BACK:
        raise ValidationError(f"days_back must be between 1 and {MAX_DAYS_BACK}.", field="days_back")
    end = today or _today()
    start = end - timedelta(days=days_back - 1)

    days = [WeekdaySummary(day_of_week=i) for i in range(7)]
    for log in store.get_logs_in_range(user_id, start, end):
        _count(days[day_of_week(log.date)], log)
    return WeekdayBreakdown(start=start, end=end, days=days)


def mark_missed_days(
    store: HabitStore,
    user_id: str,
    today: Optional[date] = None,
) -> MissedDaysResult:
    """
    Mark yesterday as missed for every active habit that was due and left pending,
    then recompute stats of all active habits. One commit for the whole run.
    """
    ref = today or _today()
    yesterday = ref - timedelta(days=1)
    result = MissedDaysResult(day=yesterday)

    habits = store.get_habits(user_id, active_only=True)
    logged = {log.habit_id for log in store.get_logs_for_date(user_id, yesterday)}
    try:
        for habit in habits:
            if habit.id in logged or not is_due(habit, yesterday):
                continue
            store.upsert_log(habit.id, user_id, yesterday, LogStatus.missed)
            result.marked_habit_ids.append(habit.id)
        for habit in habits:
            recompute(store, habit.id, user_id, today=ref)
            result.recomputed += 1
        store.commit()
    except Exception:
        store.rollback()
        raise

    if result.marked_habit_ids:
        logger.info(
            "Marked %d habit(s) missed on %s for user %s",
            len(result.marked_habit_ids), yesterday, user_id,
        )
        publish_day(store, user_id, yesterday)
    return result
