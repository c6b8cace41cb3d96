"""
Daily view composer — which habits to show on a day, with their log and stats.

build_daily_view(habits, logs_for_date, stats_by_habit, day, stats_updated)  -> list[DailyHabitView]  (pure)
get_daily_view(store, user_id, day)                                         -> list[DailyHabitView]

Only active habits that are due on `day` are kept. Output follows the input
habit order, so a fixed input always gives the same list.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

from habit_tracker.models.habit import Habit
from habit_tracker.models.habit_log import HabitLog
from habit_tracker.services.schedule import is_due
from habit_tracker.services.stats_engine import StatsSnapshot, snapshot_of
from habit_tracker.services.store import HabitStore


@dataclass
class DailyHabitView:
    habit: Habit
    day: date
    log: Optional[HabitLog]     # None → pending
    stats: StatsSnapshot
    stats_updated: Optional[datetime] = None   # None when no stats row exists

    @property
    def status(self) -> str:
        if self.log is None:
            return "pending"
        s = self.log.status
        return s.value if hasattr(s, "value") else str(s)


def _today() -> date:
    return date.today()


def build_daily_view(
    habits: Iterable[Habit],
    logs_for_date: Iterable[HabitLog],
    stats_by_habit: Mapping[int, StatsSnapshot],
    day: date,
    stats_updated: Optional[Mapping[int, datetime]] = None,
) -> list[DailyHabitView]:
    updated = stats_updated or {}
    logs = {log.habit_id: log for log in logs_for_date if log.date == day}
    views = []
    seen = set()
    for habit in habits:
        if not habit.is_active or habit.id in seen:
            continue
        if not is_due(habit, day):
            continue
        seen.add(habit.id)
        views.append(DailyHabitView(
            habit=habit,
            day=day,
            log=logs.get(habit.id),
            stats=stats_by_habit.get(habit.id) or StatsSnapshot(),
            stats_updated=updated.get(habit.id),
        ))
    return views


def get_daily_view(
    store: HabitStore,
    user_id: str,
    day: Optional[date] = None,
) -> list[DailyHabitView]:
    target = day or _today()
    habits = store.get_habits(user_id, active_only=True)
    logs = store.get_logs_for_date(user_id, target)
    rows = store.get_stats_for_user(user_id)
    stats = {s.habit_id: snapshot_of(s) for s in rows}
    updated = {s.habit_id: s.last_updated for s in rows}
    return build_daily_view(habits, logs, stats, target, stats_updated=updated)
