"""
Habit store — the persistence contract the services read and write through.

`HabitStore` is the protocol; `SqlAlchemyHabitStore` is the implementation
backed by a request-scoped SQLAlchemy Session.

Transactions
------------
Every write method only flushes. Services call `commit()` once per
operation, so a log write and its stats recompute land together or not at
all. Any SQLAlchemyError is rolled back and re-raised as StorageError.

Filtering (user, habit, date) is always pushed into the query; nothing
fetches a whole collection to filter it in Python.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, Optional, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from habit_tracker.core.errors import StorageError
from habit_tracker.models.habit import Habit
from habit_tracker.models.habit_log import HabitLog, LogStatus
from habit_tracker.models.habit_stats import HabitStats
from habit_tracker.services.log_feed import (
    LogCallback,
    LogFeed,
    LogRecord,
    Unsubscribe,
    get_log_feed,
    to_record,
)
from habit_tracker.services.stats_engine import StatsSnapshot, snapshot_of

logger = logging.getLogger(__name__)


@runtime_checkable
class HabitStore(Protocol):
    """Repository interface for habits, their logs and their stats."""

    # habits
    def get_habits(self, user_id: str, active_only: bool = True) -> list[Habit]: ...
    def get_habit(self, habit_id: int, user_id: str) -> Optional[Habit]: ...
    def add_habit(self, habit: Habit) -> Habit: ...

    # logs
    def get_logs_for_habit(self, habit_id: int, user_id: str) -> list[HabitLog]: ...
    def get_log(self, habit_id: int, user_id: str, day: date) -> Optional[HabitLog]: ...
    def get_logs_for_date(self, user_id: str, day: date) -> list[HabitLog]: ...
    def get_logs_in_range(
        self, user_id: str, start: date, end: date, habit_id: Optional[int] = None
    ) -> list[HabitLog]: ...
    def upsert_log(self, habit_id: int, user_id: str, day: date, status: LogStatus) -> HabitLog: ...
    def delete_log(self, habit_id: int, user_id: str, day: date) -> bool: ...

    # stats
    def get_stats(self, habit_id: int, user_id: str) -> Optional[HabitStats]: ...
    def upsert_stats(self, habit_id: int, user_id: str, snapshot: StatsSnapshot) -> HabitStats: ...
    def get_stats_for_user(self, user_id: str) -> list[HabitStats]: ...

    # live updates
    def subscribe_logs_for_date(self, user_id: str, day: date, callback: LogCallback) -> Unsubscribe: ...
    def publish_logs_for_date(self, user_id: str, day: date) -> int: ...

    # bulk
    def delete_all_for_user(self, user_id: str) -> dict[str, int]: ...

    # transaction
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class SqlAlchemyHabitStore:
    """Concrete HabitStore backed by a synchronous SQLAlchemy Session."""

    def __init__(self, session: Session, feed: Optional[LogFeed] = None) -> None:
        self._session = session
        self._feed = feed or get_log_feed()

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Store operation %s failed: %s", operation, exc)
            self._session.rollback()
            raise StorageError(operation) from exc

    # -- habits -------------------------------------------------------------

    def get_habits(self, user_id: str, active_only: bool = True) -> list[Habit]:
        """Habits of the user, newest first."""
        with self._guard("get_habits"):
            q = self._session.query(Habit).filter(Habit.user_id == user_id)
            if active_only:
                q = q.filter(Habit.is_active == True)  # noqa: E712
            return q.order_by(Habit.created_at.desc(), Habit.id.desc()).all()

    def get_habit(self, habit_id: int, user_id: str) -> Optional[Habit]:
        with self._guard("get_habit"):
            return (
                self._session.query(Habit)
                .filter(Habit.id == habit_id, Habit.user_id == user_id)
                .first()
            )

    def add_habit(self, habit: Habit) -> Habit:
        with self._guard("add_habit"):
            self._session.add(habit)
            self._session.flush()
            return habit

    # -- logs ---------------------------------------------------------------

    def get_logs_for_habit(self, habit_id: int, user_id: str) -> list[HabitLog]:
        """Every log of the habit, newest date first."""
        with self._guard("get_logs_for_habit"):
            return (
                self._session.query(HabitLog)
                .filter(HabitLog.habit_id == habit_id, HabitLog.user_id == user_id)
                .order_by(HabitLog.date.desc())
                .all()
            )

    def get_log(self, habit_id: int, user_id: str, day: date) -> Optional[HabitLog]:
        with self._guard("get_log"):
            return (
                self._session.query(HabitLog)
                .filter(
                    HabitLog.habit_id == habit_id,
                    HabitLog.user_id == user_id,
                    HabitLog.date == day,
                )
                .first()
            )

    def get_logs_for_date(self, user_id: str, day: date) -> list[HabitLog]:
        with self._guard("get_logs_for_date"):
            return (
                self._session.query(HabitLog)
                .filter(HabitLog.user_id == user_id, HabitLog.date == day)
                .order_by(HabitLog.habit_id)
                .all()
            )

    def get_logs_in_range(
        self,
        user_id: str,
        start: date,
        end: date,
        habit_id: Optional[int] = None,
    ) -> list[HabitLog]:
        """Logs with start <= date <= end, newest first."""
        with self._guard("get_logs_in_range"):
            q = self._session.query(HabitLog).filter(
                HabitLog.user_id == user_id,
                HabitLog.date >= start,
                HabitLog.date <= end,
            )
            if habit_id is not None:
                q = q.filter(HabitLog.habit_id == habit_id)
            return q.order_by(HabitLog.date.desc(), HabitLog.habit_id).all()

    def upsert_log(self, habit_id: int, user_id: str, day: date, status: LogStatus) -> HabitLog:
        """Overwrite the (habit, day) log's status, or create it. Flush only."""
        with self._guard("upsert_log"):
            log = (
                self._session.query(HabitLog)
                .filter(HabitLog.habit_id == habit_id, HabitLog.date == day)
                .first()
            )
            if log is None:
                log = HabitLog(habit_id=habit_id, user_id=user_id, date=day, status=status)
                self._session.add(log)
            else:
                log.status = status
                log.updated_at = _now()
            self._session.flush()
            return log

    def delete_log(self, habit_id: int, user_id: str, day: date) -> bool:
        """Remove the (habit, day) log. Returns False when there was none."""
        with self._guard("delete_log"):
            deleted = (
                self._session.query(HabitLog)
                .filter(
                    HabitLog.habit_id == habit_id,
                    HabitLog.user_id == user_id,
                    HabitLog.date == day,
                )
                .delete(synchronize_session="fetch")
            )
            self._session.flush()
            return deleted > 0

    # -- stats --------------------------------------------------------------

    def get_stats(self, habit_id: int, user_id: str) -> Optional[HabitStats]:
        with self._guard("get_stats"):
            return (
                self._session.query(HabitStats)
                .filter(HabitStats.habit_id == habit_id, HabitStats.user_id == user_id)
                .first()
            )

    def upsert_stats(self, habit_id: int, user_id: str, snapshot: StatsSnapshot) -> HabitStats:
        """
        One stats row per habit: create it, or overwrite it in place.
        `last_updated` only moves when a derived value actually changed.
        """
        with self._guard("upsert_stats"):
            stats = (
                self._session.query(HabitStats)
                .filter(HabitStats.habit_id == habit_id)
                .first()
            )
            if stats is None:
                stats = HabitStats(habit_id=habit_id, user_id=user_id, last_updated=_now())
                self._session.add(stats)
            elif snapshot_of(stats) == snapshot:
                return stats
            else:
                stats.last_updated = _now()

            stats.current_streak = snapshot.current_streak
            stats.longest_streak = snapshot.longest_streak
            stats.total_completed = snapshot.total_completed
            stats.total_missed = snapshot.total_missed
            stats.completion_rate = snapshot.completion_rate
            stats.last_completed_date = snapshot.last_completed_date
            self._session.flush()
            return stats

    def get_stats_for_user(self, user_id: str) -> list[HabitStats]:
        with self._guard("get_stats_for_user"):
            return self._session.query(HabitStats).filter(HabitStats.user_id == user_id).all()

    # -- live updates -------------------------------------------------------

    def _day_records(self, user_id: str, day: date) -> list[LogRecord]:
        return [to_record(log) for log in self.get_logs_for_date(user_id, day)]

    def subscribe_logs_for_date(self, user_id: str, day: date, callback: LogCallback) -> Unsubscribe:
        """
        Deliver the current logs right away, then every committed change.
        The callback is registered before the current logs are read.
        """
        return self._feed.subscribe(
            user_id, day, callback, load=lambda: self._day_records(user_id, day)
        )

    def publish_logs_for_date(self, user_id: str, day: date) -> int:
        """Read the day's logs (only if anyone listens) and push them to subscribers."""
        return self._feed.publish(user_id, day, lambda: self._day_records(user_id, day))

    # -- bulk ---------------------------------------------------------------

    def delete_all_for_user(self, user_id: str) -> dict[str, int]:
        """Delete stats, logs and habits of the user. Flush only; caller commits."""
        with self._guard("delete_all_for_user"):
            counts = {}
            for key, model in (
                ("stats", HabitStats),
                ("logs", HabitLog),
                ("habits", Habit),
            ):
                counts[key] = (
                    self._session.query(model)
                    .filter(model.user_id == user_id)
                    .delete(synchronize_session="fetch")
                )
            self._session.flush()
            return counts

    # -- transaction --------------------------------------------------------

    def commit(self) -> None:
        with self._guard("commit"):
            self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()
