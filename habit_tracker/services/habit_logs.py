"""
Logging service: record or undo a habit's outcome for one calendar day.

Public API
----------
set_status(store, habit_id, user_id, status, day)  -> LogResult
undo(store, habit_id, user_id, day)                -> UndoResult

Guarantees
----------
- At most one log per (habit, day): re-logging overwrites the status.
- The stats recompute runs in the same transaction as the log write and
  reads the flushed log (read-your-write). One commit covers both.
- If either step fails the transaction is rolled back and StorageError
  propagates; a write is never reported without its recompute.
- Subscribers of the day's logs are notified only after the commit.

`today` anchors the current-streak walk of the recompute; it defaults to the
real calendar date and only differs from it in backfills and tests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from habit_tracker.core.errors import HabitNotFoundError, StorageError, ValidationError
from habit_tracker.models.habit import Habit
from habit_tracker.models.habit_log import HabitLog, LogStatus
from habit_tracker.models.habit_stats import HabitStats
from habit_tracker.services.stats_engine import recompute
from habit_tracker.services.store import HabitStore

logger = logging.getLogger(__name__)


@dataclass
class LogResult:
    log: HabitLog
    stats: HabitStats
    created: bool   # False when an existing log was overwritten


@dataclass
class UndoResult:
    deleted: bool   # False when there was nothing to undo
    stats: HabitStats


def _today() -> date:
    return date.today()


def _require_habit(store: HabitStore, habit_id: int, user_id: str) -> Habit:
    habit = store.get_habit(habit_id, user_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def publish_day(store: HabitStore, user_id: str, day: date) -> None:
    # The write is already committed; a failed push only leaves subscribers stale.
    try:
        store.publish_logs_for_date(user_id, day)
    except StorageError:
        logger.warning("Could not publish logs for user=%s day=%s", user_id, day)


def set_status(
    store: HabitStore,
    habit_id: int,
    user_id: str,
    status: LogStatus | str,
    day: Optional[date] = None,
    today: Optional[date] = None,
) -> LogResult:
    """Create or overwrite the (habit, day) log, recompute stats, commit."""
    target = day or _today()
    try:
        status = LogStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown log status: {status!r}", field="status") from None
    _require_habit(store, habit_id, user_id)

    try:
        created = store.get_log(habit_id, user_id, target) is None
        log = store.upsert_log(habit_id, user_id, target, status)
        stats = recompute(store, habit_id, user_id, today=today)
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info(
        "Habit %s %s on %s (%s)",
        habit_id, status.value, target, "created" if created else "overwritten",
    )
    publish_day(store, user_id, target)
    return LogResult(log=log, stats=stats, created=created)


def undo(
    store: HabitStore,
    habit_id: int,
    user_id: str,
    day: Optional[date] = None,
    today: Optional[date] = None,
) -> UndoResult:
    """Delete the (habit, day) log if any, reverting the day to pending. Absent log is a no-op."""
    target = day or _today()
    _require_habit(store, habit_id, user_id)

    try:
        deleted = store.delete_log(habit_id, user_id, target)
        stats = recompute(store, habit_id, user_id, today=today)
        store.commit()
    except Exception:
        store.rollback()
        raise

    if deleted:
        logger.info("Habit %s log on %s undone", habit_id, target)
        publish_day(store, user_id, target)
    return UndoResult(deleted=deleted, stats=stats)
