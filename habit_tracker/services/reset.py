"""
Bulk reset — hard-delete every habit, log and stats row of one user.

Unlike the soft delete in `services.habits`, this is irreversible. All
three deletes run in a single transaction: the caller sees either the full
reset or a StorageError with nothing removed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from habit_tracker.services.store import HabitStore

logger = logging.getLogger(__name__)


@dataclass
class ResetResult:
    habits: int
    logs: int
    stats: int


def reset_all(store: HabitStore, user_id: str) -> ResetResult:
    try:
        counts = store.delete_all_for_user(user_id)
        store.commit()
    except Exception:
        store.rollback()
        raise

    result = ResetResult(
        habits=counts.get("habits", 0),
        logs=counts.get("logs", 0),
        stats=counts.get("stats", 0),
    )
    logger.info(
        "Reset user %s: %d habits, %d logs, %d stats deleted",
        user_id, result.habits, result.logs, result.stats,
    )
    return result
