"""
Tests for the bulk user reset.
"""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from habit_tracker.core.errors import StorageError
from habit_tracker.services.habit_logs import set_status
from habit_tracker.services.habits import create_habit
from habit_tracker.services.reset import reset_all
from habit_tracker.services.store import SqlAlchemyHabitStore

TODAY = date(2024, 3, 13)


def _seed(store, user_id):
    walk = create_habit(store, user_id=user_id, name="Walk")
    read = create_habit(store, user_id=user_id, name="Read")
    set_status(store, walk.id, user_id, "completed", day=date(2024, 3, 12), today=TODAY)
    set_status(store, walk.id, user_id, "missed", day=date(2024, 3, 13), today=TODAY)
    set_status(store, read.id, user_id, "completed", day=date(2024, 3, 13), today=TODAY)
    return walk, read


def test_reset_removes_everything_of_the_user(store, user_id):
    _seed(store, user_id)

    result = reset_all(store, user_id)

    assert (result.habits, result.logs, result.stats) == (2, 3, 2)
    assert store.get_habits(user_id, active_only=False) == []
    assert store.get_stats_for_user(user_id) == []
    assert store.get_logs_in_range(user_id, date(2024, 1, 1), date(2024, 12, 31)) == []


def test_reset_leaves_other_users_alone(db, store, user_id):
    other = f"{user_id}-other"
    _seed(store, user_id)
    kept_walk, _ = _seed(store, other)

    reset_all(store, user_id)

    assert len(store.get_habits(other, active_only=False)) == 2
    assert store.get_stats(kept_walk.id, other).total_completed == 1


def test_reset_of_empty_user(store, user_id):
    result = reset_all(store, user_id)
    assert (result.habits, result.logs, result.stats) == (0, 0, 0)


def test_failed_commit_deletes_nothing(db, user_id, monkeypatch):
    store = SqlAlchemyHabitStore(db)
    _seed(store, user_id)

    def boom():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", boom)
    with pytest.raises(StorageError):
        reset_all(store, user_id)
    monkeypatch.undo()

    assert len(store.get_habits(user_id, active_only=False)) == 2
    assert len(store.get_stats_for_user(user_id)) == 2
