"""
Habit management: create, edit, soft delete, list.

Public API
----------
create_habit(store, user_id, name, description, color, frequency)  -> Habit
update_habit(store, habit_id, user_id, **changes)                  -> Habit
deactivate_habit(store, habit_id, user_id)                         -> Habit
list_habits(store, user_id, active_only)                           -> list[Habit]
get_habit(store, habit_id, user_id)                                -> Habit
normalize_frequency(raw)                                           -> dict

Deleting is a soft delete (is_active=False): logs and stats are kept.
Only `services.reset.reset_all` removes history.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from habit_tracker.core.config import settings
from habit_tracker.core.errors import HabitNotFoundError, ValidationError
from habit_tracker.models.habit import Habit
from habit_tracker.services.schedule import FrequencyType
from habit_tracker.services.stats_engine import EMPTY_STATS
from habit_tracker.services.store import HabitStore

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 120
_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")

_EDITABLE = ("name", "description", "color", "frequency", "is_active")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _clean_name(name: Optional[str]) -> str:
    stripped = name.strip() if isinstance(name, str) else ""
    if not stripped:
        raise ValidationError("Habit name must not be empty.", field="name")
    if len(stripped) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"Habit name must be at most {NAME_MAX_LENGTH} characters.", field="name"
        )
    return stripped


def _clean_color(color: Optional[str]) -> str:
    if color is None:
        return settings.DEFAULT_HABIT_COLOR
    if not _COLOR_RE.match(color):
        raise ValidationError("Color must be a hex value like #3B82F6.", field="color")
    return color.upper()


def _day_list(values: Any, low: int, high: int, field: str) -> list[int]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple, set)):
        raise ValidationError(f"{field} must be a list of integers.", field=field)
    days = set()
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int) or not low <= v <= high:
            raise ValidationError(
                f"{field} values must be integers between {low} and {high}.", field=field
            )
        days.add(v)
    return sorted(days)


def normalize_frequency(raw: Optional[dict[str, Any]]) -> dict[str, Any]:
    """
    Validate a frequency rule and return its canonical JSON form.
    None means daily. An empty weekly/monthly day set is kept (never due) with a warning.
    """
    if raw is None:
        return {"type": FrequencyType.DAILY}
    if not isinstance(raw, dict):
        raise ValidationError("Frequency must be an object.", field="frequency")

    ftype = raw.get("type", FrequencyType.DAILY)
    if ftype not in FrequencyType.ALL:
        raise ValidationError(
            f"Frequency type must be one of {', '.join(FrequencyType.ALL)}.",
            field="frequency.type",
        )

    if ftype == FrequencyType.WEEKLY:
        days = _day_list(raw.get("daysOfWeek"), 0, 6, "daysOfWeek")
        if not days:
            logger.warning("Weekly frequency with no daysOfWeek; habit will never be due")
        return {"type": ftype, "daysOfWeek": days}
    if ftype == FrequencyType.MONTHLY:
        days = _day_list(raw.get("daysOfMonth"), 1, 31, "daysOfMonth")
        if not days:
            logger.warning("Monthly frequency with no daysOfMonth; habit will never be due")
        return {"type": ftype, "daysOfMonth": days}
    return {"type": FrequencyType.DAILY}


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def create_habit(
    store: HabitStore,
    user_id: str,
    name: str,
    description: Optional[str] = None,
    color: Optional[str] = None,
    frequency: Optional[dict[str, Any]] = None,
) -> Habit:
    """Create a habit together with its zero-valued stats row (one commit)."""
    habit = Habit(
        user_id=user_id,
        name=_clean_name(name),
        description=description or None,
        color=_clean_color(color),
        frequency=normalize_frequency(frequency),
        is_active=True,
    )
    try:
        store.add_habit(habit)
        store.upsert_stats(habit.id, user_id, EMPTY_STATS)
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info("Created habit %s for user %s (%s)", habit.id, user_id, habit.frequency["type"])
    return habit


def get_habit(store: HabitStore, habit_id: int, user_id: str) -> Habit:
    habit = store.get_habit(habit_id, user_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    return habit


def list_habits(store: HabitStore, user_id: str, active_only: bool = True) -> list[Habit]:
    return store.get_habits(user_id, active_only=active_only)


def update_habit(
    store: HabitStore,
    habit_id: int,
    user_id: str,
    **changes: Any,
) -> Habit:
    """Apply a partial update. Unknown keys are rejected; omitted keys are left alone."""
    unknown = set(changes) - set(_EDITABLE)
    if unknown:
        raise ValidationError(
            f"Cannot update field(s): {', '.join(sorted(unknown))}.", field=sorted(unknown)[0]
        )

    habit = get_habit(store, habit_id, user_id)
    if "name" in changes:
        habit.name = _clean_name(changes["name"])
    if "description" in changes:
        habit.description = changes["description"] or None
    if "color" in changes:
        habit.color = _clean_color(changes["color"])
    if "frequency" in changes:
        habit.frequency = normalize_frequency(changes["frequency"])
    if "is_active" in changes and changes["is_active"] is not None:
        habit.is_active = bool(changes["is_active"])
    habit.updated_at = datetime.now(tz=timezone.utc)

    try:
        store.commit()
    except Exception:
        store.rollback()
        raise
    logger.info("Updated habit %s (%s)", habit_id, ", ".join(sorted(changes)) or "no fields")
    return habit


def deactivate_habit(store: HabitStore, habit_id: int, user_id: str) -> Habit:
    """Soft delete. History stays; the habit drops out of every daily view."""
    return update_habit(store, habit_id, user_id, is_active=False)
