"""
Habits router.

POST   /habits                          — create
GET    /habits                          — list (newest first)
GET    /habits/{habit_id}               — get one
PATCH  /habits/{habit_id}               — partial update
DELETE /habits/{habit_id}               — soft delete
PUT    /habits/{habit_id}/logs/{day}    — mark completed / missed
DELETE /habits/{habit_id}/logs/{day}    — undo (back to pending)
GET    /habits/{habit_id}/logs          — history in a date range
GET    /habits/{habit_id}/stats         — stored stats
POST   /habits/{habit_id}/stats/recompute
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from habit_tracker.models.habit import Habit
from habit_tracker.models.habit_log import HabitLog
from habit_tracker.models.habit_stats import HabitStats
from habit_tracker.routers.deps import get_store, get_user_id
from habit_tracker.schemas.habit import (
    HabitCreateRequest,
    HabitListResponse,
    HabitResponse,
    HabitUpdateRequest,
)
from habit_tracker.schemas.log import (
    HabitLogListResponse,
    HabitLogResponse,
    SetStatusRequest,
    SetStatusResponse,
)
from habit_tracker.schemas.stats import HabitStatsResponse
from habit_tracker.services import habits as habit_service
from habit_tracker.services.analytics import habit_history
from habit_tracker.services.habit_logs import set_status, undo
from habit_tracker.services.stats_engine import StatsSnapshot, recompute, snapshot_of
from habit_tracker.services.store import SqlAlchemyHabitStore

router = APIRouter(prefix="/habits", tags=["habits"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _ev(v) -> str:
    """Extract bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


def _iso(v) -> Optional[str]:
    return v.isoformat() if v else None


def habit_to_response(h: Habit) -> HabitResponse:
    return HabitResponse(
        id=h.id,
        user_id=h.user_id,
        name=h.name,
        description=h.description,
        color=h.color,
        frequency=h.frequency or {"type": "daily"},
        is_active=h.is_active,
        created_at=_iso(h.created_at),
        updated_at=_iso(h.updated_at),
    )


def log_to_response(log: HabitLog) -> HabitLogResponse:
    return HabitLogResponse(
        id=log.id,
        habit_id=log.habit_id,
        date=str(log.date),
        status=_ev(log.status),
        created_at=_iso(log.created_at),
        updated_at=_iso(log.updated_at),
    )


def stats_to_response(
    habit_id: int,
    snapshot: StatsSnapshot,
    last_updated=None,
) -> HabitStatsResponse:
    return HabitStatsResponse(
        habit_id=habit_id,
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        total_completed=snapshot.total_completed,
        total_missed=snapshot.total_missed,
        completion_rate=snapshot.completion_rate,
        last_completed_date=str(snapshot.last_completed_date) if snapshot.last_completed_date else None,
        last_updated=_iso(last_updated),
    )


def _stored_stats_response(habit_id: int, stats: Optional[HabitStats]) -> HabitStatsResponse:
    return stats_to_response(
        habit_id, snapshot_of(stats), stats.last_updated if stats else None
    )


# ---------------------------------------------------------------------------
# Habit CRUD
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=HabitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
    responses={422: {"description": "Empty name, bad color or malformed frequency."}},
)
def create_habit(
    payload: HabitCreateRequest,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """
    Create a habit and its zero-valued stats record.

    Frequency defaults to **daily**. A weekly/monthly rule with an empty day
    list is accepted but the habit will never be due.
    """
    habit = habit_service.create_habit(
        store,
        user_id=user_id,
        name=payload.name,
        description=payload.description,
        color=payload.color,
        frequency=payload.frequency.to_rule() if payload.frequency else None,
    )
    return habit_to_response(habit)


@router.get("", response_model=HabitListResponse, summary="List habits (newest first)")
def list_habits(
    include_inactive: bool = Query(default=False, description="Include soft-deleted habits."),
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    items = habit_service.list_habits(store, user_id, active_only=not include_inactive)
    return HabitListResponse(total=len(items), items=[habit_to_response(h) for h in items])


@router.get(
    "/{habit_id}",
    response_model=HabitResponse,
    summary="Get a habit",
    responses={404: {"description": "Habit not found."}},
)
def get_habit(
    habit_id: int,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    return habit_to_response(habit_service.get_habit(store, habit_id, user_id))


@router.patch(
    "/{habit_id}",
    response_model=HabitResponse,
    summary="Edit a habit",
    responses={404: {"description": "Habit not found."}},
)
def update_habit(
    habit_id: int,
    payload: HabitUpdateRequest,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """Only the fields present in the request body are changed."""
    changes = payload.model_dump(exclude_unset=True)
    if "frequency" in changes:
        changes["frequency"] = payload.frequency.to_rule() if payload.frequency else None
    habit = habit_service.update_habit(store, habit_id, user_id, **changes)
    return habit_to_response(habit)


@router.delete(
    "/{habit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Soft-delete a habit",
    responses={404: {"description": "Habit not found."}},
)
def delete_habit(
    habit_id: int,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """Marks the habit inactive. Logs and stats are kept; use `DELETE /users/me/data` to purge."""
    habit_service.deactivate_habit(store, habit_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------

@router.put(
    "/{habit_id}/logs/{day}",
    response_model=SetStatusResponse,
    summary="Mark a day completed or missed",
    responses={
        404: {"description": "Habit not found."},
        503: {"description": "Store unavailable; nothing was written."},
    },
)
def put_log(
    habit_id: int,
    day: date,
    payload: SetStatusRequest,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """
    Record the outcome of `day` for the habit. Re-logging the same day
    overwrites the previous status; there is never more than one log per day.

    The response carries the stats recomputed in the same transaction.
    """
    result = set_status(store, habit_id, user_id, payload.status, day=day)
    return SetStatusResponse(
        created=result.created,
        log=log_to_response(result.log),
        stats=_stored_stats_response(habit_id, result.stats),
    )


@router.delete(
    "/{habit_id}/logs/{day}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Undo a day's log (back to pending)",
    responses={404: {"description": "Habit not found."}},
)
def delete_log(
    habit_id: int,
    day: date,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """Idempotent: undoing a day that has no log is a no-op."""
    undo(store, habit_id, user_id, day=day)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{habit_id}/logs",
    response_model=HabitLogListResponse,
    summary="Log history in a date range (newest first)",
    responses={404: {"description": "Habit not found."}},
)
def list_logs(
    habit_id: int,
    start: Optional[date] = Query(default=None, description="Defaults to 30 days before `end`."),
    end: Optional[date] = Query(default=None, description="Defaults to today."),
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    end = end or date.today()
    start = start or end - timedelta(days=30)
    logs = habit_history(store, habit_id, user_id, start, end)
    return HabitLogListResponse(
        habit_id=habit_id,
        start=str(start),
        end=str(end),
        total=len(logs),
        items=[log_to_response(log) for log in logs],
    )


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

@router.get(
    "/{habit_id}/stats",
    response_model=HabitStatsResponse,
    summary="Stored streak / completion stats",
    responses={404: {"description": "Habit not found."}},
)
def get_stats(
    habit_id: int,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    habit_service.get_habit(store, habit_id, user_id)
    return _stored_stats_response(habit_id, store.get_stats(habit_id, user_id))


@router.post(
    "/{habit_id}/stats/recompute",
    response_model=HabitStatsResponse,
    summary="Rebuild stats from the full log history",
    responses={404: {"description": "Habit not found."}},
)
def recompute_stats(
    habit_id: int,
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """Idempotent. Useful after the day rolls over, since the current streak is anchored on today."""
    habit_service.get_habit(store, habit_id, user_id)
    try:
        stats = recompute(store, habit_id, user_id)
        store.commit()
    except Exception:
        store.rollback()
        raise
    return _stored_stats_response(habit_id, stats)
