"""
Daily view router.

GET /today   — active habits due on a day, with their log and stats
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from habit_tracker.routers.deps import get_store, get_user_id
from habit_tracker.routers.habits import habit_to_response, log_to_response, stats_to_response
from habit_tracker.schemas.view import DailyHabitViewResponse, DailyViewResponse
from habit_tracker.services.daily_view import DailyHabitView, get_daily_view
from habit_tracker.services.store import SqlAlchemyHabitStore

router = APIRouter(tags=["today"])


def _view_to_response(v: DailyHabitView) -> DailyHabitViewResponse:
    return DailyHabitViewResponse(
        habit=habit_to_response(v.habit),
        status=v.status,
        log=log_to_response(v.log) if v.log is not None else None,
        stats=stats_to_response(v.habit.id, v.stats, v.stats_updated),
    )


@router.get(
    "/today",
    response_model=DailyViewResponse,
    summary="Habits due on a day",
    responses={200: {"description": "Due, active habits with their status for the day."}},
)
def today(
    day: Optional[date] = Query(
        default=None,
        description="ISO date (YYYY-MM-DD). Defaults to today.",
        examples=["2024-01-01"],
    ),
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """
    Return every active habit whose schedule makes it due on `day`.

    `status` is `pending` when nothing has been logged yet. Habits without a
    stats record yet carry zero-valued stats.
    """
    target = day or date.today()
    views = get_daily_view(store, user_id, target)
    items = [_view_to_response(v) for v in views]
    return DailyViewResponse(
        day=str(target),
        total=len(items),
        completed=sum(1 for i in items if i.status == "completed"),
        missed=sum(1 for i in items if i.status == "missed"),
        pending=sum(1 for i in items if i.status == "pending"),
        items=items,
    )
