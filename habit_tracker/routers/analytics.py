"""
Analytics router.

GET  /analytics/weekly        — completed / missed per week
GET  /analytics/monthly       — completed / missed / rate per month
GET  /analytics/weekdays      — completed / missed per day of week, with the best day
POST /analytics/mark-missed   — mark yesterday missed for pending due habits
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from habit_tracker.routers.deps import get_store, get_user_id
from habit_tracker.schemas.analytics import (
    MarkMissedResponse,
    MonthlySummaryResponse,
    MonthSummaryResponse,
    WeeklySummaryResponse,
    WeekSummaryResponse,
    WeekdayBreakdownResponse,
    WeekdaySummaryResponse,
)
from habit_tracker.services.analytics import (
    MAX_DAYS_BACK,
    MAX_MONTHS_BACK,
    MAX_WEEKS_BACK,
    WeekdaySummary,
    mark_missed_days,
    monthly_summary,
    weekday_summary,
    weekly_summary,
)
from habit_tracker.services.store import SqlAlchemyHabitStore

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/weekly", response_model=WeeklySummaryResponse, summary="Weekly completion counts")
def weekly(
    weeks_back: int = Query(default=4, ge=0, le=MAX_WEEKS_BACK),
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """Weeks start on Sunday. The current week is always the last item."""
    weeks = weekly_summary(store, user_id, weeks_back=weeks_back)
    return WeeklySummaryResponse(
        weeks_back=weeks_back,
        items=[
            WeekSummaryResponse(
                week_start=str(w.week_start),
                completed=w.completed,
                missed=w.missed,
                total=w.total,
            )
            for w in weeks
        ],
    )


@router.get("/monthly", response_model=MonthlySummaryResponse, summary="Monthly completion counts")
def monthly(
    months_back: int = Query(default=6, ge=0, le=MAX_MONTHS_BACK),
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    months = monthly_summary(store, user_id, months_back=months_back)
    return MonthlySummaryResponse(
        months_back=months_back,
        items=[
            MonthSummaryResponse(
                month=m.month,
                completed=m.completed,
                missed=m.missed,
                total=m.total,
                completion_rate=m.completion_rate,
            )
            for m in months
        ],
    )


def _weekday_to_response(d: WeekdaySummary) -> WeekdaySummaryResponse:
    return WeekdaySummaryResponse(
        day_of_week=d.day_of_week,
        name=d.name,
        completed=d.completed,
        missed=d.missed,
        completion_rate=d.completion_rate,
    )


@router.get(
    "/weekdays",
    response_model=WeekdayBreakdownResponse,
    summary="Completion counts per day of week",
)
def weekdays(
    days_back: int = Query(default=90, ge=1, le=MAX_DAYS_BACK),
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """Items run Sunday to Saturday. `best_day` is the weekday with the most completions."""
    breakdown = weekday_summary(store, user_id, days_back=days_back)
    best = breakdown.best_day
    return WeekdayBreakdownResponse(
        start=str(breakdown.start),
        end=str(breakdown.end),
        best_day=_weekday_to_response(best) if best else None,
        items=[_weekday_to_response(d) for d in breakdown.days],
    )


@router.post(
    "/mark-missed",
    response_model=MarkMissedResponse,
    summary="Mark yesterday missed for due habits left pending",
)
def mark_missed(
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """
    For every active habit that was due yesterday and has no log for it,
    store a `missed` log; stats of all active habits are recomputed.
    Safe to call repeatedly: a second run marks nothing.
    """
    result = mark_missed_days(store, user_id)
    return MarkMissedResponse(
        day=str(result.day),
        marked_habit_ids=result.marked_habit_ids,
        recomputed=result.recomputed,
    )
