"""
User data router.

DELETE /users/me/data   — irreversible bulk reset of the caller's data
"""
from fastapi import APIRouter, Depends

from habit_tracker.routers.deps import get_store, get_user_id
from habit_tracker.schemas.user import ResetResponse
from habit_tracker.services.reset import reset_all
from habit_tracker.services.store import SqlAlchemyHabitStore

router = APIRouter(prefix="/users", tags=["users"])


@router.delete(
    "/me/data",
    response_model=ResetResponse,
    summary="Delete all habits, logs and stats of the caller",
    responses={503: {"description": "Store unavailable; nothing was deleted."}},
)
def reset_my_data(
    user_id: str = Depends(get_user_id),
    store: SqlAlchemyHabitStore = Depends(get_store),
):
    """
    Hard delete, all-or-nothing. Soft-deleting a single habit is
    `DELETE /habits/{id}` instead.
    """
    result = reset_all(store, user_id)
    return ResetResponse(
        habits_deleted=result.habits,
        logs_deleted=result.logs,
        stats_deleted=result.stats,
    )
