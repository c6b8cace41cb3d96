"""
Daily view schemas.

GET /today → DailyViewResponse
"""
from pydantic import BaseModel, Field

from habit_tracker.schemas.habit import HabitResponse
from habit_tracker.schemas.log import HabitLogResponse
from habit_tracker.schemas.stats import HabitStatsResponse


class DailyHabitViewResponse(BaseModel):
    habit: HabitResponse
    status: str = Field(description='"completed" | "missed" | "pending"')
    log: HabitLogResponse | None = None
    stats: HabitStatsResponse


class DailyViewResponse(BaseModel):
    day: str
    total: int
    completed: int
    missed: int
    pending: int
    items: list[DailyHabitViewResponse]
