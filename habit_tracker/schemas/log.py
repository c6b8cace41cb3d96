"""
Habit log schemas.

PUT    /habits/{id}/logs/{date}  → SetStatusRequest → SetStatusResponse
GET    /habits/{id}/logs         → HabitLogListResponse
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field

from habit_tracker.schemas.stats import HabitStatsResponse


class SetStatusRequest(BaseModel):
    status: Literal["completed", "missed"] = Field(
        description='"completed" or "missed". Use DELETE to revert to pending.',
        examples=["completed"],
    )


class HabitLogResponse(BaseModel):
    id: int
    habit_id: int
    date: str = Field(description="ISO calendar date (YYYY-MM-DD).")
    status: str
    created_at: Optional[str]
    updated_at: Optional[str]


class SetStatusResponse(BaseModel):
    created: bool = Field(description="False when an existing log for the day was overwritten.")
    log: HabitLogResponse
    stats: HabitStatsResponse


class HabitLogListResponse(BaseModel):
    habit_id: int
    start: str
    end: str
    total: int
    items: list[HabitLogResponse]
