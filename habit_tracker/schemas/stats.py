from typing import Optional
from pydantic import BaseModel, Field


class HabitStatsResponse(BaseModel):
    habit_id: int
    current_streak: int
    longest_streak: int
    total_completed: int
    total_missed: int
    completion_rate: int = Field(ge=0, le=100, description="Percentage of logged days completed.")
    last_completed_date: Optional[str] = None
    last_updated: Optional[str] = Field(
        default=None,
        description="When the stored stats last changed. Null before the first recompute.",
    )
