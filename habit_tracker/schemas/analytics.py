"""
Analytics response schemas.

GET  /analytics/weekly       → WeeklySummaryResponse
GET  /analytics/monthly      → MonthlySummaryResponse
GET  /analytics/weekdays     → WeekdayBreakdownResponse
POST /analytics/mark-missed  → MarkMissedResponse
"""
from typing import Optional

from pydantic import BaseModel, Field


class WeekSummaryResponse(BaseModel):
    week_start: str = Field(description="Sunday that starts the week.")
    completed: int
    missed: int
    total: int


class WeeklySummaryResponse(BaseModel):
    weeks_back: int
    items: list[WeekSummaryResponse]


class MonthSummaryResponse(BaseModel):
    month: str = Field(description="YYYY-MM")
    completed: int
    missed: int
    total: int
    completion_rate: int


class MonthlySummaryResponse(BaseModel):
    months_back: int
    items: list[MonthSummaryResponse]


class WeekdaySummaryResponse(BaseModel):
    day_of_week: int = Field(description="0 = Sunday … 6 = Saturday.")
    name: str
    completed: int
    missed: int
    completion_rate: int


class WeekdayBreakdownResponse(BaseModel):
    start: str
    end: str
    best_day: Optional[WeekdaySummaryResponse] = Field(
        default=None, description="Weekday with the most completions; null when none."
    )
    items: list[WeekdaySummaryResponse]


class MarkMissedResponse(BaseModel):
    day: str = Field(description="The day that was checked (yesterday).")
    marked_habit_ids: list[int]
    recomputed: int
