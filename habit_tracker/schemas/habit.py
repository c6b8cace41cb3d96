"""
Habit request / response schemas.

POST  /habits        → HabitCreateRequest → HabitResponse
PATCH /habits/{id}   → HabitUpdateRequest → HabitResponse
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrequencySchema(BaseModel):
    """Recurrence rule. Day 0 of `daysOfWeek` is Sunday."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["daily", "weekly", "monthly"] = "daily"
    days_of_week: Optional[list[int]] = Field(
        default=None,
        alias="daysOfWeek",
        description="Weekly only: 0 = Sunday … 6 = Saturday.",
        examples=[[1, 3, 5]],
    )
    days_of_month: Optional[list[int]] = Field(
        default=None,
        alias="daysOfMonth",
        description="Monthly only: 1–31. Days missing from a month never match.",
        examples=[[1, 15]],
    )

    def to_rule(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class HabitCreateRequest(BaseModel):
    name: Annotated[str, Field(
        min_length=1,
        max_length=120,
        description="Habit name. Stripped of leading/trailing whitespace.",
        examples=["Drink 2L of water"],
    )]
    description: Optional[str] = Field(default=None, max_length=2000)
    color: Optional[str] = Field(
        default=None,
        description="Hex color (#RRGGBB). Defaults to #3B82F6.",
        examples=["#10B981"],
    )
    frequency: Optional[FrequencySchema] = Field(
        default=None,
        description="Recurrence rule. Omit for daily.",
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("name must not be empty after stripping whitespace")
        return stripped


class HabitUpdateRequest(BaseModel):
    """Partial update: only the fields present in the body are changed."""
    name: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: Optional[str] = None
    frequency: Optional[FrequencySchema] = None
    is_active: Optional[bool] = None


class HabitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    description: Optional[str]
    color: str
    frequency: dict = Field(description="Stored recurrence rule (daily when unset).")
    is_active: bool
    created_at: Optional[str]
    updated_at: Optional[str]


class HabitListResponse(BaseModel):
    total: int
    items: list[HabitResponse]
