"""
HabitStats — materialized streak / completion cache, one row per habit.

Written only by `habit_tracker.services.stats_engine`; every column can be
rebuilt from `habit_logs`.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from habit_tracker.db.base import Base


class HabitStats(Base):
    __tablename__ = "habit_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    habit_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("habits.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_missed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
