from .habit import Habit
from .habit_log import HabitLog, LogStatus
from .habit_stats import HabitStats

__all__ = [
    "Habit",
    "HabitLog",
    "LogStatus",
    "HabitStats",
]
