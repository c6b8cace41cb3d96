"""
Schedule evaluator — is a habit due on a given calendar day?

Rules
-----
  daily   : always due
  weekly  : due iff the Sunday-based weekday (0 = Sunday … 6 = Saturday)
            is in `daysOfWeek`
  monthly : due iff the day of month is in `daysOfMonth`; the 31st never
            matches a 30-day month (no rollover)
  missing / unknown frequency : treated as daily

An empty day set on weekly/monthly is legal and simply never due.
Pure functions, no DB, never raise on malformed data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional


class FrequencyType:
    DAILY   = "daily"
    WEEKLY  = "weekly"
    MONTHLY = "monthly"

    ALL = (DAILY, WEEKLY, MONTHLY)


@dataclass(frozen=True)
class Frequency:
    type: str = FrequencyType.DAILY
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    days_of_month: frozenset[int] = field(default_factory=frozenset)


DAILY = Frequency()


def day_of_week(day: date) -> int:
    """Sunday-based weekday: 0 = Sunday, 1 = Monday, …, 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _int_set(values: Any) -> frozenset[int]:
    if not isinstance(values, (list, tuple, set, frozenset)):
        return frozenset()
    out = set()
    for v in values:
        try:
            out.add(int(v))
        except (TypeError, ValueError):
            continue
    return frozenset(out)


def parse_frequency(raw: Optional[dict[str, Any]]) -> Frequency:
    """Lenient parse of the stored JSON rule. Anything unreadable is daily."""
    if not isinstance(raw, dict):
        return DAILY
    ftype = raw.get("type")
    if ftype == FrequencyType.WEEKLY:
        return Frequency(type=ftype, days_of_week=_int_set(raw.get("daysOfWeek")))
    if ftype == FrequencyType.MONTHLY:
        return Frequency(type=ftype, days_of_month=_int_set(raw.get("daysOfMonth")))
    return DAILY


def is_due(habit: Any, day: date) -> bool:
    """
    Whether `habit` should appear on `day`.

    `habit` is anything with a `frequency` attribute holding the stored JSON
    rule (the ORM model, or a test double).
    """
    rule = parse_frequency(getattr(habit, "frequency", None))
    if rule.type == FrequencyType.WEEKLY:
        return day_of_week(day) in rule.days_of_week
    if rule.type == FrequencyType.MONTHLY:
        return day.day in rule.days_of_month
    return True
