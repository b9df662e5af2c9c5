"""Date and recurrence helpers shared by the resolver, binder and routers"""

import calendar as _calendar
from datetime import date, time, timedelta
from typing import Dict, Iterator, List, Sequence

from pydantic import BaseModel, ConfigDict, model_validator

from dojo_schedule.core.exceptions import ValidationError
from dojo_schedule.schemas.slots import Slot

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

CALENDAR_GRID_DAYS = 42


def weekday_of(day: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday, as stored on templates"""
    return (day.weekday() + 1) % 7


def weekday_name(weekday: int) -> str:
    if 0 <= weekday < len(WEEKDAY_NAMES):
        return WEEKDAY_NAMES[weekday]
    return ""


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every date from start to end, both inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class Period(BaseModel):
    """Inclusive date range"""

    start: date
    end: date

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_order(self):
        if self.end < self.start:
            raise ValidationError(
                "Period end must not be before its start",
                {"start": self.start.isoformat(), "end": self.end.isoformat()},
            )
        return self

    @classmethod
    def for_month(cls, year: int, month: int) -> "Period":
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}")
        last_day = _calendar.monthrange(year, month)[1]
        return cls(start=date(year, month, 1), end=date(year, month, last_day))

    @classmethod
    def for_week(cls, day: date) -> "Period":
        """Monday to Sunday week containing `day`"""
        week_start = day - timedelta(days=day.weekday())
        return cls(start=week_start, end=week_start + timedelta(days=6))

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def dates(self) -> Iterator[date]:
        return iter_dates(self.start, self.end)


def group_slots_by_date(slots: Sequence[Slot]) -> Dict[date, List[Slot]]:
    grouped: Dict[date, List[Slot]] = {}
    for slot in slots:
        grouped.setdefault(slot.date, []).append(slot)
    return grouped


def slots_for_date(
    slots: Sequence[Slot], day: date, include_cancelled: bool = True
) -> List[Slot]:
    return [
        slot
        for slot in slots
        if slot.date == day and (include_cancelled or not slot.cancelled)
    ]


def is_training_day(day: date, slots: Sequence[Slot]) -> bool:
    return any(slot.date == day and not slot.cancelled for slot in slots)


def calendar_grid(day: date) -> List[date]:
    """Six Monday-start weeks covering the month of `day`"""
    month_start = day.replace(day=1)
    grid_start = month_start - timedelta(days=month_start.weekday())
    return [grid_start + timedelta(days=i) for i in range(CALENDAR_GRID_DAYS)]


def next_month(day: date) -> date:
    year, month = (day.year + 1, 1) if day.month == 12 else (day.year, day.month + 1)
    return day.replace(
        year=year,
        month=month,
        day=min(day.day, _calendar.monthrange(year, month)[1]),
    )


def previous_month(day: date) -> date:
    year, month = (day.year - 1, 12) if day.month == 1 else (day.year, day.month - 1)
    return day.replace(
        year=year,
        month=month,
        day=min(day.day, _calendar.monthrange(year, month)[1]),
    )


def parse_time(value: str) -> time:
    """Accepts HH:MM and HH:MM:SS"""
    try:
        return time.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time '{value}'. Use HH:MM")


def format_time(value: time) -> str:
    return value.strftime("%H:%M") if value else ""
