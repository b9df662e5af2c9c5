import datetime as dt
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from dojo_schedule.schemas.entries import Entry
from dojo_schedule.schemas.slots import Slot
from dojo_schedule.services.calendar import format_time, weekday_name


class SlotView(BaseModel):
    """Slot as rendered to clients"""

    key: str = Field(..., description="regular:<template_id> or extra:<override_id>")
    date: dt.date
    weekday: int
    weekday_name: str
    time_start: str
    time_end: Optional[str] = None
    template_id: Optional[int] = None
    override_id: Optional[int] = None
    cancelled: bool = False
    extra: bool = False
    event: bool = False
    reason: Optional[str] = None
    missing_trainer: bool = False

    @classmethod
    def from_slot(cls, slot: Slot, missing_trainer: bool = False) -> "SlotView":
        return cls(
            key=str(slot.key),
            date=slot.date,
            weekday=slot.weekday,
            weekday_name=weekday_name(slot.weekday),
            time_start=format_time(slot.time_start),
            time_end=format_time(slot.time_end) if slot.time_end else None,
            template_id=slot.template_id,
            override_id=slot.override_id,
            cancelled=slot.cancelled,
            extra=slot.extra,
            event=slot.event,
            reason=slot.reason,
            missing_trainer=missing_trainer,
        )


class PeriodView(BaseModel):
    start: dt.date
    end: dt.date
    slots: List[SlotView]
    missing_count: int = 0


class RosterSlot(BaseModel):
    slot: SlotView
    entries: List[Entry] = Field(default_factory=list)


class DayRoster(BaseModel):
    date: dt.date
    is_training_day: bool
    slots: List[RosterSlot]


class CancelSlotRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class UnregisterResult(BaseModel):
    action: Literal["deleted", "skipped"]
    entry_id: Optional[int] = None
    assignment_id: Optional[int] = None
    date: Optional[dt.date] = None
