"""
Sign-ups come in two provenances: rows in training_entries (RealEntry) and
occurrences materialized from recurring assignments (ScheduledEntry). They
share a roster but never an identity space.
"""

import datetime as dt
from typing import Annotated, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

from dojo_schedule.schemas.slots import SlotKey, SlotKind


class RealEntry(BaseModel):
    kind: Literal["real"] = "real"
    id: int
    club_id: str
    template_id: Optional[int] = None
    override_id: Optional[int] = None
    date: dt.date
    trainer_id: str
    trainer_name: str
    remark: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_single_target(self):
        if (self.template_id is None) == (self.override_id is None):
            raise ValueError("Exactly one of template_id and override_id must be set")
        return self

    @property
    def slot_key(self) -> SlotKey:
        if self.override_id is not None:
            return SlotKey(SlotKind.EXTRA, self.override_id)
        return SlotKey(SlotKind.REGULAR, self.template_id)

    @property
    def ref(self) -> Tuple:
        return ("real", self.id)


class ScheduledEntry(BaseModel):
    """Virtual sign-up; identified by (assignment_id, date)"""

    kind: Literal["scheduled"] = "scheduled"
    assignment_id: int
    date: dt.date
    template_id: int
    trainer_id: str
    trainer_name: str
    remark: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def slot_key(self) -> SlotKey:
        return SlotKey(SlotKind.REGULAR, self.template_id)

    @property
    def ref(self) -> Tuple:
        return ("scheduled", self.assignment_id, self.date)


Entry = Annotated[Union[RealEntry, ScheduledEntry], Field(discriminator="kind")]


class EntryCreate(BaseModel):
    date: dt.date
    template_id: Optional[int] = Field(None, gt=0)
    override_id: Optional[int] = Field(None, gt=0)
    remark: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)

    @model_validator(mode="after")
    def check_single_target(self):
        if (self.template_id is None) == (self.override_id is None):
            raise ValueError("Exactly one of template_id and override_id must be set")
        return self

    @property
    def slot_key(self) -> SlotKey:
        if self.override_id is not None:
            return SlotKey(SlotKind.EXTRA, self.override_id)
        return SlotKey(SlotKind.REGULAR, self.template_id)


class Assignment(BaseModel):
    id: int
    trainer_id: str
    trainer_name: str = ""
    template_id: int
    start_date: dt.date
    end_date: Optional[dt.date] = None
    active: bool = True

    model_config = ConfigDict(frozen=True)

    def covers(self, on_date: dt.date) -> bool:
        if on_date < self.start_date:
            return False
        return self.end_date is None or on_date <= self.end_date


class AssignmentException(BaseModel):
    assignment_id: int
    date: dt.date
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class SkipRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
