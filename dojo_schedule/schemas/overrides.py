"""
Overrides are a tagged union: a cancel, an extra training with a roster, or
an info-only event. Kind never changes after creation.
"""

import datetime as dt
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class _OverrideBase(BaseModel):
    id: int
    club_id: str
    date: dt.date
    time_start: Optional[dt.time] = None
    time_end: Optional[dt.time] = None
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CancelOverride(_OverrideBase):
    kind: Literal["cancel"] = "cancel"
    # None = legacy wide cancel of every training that date
    template_id: Optional[int] = None

    @property
    def is_legacy(self) -> bool:
        return self.template_id is None

    def cancels(self, template_id: int, on_date: dt.date) -> bool:
        if self.date != on_date:
            return False
        return self.template_id is None or self.template_id == template_id


class ExtraOverride(_OverrideBase):
    kind: Literal["extra"] = "extra"

    @property
    def requires_roster(self) -> bool:
        return True


class EventOverride(_OverrideBase):
    kind: Literal["event"] = "event"

    @property
    def requires_roster(self) -> bool:
        return False


Override = Annotated[
    Union[CancelOverride, ExtraOverride, EventOverride], Field(discriminator="kind")
]


class OverrideCreate(BaseModel):
    kind: Literal["cancel", "extra", "event"]
    date: dt.date
    template_id: Optional[int] = Field(
        None, gt=0, description="Cancel only: the template to cancel"
    )
    time_start: Optional[dt.time] = None
    time_end: Optional[dt.time] = None
    reason: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)

    @model_validator(mode="after")
    def check_fields(self):
        if self.kind != "cancel" and self.template_id is not None:
            raise ValueError("template_id is only allowed for cancel overrides")
        if self.kind != "cancel" and self.time_start is None:
            raise ValueError("time_start is required for extra trainings and events")
        if (
            self.time_start is not None
            and self.time_end is not None
            and self.time_end <= self.time_start
        ):
            raise ValueError("time_end must be after time_start")
        return self


class OverrideUpdate(BaseModel):
    """Date, times and reason only; changing kind means delete and recreate"""

    date: Optional[dt.date] = None
    time_start: Optional[dt.time] = None
    time_end: Optional[dt.time] = None
    reason: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
