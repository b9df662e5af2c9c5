from datetime import time
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator


class WeeklyTemplate(BaseModel):
    """Recurring weekly training (weekday 0 = Sunday)"""

    id: int
    club_id: str
    weekday: int = Field(..., ge=0, le=6)
    time_start: time
    time_end: Optional[time] = None
    active: bool = True

    model_config = ConfigDict(frozen=True)


class TemplateCreate(BaseModel):
    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    time_start: time
    time_end: Optional[time] = None

    @model_validator(mode="after")
    def check_times(self):
        if self.time_end is not None and self.time_end <= self.time_start:
            raise ValueError("time_end must be after time_start")
        return self


class TemplateUpdate(BaseModel):
    weekday: Optional[int] = Field(None, ge=0, le=6)
    time_start: Optional[time] = None
    time_end: Optional[time] = None

    model_config = ConfigDict(extra="forbid")
