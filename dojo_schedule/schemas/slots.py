import datetime as dt
from enum import Enum
from typing import NamedTuple, Optional
from pydantic import BaseModel, ConfigDict


class SlotKind(str, Enum):
    REGULAR = "regular"
    EXTRA = "extra"


class SlotKey(NamedTuple):
    """
    Roster key. Template ids and override ids live in different id spaces,
    so the kind is part of the key.
    """

    kind: SlotKind
    ref_id: int

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.ref_id}"


class Slot(BaseModel):
    """One resolved training occurrence; derived on every read, never stored"""

    date: dt.date
    weekday: int
    time_start: dt.time
    time_end: Optional[dt.time] = None
    # None for extra slots, never a real template id
    template_id: Optional[int] = None
    # Extra slots: their override. Cancelled slots: the cancelling override.
    override_id: Optional[int] = None
    cancelled: bool = False
    extra: bool = False
    event: bool = False
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> SlotKey:
        if self.extra:
            return SlotKey(SlotKind.EXTRA, self.override_id)
        return SlotKey(SlotKind.REGULAR, self.template_id)

    @property
    def accepts_sign_ups(self) -> bool:
        return not self.cancelled and not self.event
