"""
Slot resolution: weekly templates + per-date overrides -> ordered slots.

Pure and deterministic; safe to call on every read of a period.
"""

from datetime import date, time
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from dojo_schedule.schemas.entries import RealEntry, ScheduledEntry
from dojo_schedule.schemas.overrides import (
    CancelOverride,
    EventOverride,
    ExtraOverride,
)
from dojo_schedule.schemas.slots import Slot, SlotKey
from dojo_schedule.schemas.templates import WeeklyTemplate
from dojo_schedule.services.calendar import Period, weekday_of

EXTRA_DEFAULT_START = time(0, 0)

AnyOverride = Union[CancelOverride, ExtraOverride, EventOverride]


def _cancels_by_date(
    overrides: Iterable[AnyOverride], period: Period
) -> Dict[date, List[CancelOverride]]:
    cancels: Dict[date, List[CancelOverride]] = {}
    for override in overrides:
        if isinstance(override, CancelOverride) and override.date in period:
            cancels.setdefault(override.date, []).append(override)
    return cancels


def _find_cancel(
    cancels: Sequence[CancelOverride], template_id: int, on_date: date
) -> Optional[CancelOverride]:
    for override in cancels:
        if override.cancels(template_id, on_date):
            return override
    return None


def resolve_slots(
    period: Period,
    templates: Iterable[WeeklyTemplate],
    overrides: Iterable[AnyOverride],
) -> List[Slot]:
    """
    Resolve every training occurrence in `period`.

    Regular slots come from active templates whose weekday matches the date;
    a cancel override on that date targeting the template, or a legacy one
    without a template, marks the slot cancelled and lends it its id and
    reason. Extra and event overrides become standalone slots. The result is
    ordered by (date, time_start); on ties regular slots keep template order
    and precede extras.
    """
    overrides = list(overrides)
    active_templates = [template for template in templates if template.active]
    cancels = _cancels_by_date(overrides, period)

    slots: List[Slot] = []

    for day in period.dates():
        weekday = weekday_of(day)
        for template in active_templates:
            if template.weekday != weekday:
                continue

            cancel = _find_cancel(cancels.get(day, ()), template.id, day)
            slots.append(
                Slot(
                    date=day,
                    weekday=weekday,
                    time_start=template.time_start,
                    time_end=template.time_end,
                    template_id=template.id,
                    override_id=cancel.id if cancel else None,
                    cancelled=cancel is not None,
                    reason=cancel.reason if cancel else None,
                )
            )

    for override in overrides:
        if isinstance(override, CancelOverride) or override.date not in period:
            continue

        slots.append(
            Slot(
                date=override.date,
                weekday=weekday_of(override.date),
                time_start=override.time_start or EXTRA_DEFAULT_START,
                time_end=override.time_end,
                template_id=None,
                override_id=override.id,
                extra=True,
                event=not override.requires_roster,
                reason=override.reason,
            )
        )

    # sorted() is stable, so emission order breaks ties
    return sorted(slots, key=lambda slot: (slot.date, slot.time_start))


def missing_trainer_slots(
    slots: Iterable[Slot],
    rosters_by_date: Mapping[
        date, Mapping[SlotKey, Sequence[Union[RealEntry, ScheduledEntry]]]
    ],
) -> List[Slot]:
    """Slots that take sign-ups but have nobody on the roster; never events"""
    return [
        slot
        for slot in slots
        if slot.accepts_sign_ups
        and not rosters_by_date.get(slot.date, {}).get(slot.key)
    ]
