"""
Roster binding: which trainers are on which slot of a date.

Real entries are keyed by the slot kind they were written for; assignment
occurrences are materialized into ScheduledEntry values. A trainer holds at
most one binding per slot key.
"""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

from pydantic import BaseModel, ConfigDict

from dojo_schedule.core.exceptions import (
    DuplicateEntryError,
    NotFoundError,
    ValidationError,
)
from dojo_schedule.schemas.entries import (
    Assignment,
    AssignmentException,
    RealEntry,
    ScheduledEntry,
)
from dojo_schedule.schemas.slots import Slot, SlotKey
from dojo_schedule.services.calendar import weekday_of

AnyEntry = Union[RealEntry, ScheduledEntry]
Roster = Dict[SlotKey, List[AnyEntry]]


class DeleteEntry(BaseModel):
    entry_id: int

    model_config = ConfigDict(frozen=True)


class SkipAssignment(BaseModel):
    assignment_id: int
    date: date

    model_config = ConfigDict(frozen=True)


def materialize_assignments(
    assignments: Iterable[Assignment],
    exceptions: Iterable[AssignmentException],
    weekday_by_template: Mapping[int, int],
    on_date: date,
) -> List[ScheduledEntry]:
    """
    Virtual entries for `on_date`: active assignments whose template falls on
    that weekday, whose validity window covers the date, and which have no
    exception for it. Templates missing from `weekday_by_template` are
    treated as not scheduled.
    """
    skipped = {
        exception.assignment_id
        for exception in exceptions
        if exception.date == on_date
    }
    weekday = weekday_of(on_date)

    return [
        ScheduledEntry(
            assignment_id=assignment.id,
            date=on_date,
            template_id=assignment.template_id,
            trainer_id=assignment.trainer_id,
            trainer_name=assignment.trainer_name,
        )
        for assignment in assignments
        if assignment.active
        and weekday_by_template.get(assignment.template_id) == weekday
        and assignment.covers(on_date)
        and assignment.id not in skipped
    ]


def bind_roster(
    slots: Iterable[Slot],
    entries: Iterable[AnyEntry],
    assignments: Iterable[Assignment],
    exceptions: Iterable[AssignmentException],
    on_date: date,
) -> Roster:
    """
    Build the roster of every slot on `on_date`.

    `entries` may already contain ScheduledEntry values; they are merged with
    the ones materialized from `assignments` and deduplicated by identity.
    Scheduled entries only bind to uncancelled regular slots, and a trainer's
    real entry suppresses their scheduled entry for the same slot. Real
    entries come first in insertion order, then scheduled ones by name.
    """
    day_slots = [slot for slot in slots if slot.date == on_date]
    roster: Roster = {slot.key: [] for slot in day_slots}
    bound: Dict[SlotKey, Set[str]] = {key: set() for key in roster}

    open_regular_keys = {
        slot.key for slot in day_slots if not slot.extra and not slot.cancelled
    }
    weekday_by_template = {
        slot.template_id: slot.weekday for slot in day_slots if not slot.extra
    }

    real_entries: List[RealEntry] = []
    scheduled: Dict[tuple, ScheduledEntry] = {}
    for entry in entries:
        if entry.date != on_date:
            continue
        if isinstance(entry, RealEntry):
            real_entries.append(entry)
        else:
            scheduled[entry.ref] = entry

    for entry in materialize_assignments(
        assignments, exceptions, weekday_by_template, on_date
    ):
        scheduled.setdefault(entry.ref, entry)

    for entry in sorted(real_entries, key=lambda e: e.id):
        key = entry.slot_key
        if key not in roster or entry.trainer_id in bound[key]:
            continue
        roster[key].append(entry)
        bound[key].add(entry.trainer_id)

    for entry in sorted(
        scheduled.values(),
        key=lambda e: (e.trainer_name.casefold(), e.assignment_id),
    ):
        key = entry.slot_key
        if key not in open_regular_keys or entry.trainer_id in bound[key]:
            continue
        roster[key].append(entry)
        bound[key].add(entry.trainer_id)

    return roster


def find_slot(slots: Iterable[Slot], key: SlotKey, on_date: date) -> Optional[Slot]:
    for slot in slots:
        if slot.date == on_date and slot.key == key:
            return slot
    return None


def ensure_can_sign_up(
    slot: Optional[Slot],
    roster: Mapping[SlotKey, Sequence[AnyEntry]],
    key: SlotKey,
    trainer_id: str,
    on_date: date,
):
    """
    Advisory pre-check before writing a sign-up; the unique constraint in
    storage stays authoritative.

    Raises:
        NotFoundError: no such slot on that date
        ValidationError: slot is cancelled or an info-only event
        DuplicateEntryError: trainer already bound to the slot
    """
    if slot is None:
        raise NotFoundError("Slot", f"{key} on {on_date.isoformat()}")

    if slot.cancelled:
        raise ValidationError("Training is cancelled", {"slot": str(key)})

    if slot.event:
        raise ValidationError("Events do not take sign-ups", {"slot": str(key)})

    if any(entry.trainer_id == trainer_id for entry in roster.get(key, ())):
        raise DuplicateEntryError(trainer_id, on_date.isoformat(), str(key))


def plan_unregister(entry: AnyEntry) -> Union[DeleteEntry, SkipAssignment]:
    """Real entries are deleted; scheduled ones are skipped for their date"""
    if isinstance(entry, ScheduledEntry):
        return SkipAssignment(assignment_id=entry.assignment_id, date=entry.date)
    return DeleteEntry(entry_id=entry.id)
