from datetime import date

import pytest

from conftest import (
    make_assignment,
    make_cancel,
    make_entry,
    make_event,
    make_exception,
    make_extra,
    make_template,
)
from dojo_schedule.core.exceptions import (
    DuplicateEntryError,
    NotFoundError,
    ValidationError,
)
from dojo_schedule.schemas.entries import ScheduledEntry
from dojo_schedule.schemas.slots import SlotKey, SlotKind
from dojo_schedule.services.calendar import Period
from dojo_schedule.services.roster import (
    DeleteEntry,
    SkipAssignment,
    bind_roster,
    ensure_can_sign_up,
    find_slot,
    materialize_assignments,
    plan_unregister,
)
from dojo_schedule.services.slot_resolver import resolve_slots

MONDAY = date(2024, 3, 11)
REGULAR_7 = SlotKey(SlotKind.REGULAR, 7)
EXTRA_7 = SlotKey(SlotKind.EXTRA, 7)


def day_slots(templates, overrides, on_date=MONDAY):
    return resolve_slots(Period(start=on_date, end=on_date), templates, overrides)


def test_override_id_and_template_id_never_collide():
    slots = day_slots([make_template(7, 1)], [make_extra(7, MONDAY, "09:00")])
    entry = make_entry(1, MONDAY, trainer_id="t1", override_id=7)

    roster = bind_roster(slots, [entry], [], [], MONDAY)

    assert roster[EXTRA_7] == [entry]
    assert roster[REGULAR_7] == []


def test_real_entry_for_regular_slot():
    slots = day_slots([make_template(7, 1)], [make_extra(7, MONDAY, "09:00")])
    entry = make_entry(1, MONDAY, trainer_id="t1", template_id=7)

    roster = bind_roster(slots, [entry], [], [], MONDAY)

    assert roster[REGULAR_7] == [entry]
    assert roster[EXTRA_7] == []


def test_roster_keys_are_the_slots_of_the_date():
    slots = day_slots([make_template(1, 1), make_template(2, 2)], [])
    roster = bind_roster(slots, [], [], [], MONDAY)

    assert list(roster) == [SlotKey(SlotKind.REGULAR, 1)]


def test_entries_of_other_dates_are_ignored():
    slots = day_slots([make_template(1, 1)], [])
    entry = make_entry(1, date(2024, 3, 18), template_id=1)

    roster = bind_roster(slots, [entry], [], [], MONDAY)

    assert roster[SlotKey(SlotKind.REGULAR, 1)] == []


def test_assignment_materializes_on_its_weekday():
    assignments = [make_assignment(3, template_id=1)]

    (entry,) = materialize_assignments(assignments, [], {1: 1}, MONDAY)

    assert isinstance(entry, ScheduledEntry)
    assert entry.ref == ("scheduled", 3, MONDAY)
    assert entry.slot_key == SlotKey(SlotKind.REGULAR, 1)
    assert materialize_assignments(assignments, [], {1: 2}, MONDAY) == []


@pytest.mark.parametrize(
    "assignment",
    [
        make_assignment(3, template_id=1, start=date(2024, 3, 12)),
        make_assignment(3, template_id=1, end=date(2024, 3, 10)),
        make_assignment(3, template_id=1, active=False),
    ],
)
def test_assignment_outside_its_window_does_not_materialize(assignment):
    assert materialize_assignments([assignment], [], {1: 1}, MONDAY) == []


def test_assignment_window_is_inclusive():
    assignment = make_assignment(3, template_id=1, start=MONDAY, end=MONDAY)
    assert len(materialize_assignments([assignment], [], {1: 1}, MONDAY)) == 1


def test_exception_suppresses_only_its_date():
    assignments = [make_assignment(3, template_id=1)]
    exceptions = [make_exception(3, MONDAY)]

    assert materialize_assignments(assignments, exceptions, {1: 1}, MONDAY) == []
    assert len(
        materialize_assignments(assignments, exceptions, {1: 1}, date(2024, 3, 18))
    ) == 1


def test_real_entry_suppresses_scheduled_entry_of_same_trainer():
    slots = day_slots([make_template(1, 1)], [])
    real = make_entry(10, MONDAY, trainer_id="t1", template_id=1)
    assignments = [make_assignment(3, template_id=1, trainer_id="t1")]

    roster = bind_roster(slots, [real], assignments, [], MONDAY)

    assert roster[SlotKey(SlotKind.REGULAR, 1)] == [real]


def test_scheduled_entries_not_bound_to_cancelled_slot():
    slots = day_slots([make_template(1, 1)], [make_cancel(1, MONDAY, template_id=1)])
    assignments = [make_assignment(3, template_id=1)]

    roster = bind_roster(slots, [], assignments, [], MONDAY)

    assert roster[SlotKey(SlotKind.REGULAR, 1)] == []


def test_prebuilt_scheduled_entries_are_deduplicated():
    slots = day_slots([make_template(1, 1)], [])
    assignments = [make_assignment(3, template_id=1)]
    prebuilt = materialize_assignments(assignments, [], {1: 1}, MONDAY)

    roster = bind_roster(slots, prebuilt, assignments, [], MONDAY)

    assert len(roster[SlotKey(SlotKind.REGULAR, 1)]) == 1


def test_roster_order_real_by_id_then_scheduled_by_name():
    slots = day_slots([make_template(1, 1)], [])
    entries = [
        make_entry(12, MONDAY, trainer_id="t2", template_id=1),
        make_entry(11, MONDAY, trainer_id="t1", template_id=1),
    ]
    assignments = [
        make_assignment(5, template_id=1, trainer_id="t4", name="zoe"),
        make_assignment(6, template_id=1, trainer_id="t3", name="Bert"),
    ]

    roster = bind_roster(slots, entries, assignments, [], MONDAY)
    bound = roster[SlotKey(SlotKind.REGULAR, 1)]

    assert [entry.trainer_id for entry in bound] == ["t1", "t2", "t3", "t4"]


def test_ensure_can_sign_up_rejects_scheduled_trainer():
    slots = day_slots([make_template(1, 1)], [])
    key = SlotKey(SlotKind.REGULAR, 1)
    roster = bind_roster(
        slots, [], [make_assignment(3, template_id=1, trainer_id="t1")], [], MONDAY
    )

    with pytest.raises(DuplicateEntryError):
        ensure_can_sign_up(find_slot(slots, key, MONDAY), roster, key, "t1", MONDAY)

    ensure_can_sign_up(find_slot(slots, key, MONDAY), roster, key, "t2", MONDAY)


def test_ensure_can_sign_up_rejects_cancelled_event_and_unknown_slots():
    slots = day_slots(
        [make_template(1, 1)],
        [make_cancel(1, MONDAY), make_event(2, MONDAY)],
    )
    roster = bind_roster(slots, [], [], [], MONDAY)

    cancelled = SlotKey(SlotKind.REGULAR, 1)
    event = SlotKey(SlotKind.EXTRA, 2)
    unknown = SlotKey(SlotKind.EXTRA, 99)

    with pytest.raises(ValidationError):
        ensure_can_sign_up(find_slot(slots, cancelled, MONDAY), roster, cancelled, "t1", MONDAY)
    with pytest.raises(ValidationError):
        ensure_can_sign_up(find_slot(slots, event, MONDAY), roster, event, "t1", MONDAY)
    with pytest.raises(NotFoundError):
        ensure_can_sign_up(find_slot(slots, unknown, MONDAY), roster, unknown, "t1", MONDAY)


def test_duplicate_error_is_distinct_from_generic_failure():
    error = DuplicateEntryError("t1", "2024-03-11", "regular:1")

    assert error.status_code == 409
    assert error.error_code == "DUPLICATE_ENTRY"
    assert error.message == "Trainer is already signed up for this slot"


def test_plan_unregister_real_entry_deletes_row():
    entry = make_entry(10, MONDAY, template_id=1)
    assert plan_unregister(entry) == DeleteEntry(entry_id=10)


def test_plan_unregister_scheduled_entry_skips_date():
    (entry,) = materialize_assignments(
        [make_assignment(3, template_id=1)], [], {1: 1}, MONDAY
    )
    assert plan_unregister(entry) == SkipAssignment(assignment_id=3, date=MONDAY)
