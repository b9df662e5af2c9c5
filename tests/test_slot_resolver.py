from datetime import date, time

from conftest import make_cancel, make_event, make_extra, make_template
from dojo_schedule.schemas.slots import SlotKey, SlotKind
from dojo_schedule.services.calendar import Period
from dojo_schedule.services.slot_resolver import missing_trainer_slots, resolve_slots


def test_monday_template_resolves_every_monday_of_march(monday_template, march_2024):
    slots = resolve_slots(march_2024, [monday_template], [])

    assert [slot.date for slot in slots] == [
        date(2024, 3, 4),
        date(2024, 3, 11),
        date(2024, 3, 18),
        date(2024, 3, 25),
    ]
    assert all(slot.weekday == 1 for slot in slots)
    assert all(slot.template_id == 1 and not slot.cancelled for slot in slots)
    assert all(slot.key == SlotKey(SlotKind.REGULAR, 1) for slot in slots)


def test_inactive_template_produces_no_slots(march_2024):
    template = make_template(1, 1, active=False)
    assert resolve_slots(march_2024, [template], []) == []


def test_open_ended_template_without_end_time(march_2024):
    template = make_template(1, 3, end=None)
    slots = resolve_slots(march_2024, [template], [])

    assert len(slots) == 4
    assert all(slot.time_end is None for slot in slots)


def test_legacy_cancel_cancels_every_slot_of_the_date(march_2024):
    templates = [make_template(1, 1, "17:00"), make_template(2, 1, "19:00")]
    cancel = make_cancel(50, date(2024, 3, 11), reason="Holiday")

    slots = resolve_slots(march_2024, templates, [cancel])
    on_day = [slot for slot in slots if slot.date == date(2024, 3, 11)]

    assert len(on_day) == 2
    assert all(slot.cancelled for slot in on_day)
    assert all(slot.override_id == 50 and slot.reason == "Holiday" for slot in on_day)
    assert not any(slot.cancelled for slot in slots if slot.date != date(2024, 3, 11))


def test_targeted_cancel_only_cancels_its_template(march_2024):
    templates = [make_template(1, 1, "17:00"), make_template(2, 1, "19:00")]
    cancel = make_cancel(51, date(2024, 3, 11), template_id=2)

    slots = resolve_slots(march_2024, templates, [cancel])
    on_day = {slot.template_id: slot for slot in slots if slot.date == date(2024, 3, 11)}

    assert on_day[2].cancelled
    assert on_day[2].override_id == 51
    assert not on_day[1].cancelled
    assert on_day[1].override_id is None


def test_cancel_on_a_date_without_training_is_ignored(monday_template, march_2024):
    cancel = make_cancel(52, date(2024, 3, 12))
    slots = resolve_slots(march_2024, [monday_template], [cancel])

    assert len(slots) == 4
    assert not any(slot.cancelled for slot in slots)


def test_extra_and_event_become_standalone_slots(march_2024):
    extra = make_extra(7, date(2024, 3, 6), "10:00", "11:00")
    event = make_event(8, date(2024, 3, 6), "12:00")

    slots = resolve_slots(march_2024, [], [extra, event])

    assert len(slots) == 2
    extra_slot, event_slot = slots
    assert extra_slot.extra and not extra_slot.event
    assert extra_slot.template_id is None
    assert extra_slot.key == SlotKey(SlotKind.EXTRA, 7)
    assert event_slot.extra and event_slot.event
    assert event_slot.override_id == 8
    assert not event_slot.accepts_sign_ups


def test_extra_without_start_time_defaults_to_midnight(march_2024):
    extra = make_extra(9, date(2024, 3, 6), start=None)
    (slot,) = resolve_slots(march_2024, [], [extra])

    assert slot.time_start == time(0, 0)


def test_overrides_outside_period_are_ignored(monday_template):
    period = Period(start=date(2024, 3, 1), end=date(2024, 3, 10))
    extra = make_extra(7, date(2024, 3, 20))
    cancel = make_cancel(1, date(2024, 3, 18))

    slots = resolve_slots(period, [monday_template], [extra, cancel])

    assert [slot.date for slot in slots] == [date(2024, 3, 4)]


def test_slots_are_ordered_by_date_then_start(monday_template, march_2024):
    early_extra = make_extra(7, date(2024, 3, 4), "08:00")
    same_time_extra = make_extra(8, date(2024, 3, 4), "18:00")
    earlier_day = make_extra(9, date(2024, 3, 2), "20:00")

    slots = resolve_slots(
        march_2024, [monday_template], [same_time_extra, early_extra, earlier_day]
    )
    first_days = [(slot.date, slot.time_start, slot.extra) for slot in slots[:4]]

    assert first_days == [
        (date(2024, 3, 2), time(20, 0), True),
        (date(2024, 3, 4), time(8, 0), True),
        # regular slot precedes the extra at the same start
        (date(2024, 3, 4), time(18, 0), False),
        (date(2024, 3, 4), time(18, 0), True),
    ]


def test_resolution_is_deterministic(monday_template, march_2024):
    overrides = [make_cancel(1, date(2024, 3, 4)), make_extra(2, date(2024, 3, 5))]

    assert resolve_slots(march_2024, [monday_template], overrides) == resolve_slots(
        march_2024, [monday_template], overrides
    )


def test_missing_trainer_slots_skip_events_and_cancelled(march_2024):
    templates = [make_template(1, 1)]
    overrides = [
        make_cancel(1, date(2024, 3, 4), template_id=1),
        make_event(2, date(2024, 3, 5)),
        make_extra(3, date(2024, 3, 6)),
    ]
    slots = resolve_slots(march_2024, templates, overrides)
    rosters = {date(2024, 3, 11): {SlotKey(SlotKind.REGULAR, 1): ["someone"]}}

    missing = missing_trainer_slots(slots, rosters)

    assert [(slot.date, slot.key) for slot in missing] == [
        (date(2024, 3, 6), SlotKey(SlotKind.EXTRA, 3)),
        (date(2024, 3, 18), SlotKey(SlotKind.REGULAR, 1)),
        (date(2024, 3, 25), SlotKey(SlotKind.REGULAR, 1)),
    ]
    assert not any(slot.event for slot in missing)
