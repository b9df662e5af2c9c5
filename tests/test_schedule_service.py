from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from conftest import (
    CLUB_ID,
    make_assignment,
    make_cancel,
    make_entry,
    make_event,
    make_extra,
    make_template,
)
from dojo_schedule.core.exceptions import (
    AuthorizationError,
    DuplicateEntryError,
    NotFoundError,
    ValidationError,
)
from dojo_schedule.core.sessions import SessionPrincipal
from dojo_schedule.schemas.entries import EntryCreate
from dojo_schedule.services import schedule as schedule_module
from dojo_schedule.services.calendar import Period
from dojo_schedule.services.schedule import ScheduleService
from dojo_schedule.services.slot_resolver import resolve_slots

MONDAY = date(2024, 3, 11)


def principal(subject_id="t1", role="trainer", club_id=CLUB_ID):
    now = datetime.now(timezone.utc)
    return SessionPrincipal(
        subject_id=subject_id,
        role=role,
        name=subject_id.upper(),
        club_id=club_id,
        issued_at=now,
        expires_at=now + timedelta(days=7),
    )


class Stores:
    """In-memory stand-ins for the crud functions the service reads"""

    def __init__(self, monkeypatch):
        self.templates = [make_template(1, 1)]
        self.overrides = []
        self.entries = []
        self.assignments = []
        self.exceptions = []

        self.create_entry = AsyncMock(side_effect=self._create_entry)
        self.create_override = AsyncMock(side_effect=self._create_override)
        self.delete_override = AsyncMock(side_effect=self._delete_override)
        self.unregister = AsyncMock()
        self.get_entry = AsyncMock(side_effect=self._get_entry)

        for name in ("list_templates", "list_overrides", "list_entries"):
            monkeypatch.setattr(schedule_module, name, self._lister(name))
        monkeypatch.setattr(
            schedule_module, "list_assignments", AsyncMock(side_effect=lambda *a: self.assignments)
        )
        monkeypatch.setattr(
            schedule_module, "list_exceptions", AsyncMock(side_effect=lambda *a: self.exceptions)
        )
        for name in (
            "create_entry",
            "create_override",
            "delete_override",
            "unregister",
            "get_entry",
        ):
            monkeypatch.setattr(schedule_module, name, getattr(self, name))

    def _lister(self, name):
        attribute = name.replace("list_", "")

        async def lister(*args, **kwargs):
            return list(getattr(self, attribute))

        return lister

    async def _create_entry(self, session, club_id, data, trainer_id, trainer_name):
        entry = make_entry(
            len(self.entries) + 1,
            data.date,
            trainer_id=trainer_id,
            template_id=data.template_id,
            override_id=data.override_id,
            name=trainer_name,
        )
        self.entries.append(entry)
        return entry

    async def _create_override(self, session, club_id, data, created_by=None):
        override = make_cancel(
            len(self.overrides) + 100, data.date, data.template_id, data.reason
        )
        self.overrides.append(override)
        return override

    async def _delete_override(self, session, club_id, override_id):
        before = len(self.overrides)
        self.overrides = [o for o in self.overrides if o.id != override_id]
        if len(self.overrides) == before:
            raise NotFoundError("Override", str(override_id))

    async def _get_entry(self, session, club_id, entry_id):
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise NotFoundError("Training entry", str(entry_id))


@pytest.fixture
def stores(monkeypatch):
    return Stores(monkeypatch)


@pytest.fixture
def service():
    return ScheduleService(session=AsyncMock())


async def test_sign_up_then_duplicate_is_rejected(stores, service):
    data = EntryCreate(date=MONDAY, template_id=1)

    entry = await service.sign_up(CLUB_ID, principal(), data)
    assert entry.trainer_id == "t1"

    with pytest.raises(DuplicateEntryError):
        await service.sign_up(CLUB_ID, principal(), data)
    assert stores.create_entry.await_count == 1


async def test_sign_up_rejected_for_scheduled_trainer(stores, service):
    stores.assignments = [make_assignment(3, template_id=1, trainer_id="t1")]

    with pytest.raises(DuplicateEntryError):
        await service.sign_up(CLUB_ID, principal(), EntryCreate(date=MONDAY, template_id=1))
    stores.create_entry.assert_not_awaited()


async def test_sign_up_for_event_or_cancelled_slot_is_rejected(stores, service):
    stores.overrides = [make_event(5, MONDAY), make_cancel(6, MONDAY, template_id=1)]

    with pytest.raises(ValidationError):
        await service.sign_up(CLUB_ID, principal(), EntryCreate(date=MONDAY, override_id=5))
    with pytest.raises(ValidationError):
        await service.sign_up(CLUB_ID, principal(), EntryCreate(date=MONDAY, template_id=1))


async def test_sign_up_on_a_day_without_the_slot_is_not_found(stores, service):
    with pytest.raises(NotFoundError):
        await service.sign_up(
            CLUB_ID, principal(), EntryCreate(date=date(2024, 3, 12), template_id=1)
        )


async def test_day_roster_binds_and_flags_missing(stores, service):
    stores.overrides = [make_extra(7, MONDAY, "09:00"), make_event(8, MONDAY, "12:00")]
    stores.assignments = [make_assignment(3, template_id=1, name="Anna")]

    roster = await service.get_day_roster(CLUB_ID, MONDAY)
    by_key = {item.slot.key: item for item in roster.slots}

    assert roster.is_training_day
    assert [e.trainer_name for e in by_key["regular:1"].entries] == ["Anna"]
    assert not by_key["regular:1"].slot.missing_trainer
    assert by_key["extra:7"].slot.missing_trainer
    assert not by_key["extra:8"].slot.missing_trainer


async def test_period_view_is_limited(stores, service):
    with pytest.raises(ValidationError):
        await service.get_period_view(
            CLUB_ID, Period(start=date(2024, 1, 1), end=date(2024, 6, 30))
        )

    view = await service.get_period_view(CLUB_ID, Period.for_month(2024, 3))
    assert len(view.slots) == 4
    assert view.missing_count == 4


async def test_skip_assignment_unregisters_scheduled_entry(stores, service):
    stores.assignments = [make_assignment(3, template_id=1, trainer_id="t1")]

    result = await service.skip_assignment(CLUB_ID, principal(), 3, MONDAY, "sick")

    assert result.action == "skipped"
    (_, club_id, entry, reason), _ = stores.unregister.await_args
    assert entry.ref == ("scheduled", 3, MONDAY)
    assert reason == "sick"


async def test_skip_of_unknown_assignment_is_not_found(stores, service):
    with pytest.raises(NotFoundError):
        await service.skip_assignment(CLUB_ID, principal(), 3, MONDAY)


async def test_trainer_cannot_remove_someone_else(stores, service):
    stores.entries = [make_entry(1, MONDAY, trainer_id="t2", template_id=1)]

    with pytest.raises(AuthorizationError):
        await service.unregister_entry(CLUB_ID, principal("t1"), 1)

    admin = principal("a1", role="admin")
    result = await service.unregister_entry(CLUB_ID, admin, 1)
    assert result.action == "deleted"


async def test_cancel_and_lift_restore_the_slot(stores, service):
    stores.templates = [make_template(1, 1, "17:00"), make_template(2, 1, "19:00")]
    period = Period(start=MONDAY, end=MONDAY)

    override = await service.cancel_slot(CLUB_ID, 2, MONDAY, "Sensei away")
    assert override.template_id == 2

    slots = resolve_slots(period, stores.templates, stores.overrides)
    assert [slot.cancelled for slot in slots] == [False, True]

    with pytest.raises(ValidationError):
        await service.cancel_slot(CLUB_ID, 2, MONDAY)

    await service.lift_cancellation(CLUB_ID, 2, MONDAY)
    slots = resolve_slots(period, stores.templates, stores.overrides)
    assert not any(slot.cancelled for slot in slots)

    with pytest.raises(ValidationError):
        await service.lift_cancellation(CLUB_ID, 2, MONDAY)
