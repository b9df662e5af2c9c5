from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.config import MAX_PERIOD_DAYS
from dojo_schedule.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from dojo_schedule.core.logging_utils import get_logger
from dojo_schedule.core.sessions import SessionPrincipal
from dojo_schedule.crud.assignments import (
    list_assignments,
    list_exceptions,
    unregister,
)
from dojo_schedule.crud.entries import create_entry, get_entry, list_entries
from dojo_schedule.crud.overrides import (
    create_override,
    delete_override,
    list_overrides,
)
from dojo_schedule.crud.templates import list_templates
from dojo_schedule.schemas.entries import (
    EntryCreate,
    RealEntry,
    ScheduledEntry,
)
from dojo_schedule.schemas.overrides import OverrideCreate
from dojo_schedule.schemas.schedule import (
    DayRoster,
    PeriodView,
    RosterSlot,
    SlotView,
    UnregisterResult,
)
from dojo_schedule.schemas.slots import Slot, SlotKey, SlotKind
from dojo_schedule.services.calendar import (
    Period,
    group_slots_by_date,
    is_training_day,
)
from dojo_schedule.services.roster import (
    Roster,
    bind_roster,
    ensure_can_sign_up,
    find_slot,
)
from dojo_schedule.services.slot_resolver import (
    missing_trainer_slots,
    resolve_slots,
)

logger = get_logger(__name__)


class ScheduleService:
    """Reads the club's stores and runs the resolver and binder over them"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_slots(self, club_id: str, period: Period) -> List[Slot]:
        templates = await list_templates(self.session, club_id)
        overrides = await list_overrides(
            self.session, club_id, period.start, period.end
        )
        return resolve_slots(period, templates, overrides)

    async def _bind(
        self, club_id: str, period: Period, slots: List[Slot]
    ) -> Dict[date, Roster]:
        entries = await list_entries(self.session, club_id, period.start, period.end)
        assignments = await list_assignments(self.session, club_id)
        exceptions = await list_exceptions(
            self.session, club_id, period.start, period.end
        )

        return {
            day: bind_roster(day_slots, entries, assignments, exceptions, day)
            for day, day_slots in group_slots_by_date(slots).items()
        }

    async def _resolve_day(
        self, club_id: str, on_date: date
    ) -> Tuple[List[Slot], Roster]:
        period = Period(start=on_date, end=on_date)
        slots = await self.get_slots(club_id, period)
        rosters = await self._bind(club_id, period, slots)
        return slots, rosters.get(on_date, {})

    async def get_period_view(self, club_id: str, period: Period) -> PeriodView:
        """All slots of the period with a missing-trainer flag per slot"""
        if period.days > MAX_PERIOD_DAYS:
            raise ValidationError(
                f"Period is limited to {MAX_PERIOD_DAYS} days",
                {"days": period.days},
            )

        slots = await self.get_slots(club_id, period)
        rosters = await self._bind(club_id, period, slots)
        missing = {
            (slot.date, slot.key) for slot in missing_trainer_slots(slots, rosters)
        }

        return PeriodView(
            start=period.start,
            end=period.end,
            slots=[
                SlotView.from_slot(slot, (slot.date, slot.key) in missing)
                for slot in slots
            ],
            missing_count=len(missing),
        )

    async def get_day_roster(self, club_id: str, on_date: date) -> DayRoster:
        slots, roster = await self._resolve_day(club_id, on_date)
        missing = {slot.key for slot in missing_trainer_slots(slots, {on_date: roster})}

        return DayRoster(
            date=on_date,
            is_training_day=is_training_day(on_date, slots),
            slots=[
                RosterSlot(
                    slot=SlotView.from_slot(slot, slot.key in missing),
                    entries=roster.get(slot.key, []),
                )
                for slot in slots
            ],
        )

    async def sign_up(
        self, club_id: str, principal: SessionPrincipal, data: EntryCreate
    ) -> RealEntry:
        slots, roster = await self._resolve_day(club_id, data.date)
        key = data.slot_key
        ensure_can_sign_up(
            find_slot(slots, key, data.date),
            roster,
            key,
            principal.subject_id,
            data.date,
        )

        return await create_entry(
            self.session, club_id, data, principal.subject_id, principal.name
        )

    def _check_owner(
        self, club_id: str, principal: SessionPrincipal, trainer_id: str
    ):
        if principal.can_manage_club(club_id):
            return
        if principal.role == "trainer" and principal.subject_id == trainer_id:
            return
        raise AuthorizationError("Cannot remove another trainer's sign-up")

    async def unregister_entry(
        self, club_id: str, principal: SessionPrincipal, entry_id: int
    ) -> UnregisterResult:
        """Trainers remove their own sign-ups; club admins any of them"""
        entry = await get_entry(self.session, club_id, entry_id)
        self._check_owner(club_id, principal, entry.trainer_id)

        await unregister(self.session, club_id, entry)
        return UnregisterResult(action="deleted", entry_id=entry_id, date=entry.date)

    async def skip_assignment(
        self,
        club_id: str,
        principal: SessionPrincipal,
        assignment_id: int,
        on_date: date,
        reason: Optional[str] = None,
    ) -> UnregisterResult:
        """Take a scheduled trainer off one date; the assignment stays"""
        _, roster = await self._resolve_day(club_id, on_date)

        entry = next(
            (
                entry
                for entries in roster.values()
                for entry in entries
                if isinstance(entry, ScheduledEntry)
                and entry.assignment_id == assignment_id
            ),
            None,
        )
        if entry is None:
            raise NotFoundError(
                "Scheduled entry", f"{assignment_id} on {on_date.isoformat()}"
            )

        self._check_owner(club_id, principal, entry.trainer_id)

        await unregister(self.session, club_id, entry, reason)
        return UnregisterResult(
            action="skipped", assignment_id=assignment_id, date=on_date
        )

    async def cancel_slot(
        self,
        club_id: str,
        template_id: int,
        on_date: date,
        reason: Optional[str] = None,
        created_by: Optional[str] = None,
    ):
        """Cancel one regular slot with an override targeting its template"""
        slots, _ = await self._resolve_day(club_id, on_date)
        key = SlotKey(SlotKind.REGULAR, template_id)

        slot = find_slot(slots, key, on_date)
        if slot is None:
            raise NotFoundError("Slot", f"{key} on {on_date.isoformat()}")
        if slot.cancelled:
            raise ValidationError("Training is already cancelled", {"slot": str(key)})

        return await create_override(
            self.session,
            club_id,
            OverrideCreate(
                kind="cancel", date=on_date, template_id=template_id, reason=reason
            ),
            created_by,
        )

    async def lift_cancellation(self, club_id: str, template_id: int, on_date: date):
        """
        Delete the override the cancelled slot carries. For a legacy wide
        cancel this restores every slot of that date.
        """
        slots, _ = await self._resolve_day(club_id, on_date)
        key = SlotKey(SlotKind.REGULAR, template_id)

        slot = find_slot(slots, key, on_date)
        if slot is None:
            raise NotFoundError("Slot", f"{key} on {on_date.isoformat()}")
        if not slot.cancelled:
            raise ValidationError("Training is not cancelled", {"slot": str(key)})

        await delete_override(self.session, club_id, slot.override_id)
        logger.info(f"Cancellation lifted for {key} on {on_date.isoformat()}")
