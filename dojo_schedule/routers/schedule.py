from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import get_session
from dojo_schedule.core.dependencies import (
    get_current_session,
    require_club_admin,
    require_trainer,
)
from dojo_schedule.core.exceptions import AuthorizationError, ValidationError
from dojo_schedule.core.limits import limiter
from dojo_schedule.core.sessions import SessionPrincipal
from dojo_schedule.schemas.entries import EntryCreate, RealEntry, SkipRequest
from dojo_schedule.schemas.overrides import Override
from dojo_schedule.schemas.schedule import (
    CancelSlotRequest,
    DayRoster,
    PeriodView,
    UnregisterResult,
)
from dojo_schedule.services.calendar import Period
from dojo_schedule.services.schedule import ScheduleService

router = APIRouter(prefix="/clubs/{club_id}", tags=["Schedule"])


def _ensure_member(principal: SessionPrincipal, club_id: str):
    if principal.can_manage_club(club_id) or principal.club_id == club_id:
        return
    raise AuthorizationError(f"No access to club {club_id}")


def _period_from_query(
    start: Optional[date],
    end: Optional[date],
    year: Optional[int],
    month: Optional[int],
) -> Period:
    if start and end:
        return Period(start=start, end=end)
    if year and month:
        return Period.for_month(year, month)
    raise ValidationError("Provide either start and end, or year and month")


@router.get("/slots", response_model=PeriodView)
@limiter.limit("60/minute")
async def get_slots(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    start: Optional[date] = Query(None, description="First date, inclusive"),
    end: Optional[date] = Query(None, description="Last date, inclusive"),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    principal: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_session),
):
    """
    Resolved slots of a period.

    Each slot carries a missing_trainer flag when it takes sign-ups but
    nobody is on its roster.
    """
    _ensure_member(principal, club_id)
    period = _period_from_query(start, end, year, month)
    return await ScheduleService(db).get_period_view(club_id, period)


@router.get("/roster/{on_date}", response_model=DayRoster)
@limiter.limit("60/minute")
async def get_day_roster(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    on_date: date = Path(..., description="Date (YYYY-MM-DD)"),
    principal: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_session),
):
    """Every slot of the date with the trainers bound to it"""
    _ensure_member(principal, club_id)
    return await ScheduleService(db).get_day_roster(club_id, on_date)


@router.post(
    "/entries", response_model=RealEntry, status_code=status.HTTP_201_CREATED
)
@limiter.limit("20/minute")
async def sign_up(
    request: Request,
    entry_data: EntryCreate,
    club_id: str = Path(..., description="Club ID"),
    principal: SessionPrincipal = Depends(require_trainer),
    db: AsyncSession = Depends(get_session),
):
    """
    Sign the calling trainer up for a slot.

    Returns 409 when the trainer is already on the slot's roster.
    """
    _ensure_member(principal, club_id)
    return await ScheduleService(db).sign_up(club_id, principal, entry_data)


@router.delete("/entries/{entry_id}", response_model=UnregisterResult)
@limiter.limit("20/minute")
async def unregister_entry(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    entry_id: int = Path(..., description="Entry ID"),
    principal: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_session),
):
    return await ScheduleService(db).unregister_entry(club_id, principal, entry_id)


@router.post(
    "/assignments/{assignment_id}/skip/{on_date}", response_model=UnregisterResult
)
@limiter.limit("20/minute")
async def skip_assignment(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    assignment_id: int = Path(..., description="Assignment ID"),
    on_date: date = Path(..., description="Date (YYYY-MM-DD)"),
    skip_data: Optional[SkipRequest] = None,
    principal: SessionPrincipal = Depends(get_current_session),
    db: AsyncSession = Depends(get_session),
):
    """Remove a scheduled trainer from one date; the assignment itself stays"""
    return await ScheduleService(db).skip_assignment(
        club_id,
        principal,
        assignment_id,
        on_date,
        skip_data.reason if skip_data else None,
    )


@router.post(
    "/slots/{template_id}/{on_date}/cancel",
    response_model=Override,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("10/minute")
async def cancel_slot(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    template_id: int = Path(..., description="Training day ID"),
    on_date: date = Path(..., description="Date (YYYY-MM-DD)"),
    cancel_data: Optional[CancelSlotRequest] = None,
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    """Cancel a single regular training; other trainings that day stay"""
    return await ScheduleService(db).cancel_slot(
        club_id,
        template_id,
        on_date,
        cancel_data.reason if cancel_data else None,
        principal.subject_id,
    )


@router.delete(
    "/slots/{template_id}/{on_date}/cancel", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("10/minute")
async def lift_cancellation(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    template_id: int = Path(..., description="Training day ID"),
    on_date: date = Path(..., description="Date (YYYY-MM-DD)"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    await ScheduleService(db).lift_cancellation(club_id, template_id, on_date)
