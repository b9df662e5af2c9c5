from datetime import date
from typing import List, Optional, Union
from sqlalchemy import and_
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import db_operation
from dojo_schedule.core.exceptions import NotFoundError, ValidationError
from dojo_schedule.core.logging_utils import log_business_event
from dojo_schedule.models.overrides import TrainingOverride
from dojo_schedule.models.training_days import TrainingDay
from dojo_schedule.schemas.overrides import (
    CancelOverride,
    EventOverride,
    ExtraOverride,
    OverrideCreate,
    OverrideUpdate,
)

AnyOverride = Union[CancelOverride, ExtraOverride, EventOverride]


def to_override(row: TrainingOverride) -> AnyOverride:
    common = {
        "id": row.id,
        "club_id": row.club_id,
        "date": row.override_date,
        "time_start": row.time_start,
        "time_end": row.time_end,
        "reason": row.reason,
    }
    if row.kind == "cancel":
        return CancelOverride(template_id=row.training_day_id, **common)
    if row.requires_roster is False:
        return EventOverride(**common)
    return ExtraOverride(**common)


async def _get_row(
    session: AsyncSession, club_id: str, override_id: int
) -> TrainingOverride:
    result = await session.execute(
        select(TrainingOverride).where(
            and_(
                TrainingOverride.id == override_id,
                TrainingOverride.club_id == club_id,
            )
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFoundError("Override", str(override_id))
    return row


@db_operation
async def get_override(
    session: AsyncSession, club_id: str, override_id: int
) -> AnyOverride:
    return to_override(await _get_row(session, club_id, override_id))


@db_operation
async def list_overrides(
    session: AsyncSession,
    club_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    kind: Optional[str] = None,
) -> List[AnyOverride]:
    conditions = [TrainingOverride.club_id == club_id]
    if start:
        conditions.append(TrainingOverride.override_date >= start)
    if end:
        conditions.append(TrainingOverride.override_date <= end)
    if kind:
        conditions.append(TrainingOverride.kind == kind)

    result = await session.execute(
        select(TrainingOverride)
        .where(and_(*conditions))
        .order_by(TrainingOverride.override_date, TrainingOverride.id)
    )
    return [to_override(row) for row in result.scalars().all()]


@db_operation
async def create_override(
    session: AsyncSession,
    club_id: str,
    data: OverrideCreate,
    created_by: Optional[str] = None,
) -> AnyOverride:
    """
    Create a cancel, extra or event override.

    A cancel without template_id is stored as a legacy wide cancel.
    """
    if data.kind == "cancel" and data.template_id is not None:
        result = await session.execute(
            select(TrainingDay.id).where(
                and_(
                    TrainingDay.id == data.template_id,
                    TrainingDay.club_id == club_id,
                )
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Training day", str(data.template_id))

    row = TrainingOverride(
        club_id=club_id,
        training_day_id=data.template_id if data.kind == "cancel" else None,
        override_date=data.date,
        kind="cancel" if data.kind == "cancel" else "extra",
        time_start=data.time_start,
        time_end=data.time_end,
        reason=data.reason or None,
        requires_roster=data.kind != "event",
        created_by=created_by,
    )
    session.add(row)
    await session.commit()
    await session.refresh(row)

    log_business_event(
        "override_created",
        "override",
        row.id,
        {
            "club_id": club_id,
            "kind": data.kind,
            "date": data.date.isoformat(),
            "template_id": data.template_id,
        },
    )
    return to_override(row)


@db_operation
async def update_override(
    session: AsyncSession, club_id: str, override_id: int, data: OverrideUpdate
) -> AnyOverride:
    """Kind is immutable; only date, times and reason change"""
    row = await _get_row(session, club_id, override_id)
    changes = data.model_dump(exclude_unset=True)

    if "date" in changes:
        if changes["date"] is None:
            raise ValidationError("Override date is required")
        row.override_date = changes["date"]
    if "time_start" in changes:
        if changes["time_start"] is None and row.kind == "extra":
            raise ValidationError("time_start is required for extra trainings")
        row.time_start = changes["time_start"]
    if "time_end" in changes:
        row.time_end = changes["time_end"]
    if "reason" in changes:
        row.reason = changes["reason"] or None

    if row.time_start and row.time_end and row.time_end <= row.time_start:
        raise ValidationError("time_end must be after time_start")

    await session.commit()
    await session.refresh(row)

    log_business_event(
        "override_updated",
        "override",
        row.id,
        {"club_id": club_id, "fields": sorted(changes)},
    )
    return to_override(row)


@db_operation
async def delete_override(session: AsyncSession, club_id: str, override_id: int):
    """
    Delete an override; lifting a cancellation is deleting its override.

    Raises NotFoundError when it is already gone (e.g. another admin won).
    """
    row = await _get_row(session, club_id, override_id)
    await session.delete(row)
    await session.commit()

    log_business_event(
        "override_deleted",
        "override",
        override_id,
        {"club_id": club_id, "kind": row.kind, "date": row.override_date.isoformat()},
    )
