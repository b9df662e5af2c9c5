from datetime import date
from typing import List, Optional
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import (
    db_operation,
    is_unique_violation,
    violated_constraint,
)
from dojo_schedule.core.exceptions import (
    DatabaseIntegrityError,
    DuplicateEntryError,
    NotFoundError,
)
from dojo_schedule.core.logging_utils import log_business_event
from dojo_schedule.models.entries import TrainingEntry
from dojo_schedule.schemas.entries import EntryCreate, RealEntry


def to_entry(row: TrainingEntry) -> RealEntry:
    return RealEntry(
        id=row.id,
        club_id=row.club_id,
        template_id=row.training_day_id,
        override_id=row.override_id,
        date=row.training_date,
        trainer_id=row.trainer_id,
        trainer_name=row.trainer_name,
        remark=row.remark,
        created_at=row.created_at,
    )


@db_operation
async def list_entries(
    session: AsyncSession,
    club_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[RealEntry]:
    conditions = [TrainingEntry.club_id == club_id]
    if start:
        conditions.append(TrainingEntry.training_date >= start)
    if end:
        conditions.append(TrainingEntry.training_date <= end)

    result = await session.execute(
        select(TrainingEntry)
        .where(and_(*conditions))
        .order_by(TrainingEntry.training_date, TrainingEntry.id)
    )
    return [to_entry(row) for row in result.scalars().all()]


@db_operation
async def get_entry(session: AsyncSession, club_id: str, entry_id: int) -> RealEntry:
    result = await session.execute(
        select(TrainingEntry).where(
            and_(TrainingEntry.id == entry_id, TrainingEntry.club_id == club_id)
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFoundError("Training entry", str(entry_id))
    return to_entry(row)


@db_operation
async def create_entry(
    session: AsyncSession,
    club_id: str,
    data: EntryCreate,
    trainer_id: str,
    trainer_name: str,
) -> RealEntry:
    """
    Insert a sign-up. A unique-constraint violation means a concurrent
    request won the race and is reported as DuplicateEntryError.
    """
    row = TrainingEntry(
        club_id=club_id,
        training_day_id=data.template_id,
        override_id=data.override_id,
        training_date=data.date,
        trainer_id=trainer_id,
        trainer_name=trainer_name,
        remark=data.remark or None,
    )
    session.add(row)

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if is_unique_violation(e):
            raise DuplicateEntryError(
                trainer_id, data.date.isoformat(), str(data.slot_key)
            )
        raise DatabaseIntegrityError(
            violated_constraint(e) or "unknown", {"original_error": str(e.orig)}
        )

    await session.refresh(row)

    log_business_event(
        "entry_created",
        "entry",
        row.id,
        {
            "club_id": club_id,
            "trainer_id": trainer_id,
            "date": data.date.isoformat(),
            "slot": str(data.slot_key),
        },
    )
    return to_entry(row)


@db_operation
async def delete_entry(session: AsyncSession, club_id: str, entry_id: int):
    result = await session.execute(
        select(TrainingEntry).where(
            and_(TrainingEntry.id == entry_id, TrainingEntry.club_id == club_id)
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFoundError("Training entry", str(entry_id))

    await session.delete(row)
    await session.commit()

    log_business_event(
        "entry_deleted",
        "entry",
        entry_id,
        {"club_id": club_id, "trainer_id": row.trainer_id},
    )
