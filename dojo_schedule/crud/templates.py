from typing import List
from sqlalchemy import and_
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import db_operation
from dojo_schedule.core.exceptions import NotFoundError, ValidationError
from dojo_schedule.core.logging_utils import log_business_event
from dojo_schedule.models.training_days import TrainingDay
from dojo_schedule.schemas.templates import (
    TemplateCreate,
    TemplateUpdate,
    WeeklyTemplate,
)


def to_template(row: TrainingDay) -> WeeklyTemplate:
    return WeeklyTemplate(
        id=row.id,
        club_id=row.club_id,
        weekday=row.weekday,
        time_start=row.time_start,
        time_end=row.time_end,
        active=row.is_active,
    )


async def _get_row(session: AsyncSession, club_id: str, template_id: int) -> TrainingDay:
    result = await session.execute(
        select(TrainingDay).where(
            and_(TrainingDay.id == template_id, TrainingDay.club_id == club_id)
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFoundError("Training day", str(template_id))
    return row


@db_operation
async def list_templates(
    session: AsyncSession, club_id: str, include_inactive: bool = False
) -> List[WeeklyTemplate]:
    """Club templates ordered by weekday and start; active only by default"""
    conditions = [TrainingDay.club_id == club_id]
    if not include_inactive:
        conditions.append(TrainingDay.is_active.is_(True))

    result = await session.execute(
        select(TrainingDay)
        .where(and_(*conditions))
        .order_by(TrainingDay.weekday, TrainingDay.time_start, TrainingDay.id)
    )
    return [to_template(row) for row in result.scalars().all()]


@db_operation
async def create_template(
    session: AsyncSession, club_id: str, data: TemplateCreate
) -> WeeklyTemplate:
    row = TrainingDay(
        club_id=club_id,
        weekday=data.weekday,
        time_start=data.time_start,
        time_end=data.time_end,
        is_active=True,
    )
    session.add(row)
    await session.commit()
    await session.refresh(row)

    log_business_event(
        "template_created",
        "template",
        row.id,
        {"club_id": club_id, "weekday": row.weekday},
    )
    return to_template(row)


@db_operation
async def update_template(
    session: AsyncSession, club_id: str, template_id: int, data: TemplateUpdate
) -> WeeklyTemplate:
    row = await _get_row(session, club_id, template_id)
    changes = data.model_dump(exclude_unset=True)

    for field in ("weekday", "time_start"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"Template {field} is required")

    time_start = changes.get("time_start", row.time_start)
    time_end = changes.get("time_end", row.time_end)
    if time_end and time_end <= time_start:
        raise ValidationError("time_end must be after time_start")

    for field, value in changes.items():
        setattr(row, field, value)

    await session.commit()
    await session.refresh(row)

    log_business_event("template_updated", "template", row.id, {"club_id": club_id})
    return to_template(row)


@db_operation
async def deactivate_template(
    session: AsyncSession, club_id: str, template_id: int
) -> WeeklyTemplate:
    """Soft delete; entries and overrides keep referencing the row"""
    row = await _get_row(session, club_id, template_id)
    row.is_active = False
    await session.commit()
    await session.refresh(row)

    log_business_event(
        "template_deactivated", "template", row.id, {"club_id": club_id}
    )
    return to_template(row)
