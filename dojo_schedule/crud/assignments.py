from datetime import date
from typing import List, Optional, Union
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import db_operation, is_unique_violation
from dojo_schedule.core.exceptions import DuplicateEntryError
from dojo_schedule.core.logging_utils import log_business_event
from dojo_schedule.crud.entries import delete_entry
from dojo_schedule.models.assignments import ScheduleException, TrainerSchedule
from dojo_schedule.models.training_days import TrainingDay
from dojo_schedule.models.users import Trainer
from dojo_schedule.schemas.entries import (
    Assignment,
    AssignmentException,
    RealEntry,
    ScheduledEntry,
)
from dojo_schedule.services.roster import DeleteEntry, plan_unregister


@db_operation
async def list_assignments(
    session: AsyncSession, club_id: str, include_inactive: bool = False
) -> List[Assignment]:
    """Assignments on the club's templates, with the trainer's name joined"""
    conditions = [TrainingDay.club_id == club_id]
    if not include_inactive:
        conditions.append(TrainerSchedule.is_active.is_(True))

    result = await session.execute(
        select(TrainerSchedule, Trainer.name)
        .join(TrainingDay, TrainerSchedule.training_day_id == TrainingDay.id)
        .join(Trainer, TrainerSchedule.trainer_id == Trainer.id)
        .where(and_(*conditions))
        .order_by(TrainerSchedule.id)
    )

    return [
        Assignment(
            id=schedule.id,
            trainer_id=schedule.trainer_id,
            trainer_name=trainer_name,
            template_id=schedule.training_day_id,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            active=schedule.is_active,
        )
        for schedule, trainer_name in result.all()
    ]


@db_operation
async def list_exceptions(
    session: AsyncSession,
    club_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[AssignmentException]:
    conditions = [TrainingDay.club_id == club_id]
    if start:
        conditions.append(ScheduleException.exception_date >= start)
    if end:
        conditions.append(ScheduleException.exception_date <= end)

    result = await session.execute(
        select(ScheduleException)
        .join(TrainerSchedule, ScheduleException.schedule_id == TrainerSchedule.id)
        .join(TrainingDay, TrainerSchedule.training_day_id == TrainingDay.id)
        .where(and_(*conditions))
        .order_by(ScheduleException.exception_date)
    )

    return [
        AssignmentException(
            assignment_id=row.schedule_id, date=row.exception_date, reason=row.reason
        )
        for row in result.scalars().all()
    ]


@db_operation
async def create_exception(
    session: AsyncSession,
    assignment_id: int,
    on_date: date,
    trainer_id: str,
    reason: Optional[str] = None,
) -> AssignmentException:
    """Skip one occurrence of an assignment"""
    session.add(
        ScheduleException(
            schedule_id=assignment_id, exception_date=on_date, reason=reason
        )
    )

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if is_unique_violation(e):
            raise DuplicateEntryError(
                trainer_id,
                on_date.isoformat(),
                f"assignment:{assignment_id}",
                message="This scheduled training is already skipped",
            )
        raise

    log_business_event(
        "assignment_skipped",
        "assignment",
        assignment_id,
        {"date": on_date.isoformat(), "trainer_id": trainer_id},
    )
    return AssignmentException(assignment_id=assignment_id, date=on_date, reason=reason)


async def unregister(
    session: AsyncSession,
    club_id: str,
    entry: Union[RealEntry, ScheduledEntry],
    reason: Optional[str] = None,
) -> Union[DeleteEntry, AssignmentException]:
    """
    Remove a trainer from a slot: delete the row of a real entry, or write
    an exception for the (assignment, date) of a scheduled one.
    """
    plan = plan_unregister(entry)

    if isinstance(plan, DeleteEntry):
        await delete_entry(session, club_id, plan.entry_id)
        return plan

    return await create_exception(
        session, plan.assignment_id, plan.date, entry.trainer_id, reason
    )
