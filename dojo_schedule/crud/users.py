from typing import List, Optional
from sqlalchemy import func, or_
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
    NotFoundError,
    ValidationError,
)
from dojo_schedule.core.logging_utils import log_business_event
from dojo_schedule.models.users import Admin, Trainer
from dojo_schedule.schemas.users import AdminRecord, TrainerRecord
from dojo_schedule.services.identity_merge import normalize_email


@db_operation
async def list_trainers(
    session: AsyncSession, club_id: Optional[str] = None
) -> List[TrainerRecord]:
    query = select(Trainer).order_by(Trainer.name)
    if club_id:
        query = query.where(Trainer.club_id == club_id)

    result = await session.execute(query)
    return [TrainerRecord.model_validate(row) for row in result.scalars().all()]


@db_operation
async def list_admins(session: AsyncSession) -> List[AdminRecord]:
    result = await session.execute(select(Admin).order_by(Admin.id))
    return [AdminRecord.model_validate(row) for row in result.scalars().all()]


@db_operation
async def promote_trainer(
    session: AsyncSession, trainer_id: str, is_super_admin: bool = False
) -> AdminRecord:
    """
    Create an Admin mirroring the trainer's e-mail so the merged view shows
    one person with both roles.
    """
    trainer = await session.get(Trainer, trainer_id)
    if not trainer:
        raise NotFoundError("Trainer", trainer_id)

    email = normalize_email(trainer.email)
    if not email:
        raise ValidationError("Trainer has no e-mail", {"trainer_id": trainer_id})

    result = await session.execute(
        select(Admin.id).where(
            or_(
                func.lower(func.trim(Admin.email)) == email,
                func.lower(Admin.username) == email,
            )
        )
    )
    if result.scalars().first() is not None:
        raise ValidationError(
            "Trainer is already an admin", {"trainer_id": trainer_id}
        )

    admin = Admin(
        username=email,
        email=email,
        full_name=trainer.name,
        is_super_admin=is_super_admin,
        club_id=None if is_super_admin else trainer.club_id,
    )
    session.add(admin)

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if is_unique_violation(e):
            raise ValidationError(
                "Trainer is already an admin", {"trainer_id": trainer_id}
            )
        raise DatabaseIntegrityError(
            violated_constraint(e) or "unknown", {"original_error": str(e.orig)}
        )

    await session.refresh(admin)

    log_business_event(
        "trainer_promoted",
        "admin",
        admin.id,
        {"trainer_id": trainer_id, "is_super_admin": is_super_admin},
    )
    return AdminRecord.model_validate(admin)


@db_operation
async def revoke_admin(session: AsyncSession, admin_id: int):
    admin = await session.get(Admin, admin_id)
    if not admin:
        raise NotFoundError("Admin", str(admin_id))

    await session.delete(admin)
    await session.commit()
    log_business_event("admin_revoked", "admin", admin_id)


@db_operation
async def delete_trainer(session: AsyncSession, trainer_id: str):
    trainer = await session.get(Trainer, trainer_id)
    if not trainer:
        raise NotFoundError("Trainer", trainer_id)

    await session.delete(trainer)
    await session.commit()
    log_business_event("trainer_deleted", "trainer", trainer_id)
