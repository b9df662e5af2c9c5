from typing import List
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import get_session
from dojo_schedule.core.dependencies import require_super_admin
from dojo_schedule.core.limits import limiter
from dojo_schedule.core.sessions import SessionPrincipal
from dojo_schedule.crud.users import (
    delete_trainer,
    list_admins,
    list_trainers,
    promote_trainer,
    revoke_admin,
)
from dojo_schedule.schemas.users import AdminRecord, MergedUser, PromoteRequest
from dojo_schedule.services.identity_merge import merge_users

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=List[MergedUser])
@limiter.limit("30/minute")
async def get_merged_users(
    request: Request,
    principal: SessionPrincipal = Depends(require_super_admin),
    db: AsyncSession = Depends(get_session),
):
    """Trainers and admins merged into one row per person (by e-mail)"""
    trainers = await list_trainers(db)
    admins = await list_admins(db)
    return merge_users(trainers, admins)


@router.post(
    "/trainers/{trainer_id}/promote",
    response_model=AdminRecord,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("10/minute")
async def promote(
    request: Request,
    trainer_id: str = Path(..., description="Trainer ID"),
    promote_data: PromoteRequest = PromoteRequest(),
    principal: SessionPrincipal = Depends(require_super_admin),
    db: AsyncSession = Depends(get_session),
):
    return await promote_trainer(db, trainer_id, promote_data.is_super_admin)


@router.delete("/admins/{admin_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def revoke(
    request: Request,
    admin_id: int = Path(..., description="Admin ID"),
    principal: SessionPrincipal = Depends(require_super_admin),
    db: AsyncSession = Depends(get_session),
):
    await revoke_admin(db, admin_id)


@router.delete("/trainers/{trainer_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_trainer(
    request: Request,
    trainer_id: str = Path(..., description="Trainer ID"),
    principal: SessionPrincipal = Depends(require_super_admin),
    db: AsyncSession = Depends(get_session),
):
    await delete_trainer(db, trainer_id)
