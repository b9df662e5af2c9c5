from datetime import date
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import get_session
from dojo_schedule.core.dependencies import require_club_admin
from dojo_schedule.core.limits import limiter
from dojo_schedule.core.sessions import SessionPrincipal
from dojo_schedule.crud.overrides import (
    create_override,
    delete_override,
    get_override,
    list_overrides,
    update_override,
)
from dojo_schedule.schemas.overrides import Override, OverrideCreate, OverrideUpdate

router = APIRouter(prefix="/clubs/{club_id}/overrides", tags=["Overrides"])


@router.get("/", response_model=List[Override])
@limiter.limit("30/minute")
async def get_overrides(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    kind: Optional[Literal["cancel", "extra"]] = Query(None),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    return await list_overrides(db, club_id, start, end, kind)


@router.get("/{override_id}", response_model=Override)
@limiter.limit("30/minute")
async def get_override_by_id(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    override_id: int = Path(..., description="Override ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    return await get_override(db, club_id, override_id)


@router.post("/", response_model=Override, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_new_override(
    request: Request,
    override_data: OverrideCreate,
    club_id: str = Path(..., description="Club ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a cancellation, an extra training or an info-only event.

    A cancel without template_id cancels every training of that date.
    """
    return await create_override(db, club_id, override_data, principal.subject_id)


@router.patch("/{override_id}", response_model=Override)
@limiter.limit("10/minute")
async def update_existing_override(
    request: Request,
    override_data: OverrideUpdate,
    club_id: str = Path(..., description="Club ID"),
    override_id: int = Path(..., description="Override ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    return await update_override(db, club_id, override_id, override_data)


@router.delete("/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def delete_existing_override(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    override_id: int = Path(..., description="Override ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    await delete_override(db, club_id, override_id)
