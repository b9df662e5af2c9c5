from typing import List
from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import get_session
from dojo_schedule.core.dependencies import require_club_admin
from dojo_schedule.core.limits import limiter
from dojo_schedule.core.sessions import SessionPrincipal
from dojo_schedule.crud.templates import (
    create_template,
    deactivate_template,
    list_templates,
    update_template,
)
from dojo_schedule.schemas.templates import (
    TemplateCreate,
    TemplateUpdate,
    WeeklyTemplate,
)

router = APIRouter(prefix="/clubs/{club_id}/templates", tags=["Templates"])


@router.get("/", response_model=List[WeeklyTemplate])
@limiter.limit("30/minute")
async def get_templates(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    include_inactive: bool = Query(False),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    return await list_templates(db, club_id, include_inactive)


@router.post("/", response_model=WeeklyTemplate, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_new_template(
    request: Request,
    template_data: TemplateCreate,
    club_id: str = Path(..., description="Club ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    return await create_template(db, club_id, template_data)


@router.patch("/{template_id}", response_model=WeeklyTemplate)
@limiter.limit("10/minute")
async def update_existing_template(
    request: Request,
    template_data: TemplateUpdate,
    club_id: str = Path(..., description="Club ID"),
    template_id: int = Path(..., description="Training day ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    return await update_template(db, club_id, template_id, template_data)


@router.post("/{template_id}/deactivate", response_model=WeeklyTemplate)
@limiter.limit("10/minute")
async def deactivate_existing_template(
    request: Request,
    club_id: str = Path(..., description="Club ID"),
    template_id: int = Path(..., description="Training day ID"),
    principal: SessionPrincipal = Depends(require_club_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Soft delete. Past entries keep pointing at the template and it no
    longer produces slots.
    """
    return await deactivate_template(db, club_id, template_id)
