from typing import List
from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import get_session
from dojo_schedule.core.limits import limiter
from dojo_schedule.crud.clubs import get_club_by_slug, list_clubs
from dojo_schedule.schemas.clubs import ClubRecord

router = APIRouter(prefix="/clubs", tags=["Clubs"])


@router.get("/", response_model=List[ClubRecord])
@limiter.limit("30/minute")
async def get_clubs(request: Request, db: AsyncSession = Depends(get_session)):
    """Club picker for the login page; no session required"""
    return await list_clubs(db)


@router.get("/by-slug/{slug}", response_model=ClubRecord)
@limiter.limit("30/minute")
async def get_club(
    request: Request,
    slug: str = Path(..., description="Club URL slug"),
    db: AsyncSession = Depends(get_session),
):
    return await get_club_by_slug(db, slug)
