from typing import List
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo_schedule.core.database import db_operation
from dojo_schedule.core.exceptions import NotFoundError
from dojo_schedule.models.clubs import Club
from dojo_schedule.schemas.clubs import ClubRecord


@db_operation
async def list_clubs(session: AsyncSession) -> List[ClubRecord]:
    result = await session.execute(select(Club).order_by(Club.name))
    return [ClubRecord.model_validate(row) for row in result.scalars().all()]


@db_operation
async def get_club_by_slug(session: AsyncSession, slug: str) -> ClubRecord:
    result = await session.execute(
        select(Club).where(Club.slug == slug)
    )
    club = result.scalar_one_or_none()
    if not club:
        raise NotFoundError("Club", slug)
    return ClubRecord.model_validate(club)
