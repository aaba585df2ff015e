import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from kollector.core.exceptions import DuplicateError, NotFoundException, ValidationFailed
from kollector.models.genre import Genre
from kollector.models.kollection import Kollection
from kollector.schemas.common import PagedResult
from kollector.schemas.kollection import KollectionCreate, KollectionResponse, KollectionUpdate
from kollector.services.lookup_service import name_matches, validate_paging

logger = logging.getLogger(__name__)


def to_response(kollection: Kollection) -> KollectionResponse:
    return KollectionResponse(
        id=kollection.id,
        name=kollection.name,
        genre_ids=sorted(g.id for g in kollection.genres),
        genre_names=sorted(g.name for g in kollection.genres),
    )


class KollectionService:
    """Named groups of genres used to browse the collection by mood or scene."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def list(self, page: int = 1, page_size: int = 50, search: Optional[str] = None) -> PagedResult[KollectionResponse]:
        validate_paging(page, page_size)
        query = select(Kollection).options(selectinload(Kollection.genres))
        count_query = select(func.count()).select_from(Kollection)
        if search and search.strip():
            condition = func.lower(Kollection.name).contains(search.strip().lower(), autoescape=True)
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = await self.db.scalar(count_query)
        result = await self.db.execute(
            query.order_by(Kollection.name).offset((page - 1) * page_size).limit(page_size)
        )
        items = [to_response(k) for k in result.scalars().all()]
        return PagedResult[KollectionResponse](items=items, page=page, page_size=page_size, total_count=total or 0)

    async def get(self, kollection_id: int) -> Kollection:
        result = await self.db.execute(
            select(Kollection).where(Kollection.id == kollection_id).options(selectinload(Kollection.genres))
        )
        kollection = result.scalar_one_or_none()
        if kollection is None:
            raise NotFoundException("Kollection", kollection_id)
        return kollection

    async def create(self, data: KollectionCreate) -> Kollection:
        await self._ensure_unique_name(data.name)
        kollection = Kollection(name=data.name, genres=await self._load_genres(data.genre_ids))
        self.db.add(kollection)
        await self.db.commit()
        logger.info(f"Created kollection {kollection.id}: {kollection.name}")
        return await self.get(kollection.id)

    async def update(self, kollection_id: int, data: KollectionUpdate) -> Kollection:
        kollection = await self.get(kollection_id)
        if data.name is not None:
            await self._ensure_unique_name(data.name, exclude_id=kollection.id)
            kollection.name = data.name
        if data.genre_ids is not None:
            kollection.genres = await self._load_genres(data.genre_ids)
        await self.db.commit()
        logger.info(f"Updated kollection {kollection.id}")
        return await self.get(kollection.id)

    async def delete(self, kollection_id: int) -> None:
        kollection = await self.get(kollection_id)
        kollection.genres = []
        await self.db.delete(kollection)
        await self.db.commit()
        logger.info(f"Deleted kollection {kollection_id}")

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Kollection.id).where(name_matches(Kollection, name))
        if exclude_id is not None:
            query = query.where(Kollection.id != exclude_id)
        if await self.db.scalar(query.limit(1)) is not None:
            raise DuplicateError("Kollection name", name)

    async def _load_genres(self, genre_ids: List[int]) -> List[Genre]:
        wanted = set(genre_ids)
        if not wanted:
            return []
        result = await self.db.execute(select(Genre).where(Genre.id.in_(wanted)))
        genres = list(result.scalars().all())
        missing = wanted - {g.id for g in genres}
        if missing:
            raise ValidationFailed(f"Unknown genre id(s): {', '.join(str(i) for i in sorted(missing))}")
        return genres
