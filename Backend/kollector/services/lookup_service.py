import logging
from typing import Optional, Type

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.exceptions import DuplicateError, NotFoundException, ValidationFailed
from kollector.schemas.common import PagedResult
from kollector.schemas.lookup import LookupResponse

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 5000


def validate_paging(page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> None:
    if page < 1:
        raise ValidationFailed("Page must be greater than 0")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationFailed(f"Page size must be between 1 and {max_page_size}")


def name_matches(model, name: str):
    """Case-insensitive equality on the trimmed name."""
    return func.lower(model.name) == name.strip().lower()


class LookupService:
    """
    CRUD for the small name-only reference tables (artists, genres, labels,
    countries, formats, packagings and stores). One instance serves one model;
    the maximum name length is read from the model's column definition.
    """

    def __init__(self, db_session: AsyncSession, model: Type, resource: str):
        self.db = db_session
        self.model = model
        self.resource = resource
        self.max_name_length = model.__table__.c.name.type.length

    async def list(self, page: int = 1, page_size: int = 50, search: Optional[str] = None) -> PagedResult[LookupResponse]:
        """Page through the table ordered by name, optionally filtered by a name fragment."""
        validate_paging(page, page_size)

        query = select(self.model)
        count_query = select(func.count()).select_from(self.model)
        if search and search.strip():
            condition = func.lower(self.model.name).contains(search.strip().lower(), autoescape=True)
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = await self.db.scalar(count_query)
        result = await self.db.execute(
            query.order_by(self.model.name, self.model.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        items = [LookupResponse.model_validate(entity) for entity in result.scalars().all()]
        return PagedResult[LookupResponse](items=items, page=page, page_size=page_size, total_count=total or 0)

    async def get(self, entity_id: int):
        if entity_id <= 0:
            raise ValidationFailed(f"{self.resource} ID must be greater than 0")
        entity = await self.db.get(self.model, entity_id)
        if entity is None:
            raise NotFoundException(self.resource, entity_id)
        return entity

    async def find_by_name(self, name: str):
        result = await self.db.execute(select(self.model).where(name_matches(self.model, name)).limit(1))
        return result.scalar_one_or_none()

    async def create(self, name: str):
        name = self._check_name(name)
        if await self.find_by_name(name) is not None:
            raise DuplicateError(f"{self.resource} name", name)

        entity = self.model(name=name)
        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        logger.info(f"Created {self.resource} {entity.id}: {entity.name}")
        return entity

    async def update(self, entity_id: int, name: str):
        entity = await self.get(entity_id)
        name = self._check_name(name)
        existing = await self.find_by_name(name)
        if existing is not None and existing.id != entity.id:
            raise DuplicateError(f"{self.resource} name", name)

        entity.name = name
        await self.db.commit()
        logger.info(f"Updated {self.resource} {entity.id}: {entity.name}")
        return entity

    async def delete(self, entity_id: int) -> None:
        entity = await self.get(entity_id)
        await self.db.delete(entity)
        await self.db.commit()
        logger.info(f"Deleted {self.resource} {entity_id}")

    def _check_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValidationFailed(f"{self.resource} name is required")
        if self.max_name_length and len(name) > self.max_name_length:
            raise ValidationFailed(f"{self.resource} name cannot exceed {self.max_name_length} characters")
        return name
