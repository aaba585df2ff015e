import logging
from typing import Iterable, List, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.exceptions import ValidationFailed
from kollector.schemas.lookup import LookupResponse
from kollector.schemas.music_release import CreatedEntities
from kollector.services.lookup_service import name_matches

logger = logging.getLogger(__name__)


class EntityResolver:
    """
    Turns the id-or-name inputs of a release form into ids.

    Names are matched case-insensitively and created when missing. New rows are
    only flushed, so they vanish with the rest of the request if it fails. Every
    row created is recorded in `self.created` under the given kind
    (an attribute of CreatedEntities such as "artists").
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.created = CreatedEntities()

    async def resolve_many(self, model: Type, kind: str, ids: Optional[Iterable[int]],
                           names: Optional[Iterable[str]]) -> List[int]:
        resolved: List[int] = []
        if ids:
            await self.ensure_exist(model, ids)
            for entity_id in ids:
                if entity_id not in resolved:
                    resolved.append(entity_id)
        for name in names or []:
            entity = await self.get_or_create(model, kind, name)
            if entity is not None and entity.id not in resolved:
                resolved.append(entity.id)
        return resolved

    async def resolve_one(self, model: Type, kind: str, entity_id: Optional[int],
                          name: Optional[str]) -> Optional[int]:
        if entity_id is not None:
            await self.ensure_exist(model, [entity_id])
            return entity_id
        if name:
            entity = await self.get_or_create(model, kind, name)
            return entity.id if entity is not None else None
        return None

    async def get_or_create(self, model: Type, kind: str, name: str):
        name = name.strip()
        if not name:
            return None

        result = await self.db.execute(select(model).where(name_matches(model, name)).limit(1))
        entity = result.scalar_one_or_none()
        if entity is not None:
            return entity

        max_length = model.__table__.c.name.type.length
        if max_length and len(name) > max_length:
            raise ValidationFailed(f"{model.__name__} name '{name}' cannot exceed {max_length} characters")

        entity = model(name=name)
        self.db.add(entity)
        await self.db.flush()
        getattr(self.created, kind).append(LookupResponse(id=entity.id, name=entity.name))
        logger.info(f"Created {model.__name__} '{entity.name}' with id {entity.id}")
        return entity

    async def ensure_exist(self, model: Type, ids: Iterable[int]) -> None:
        wanted = set(ids)
        if not wanted:
            return
        result = await self.db.execute(select(model.id).where(model.id.in_(wanted)))
        missing = wanted - set(result.scalars().all())
        if missing:
            raise ValidationFailed(f"Unknown {model.__name__} id(s): {', '.join(str(i) for i in sorted(missing))}")
