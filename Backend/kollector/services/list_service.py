import logging
from typing import List

from sqlalchemy import delete, func, insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.exceptions import NotFoundException
from kollector.models.list_release import list_release
from kollector.models.music_release import MusicRelease, utcnow
from kollector.models.release_list import ReleaseList
from kollector.schemas.music_release import MusicReleaseSummary
from kollector.schemas.release_list import ListResponse, ListSummary
from kollector.services.release_mapper import ReleaseMapper

logger = logging.getLogger(__name__)


def _release_count():
    return (
        select(func.count())
        .where(list_release.c.list_id == ReleaseList.id)
        .correlate(ReleaseList)
        .scalar_subquery()
    )


def _summary(release_list: ReleaseList, release_count: int) -> ListSummary:
    return ListSummary(
        id=release_list.id,
        name=release_list.name,
        release_count=release_count or 0,
        created_at=release_list.created_at,
        last_modified=release_list.last_modified,
    )


class ListService:
    """User-curated lists of releases ("Desert island", "To sell", ...)."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def list_all(self) -> List[ListSummary]:
        result = await self.db.execute(
            select(ReleaseList, _release_count()).order_by(ReleaseList.last_modified.desc(), ReleaseList.id)
        )
        return [_summary(lst, count) for lst, count in result.all()]

    async def get(self, list_id: int) -> ReleaseList:
        release_list = await self.db.get(ReleaseList, list_id)
        if release_list is None:
            raise NotFoundException("List", list_id)
        return release_list

    async def get_detail(self, list_id: int) -> ListResponse:
        release_list = await self.get(list_id)
        release_ids = await self._release_ids(list_id)
        return ListResponse(**_summary(release_list, len(release_ids)).model_dump(), release_ids=release_ids)

    async def releases(self, list_id: int) -> List[MusicReleaseSummary]:
        await self.get(list_id)
        result = await self.db.execute(
            select(MusicRelease)
            .join(list_release, list_release.c.music_release_id == MusicRelease.id)
            .where(list_release.c.list_id == list_id)
            .order_by(list_release.c.added_at, MusicRelease.id)
        )
        return await ReleaseMapper(self.db).summaries(result.scalars().all())

    async def create(self, name: str) -> ListResponse:
        release_list = ReleaseList(name=name)
        self.db.add(release_list)
        await self.db.commit()
        await self.db.refresh(release_list)
        logger.info(f"Created list {release_list.id}: {release_list.name}")
        return ListResponse(**_summary(release_list, 0).model_dump(), release_ids=[])

    async def update(self, list_id: int, name: str) -> ListResponse:
        release_list = await self.get(list_id)
        release_list.name = name
        release_list.last_modified = utcnow()
        await self.db.commit()
        logger.info(f"Renamed list {list_id} to {name}")
        return await self.get_detail(list_id)

    async def delete(self, list_id: int) -> None:
        release_list = await self.get(list_id)
        await self.db.execute(delete(list_release).where(list_release.c.list_id == list_id))
        await self.db.delete(release_list)
        await self.db.commit()
        logger.info(f"Deleted list {list_id}")

    async def add_release(self, list_id: int, release_id: int) -> None:
        release_list = await self.get(list_id)
        if await self.db.get(MusicRelease, release_id) is None:
            raise NotFoundException("Music release", release_id)
        if release_id in await self._release_ids(list_id):
            return

        await self.db.execute(
            insert(list_release).values(list_id=list_id, music_release_id=release_id, added_at=utcnow())
        )
        release_list.last_modified = utcnow()
        await self.db.commit()
        logger.info(f"Added music release {release_id} to list {list_id}")

    async def remove_release(self, list_id: int, release_id: int) -> None:
        release_list = await self.get(list_id)
        result = await self.db.execute(
            delete(list_release).where(
                list_release.c.list_id == list_id,
                list_release.c.music_release_id == release_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundException(f"Music release in list {list_id}", release_id)
        release_list.last_modified = utcnow()
        await self.db.commit()
        logger.info(f"Removed music release {release_id} from list {list_id}")

    async def lists_for_release(self, release_id: int) -> List[ListSummary]:
        result = await self.db.execute(
            select(ReleaseList, _release_count())
            .join(list_release, list_release.c.list_id == ReleaseList.id)
            .where(list_release.c.music_release_id == release_id)
            .order_by(ReleaseList.name)
        )
        return [_summary(lst, count) for lst, count in result.all()]

    async def _release_ids(self, list_id: int) -> List[int]:
        result = await self.db.execute(
            select(list_release.c.music_release_id)
            .where(list_release.c.list_id == list_id)
            .order_by(list_release.c.added_at, list_release.c.music_release_id)
        )
        return list(result.scalars().all())
