import datetime
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.exceptions import NotFoundException
from kollector.models.artist import Artist
from kollector.models.music_release import MusicRelease
from kollector.models.now_playing import NowPlaying
from kollector.schemas.now_playing import PlayDate, PlayHistory, RecentlyPlayedItem
from kollector.services.json_fields import load_ids
from kollector.services.release_mapper import ReleaseMapper, cover_of

logger = logging.getLogger(__name__)


class NowPlayingService:
    """Play history: one row per time a release was put on."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def record(self, release_id: int) -> NowPlaying:
        if await self.db.get(MusicRelease, release_id) is None:
            raise NotFoundException("Music release", release_id)
        play = NowPlaying(music_release_id=release_id)
        self.db.add(play)
        await self.db.commit()
        await self.db.refresh(play)
        logger.info(f"Recorded play {play.id} of music release {release_id}")
        return play

    async def get(self, play_id: int) -> NowPlaying:
        play = await self.db.get(NowPlaying, play_id)
        if play is None:
            raise NotFoundException("Now playing entry", play_id)
        return play

    async def delete(self, play_id: int) -> None:
        play = await self.get(play_id)
        await self.db.delete(play)
        await self.db.commit()
        logger.info(f"Deleted play {play_id}")

    async def last_played(self, release_id: int) -> Optional[datetime.datetime]:
        return await self.db.scalar(
            select(func.max(NowPlaying.played_at)).where(NowPlaying.music_release_id == release_id)
        )

    async def history(self, release_id: int) -> PlayHistory:
        result = await self.db.execute(
            select(NowPlaying)
            .where(NowPlaying.music_release_id == release_id)
            .order_by(NowPlaying.played_at.desc(), NowPlaying.id.desc())
        )
        plays = result.scalars().all()
        return PlayHistory(
            music_release_id=release_id,
            play_count=len(plays),
            play_dates=[PlayDate.model_validate(p) for p in plays],
        )

    async def recent(self, limit: int = 24) -> List[RecentlyPlayedItem]:
        """The most recently played releases, each listed once with its latest play."""
        plays = (
            select(
                NowPlaying.music_release_id,
                func.max(NowPlaying.played_at).label("last_played"),
                func.count(NowPlaying.id).label("play_count"),
            )
            .group_by(NowPlaying.music_release_id)
            .subquery()
        )
        result = await self.db.execute(
            select(MusicRelease, plays.c.last_played, plays.c.play_count)
            .join(plays, plays.c.music_release_id == MusicRelease.id)
            .order_by(plays.c.last_played.desc(), MusicRelease.id.desc())
            .limit(limit)
        )
        rows = result.all()

        mapper = ReleaseMapper(self.db)
        artists = await mapper.load_names(Artist, (i for row in rows for i in load_ids(row[0].artists)))
        items = []
        for release, last_played, play_count in rows:
            names = [artists[i] for i in load_ids(release.artists) if i in artists]
            items.append(RecentlyPlayedItem(
                music_release_id=release.id,
                title=release.title,
                artist=", ".join(names) or None,
                cover_front=cover_of(release),
                played_at=last_played,
                play_count=play_count,
            ))
        return items
