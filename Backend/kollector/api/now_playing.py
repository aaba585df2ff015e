import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from kollector.services.database import get_db
from kollector.schemas.now_playing import NowPlayingCreate, NowPlayingResponse, PlayHistory, RecentlyPlayedItem
from kollector.services.now_playing_service import NowPlayingService

router = APIRouter()


async def get_now_playing_service(db: AsyncSession = Depends(get_db)) -> NowPlayingService:
    return NowPlayingService(db)


@router.post("/nowplaying", response_model=NowPlayingResponse, status_code=status.HTTP_201_CREATED)
async def record_play(data: NowPlayingCreate, service: NowPlayingService = Depends(get_now_playing_service)):
    """Record that a release is being played now."""
    return await service.record(data.music_release_id)


@router.get("/nowplaying/recent", response_model=List[RecentlyPlayedItem])
async def get_recently_played(
    limit: int = Query(24, ge=1, le=100),
    service: NowPlayingService = Depends(get_now_playing_service),
):
    """Recently played releases, newest first, one entry per release."""
    return await service.recent(limit)


@router.get("/nowplaying/release/{release_id}/last", response_model=Optional[datetime.datetime])
async def get_last_played(release_id: int, service: NowPlayingService = Depends(get_now_playing_service)):
    """When the release was last played, or null."""
    return await service.last_played(release_id)


@router.get("/nowplaying/release/{release_id}/history", response_model=PlayHistory)
async def get_play_history(release_id: int, service: NowPlayingService = Depends(get_now_playing_service)):
    """Every play of the release, newest first."""
    return await service.history(release_id)


@router.get("/nowplaying/{play_id}", response_model=NowPlayingResponse)
async def get_play(play_id: int, service: NowPlayingService = Depends(get_now_playing_service)):
    return await service.get(play_id)


@router.delete("/nowplaying/{play_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_play(play_id: int, service: NowPlayingService = Depends(get_now_playing_service)):
    await service.delete(play_id)
