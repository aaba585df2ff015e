import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NowPlayingCreate(BaseModel):
    music_release_id: int = Field(..., gt=0)


class NowPlayingResponse(BaseModel):
    id: int
    music_release_id: int
    played_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class RecentlyPlayedItem(BaseModel):
    music_release_id: int
    title: str
    artist: Optional[str] = None
    cover_front: Optional[str] = None
    played_at: datetime.datetime
    play_count: int


class PlayDate(BaseModel):
    id: int
    played_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class PlayHistory(BaseModel):
    music_release_id: int
    play_count: int
    play_dates: List[PlayDate] = []
