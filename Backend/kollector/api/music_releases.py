from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from kollector.services.database import get_db
from kollector.schemas.common import PagedResult
from kollector.schemas.music_release import (
    MusicReleaseCreate, MusicReleaseResponse, MusicReleaseSaveResponse, MusicReleaseSummary,
    MusicReleaseUpdate, RandomRelease, SearchSuggestion,
)
from kollector.schemas.statistics import CollectionStatistics
from kollector.services.music_release_query import MusicReleaseQueryService, ReleaseQuery
from kollector.services.music_release_service import MusicReleaseService
from kollector.services.statistics_service import StatisticsService

router = APIRouter()


async def get_release_service(db: AsyncSession = Depends(get_db)) -> MusicReleaseService:
    return MusicReleaseService(db)


async def get_query_service(db: AsyncSession = Depends(get_db)) -> MusicReleaseQueryService:
    return MusicReleaseQueryService(db)


# Static routes first so "/musicreleases/statistics" is not read as an id

@router.get("/musicreleases", response_model=PagedResult[MusicReleaseSummary])
async def list_music_releases(
    search: Optional[str] = None,
    artist_id: Optional[int] = None,
    genre_id: Optional[int] = None,
    kollection_id: Optional[int] = None,
    label_id: Optional[int] = None,
    country_id: Optional[int] = None,
    format_id: Optional[int] = None,
    live: Optional[bool] = None,
    year_from: Optional[int] = None,
    year_to: Optional[int] = None,
    sort_by: str = "title",
    sort_order: str = "asc",
    page: int = 1,
    page_size: int = 20,
    service: MusicReleaseQueryService = Depends(get_query_service),
):
    """Search, filter, sort and page the collection."""
    return await service.search(ReleaseQuery(
        search=search, artist_id=artist_id, genre_id=genre_id, kollection_id=kollection_id,
        label_id=label_id, country_id=country_id, format_id=format_id, live=live,
        year_from=year_from, year_to=year_to, sort_by=sort_by, sort_order=sort_order,
        page=page, page_size=page_size,
    ))


@router.get("/musicreleases/suggestions", response_model=List[SearchSuggestion])
async def get_search_suggestions(
    query: Optional[str] = None,
    limit: int = Query(10, ge=1, le=50),
    service: MusicReleaseQueryService = Depends(get_query_service),
):
    """Type-ahead suggestions across releases, artists and labels."""
    return await service.suggestions(query, limit)


@router.get("/musicreleases/statistics", response_model=CollectionStatistics)
async def get_collection_statistics(db: AsyncSession = Depends(get_db)):
    """Dashboard numbers for the whole collection."""
    return await StatisticsService(db).get_statistics()


@router.get("/musicreleases/random", response_model=RandomRelease)
async def get_random_release(service: MusicReleaseQueryService = Depends(get_query_service)):
    """Pick something to play."""
    return RandomRelease(id=await service.random_id())


@router.get("/musicreleases/{release_id}", response_model=MusicReleaseResponse)
async def get_music_release(release_id: int, service: MusicReleaseService = Depends(get_release_service)):
    """Get a release with every id resolved to a name."""
    release = await service.get(release_id)
    return await service.mapper.detail(release)


@router.post("/musicreleases", response_model=MusicReleaseSaveResponse, status_code=status.HTTP_201_CREATED)
async def create_music_release(data: MusicReleaseCreate, service: MusicReleaseService = Depends(get_release_service)):
    """Add a release. Artists, genres and other lookups given by name are created as needed."""
    return await service.create(data)


@router.put("/musicreleases/{release_id}", response_model=MusicReleaseSaveResponse)
async def update_music_release(
    release_id: int,
    data: MusicReleaseUpdate,
    service: MusicReleaseService = Depends(get_release_service),
):
    """Update the fields that are sent."""
    return await service.update(release_id, data)


@router.delete("/musicreleases/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_music_release(release_id: int, service: MusicReleaseService = Depends(get_release_service)):
    """Delete a release together with its play history and list memberships."""
    await service.delete(release_id)
