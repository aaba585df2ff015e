from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from kollector.services.database import get_db
from kollector.schemas.music_release import MusicReleaseSummary
from kollector.schemas.release_list import AddReleaseToList, ListCreate, ListResponse, ListSummary, ListUpdate
from kollector.services.list_service import ListService

router = APIRouter()


async def get_list_service(db: AsyncSession = Depends(get_db)) -> ListService:
    return ListService(db)


@router.get("/lists", response_model=List[ListSummary])
async def list_lists(service: ListService = Depends(get_list_service)):
    """All lists, most recently changed first."""
    return await service.list_all()


# Static segment before /lists/{list_id}
@router.get("/lists/by-release/{release_id}", response_model=List[ListSummary])
async def get_lists_for_release(release_id: int, service: ListService = Depends(get_list_service)):
    """The lists a release belongs to."""
    return await service.lists_for_release(release_id)


@router.get("/lists/{list_id}", response_model=ListResponse)
async def get_list(list_id: int, service: ListService = Depends(get_list_service)):
    return await service.get_detail(list_id)


@router.get("/lists/{list_id}/releases", response_model=List[MusicReleaseSummary])
async def get_list_releases(list_id: int, service: ListService = Depends(get_list_service)):
    """The releases on a list, in the order they were added."""
    return await service.releases(list_id)


@router.post("/lists", response_model=ListResponse, status_code=status.HTTP_201_CREATED)
async def create_list(data: ListCreate, service: ListService = Depends(get_list_service)):
    return await service.create(data.name)


@router.put("/lists/{list_id}", response_model=ListResponse)
async def update_list(list_id: int, data: ListUpdate, service: ListService = Depends(get_list_service)):
    return await service.update(list_id, data.name)


@router.delete("/lists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(list_id: int, service: ListService = Depends(get_list_service)):
    await service.delete(list_id)


@router.post("/lists/{list_id}/releases", status_code=status.HTTP_204_NO_CONTENT)
async def add_release_to_list(list_id: int, data: AddReleaseToList, service: ListService = Depends(get_list_service)):
    """Add a release to a list. Adding one that is already there does nothing."""
    await service.add_release(list_id, data.release_id)


@router.delete("/lists/{list_id}/releases/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_release_from_list(list_id: int, release_id: int, service: ListService = Depends(get_list_service)):
    await service.remove_release(list_id, release_id)
