from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from kollector.services.database import get_db
from kollector.schemas.common import PagedResult
from kollector.schemas.kollection import KollectionCreate, KollectionResponse, KollectionUpdate
from kollector.services.kollection_service import KollectionService, to_response

router = APIRouter()


async def get_kollection_service(db: AsyncSession = Depends(get_db)) -> KollectionService:
    return KollectionService(db)


@router.get("/kollections", response_model=PagedResult[KollectionResponse])
async def list_kollections(
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
    service: KollectionService = Depends(get_kollection_service),
):
    """List kollections ordered by name."""
    return await service.list(page=page, page_size=page_size, search=search)


@router.get("/kollections/{kollection_id}", response_model=KollectionResponse)
async def get_kollection(kollection_id: int, service: KollectionService = Depends(get_kollection_service)):
    return to_response(await service.get(kollection_id))


@router.post("/kollections", response_model=KollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_kollection(data: KollectionCreate, service: KollectionService = Depends(get_kollection_service)):
    """Create a kollection from a name and a set of genres."""
    return to_response(await service.create(data))


@router.put("/kollections/{kollection_id}", response_model=KollectionResponse)
async def update_kollection(
    kollection_id: int,
    data: KollectionUpdate,
    service: KollectionService = Depends(get_kollection_service),
):
    return to_response(await service.update(kollection_id, data))


@router.delete("/kollections/{kollection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_kollection(kollection_id: int, service: KollectionService = Depends(get_kollection_service)):
    await service.delete(kollection_id)
