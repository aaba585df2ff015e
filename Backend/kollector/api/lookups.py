"""
Routers for the lookup tables. They all behave the same, so one factory
builds a router per model instead of seven copies of the same five routes.
"""
from typing import Optional, Type

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from kollector.models.artist import Artist
from kollector.models.country import Country
from kollector.models.format import Format
from kollector.models.genre import Genre
from kollector.models.label import Label
from kollector.models.packaging import Packaging
from kollector.models.store import Store
from kollector.schemas.common import PagedResult
from kollector.schemas.lookup import LookupCreate, LookupResponse, LookupUpdate
from kollector.services.database import get_db
from kollector.services.lookup_service import LookupService


def build_lookup_router(model: Type, path: str, resource: str) -> APIRouter:
    router = APIRouter()

    async def get_service(db: AsyncSession = Depends(get_db)) -> LookupService:
        return LookupService(db, model, resource)

    @router.get(f"/{path}", response_model=PagedResult[LookupResponse])
    async def list_items(
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
        service: LookupService = Depends(get_service),
    ):
        """Page through entries ordered by name; `search` matches part of the name."""
        return await service.list(page=page, page_size=page_size, search=search)

    @router.get(f"/{path}/{{item_id}}", response_model=LookupResponse)
    async def get_item(item_id: int, service: LookupService = Depends(get_service)):
        """Get a single entry by id."""
        return await service.get(item_id)

    @router.post(f"/{path}", response_model=LookupResponse, status_code=status.HTTP_201_CREATED)
    async def create_item(data: LookupCreate, service: LookupService = Depends(get_service)):
        """Create an entry. Names are unique regardless of case."""
        return await service.create(data.name)

    @router.put(f"/{path}/{{item_id}}", response_model=LookupResponse)
    async def update_item(item_id: int, data: LookupUpdate, service: LookupService = Depends(get_service)):
        """Rename an entry."""
        return await service.update(item_id, data.name)

    @router.delete(f"/{path}/{{item_id}}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(item_id: int, service: LookupService = Depends(get_service)):
        """Delete an entry."""
        await service.delete(item_id)

    return router


# (router, tag)
LOOKUP_ROUTERS = [
    (build_lookup_router(Artist, "artists", "Artist"), "artists"),
    (build_lookup_router(Genre, "genres", "Genre"), "genres"),
    (build_lookup_router(Label, "labels", "Label"), "labels"),
    (build_lookup_router(Country, "countries", "Country"), "countries"),
    (build_lookup_router(Format, "formats", "Format"), "formats"),
    (build_lookup_router(Packaging, "packagings", "Packaging"), "packagings"),
    (build_lookup_router(Store, "stores", "Store"), "stores"),
]
