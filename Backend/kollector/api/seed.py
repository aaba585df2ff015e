import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from kollector.core.exceptions import NotFoundException
from kollector.schemas.seed import SeedResponse
from kollector.services.database import get_db
from kollector.services.seeding_service import LOOKUP_FILES, SeedingService

router = APIRouter()


async def get_seeding_service(db: AsyncSession = Depends(get_db)) -> SeedingService:
    return SeedingService(db)


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@router.post("/seed/lookup-data", response_model=SeedResponse)
async def seed_lookup_data(service: SeedingService = Depends(get_seeding_service)):
    """Seed every empty lookup table from the JSON files in DATA_PATH."""
    seeded = await service.seed_lookup_data()
    return SeedResponse(message="Lookup data seeding completed successfully", seeded=seeded, timestamp=_now())


@router.post("/seed/music-releases", response_model=SeedResponse)
async def seed_music_releases(service: SeedingService = Depends(get_seeding_service)):
    """Import musicreleases.json, skipping releases that already exist."""
    count = await service.seed_music_releases()
    return SeedResponse(message=f"Imported {count} music releases", seeded={"music_releases": count}, timestamp=_now())


@router.post("/seed/{table}", response_model=SeedResponse)
async def seed_table(table: str, service: SeedingService = Depends(get_seeding_service)):
    """Seed a single lookup table, e.g. /seed/countries."""
    if table not in LOOKUP_FILES:
        raise NotFoundException("Seed table", table)
    count = await service.seed_table(table)
    return SeedResponse(message=f"{table} seeding completed successfully", seeded={table: count}, timestamp=_now())
