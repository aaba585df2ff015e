from fastapi import APIRouter, Depends
from typing import List, Optional
import logging

from kollector.core.exceptions import NotFoundException, ValidationFailed
from kollector.schemas.discogs import DiscogsRelease, DiscogsSearchResult
from kollector.services.discogs import DiscogsService, get_discogs_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/discogs/search", response_model=List[DiscogsSearchResult])
async def search_discogs(
    catalog_number: Optional[str] = None,
    format: Optional[str] = None,
    country: Optional[str] = None,
    year: Optional[int] = None,
    discogs: DiscogsService = Depends(get_discogs_service),
):
    """Find a release on Discogs by catalog number to prefill the add form."""
    if not catalog_number or not catalog_number.strip():
        raise ValidationFailed("Catalog number is required")
    results = await discogs.search_by_catalog_number(catalog_number, format, country, year)
    logger.info(f"Found {len(results)} Discogs results for catalog number {catalog_number}")
    return results


@router.get("/discogs/release/{release_id}", response_model=DiscogsRelease)
async def get_discogs_release(release_id: str, discogs: DiscogsService = Depends(get_discogs_service)):
    """Full Discogs release details: tracklist, images, identifiers."""
    if not release_id.strip():
        raise ValidationFailed("Release ID is required")
    release = await discogs.get_release(release_id.strip())
    if release is None:
        logger.warning(f"Discogs release not found: {release_id}")
        raise NotFoundException("Discogs release", release_id)
    return release
