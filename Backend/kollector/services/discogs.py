from typing import Any, Dict, List, Optional
import httpx
import json
import logging
from kollector.core.config import settings
from kollector.core.exceptions import ExternalServiceError
from kollector.schemas.discogs import (
    DiscogsArtist, DiscogsFormat, DiscogsIdentifier, DiscogsImage, DiscogsLabel,
    DiscogsRelease, DiscogsSearchResult, DiscogsTrack,
)

logger = logging.getLogger(__name__)


def _str(value: Any) -> Optional[str]:
    return None if value in (None, "") else str(value)


def map_search_result(item: Dict[str, Any]) -> DiscogsSearchResult:
    """Discogs search titles look like "Artist - Title"; split them."""
    full_title = item.get("title") or ""
    artist, _, title = full_title.partition(" - ")
    if not title:
        artist, title = "", full_title
    labels = item.get("label") or []
    formats = item.get("format") or []
    return DiscogsSearchResult(
        id=str(item.get("id", "")),
        title=title.strip(),
        artist=artist.strip(),
        year=_str(item.get("year")),
        format=", ".join(formats) if formats else None,
        label=labels[0] if labels else None,
        catalog_number=_str(item.get("catno")),
        country=_str(item.get("country")),
        thumb_url=_str(item.get("thumb")),
        cover_image_url=_str(item.get("cover_image")),
        resource_url=_str(item.get("resource_url")),
    )


def _artists(items: Optional[List[Dict[str, Any]]]) -> List[DiscogsArtist]:
    return [
        DiscogsArtist(name=a.get("name", ""), id=_str(a.get("id")), resource_url=_str(a.get("resource_url")))
        for a in items or []
    ]


def map_release(data: Dict[str, Any]) -> DiscogsRelease:
    return DiscogsRelease(
        id=str(data.get("id", "")),
        title=data.get("title") or "",
        artists=_artists(data.get("artists")),
        year=data.get("year") or None,
        genres=data.get("genres") or [],
        styles=data.get("styles") or [],
        labels=[
            DiscogsLabel(name=lbl.get("name", ""), catalog_number=_str(lbl.get("catno")),
                         id=_str(lbl.get("id")), resource_url=_str(lbl.get("resource_url")))
            for lbl in data.get("labels") or []
        ],
        country=_str(data.get("country")),
        released_date=_str(data.get("released")),
        formats=[
            DiscogsFormat(name=f.get("name", ""), qty=_str(f.get("qty")), descriptions=f.get("descriptions") or [])
            for f in data.get("formats") or []
        ],
        images=[
            DiscogsImage(type=i.get("type", ""), uri=i.get("uri", ""), resource_url=_str(i.get("resource_url")),
                         width=i.get("width"), height=i.get("height"))
            for i in data.get("images") or []
        ],
        tracklist=[
            DiscogsTrack(position=t.get("position", ""), title=t.get("title", ""),
                         duration=_str(t.get("duration")),
                         artists=_artists(t.get("artists")) if t.get("artists") else None)
            for t in data.get("tracklist") or []
        ],
        identifiers=[
            DiscogsIdentifier(type=i.get("type", ""), value=str(i.get("value", "")))
            for i in data.get("identifiers") or []
        ],
        resource_url=_str(data.get("resource_url")),
        uri=_str(data.get("uri")),
        notes=_str(data.get("notes")),
    )


class DiscogsService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = settings.DISCOGS_BASE_URL.rstrip("/")
        self.headers = {
            "User-Agent": settings.DISCOGS_USER_AGENT,
            "Accept": "application/json"
        }
        if settings.DISCOGS_TOKEN:
            self.headers["Authorization"] = f"Discogs token={settings.DISCOGS_TOKEN}"
        self.timeout = settings.DISCOGS_TIMEOUT_SECONDS
        self.transport = transport

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """GET a Discogs endpoint. Returns None on 404."""
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(f"{self.base_url}{path}", headers=self.headers, params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()  # Raises for the remaining 4xx and 5xx responses
            return response.json()
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON from Discogs: {e}")
            raise ExternalServiceError("Discogs", "invalid JSON response")
        except httpx.RequestError as e:
            logger.error(f"Request error to Discogs API: {e}")
            raise ExternalServiceError("Discogs", f"failed to connect: {e}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Discogs API returned status {e.response.status_code}: {e.response.text}")
            raise ExternalServiceError("Discogs", f"status {e.response.status_code}")

    async def search_by_catalog_number(self, catalog_number: str, format: Optional[str] = None,
                                       country: Optional[str] = None,
                                       year: Optional[int] = None) -> List[DiscogsSearchResult]:
        """Search releases by catalog number, optionally narrowed by format, country and year."""
        params: Dict[str, Any] = {"type": "release", "catno": catalog_number.strip()}
        if format:
            params["format"] = format
        if country:
            params["country"] = country
        if year:
            params["year"] = year
        logger.info(f"DiscogsService: search catno={catalog_number} format={format} country={country} year={year}")
        data = await self._get("/database/search", params=params)
        return [map_search_result(item) for item in (data or {}).get("results", [])]

    async def get_release(self, release_id: str) -> Optional[DiscogsRelease]:
        """Gets a single release from Discogs by its ID, or None when Discogs doesn't know it."""
        logger.info(f"DiscogsService: GET /releases/{release_id}")
        data = await self._get(f"/releases/{release_id}")
        return map_release(data) if data is not None else None

# Dependency
async def get_discogs_service() -> DiscogsService:
    """Dependency injection for DiscogsService"""
    return DiscogsService()
