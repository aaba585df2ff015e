from typing import Dict, Iterable, List, Optional, Sequence, Type

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.config import settings
from kollector.models.artist import Artist
from kollector.models.country import Country
from kollector.models.format import Format
from kollector.models.genre import Genre
from kollector.models.label import Label
from kollector.models.music_release import MusicRelease
from kollector.models.now_playing import NowPlaying
from kollector.models.packaging import Packaging
from kollector.models.store import Store
from kollector.schemas.lookup import LookupResponse
from kollector.schemas.music_release import (
    Images, Link, Media, MusicReleaseResponse, MusicReleaseSummary, PurchaseInfo, is_http_url,
)
from kollector.services.json_fields import load_document, load_ids


def cover_url(value: Optional[str]) -> Optional[str]:
    """Turn a stored image value (URL or object key) into something a browser can load."""
    if not value:
        return None
    if is_http_url(value):
        return value
    key = value.lstrip("/")
    if settings.IMAGES_BASE_URL:
        return f"{settings.IMAGES_BASE_URL.rstrip('/')}/{key}"
    return f"/api/images/{key}"


def cover_of(release: MusicRelease) -> Optional[str]:
    images = load_document(release.images, Images)
    if images is None:
        return None
    return cover_url(images.cover_front or images.thumbnail)


class ReleaseMapper:
    """Builds API shapes for releases, resolving ids to names in bulk."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def load_names(self, model: Type, ids: Iterable[Optional[int]]) -> Dict[int, str]:
        wanted = {i for i in ids if i}
        if not wanted:
            return {}
        result = await self.db.execute(select(model.id, model.name).where(model.id.in_(wanted)))
        return {row.id: row.name for row in result}

    async def summaries(self, releases: Sequence[MusicRelease]) -> List[MusicReleaseSummary]:
        artist_ids = {r.id: load_ids(r.artists) for r in releases}
        genre_ids = {r.id: load_ids(r.genres) for r in releases}

        artists = await self.load_names(Artist, (i for ids in artist_ids.values() for i in ids))
        genres = await self.load_names(Genre, (i for ids in genre_ids.values() for i in ids))
        labels = await self.load_names(Label, (r.label_id for r in releases))
        formats = await self.load_names(Format, (r.format_id for r in releases))
        countries = await self.load_names(Country, (r.country_id for r in releases))

        return [
            MusicReleaseSummary(
                id=r.id,
                title=r.title,
                release_year=r.release_year,
                artist_names=[artists[i] for i in artist_ids[r.id] if i in artists],
                genre_names=[genres[i] for i in genre_ids[r.id] if i in genres],
                label_name=labels.get(r.label_id),
                format_name=formats.get(r.format_id),
                country_name=countries.get(r.country_id),
                cover_image_url=cover_of(r),
                date_added=r.date_added,
            )
            for r in releases
        ]

    async def detail(self, release: MusicRelease) -> MusicReleaseResponse:
        artist_ids = load_ids(release.artists)
        genre_ids = load_ids(release.genres)
        artists = await self.load_names(Artist, artist_ids)
        genres = await self.load_names(Genre, genre_ids)

        purchase_info = load_document(release.purchase_info, PurchaseInfo)
        if purchase_info is not None and purchase_info.store_id:
            store = await self.db.get(Store, purchase_info.store_id)
            purchase_info.store_name = store.name if store else None

        images = load_document(release.images, Images)
        last_played_at = await self.db.scalar(
            select(func.max(NowPlaying.played_at)).where(NowPlaying.music_release_id == release.id)
        )

        return MusicReleaseResponse(
            id=release.id,
            title=release.title,
            release_year=release.release_year,
            orig_release_year=release.orig_release_year,
            artists=[LookupResponse(id=i, name=artists[i]) for i in artist_ids if i in artists],
            genres=[LookupResponse(id=i, name=genres[i]) for i in genre_ids if i in genres],
            live=bool(release.live),
            label=await self._lookup(Label, release.label_id),
            country=await self._lookup(Country, release.country_id),
            format=await self._lookup(Format, release.format_id),
            packaging=await self._lookup(Packaging, release.packaging_id),
            label_number=release.label_number,
            length_in_seconds=release.length_in_seconds,
            upc=release.upc,
            purchase_info=purchase_info,
            images=images,
            cover_image_url=cover_url(images.cover_front or images.thumbnail) if images else None,
            links=load_document(release.links, List[Link]) or [],
            media=load_document(release.media, List[Media]) or [],
            discogs_id=release.discogs_id,
            notes=release.notes,
            date_added=release.date_added,
            last_modified=release.last_modified,
            last_played_at=last_played_at,
        )

    async def _lookup(self, model: Type, entity_id: Optional[int]) -> Optional[LookupResponse]:
        if not entity_id:
            return None
        entity = await self.db.get(model, entity_id)
        return LookupResponse.model_validate(entity) if entity else None
