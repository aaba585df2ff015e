import logging
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.exceptions import DuplicateError, NotFoundException, ValidationFailed
from kollector.models.artist import Artist
from kollector.models.country import Country
from kollector.models.format import Format
from kollector.models.genre import Genre
from kollector.models.label import Label
from kollector.models.list_release import list_release
from kollector.models.music_release import MusicRelease, utcnow
from kollector.models.now_playing import NowPlaying
from kollector.models.packaging import Packaging
from kollector.models.store import Store
from kollector.schemas.music_release import (
    MusicReleaseCreate, MusicReleaseSaveResponse, MusicReleaseUpdate, PurchaseInfo,
)
from kollector.services.entity_resolver import EntityResolver
from kollector.services.json_fields import dump_document, dump_ids, load_ids
from kollector.services.release_mapper import ReleaseMapper

logger = logging.getLogger(__name__)

# lookup prefix -> (model, CreatedEntities attribute, MusicRelease column)
SINGLE_LOOKUP_MODELS = {
    "label": (Label, "labels", "label_id"),
    "country": (Country, "countries", "country_id"),
    "format": (Format, "formats", "format_id"),
    "packaging": (Packaging, "packagings", "packaging_id"),
}

PLAIN_FIELDS = (
    "release_year", "orig_release_year", "length_in_seconds", "discogs_id", "notes",
)


class MusicReleaseService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.mapper = ReleaseMapper(db_session)

    async def get(self, release_id: int) -> MusicRelease:
        release = await self.db.get(MusicRelease, release_id)
        if release is None:
            raise NotFoundException("Music release", release_id)
        return release

    async def create(self, data: MusicReleaseCreate) -> MusicReleaseSaveResponse:
        """
        Create a release, creating any artists, genres or other lookups that
        were given by name. Raises DuplicateError when the release is already
        catalogued; the created lookups are rolled back with the request.
        """
        resolver = EntityResolver(self.db)
        artist_ids = await resolver.resolve_many(Artist, "artists", data.artist_ids, data.artist_names)
        if not artist_ids:
            raise ValidationFailed("At least one artist ID or artist name is required")
        genre_ids = await resolver.resolve_many(Genre, "genres", data.genre_ids, data.genre_names)

        await self.ensure_not_duplicate(data.title, data.label_number, artist_ids)

        release = MusicRelease(
            title=data.title,
            artists=dump_ids(artist_ids),
            genres=dump_ids(genre_ids),
            live=data.live,
            label_number=_clean(data.label_number),
            upc=_clean(data.upc),
            images=dump_document(data.images),
            links=dump_document(data.links),
            media=dump_document(data.media),
            purchase_info=dump_document(await self._purchase_info(resolver, data.purchase_info)),
        )
        for field in PLAIN_FIELDS:
            setattr(release, field, getattr(data, field))
        for prefix, (model, kind, column) in SINGLE_LOOKUP_MODELS.items():
            setattr(release, column, await resolver.resolve_one(
                model, kind, getattr(data, f"{prefix}_id"), getattr(data, f"{prefix}_name")
            ))

        self.db.add(release)
        await self.db.commit()
        await self.db.refresh(release)
        logger.info(f"Created music release {release.id}: {release.title}")

        return MusicReleaseSaveResponse(release=await self.mapper.detail(release), created=resolver.created)

    async def update(self, release_id: int, data: MusicReleaseUpdate) -> MusicReleaseSaveResponse:
        """Apply the fields that were sent; everything else is left alone."""
        release = await self.get(release_id)
        sent = data.model_fields_set
        resolver = EntityResolver(self.db)

        if "title" in sent and data.title is not None:
            release.title = data.title
        if "artist_ids" in sent or "artist_names" in sent:
            artist_ids = await resolver.resolve_many(Artist, "artists", data.artist_ids, data.artist_names)
            if not artist_ids:
                raise ValidationFailed("At least one artist ID or artist name is required")
            release.artists = dump_ids(artist_ids)
        if "genre_ids" in sent or "genre_names" in sent:
            release.genres = dump_ids(await resolver.resolve_many(Genre, "genres", data.genre_ids, data.genre_names))
        if "live" in sent and data.live is not None:
            release.live = data.live

        for prefix, (model, kind, column) in SINGLE_LOOKUP_MODELS.items():
            if f"{prefix}_id" in sent or f"{prefix}_name" in sent:
                setattr(release, column, await resolver.resolve_one(
                    model, kind, getattr(data, f"{prefix}_id"), getattr(data, f"{prefix}_name")
                ))

        for field in PLAIN_FIELDS:
            if field in sent:
                setattr(release, field, getattr(data, field))
        if "label_number" in sent:
            release.label_number = _clean(data.label_number)
        if "upc" in sent:
            release.upc = _clean(data.upc)
        if "images" in sent:
            release.images = dump_document(data.images)
        if "links" in sent:
            release.links = dump_document(data.links)
        if "media" in sent:
            release.media = dump_document(data.media)
        if "purchase_info" in sent:
            release.purchase_info = dump_document(await self._purchase_info(resolver, data.purchase_info))

        release.last_modified = utcnow()
        await self.db.commit()
        await self.db.refresh(release)
        logger.info(f"Updated music release {release.id}")

        return MusicReleaseSaveResponse(release=await self.mapper.detail(release), created=resolver.created)

    async def delete(self, release_id: int) -> None:
        release = await self.get(release_id)
        await self.db.execute(delete(NowPlaying).where(NowPlaying.music_release_id == release_id))
        await self.db.execute(delete(list_release).where(list_release.c.music_release_id == release_id))
        await self.db.delete(release)
        await self.db.commit()
        logger.info(f"Deleted music release {release_id}")

    async def find_duplicates(self, title: str, label_number: Optional[str],
                              artist_ids: List[int]) -> List[MusicRelease]:
        """
        A release is a duplicate when it shares the catalog number, or failing
        that, the title and at least one artist.
        """
        if label_number and label_number.strip():
            result = await self.db.execute(
                select(MusicRelease).where(
                    func.lower(func.trim(MusicRelease.label_number)) == label_number.strip().lower()
                )
            )
            matches = list(result.scalars().all())
            if matches:
                return matches

        result = await self.db.execute(
            select(MusicRelease).where(func.lower(MusicRelease.title) == title.strip().lower())
        )
        wanted = set(artist_ids)
        return [r for r in result.scalars().all() if wanted & set(load_ids(r.artists))]

    async def ensure_not_duplicate(self, title: str, label_number: Optional[str], artist_ids: List[int]) -> None:
        duplicates = await self.find_duplicates(title, label_number, artist_ids)
        if not duplicates:
            return
        existing = duplicates[0]
        logger.warning(f"Rejected duplicate of music release {existing.id}: {title}")
        if label_number and (existing.label_number or "").strip().lower() == label_number.strip().lower():
            raise DuplicateError("Catalog number", label_number.strip())
        raise DuplicateError("Release", title)

    async def _purchase_info(self, resolver: EntityResolver,
                             purchase_info: Optional[PurchaseInfo]) -> Optional[PurchaseInfo]:
        if purchase_info is None:
            return None
        store_id = await resolver.resolve_one(Store, "stores", purchase_info.store_id, purchase_info.store_name)
        return purchase_info.model_copy(update={"store_id": store_id, "store_name": None})


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None
