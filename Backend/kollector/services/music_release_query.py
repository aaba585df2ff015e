import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import case, extract, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.core.exceptions import KollectorException, ValidationFailed
from kollector.models.artist import Artist
from kollector.models.kollection_genre import kollection_genre
from kollector.models.label import Label
from kollector.models.music_release import MusicRelease
from kollector.schemas.common import PagedResult
from kollector.schemas.music_release import MusicReleaseSummary, SearchSuggestion
from kollector.services.json_fields import id_array_contains
from kollector.services.release_mapper import ReleaseMapper

logger = logging.getLogger(__name__)

MAX_RELEASE_PAGE_SIZE = 100
SORT_FIELDS = ("title", "dateadded", "origreleaseyear", "artist")


@dataclass
class ReleaseQuery:
    search: Optional[str] = None
    artist_id: Optional[int] = None
    genre_id: Optional[int] = None
    kollection_id: Optional[int] = None
    label_id: Optional[int] = None
    country_id: Optional[int] = None
    format_id: Optional[int] = None
    live: Optional[bool] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    sort_by: str = "title"
    sort_order: str = "asc"
    page: int = 1
    page_size: int = 20


class MusicReleaseQueryService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.mapper = ReleaseMapper(db_session)

    async def search(self, query: ReleaseQuery) -> PagedResult[MusicReleaseSummary]:
        """Filter, sort and page releases, returning summaries."""
        if query.page < 1:
            raise ValidationFailed("Page must be greater than 0")
        if query.page_size < 1:
            raise ValidationFailed("Page size must be greater than 0")
        page_size = min(query.page_size, MAX_RELEASE_PAGE_SIZE)
        sort_by = (query.sort_by or "title").lower()
        if sort_by not in SORT_FIELDS:
            raise ValidationFailed(f"sort_by must be one of: {', '.join(SORT_FIELDS)}")
        descending = (query.sort_order or "asc").lower() == "desc"

        empty = PagedResult[MusicReleaseSummary](items=[], page=query.page, page_size=page_size, total_count=0)

        conditions = []
        if query.search and query.search.strip():
            conditions.append(func.lower(MusicRelease.title).contains(query.search.strip().lower(), autoescape=True))
        if query.artist_id:
            conditions.append(id_array_contains(MusicRelease.artists, query.artist_id))
        if query.genre_id:
            conditions.append(id_array_contains(MusicRelease.genres, query.genre_id))
        if query.kollection_id:
            genre_ids = await self.kollection_genre_ids(query.kollection_id)
            if not genre_ids:
                # An empty or unknown kollection matches nothing
                return empty
            conditions.append(or_(*[id_array_contains(MusicRelease.genres, g) for g in genre_ids]))
        if query.label_id:
            conditions.append(MusicRelease.label_id == query.label_id)
        if query.country_id:
            conditions.append(MusicRelease.country_id == query.country_id)
        if query.format_id:
            conditions.append(MusicRelease.format_id == query.format_id)
        if query.live is not None:
            conditions.append(MusicRelease.live == query.live)
        if query.year_from is not None:
            conditions.append(extract("year", MusicRelease.release_year) >= query.year_from)
        if query.year_to is not None:
            conditions.append(extract("year", MusicRelease.release_year) <= query.year_to)

        total = await self.db.scalar(select(func.count(MusicRelease.id)).where(*conditions)) or 0
        offset = (query.page - 1) * page_size

        if sort_by == "artist":
            # Artist names live behind the JSON id array, so sort after mapping
            result = await self.db.execute(select(MusicRelease).where(*conditions))
            summaries = await self.mapper.summaries(result.scalars().all())
            summaries.sort(
                key=lambda s: ((s.artist_names[0] if s.artist_names else "").lower(), s.title.lower()),
                reverse=descending,
            )
            items = summaries[offset:offset + page_size]
        else:
            column = {
                "title": func.lower(MusicRelease.title),
                "dateadded": MusicRelease.date_added,
                "origreleaseyear": MusicRelease.orig_release_year,
            }[sort_by]
            order = column.desc() if descending else column.asc()
            result = await self.db.execute(
                select(MusicRelease).where(*conditions)
                .order_by(order, MusicRelease.id)
                .offset(offset)
                .limit(page_size)
            )
            items = await self.mapper.summaries(result.scalars().all())

        return PagedResult[MusicReleaseSummary](items=items, page=query.page, page_size=page_size, total_count=total)

    async def kollection_genre_ids(self, kollection_id: int) -> List[int]:
        result = await self.db.execute(
            select(kollection_genre.c.genre_id).where(kollection_genre.c.kollection_id == kollection_id)
        )
        return list(result.scalars().all())

    async def suggestions(self, query: Optional[str], limit: int = 10) -> List[SearchSuggestion]:
        """
        Type-ahead matches across release titles, artists and labels.

        Names starting with the query come before names that only contain it,
        then alphabetical. Each table is ordered that way before its limit is
        applied, so a prefix match is never cut by an arbitrary row order.
        """
        if not query or len(query.strip()) < 2:
            return []
        term = query.strip().lower()

        def best_first(column):
            lowered = func.lower(column)
            return (case((lowered.startswith(term, autoescape=True), 0), else_=1), lowered)

        suggestions: List[SearchSuggestion] = []
        releases = await self.db.execute(
            select(MusicRelease.id, MusicRelease.title, MusicRelease.release_year)
            .where(func.lower(MusicRelease.title).contains(term, autoescape=True))
            .order_by(*best_first(MusicRelease.title))
            .limit(limit)
        )
        for row in releases:
            suggestions.append(SearchSuggestion(
                type="release", id=row.id, name=row.title,
                subtitle=str(row.release_year.year) if row.release_year else None,
            ))

        for kind, model in (("artist", Artist), ("label", Label)):
            matches = await self.db.execute(
                select(model.id, model.name)
                .where(func.lower(model.name).contains(term, autoescape=True))
                .order_by(*best_first(model.name))
                .limit(limit)
            )
            suggestions.extend(SearchSuggestion(type=kind, id=row.id, name=row.name) for row in matches)

        suggestions.sort(key=lambda s: (not s.name.lower().startswith(term), s.name.lower()))
        return suggestions[:limit]

    async def random_id(self) -> int:
        total = await self.db.scalar(select(func.count(MusicRelease.id))) or 0
        if total == 0:
            raise KollectorException(status_code=404, detail="The collection has no releases yet")
        result = await self.db.execute(
            select(MusicRelease.id).order_by(MusicRelease.id).offset(random.randrange(total)).limit(1)
        )
        return result.scalar_one()
