from collections import Counter
from typing import Dict, Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from kollector.models.country import Country
from kollector.models.format import Format
from kollector.models.genre import Genre
from kollector.models.music_release import MusicRelease
from kollector.schemas.music_release import MusicReleaseSummary, PurchaseInfo
from kollector.schemas.statistics import (
    CollectionStatistics, CountryStatistic, FormatStatistic, GenreStatistic, YearStatistic,
)
from kollector.services.json_fields import load_document, load_ids
from kollector.services.release_mapper import ReleaseMapper

TOP_COUNTRIES = 10
TOP_GENRES = 15
RECENTLY_ADDED = 10


def _percentage(count: int, total: int) -> float:
    return round(count * 100 / total, 2) if total else 0.0


def build_statistics(
    releases: Sequence[MusicRelease],
    summaries: Mapping[int, MusicReleaseSummary],
    format_names: Mapping[int, str],
    country_names: Mapping[int, str],
    genre_names: Mapping[int, str],
) -> CollectionStatistics:
    """
    Aggregate a whole collection. `summaries` maps release id to its summary
    and is used for the releases the dashboard links to.
    """
    total = len(releases)
    stats = CollectionStatistics(total_releases=total)
    if total == 0:
        return stats

    artist_ids, genre_counts = set(), Counter()
    for release in releases:
        artist_ids.update(load_ids(release.artists))
        genre_counts.update(set(load_ids(release.genres)))
    stats.total_artists = len(artist_ids)
    stats.total_genres = len(genre_counts)
    stats.total_labels = len({r.label_id for r in releases if r.label_id})

    years = Counter(r.release_year.year for r in releases if r.release_year)
    stats.releases_by_year = [YearStatistic(year=y, count=c) for y, c in sorted(years.items())]

    formats = Counter(r.format_id for r in releases if r.format_id)
    stats.releases_by_format = [
        FormatStatistic(format_id=i, format_name=format_names.get(i, "Unknown"), count=c,
                        percentage=_percentage(c, total))
        for i, c in formats.most_common()
    ]

    countries = Counter(r.country_id for r in releases if r.country_id)
    stats.releases_by_country = [
        CountryStatistic(country_id=i, country_name=country_names.get(i, "Unknown"), count=c,
                         percentage=_percentage(c, total))
        for i, c in countries.most_common(TOP_COUNTRIES)
    ]

    stats.releases_by_genre = [
        GenreStatistic(genre_id=i, genre_name=genre_names.get(i, "Unknown"), count=c,
                       percentage=_percentage(c, total))
        for i, c in genre_counts.most_common(TOP_GENRES)
    ]

    prices: Dict[int, float] = {}
    for release in releases:
        info = load_document(release.purchase_info, PurchaseInfo)
        if info is not None and info.price is not None and info.price > 0:
            prices[release.id] = info.price
    if prices:
        stats.total_value = round(sum(prices.values()), 2)
        stats.average_price = round(sum(prices.values()) / len(prices), 2)
        most_expensive = max(prices, key=prices.get)
        stats.most_expensive_release = summaries.get(most_expensive)

    newest = sorted(
        (r for r in releases if r.date_added is not None),
        key=lambda r: r.date_added,
        reverse=True,
    )[:RECENTLY_ADDED]
    stats.recently_added = [summaries[r.id] for r in newest if r.id in summaries]
    return stats


class StatisticsService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.mapper = ReleaseMapper(db_session)

    async def get_statistics(self) -> CollectionStatistics:
        result = await self.db.execute(select(MusicRelease))
        releases = result.scalars().all()
        summaries = {s.id: s for s in await self.mapper.summaries(releases)}

        genre_ids = {g for r in releases for g in load_ids(r.genres)}
        return build_statistics(
            releases,
            summaries,
            format_names=await self.mapper.load_names(Format, (r.format_id for r in releases)),
            country_names=await self.mapper.load_names(Country, (r.country_id for r in releases)),
            genre_names=await self.mapper.load_names(Genre, genre_ids),
        )
