from typing import List, Optional

from pydantic import BaseModel

from .music_release import MusicReleaseSummary


class YearStatistic(BaseModel):
    year: int
    count: int


class FormatStatistic(BaseModel):
    format_id: int
    format_name: str
    count: int
    percentage: float


class CountryStatistic(BaseModel):
    country_id: int
    country_name: str
    count: int
    percentage: float


class GenreStatistic(BaseModel):
    genre_id: int
    genre_name: str
    count: int
    percentage: float


class CollectionStatistics(BaseModel):
    total_releases: int = 0
    total_artists: int = 0
    total_genres: int = 0
    total_labels: int = 0
    releases_by_year: List[YearStatistic] = []
    releases_by_format: List[FormatStatistic] = []
    releases_by_country: List[CountryStatistic] = []
    releases_by_genre: List[GenreStatistic] = []
    total_value: Optional[float] = None
    average_price: Optional[float] = None
    most_expensive_release: Optional[MusicReleaseSummary] = None
    recently_added: List[MusicReleaseSummary] = []
