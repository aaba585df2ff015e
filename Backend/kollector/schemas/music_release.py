import datetime
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .lookup import LookupResponse

MIN_YEAR = 1900
MAX_TITLE_LENGTH = 300


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_storage_key(value: str) -> bool:
    """A relative object key such as 'abba-arrival.jpg' or 'covers/abba.jpg'."""
    if not value or "://" in value or value.startswith(("/", "\\")):
        return False
    return ".." not in value.replace("\\", "/").split("/")


def check_year(value: Optional[datetime.datetime], label: str) -> None:
    if value is None:
        return
    max_year = datetime.datetime.now(datetime.timezone.utc).year + 1
    if not MIN_YEAR <= value.year <= max_year:
        raise ValueError(f"{label} must be between {MIN_YEAR} and {max_year}")


# ---------------------------------------------------------------------------
# JSON documents stored on a release. These are lenient on purpose: they also
# parse rows written by older versions of the catalogue, which used
# capitalised keys. Input rules live on MusicReleaseWrite.
# ---------------------------------------------------------------------------

class PurchaseInfo(BaseModel):
    store_id: Optional[int] = Field(None, validation_alias=AliasChoices("store_id", "StoreID", "StoreId"))
    store_name: Optional[str] = None
    price: Optional[float] = Field(None, validation_alias=AliasChoices("price", "Price"))
    currency: Optional[str] = Field(None, validation_alias=AliasChoices("currency", "Currency"))
    purchase_date: Optional[datetime.datetime] = Field(
        None, validation_alias=AliasChoices("purchase_date", "PurchaseDate", "Date")
    )
    notes: Optional[str] = Field(None, validation_alias=AliasChoices("notes", "Notes"))


class Images(BaseModel):
    cover_front: Optional[str] = Field(None, validation_alias=AliasChoices("cover_front", "CoverFront"))
    cover_back: Optional[str] = Field(None, validation_alias=AliasChoices("cover_back", "CoverBack"))
    thumbnail: Optional[str] = Field(None, validation_alias=AliasChoices("thumbnail", "Thumbnail"))


class Link(BaseModel):
    url: Optional[str] = Field(None, validation_alias=AliasChoices("url", "Url"))
    type: Optional[str] = Field(None, validation_alias=AliasChoices("type", "UrlType", "Type"))
    description: Optional[str] = Field(None, validation_alias=AliasChoices("description", "Description"))


class Track(BaseModel):
    title: str = Field("", validation_alias=AliasChoices("title", "Title"))
    release_year: Optional[datetime.datetime] = Field(
        None, validation_alias=AliasChoices("release_year", "ReleaseYear")
    )
    artists: List[str] = Field(default_factory=list, validation_alias=AliasChoices("artists", "Artists"))
    genres: List[str] = Field(default_factory=list, validation_alias=AliasChoices("genres", "Genres"))
    live: bool = Field(False, validation_alias=AliasChoices("live", "Live"))
    length_secs: Optional[int] = Field(None, validation_alias=AliasChoices("length_secs", "LengthSecs"))
    index: int = Field(0, validation_alias=AliasChoices("index", "Index"))

    model_config = ConfigDict(coerce_numbers_to_str=True)

    @field_validator("release_year", mode="before")
    @classmethod
    def year_only(cls, value):
        # Older exports store a bare year such as "1977"
        if value in (None, ""):
            return None
        if isinstance(value, (int, str)) and str(value).strip().isdigit() and len(str(value).strip()) == 4:
            return datetime.datetime(int(str(value).strip()), 1, 1, tzinfo=datetime.timezone.utc)
        return value


class Media(BaseModel):
    name: Optional[str] = Field(None, validation_alias=AliasChoices("name", "Name", "Title"))
    format_id: Optional[int] = Field(None, validation_alias=AliasChoices("format_id", "FormatId"))
    index: Optional[int] = Field(None, validation_alias=AliasChoices("index", "Index"))
    tracks: List[Track] = Field(default_factory=list, validation_alias=AliasChoices("tracks", "Tracks"))


# ---------------------------------------------------------------------------
# Create / update payloads
# ---------------------------------------------------------------------------

SINGLE_LOOKUPS = ("label", "country", "format", "packaging")


class MusicReleaseWrite(BaseModel):
    """Fields shared by create and update. Lookups may be given by id or by name."""
    title: Optional[str] = None
    release_year: Optional[datetime.datetime] = None
    orig_release_year: Optional[datetime.datetime] = None
    artist_ids: Optional[List[int]] = None
    artist_names: Optional[List[str]] = None
    genre_ids: Optional[List[int]] = None
    genre_names: Optional[List[str]] = None
    live: Optional[bool] = None
    label_id: Optional[int] = None
    label_name: Optional[str] = None
    country_id: Optional[int] = None
    country_name: Optional[str] = None
    format_id: Optional[int] = None
    format_name: Optional[str] = None
    packaging_id: Optional[int] = None
    packaging_name: Optional[str] = None
    label_number: Optional[str] = Field(None, max_length=100)
    length_in_seconds: Optional[int] = Field(None, gt=0)
    upc: Optional[str] = Field(None, max_length=50)
    purchase_info: Optional[PurchaseInfo] = None
    images: Optional[Images] = None
    links: Optional[List[Link]] = None
    media: Optional[List[Media]] = None
    discogs_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_rules(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        if len(value) > MAX_TITLE_LENGTH:
            raise ValueError(f"Title cannot exceed {MAX_TITLE_LENGTH} characters")
        return value

    @field_validator("artist_ids", "genre_ids")
    @classmethod
    def ids_positive(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value and any(i <= 0 for i in value):
            raise ValueError("IDs must be greater than 0")
        return value

    @field_validator("artist_names", "genre_names")
    @classmethod
    def names_not_blank(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        if any(not n or not n.strip() for n in value):
            raise ValueError("Names cannot be empty or whitespace")
        return [n.strip() for n in value]

    @field_validator("label_id", "country_id", "format_id", "packaging_id")
    @classmethod
    def lookup_id_positive(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("IDs must be greater than 0")
        return value

    @field_validator("label_name", "country_name", "format_name", "packaging_name")
    @classmethod
    def blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def cross_field_rules(self):
        for lookup in SINGLE_LOOKUPS:
            if getattr(self, f"{lookup}_id") is not None and getattr(self, f"{lookup}_name"):
                raise ValueError(f"Provide either {lookup}_id or {lookup}_name, not both")

        check_year(self.release_year, "Release year")
        check_year(self.orig_release_year, "Original release year")

        purchase = self.purchase_info
        if purchase is not None:
            if purchase.price is not None:
                if purchase.price < 0:
                    raise ValueError("Purchase price cannot be negative")
                if not (purchase.currency and purchase.currency.strip()):
                    raise ValueError("Currency is required when a price is given")
            if purchase.store_id is not None and purchase.store_name:
                raise ValueError("Provide either a store id or a store name, not both")
            if purchase.store_id is not None and purchase.store_id <= 0:
                raise ValueError("IDs must be greater than 0")
            if purchase.store_name is not None:
                purchase.store_name = purchase.store_name.strip() or None

        for link in self.links or []:
            if not link.url or not link.url.strip():
                raise ValueError("Link URL is required")
            if not is_http_url(link.url.strip()):
                raise ValueError(f"Link URL '{link.url}' must be a valid http(s) URL")

        if self.images is not None:
            for field in ("cover_front", "cover_back", "thumbnail"):
                value = getattr(self.images, field)
                if value and not (is_http_url(value) or is_storage_key(value)):
                    raise ValueError(f"Image '{value}' must be a valid http(s) URL or file name")
        return self


class MusicReleaseCreate(MusicReleaseWrite):
    title: str
    live: bool = False

    @model_validator(mode="after")
    def requires_artist(self):
        if not self.artist_ids and not self.artist_names:
            raise ValueError("At least one artist ID or artist name is required")
        return self


class MusicReleaseUpdate(MusicReleaseWrite):
    pass  # Every field optional; only the fields sent are changed


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class MusicReleaseSummary(BaseModel):
    id: int
    title: str
    release_year: Optional[datetime.datetime] = None
    artist_names: List[str] = []
    genre_names: List[str] = []
    label_name: Optional[str] = None
    format_name: Optional[str] = None
    country_name: Optional[str] = None
    cover_image_url: Optional[str] = None
    date_added: Optional[datetime.datetime] = None


class MusicReleaseResponse(BaseModel):
    id: int
    title: str
    release_year: Optional[datetime.datetime] = None
    orig_release_year: Optional[datetime.datetime] = None
    artists: List[LookupResponse] = []
    genres: List[LookupResponse] = []
    live: bool = False
    label: Optional[LookupResponse] = None
    country: Optional[LookupResponse] = None
    format: Optional[LookupResponse] = None
    packaging: Optional[LookupResponse] = None
    label_number: Optional[str] = None
    length_in_seconds: Optional[int] = None
    upc: Optional[str] = None
    purchase_info: Optional[PurchaseInfo] = None
    images: Optional[Images] = None
    cover_image_url: Optional[str] = None
    links: List[Link] = []
    media: List[Media] = []
    discogs_id: Optional[int] = None
    notes: Optional[str] = None
    date_added: Optional[datetime.datetime] = None
    last_modified: Optional[datetime.datetime] = None
    last_played_at: Optional[datetime.datetime] = None


class CreatedEntities(BaseModel):
    """Lookup rows that were created because a release named them."""
    artists: List[LookupResponse] = []
    genres: List[LookupResponse] = []
    labels: List[LookupResponse] = []
    countries: List[LookupResponse] = []
    formats: List[LookupResponse] = []
    packagings: List[LookupResponse] = []
    stores: List[LookupResponse] = []


class MusicReleaseSaveResponse(BaseModel):
    release: MusicReleaseResponse
    created: CreatedEntities


class SearchSuggestion(BaseModel):
    type: str  # release, artist or label
    id: int
    name: str
    subtitle: Optional[str] = None


class RandomRelease(BaseModel):
    id: int
