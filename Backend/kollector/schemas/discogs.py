from typing import List, Optional

from pydantic import BaseModel


class DiscogsSearchResult(BaseModel):
    id: str
    title: str
    artist: str = ""
    year: Optional[str] = None
    format: Optional[str] = None
    label: Optional[str] = None
    catalog_number: Optional[str] = None
    country: Optional[str] = None
    thumb_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    resource_url: Optional[str] = None


class DiscogsArtist(BaseModel):
    name: str
    id: Optional[str] = None
    resource_url: Optional[str] = None


class DiscogsLabel(BaseModel):
    name: str
    catalog_number: Optional[str] = None
    id: Optional[str] = None
    resource_url: Optional[str] = None


class DiscogsFormat(BaseModel):
    name: str
    qty: Optional[str] = None
    descriptions: List[str] = []


class DiscogsImage(BaseModel):
    type: str = ""
    uri: str = ""
    resource_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class DiscogsTrack(BaseModel):
    position: str = ""
    title: str = ""
    duration: Optional[str] = None
    artists: Optional[List[DiscogsArtist]] = None


class DiscogsIdentifier(BaseModel):
    type: str = ""
    value: str = ""


class DiscogsRelease(BaseModel):
    id: str
    title: str
    artists: List[DiscogsArtist] = []
    year: Optional[int] = None
    genres: List[str] = []
    styles: List[str] = []
    labels: List[DiscogsLabel] = []
    country: Optional[str] = None
    released_date: Optional[str] = None
    formats: List[DiscogsFormat] = []
    images: List[DiscogsImage] = []
    tracklist: List[DiscogsTrack] = []
    identifiers: List[DiscogsIdentifier] = []
    resource_url: Optional[str] = None
    uri: Optional[str] = None
    notes: Optional[str] = None
