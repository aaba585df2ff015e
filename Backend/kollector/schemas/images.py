from typing import Optional

from pydantic import BaseModel


class ImageDownloadRequest(BaseModel):
    url: str
    filename: str
    folder: Optional[str] = None  # "covers", "thumbnails", ...


class ImageDownloadResponse(BaseModel):
    message: str = "Image downloaded successfully"
    filename: str
    original_filename: str
    key: str
    size: int


class ImagesHealth(BaseModel):
    storage: str
    location: str
    available: bool
    status: str
