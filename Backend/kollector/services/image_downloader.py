from typing import Optional
import httpx
import logging
import os
import posixpath
from starlette.concurrency import run_in_threadpool

from kollector.core.config import settings
from kollector.core.exceptions import ExternalServiceError, ValidationFailed
from kollector.schemas.images import ImageDownloadResponse
from kollector.schemas.music_release import is_http_url
from kollector.services.storage import COVERS_FOLDER, ImageStorage, content_type_for

logger = logging.getLogger(__name__)

THUMBNAILS_FOLDER = "thumbnails"
THUMBNAIL_PREFIX = "thumb-"


def _is_unsafe(name: str) -> bool:
    name = name.replace("\\", "/")
    return ".." in name or name.startswith("/") or os.path.isabs(name)


def target_folder(filename: str, folder: Optional[str] = None) -> str:
    """Explicit folder wins, then "thumb-" names go to thumbnails, everything else to covers."""
    if folder and folder.strip():
        return folder.strip().strip("/")
    if filename.lower().startswith(THUMBNAIL_PREFIX):
        return THUMBNAILS_FOLDER
    return COVERS_FOLDER


def unique_key(storage: ImageStorage, folder: str, filename: str) -> str:
    """Key under `folder` that nothing is stored at yet, adding " (n)" before the extension."""
    key = posixpath.join(folder, filename)
    if not storage.exists(key):
        return key
    stem, ext = os.path.splitext(filename)
    counter = 1
    while storage.exists(key):
        key = posixpath.join(folder, f"{stem} ({counter}){ext}")
        counter += 1
    logger.info(f"{filename} already exists in {folder}, saving as {posixpath.basename(key)}")
    return key


class ImageDownloader:
    """Saves cover art from a remote URL into image storage."""

    def __init__(self, storage: ImageStorage, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.storage = storage
        self.transport = transport
        self.headers = {"User-Agent": settings.DISCOGS_USER_AGENT}
        self.timeout = settings.DISCOGS_TIMEOUT_SECONDS

    async def _fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout,
                                         follow_redirects=True) as client:
                response = await client.get(url, headers=self.headers)
            response.raise_for_status()
            return response.content
        except httpx.RequestError as e:
            logger.error(f"Failed to download image from {url}: {e}")
            raise ExternalServiceError("Image download", f"failed to connect: {e}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Image download from {url} returned status {e.response.status_code}")
            raise ExternalServiceError("Image download", f"status {e.response.status_code}")

    async def download(self, url: str, filename: str, folder: Optional[str] = None) -> ImageDownloadResponse:
        url = (url or "").strip()
        filename = (filename or "").strip()
        if not url:
            raise ValidationFailed("URL cannot be empty")
        if not is_http_url(url):
            raise ValidationFailed("URL must be an http(s) URL")
        if not filename:
            raise ValidationFailed("Filename cannot be empty")
        if _is_unsafe(filename):
            logger.warning(f"Rejected image filename: {filename}")
            raise ValidationFailed("Invalid filename")
        if folder and _is_unsafe(folder.strip()):
            logger.warning(f"Rejected image folder: {folder}")
            raise ValidationFailed("Invalid folder")

        body = await self._fetch(url)

        target = target_folder(filename, folder)
        key = await run_in_threadpool(unique_key, self.storage, target, filename)
        await run_in_threadpool(self.storage.put, key, body, content_type_for(filename))
        logger.info(f"Downloaded image: {url} -> {key} ({len(body)} bytes)")

        return ImageDownloadResponse(
            filename=posixpath.basename(key),
            original_filename=filename,
            key=key,
            size=len(body),
        )
