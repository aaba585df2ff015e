from fastapi import APIRouter, Depends, Response
from starlette.concurrency import run_in_threadpool
import logging

from kollector.core.config import settings
from kollector.core.exceptions import KollectorException, ValidationFailed
from kollector.schemas.images import ImageDownloadRequest, ImageDownloadResponse, ImagesHealth
from kollector.services.image_downloader import ImageDownloader
from kollector.services.storage import (
    ImageStorage, LocalImageStorage, R2ImageStorage, create_r2_client, fetch_image,
)

logger = logging.getLogger(__name__)

router = APIRouter()

CACHE_HEADERS = {
    "Cache-Control": "public, max-age=31536000, immutable",
    "Access-Control-Allow-Origin": "*",
}


def get_image_storage() -> ImageStorage:
    """Dependency returning the configured storage backend."""
    if settings.IMAGE_STORAGE == "r2":
        if not (settings.R2_ENDPOINT and settings.R2_ACCESS_KEY_ID and settings.R2_SECRET_ACCESS_KEY):
            raise RuntimeError("IMAGE_STORAGE is r2 but R2_ENDPOINT, R2_ACCESS_KEY_ID or R2_SECRET_ACCESS_KEY is missing")
        client = create_r2_client(settings.R2_ENDPOINT, settings.R2_ACCESS_KEY_ID, settings.R2_SECRET_ACCESS_KEY)
        return R2ImageStorage(client, settings.R2_BUCKET_NAME)
    return LocalImageStorage(settings.IMAGES_PATH)


def get_image_downloader(storage: ImageStorage = Depends(get_image_storage)) -> ImageDownloader:
    return ImageDownloader(storage)


# health and download are declared before the catch-all key route
@router.get("/images/health", response_model=ImagesHealth)
async def images_health(storage: ImageStorage = Depends(get_image_storage)):
    health = await run_in_threadpool(storage.health)
    logger.info(f"Images health check: {health['status']}")
    return health


@router.post("/images/download", response_model=ImageDownloadResponse)
async def download_image(request: ImageDownloadRequest,
                         downloader: ImageDownloader = Depends(get_image_downloader)):
    """Download an image from a URL into covers/ (or thumbnails/ for "thumb-" names)."""
    return await downloader.download(request.url, request.filename, request.folder)


@router.get("/images/{key:path}")
async def get_image(key: str, storage: ImageStorage = Depends(get_image_storage)):
    """Serve a cover image from storage with long-lived cache headers."""
    key = key.strip().lstrip("/")
    if not key:
        raise ValidationFailed("Image key is required")
    if ".." in key.split("/"):
        raise ValidationFailed("Invalid image key")

    # boto3 and file reads block, keep them off the event loop
    image = await run_in_threadpool(fetch_image, storage, key)
    if image is None:
        raise KollectorException(status_code=404, detail=f"Image '{key}' not found")

    return Response(content=image.body, media_type=image.content_type, headers=CACHE_HEADERS)
