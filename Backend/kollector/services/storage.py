"""
Cover art storage.

Images live either in a local directory or in a Cloudflare R2 bucket (S3
compatible, reached through boto3). The API reads covers and saves covers
downloaded from a URL; bulk uploads happen out of band with
scripts/upload_covers.py.
"""

import logging
import mimetypes
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

COVERS_FOLDER = "covers"

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}

NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")


def content_type_for(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return CONTENT_TYPES.get(ext) or mimetypes.guess_type(filename)[0] or "application/octet-stream"


@dataclass
class StoredImage:
    """An image read back from storage."""
    key: str
    body: bytes
    content_type: str


class ImageStorage(ABC):
    """The cover art store."""

    @abstractmethod
    def get(self, key: str) -> Optional[StoredImage]:
        """Return the object stored under `key`, or None if there is none."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def put(self, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        """Store `body` under `key`, replacing anything already there."""

    @abstractmethod
    def health(self) -> Dict[str, Any]:
        """Where images are stored and whether that location is reachable."""


class LocalImageStorage(ImageStorage):
    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def _path(self, key: str) -> Optional[str]:
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root:
            return None
        return path

    def get(self, key: str) -> Optional[StoredImage]:
        path = self._path(key)
        if path is None or not os.path.isfile(path):
            return None
        with open(path, "rb") as f:
            body = f.read()
        return StoredImage(key=key, body=body, content_type=content_type_for(path))

    def exists(self, key: str) -> bool:
        path = self._path(key)
        return path is not None and os.path.isfile(path)

    def put(self, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        path = self._path(key)
        if path is None or path == self.root:
            raise ValueError(f"Invalid image key: {key}")
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(body)

    def health(self) -> Dict[str, Any]:
        exists = os.path.isdir(self.root)
        return {
            "storage": "local",
            "location": self.root,
            "available": exists,
            "status": "OK" if exists else "Images directory not found",
        }


def create_r2_client(endpoint: str, access_key_id: str, secret_access_key: str):
    return boto3.client(
        's3',
        endpoint_url=endpoint,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        region_name='auto',  # R2 uses 'auto' region
        config=Config(s3={"addressing_style": "path"})
    )


def _error_code(error: ClientError) -> Optional[str]:
    return error.response.get("Error", {}).get("Code")


class R2ImageStorage(ImageStorage):
    """Cloudflare R2 bucket accessed with the boto3 S3 client."""

    def __init__(self, client, bucket_name: str):
        self.s3_client = client
        self.bucket_name = bucket_name

    def get(self, key: str) -> Optional[StoredImage]:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            logger.error(f"Failed to read {key} from R2: {e}")
            raise
        body = response["Body"].read()
        return StoredImage(key=key, body=body, content_type=response.get("ContentType") or content_type_for(key))

    def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            raise

    def put(self, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        self.s3_client.put_object(
            Bucket=self.bucket_name, Key=key, Body=body,
            ContentType=content_type or content_type_for(key),
        )

    def upload_file(self, local_path: str, key: str, public: bool = True) -> bool:
        """Upload one file. Returns False (and logs) on failure."""
        extra_args = {"ContentType": content_type_for(local_path)}
        if public:
            extra_args["ACL"] = "public-read"
        try:
            self.s3_client.upload_file(local_path, self.bucket_name, key, ExtraArgs=extra_args)
            return True
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            logger.error(f"Failed to upload {local_path} to {key}: {e}")
            return False

    def health(self) -> Dict[str, Any]:
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            available, status = True, "OK"
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"R2 bucket {self.bucket_name} is not reachable: {e}")
            available, status = False, f"Bucket not reachable: {e}"
        return {"storage": "r2", "location": self.bucket_name, "available": available, "status": status}


def fetch_image(storage: ImageStorage, key: str) -> Optional[StoredImage]:
    """
    Look up `key`, trying two other spellings when it is missing:

    - Public URLs sometimes carry the bucket name as the first segment
      ("cover-art/abba.jpg") while the object is stored as "abba.jpg".
    - Releases store bare file names ("abba.jpg") for covers saved in covers/.
    """
    image = storage.get(key)
    if image is None and "/" in key:
        fallback = key.split("/", 1)[1]
        if fallback:
            image = storage.get(fallback)
    if image is None and "/" not in key:
        image = storage.get(f"{COVERS_FOLDER}/{key}")
    return image
