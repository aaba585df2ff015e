"""
Kollector Scum - Cover image serving, downloading and storage backends
"""

import io

import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from kollector.api.images import get_image_downloader, get_image_storage
from kollector.main import app
from kollector.services.image_downloader import ImageDownloader, target_folder
from kollector.services.storage import (
    LocalImageStorage,
    R2ImageStorage,
    content_type_for,
    fetch_image,
)


@pytest.fixture
def images_dir(tmp_path):
    d = tmp_path / "images"
    (d / "covers").mkdir(parents=True)
    (d / "abba-arrival.jpg").write_bytes(b"\xff\xd8jpeg")
    (d / "covers" / "heroes.png").write_bytes(b"\x89PNGpng")
    return d


@pytest.fixture
def image_client(client, images_dir):
    app.dependency_overrides[get_image_storage] = lambda: LocalImageStorage(str(images_dir))
    return client


@pytest.fixture
def remote_images():
    """Requests made to the fake image host, and a transport that answers them."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/missing.jpg":
            return httpx.Response(404)
        if request.url.path == "/offline.jpg":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, content=b"remote-" + request.url.path.encode())

    return requests, httpx.MockTransport(handler)


@pytest.fixture
def download_client(image_client, images_dir, remote_images):
    _, transport = remote_images
    app.dependency_overrides[get_image_downloader] = lambda: ImageDownloader(
        LocalImageStorage(str(images_dir)), transport=transport
    )
    return image_client


class TestImageEndpoint:
    def test_serves_image_with_cache_headers(self, image_client):
        response = image_client.get("/api/images/abba-arrival.jpg")
        assert response.status_code == 200
        assert response.content == b"\xff\xd8jpeg"
        assert response.headers["content-type"] == "image/jpeg"
        assert "immutable" in response.headers["cache-control"]
        assert response.headers["access-control-allow-origin"] == "*"

    def test_nested_key(self, image_client):
        response = image_client.get("/api/images/covers/heroes.png")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"

    def test_bare_name_found_in_covers(self, image_client):
        response = image_client.get("/api/images/heroes.png")
        assert response.status_code == 200
        assert response.content == b"\x89PNGpng"

    def test_falls_back_to_key_without_bucket_prefix(self, image_client):
        response = image_client.get("/api/images/cover-art/abba-arrival.jpg")
        assert response.status_code == 200
        assert response.content == b"\xff\xd8jpeg"

    def test_missing_is_404(self, image_client):
        assert image_client.get("/api/images/nothing.jpg").status_code == 404


class TestImagesHealth:
    def test_existing_directory_is_ok(self, image_client, images_dir):
        response = image_client.get("/api/images/health")
        assert response.status_code == 200
        body = response.json()
        assert body["storage"] == "local"
        assert body["location"] == str(images_dir)
        assert body["available"] is True
        assert body["status"] == "OK"

    def test_missing_directory(self, client, tmp_path):
        app.dependency_overrides[get_image_storage] = lambda: LocalImageStorage(str(tmp_path / "nowhere"))
        body = client.get("/api/images/health").json()
        assert body["available"] is False
        assert body["status"] == "Images directory not found"


class TestImageDownload:
    def test_downloads_into_covers(self, download_client, images_dir, remote_images):
        requests, _ = remote_images
        response = download_client.post("/api/images/download", json={
            "url": "https://img.example.com/arrival.jpg", "filename": "arrival.jpg",
        })
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["message"] == "Image downloaded successfully"
        assert body["filename"] == "arrival.jpg"
        assert body["original_filename"] == "arrival.jpg"
        assert body["key"] == "covers/arrival.jpg"
        assert body["size"] == len(b"remote-/arrival.jpg")
        assert (images_dir / "covers" / "arrival.jpg").read_bytes() == b"remote-/arrival.jpg"
        assert requests[0].headers["user-agent"] == "KollectorScum/1.0"

    def test_downloaded_cover_is_served_by_bare_name(self, download_client):
        download_client.post("/api/images/download", json={
            "url": "https://img.example.com/arrival.jpg", "filename": "arrival.jpg",
        })
        response = download_client.get("/api/images/arrival.jpg")
        assert response.status_code == 200
        assert response.content == b"remote-/arrival.jpg"

    def test_thumb_prefix_goes_to_thumbnails(self, download_client, images_dir):
        response = download_client.post("/api/images/download", json={
            "url": "https://img.example.com/t.jpg", "filename": "Thumb-arrival.jpg",
        })
        assert response.json()["key"] == "thumbnails/Thumb-arrival.jpg"
        assert (images_dir / "thumbnails" / "Thumb-arrival.jpg").exists()

    def test_explicit_folder_wins(self, download_client, images_dir):
        response = download_client.post("/api/images/download", json={
            "url": "https://img.example.com/t.jpg", "filename": "thumb-a.jpg", "folder": "artists",
        })
        assert response.json()["key"] == "artists/thumb-a.jpg"

    def test_existing_names_get_a_counter(self, download_client, images_dir):
        (images_dir / "covers" / "heroes (1).png").write_bytes(b"taken")
        response = download_client.post("/api/images/download", json={
            "url": "https://img.example.com/new.png", "filename": "heroes.png",
        })
        body = response.json()
        assert body["filename"] == "heroes (2).png"
        assert body["original_filename"] == "heroes.png"
        assert (images_dir / "covers" / "heroes.png").read_bytes() == b"\x89PNGpng"
        assert (images_dir / "covers" / "heroes (2).png").read_bytes() == b"remote-/new.png"

    @pytest.mark.parametrize("payload", [
        {"url": "", "filename": "a.jpg"},
        {"url": "ftp://img.example.com/a.jpg", "filename": "a.jpg"},
        {"url": "https://img.example.com/a.jpg", "filename": "  "},
        {"url": "https://img.example.com/a.jpg", "filename": "../a.jpg"},
        {"url": "https://img.example.com/a.jpg", "filename": "/etc/a.jpg"},
        {"url": "https://img.example.com/a.jpg", "filename": "a.jpg", "folder": "../outside"},
        {"url": "https://img.example.com/a.jpg", "filename": "a.jpg", "folder": "/tmp"},
    ])
    def test_rejects_bad_requests(self, download_client, remote_images, payload):
        requests, _ = remote_images
        assert download_client.post("/api/images/download", json=payload).status_code == 400
        assert requests == []

    @pytest.mark.parametrize("path", ["/missing.jpg", "/offline.jpg"])
    def test_remote_failure_is_502_and_stores_nothing(self, download_client, images_dir, path):
        response = download_client.post("/api/images/download", json={
            "url": f"https://img.example.com{path}", "filename": "failed.jpg",
        })
        assert response.status_code == 502
        assert not (images_dir / "covers" / "failed.jpg").exists()


class TestTargetFolder:
    def test_defaults(self):
        assert target_folder("arrival.jpg") == "covers"
        assert target_folder("THUMB-arrival.jpg") == "thumbnails"
        assert target_folder("arrival.jpg", "  ") == "covers"
        assert target_folder("arrival.jpg", "artists/") == "artists"


class TestLocalStorage:
    def test_cannot_escape_root(self, images_dir, tmp_path):
        (tmp_path / "secret.txt").write_text("nope")
        assert LocalImageStorage(str(images_dir)).get("../secret.txt") is None

    def test_put_refuses_keys_outside_root(self, images_dir):
        with pytest.raises(ValueError):
            LocalImageStorage(str(images_dir)).put("../escape.jpg", b"x")

    def test_put_creates_folders(self, images_dir):
        storage = LocalImageStorage(str(images_dir))
        storage.put("artists/abba.jpg", b"x")
        assert storage.exists("artists/abba.jpg")
        assert not storage.exists("artists/bowie.jpg")

    def test_fetch_image_prefers_exact_key(self, images_dir):
        image = fetch_image(LocalImageStorage(str(images_dir)), "covers/heroes.png")
        assert image.key == "covers/heroes.png"


class TestContentTypes:
    @pytest.mark.parametrize("name,expected", [
        ("a.JPG", "image/jpeg"),
        ("a.jpeg", "image/jpeg"),
        ("a.webp", "image/webp"),
        ("a.gif", "image/gif"),
        ("a.unknownext", "application/octet-stream"),
    ])
    def test_content_type_for(self, name, expected):
        assert content_type_for(name) == expected


class FakeS3Client:
    """The parts of the boto3 S3 client that R2ImageStorage uses."""

    def __init__(self, objects=None, fail_uploads=False, upload_error=None, bucket_error=None):
        self.objects = objects or {}
        self.upload_error = upload_error
        if fail_uploads and upload_error is None:
            self.upload_error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.bucket_error = bucket_error
        self.uploads = []

    def _missing(self, operation):
        return ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, operation)

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key]), "ContentType": "image/jpeg"}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise self._missing("HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[Key] = Body

    def head_bucket(self, Bucket):
        if self.bucket_error is not None:
            raise self.bucket_error
        return {}

    def upload_file(self, Filename, Bucket, Key, ExtraArgs=None):
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads.append((Filename, Bucket, Key, ExtraArgs))


class TestR2Storage:
    def test_get(self):
        storage = R2ImageStorage(FakeS3Client({"abba.jpg": b"data"}), "cover-art")
        image = storage.get("abba.jpg")
        assert image.body == b"data"
        assert image.content_type == "image/jpeg"

    def test_missing_key_is_none(self):
        assert R2ImageStorage(FakeS3Client(), "cover-art").get("nope.jpg") is None

    def test_exists_and_put(self):
        storage = R2ImageStorage(FakeS3Client(), "cover-art")
        assert storage.exists("covers/a.jpg") is False
        storage.put("covers/a.jpg", b"data")
        assert storage.exists("covers/a.jpg") is True

    def test_health_reports_unreachable_bucket(self):
        error = EndpointConnectionError(endpoint_url="https://r2.example.com")
        health = R2ImageStorage(FakeS3Client(bucket_error=error), "cover-art").health()
        assert health["storage"] == "r2"
        assert health["location"] == "cover-art"
        assert health["available"] is False

    def test_upload_sets_content_type_and_acl(self, tmp_path):
        path = tmp_path / "heroes.png"
        path.write_bytes(b"png")
        client = FakeS3Client()
        assert R2ImageStorage(client, "cover-art").upload_file(str(path), "covers/heroes.png") is True
        _, bucket, key, extra = client.uploads[0]
        assert (bucket, key) == ("cover-art", "covers/heroes.png")
        assert extra == {"ContentType": "image/png", "ACL": "public-read"}

    def test_failed_upload_returns_false(self, tmp_path):
        path = tmp_path / "heroes.png"
        path.write_bytes(b"png")
        storage = R2ImageStorage(FakeS3Client(fail_uploads=True), "cover-art")
        assert storage.upload_file(str(path), "heroes.png") is False

    def test_connection_error_during_upload_returns_false(self, tmp_path):
        path = tmp_path / "heroes.png"
        path.write_bytes(b"png")
        error = EndpointConnectionError(endpoint_url="https://r2.example.com")
        storage = R2ImageStorage(FakeS3Client(upload_error=error), "cover-art")
        assert storage.upload_file(str(path), "heroes.png") is False
