"""
Kollector Scum - Application wiring: health, root and error mapping
"""

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from kollector.core.config import Settings
from kollector.main import app


@pytest.fixture
def failing_client():
    """Temporary routes that raise each built-in exception the app maps."""
    router = APIRouter()

    @router.get("/boom/value")
    async def value_error():
        raise ValueError("bad value")

    @router.get("/boom/key")
    async def key_error():
        raise KeyError("missing")

    @router.get("/boom/permission")
    async def permission_error():
        raise PermissionError("no entry")

    @router.get("/boom/not-implemented")
    async def not_implemented():
        raise NotImplementedError("later")

    @router.get("/boom/crash")
    async def crash():
        raise RuntimeError("kaput")

    before = list(app.router.routes)
    app.include_router(router)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.router.routes[:] = before


class TestErrorMapping:
    @pytest.mark.parametrize("path,status", [
        ("/boom/value", 400),
        ("/boom/key", 404),
        ("/boom/permission", 401),
        ("/boom/not-implemented", 501),
        ("/boom/crash", 500),
    ])
    def test_status_codes(self, failing_client, path, status):
        response = failing_client.get(path)
        assert response.status_code == status
        body = response.json()
        assert body["message"] == "An error occurred while processing your request."
        assert body["path"] == path

    def test_details_carry_the_message(self, failing_client):
        assert failing_client.get("/boom/value").json()["details"] == "bad value"


class TestHealth:
    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "Healthy"
        assert body["service"] == "Kollector Scum API"

    def test_root(self, client):
        assert "Kollector Scum" in client.get("/").json()["message"]


class TestSettings:
    @pytest.mark.parametrize("url,expected", [
        ("postgres://u:p@db/kollector", "postgresql+asyncpg://u:p@db/kollector"),
        ("postgresql://u:p@db/kollector", "postgresql+asyncpg://u:p@db/kollector"),
        ("sqlite+aiosqlite:///k.db", "sqlite+aiosqlite:///k.db"),
    ])
    def test_database_url_uses_async_driver(self, url, expected):
        assert Settings(DATABASE_URL=url).DATABASE_URL == expected

    def test_image_storage_is_checked(self):
        with pytest.raises(ValueError):
            Settings(DATABASE_URL="sqlite+aiosqlite:///k.db", IMAGE_STORAGE="ftp")
