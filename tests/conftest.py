"""
Kollector Scum - Pytest Configuration & Shared Fixtures

Every test that touches the database gets its own SQLite file with a fresh
schema, wired into the app through a get_db override.
"""

import asyncio
import os
import tempfile

# Settings are read when kollector.core.config is imported, so the
# environment has to be in place before anything from the app is imported.
_tmp_root = tempfile.mkdtemp(prefix="kollector-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_tmp_root, 'default.db')}")
os.environ.setdefault("IMAGE_STORAGE", "local")
os.environ.setdefault("IMAGES_PATH", os.path.join(_tmp_root, "images"))
os.environ.setdefault("DATA_PATH", os.path.join(_tmp_root, "data"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from kollector.main import app
from kollector.services.database import Base, get_db

# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session_factory(tmp_path):
    """A session factory bound to a brand new SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'kollector.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_in_session(session_factory):
    """Run `fn(session)` (a coroutine function) in a fresh session and return its result."""

    def _run(fn):
        async def _inner():
            async with session_factory() as session:
                return await fn(session)

        return asyncio.run(_inner())

    return _run


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_lookup(client):
    """Create a lookup row through the API and return its id."""

    def _make(path: str, name: str) -> int:
        response = client.post(f"/api/{path}", json={"name": name})
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _make


@pytest.fixture
def make_release(client):
    """Create a music release through the API and return the response body."""

    def _make(title: str = "Arrival", **fields) -> dict:
        payload = {"title": title}
        if "artist_ids" not in fields and "artist_names" not in fields:
            payload["artist_names"] = ["ABBA"]
        payload.update(fields)
        response = client.post("/api/musicreleases", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
