"""
Kollector Scum - Discogs lookup tests

The Discogs API is replaced by an httpx.MockTransport, so these tests never
touch the network.
"""

import httpx
import pytest

from kollector.main import app
from kollector.services.discogs import DiscogsService, get_discogs_service, map_search_result

SEARCH_PAYLOAD = {
    "results": [
        {
            "id": 1234,
            "title": "ABBA - Arrival",
            "year": "1976",
            "format": ["Vinyl", "LP", "Album"],
            "label": ["Polar", "Polar Music International"],
            "catno": "POLS 272",
            "country": "Sweden",
            "thumb": "https://img.discogs.com/t.jpg",
            "cover_image": "https://img.discogs.com/c.jpg",
            "resource_url": "https://api.discogs.com/releases/1234",
        }
    ]
}

RELEASE_PAYLOAD = {
    "id": 1234,
    "title": "Arrival",
    "artists": [{"name": "ABBA", "id": 69866}],
    "year": 1976,
    "genres": ["Pop"],
    "styles": ["Europop"],
    "labels": [{"name": "Polar", "catno": "POLS 272", "id": 1}],
    "country": "Sweden",
    "released": "1976-10-11",
    "formats": [{"name": "Vinyl", "qty": "1", "descriptions": ["LP", "Album"]}],
    "images": [{"type": "primary", "uri": "https://img.discogs.com/c.jpg", "width": 600, "height": 600}],
    "tracklist": [{"position": "A1", "title": "Dancing Queen", "duration": "3:00"}],
    "identifiers": [{"type": "Barcode", "value": "7391946012345"}],
}


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def discogs_client(client, requests_seen):
    """Point the app at a fake Discogs API."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        if request.url.path == "/database/search":
            return httpx.Response(200, json=SEARCH_PAYLOAD)
        if request.url.path == "/releases/1234":
            return httpx.Response(200, json=RELEASE_PAYLOAD)
        if request.url.path == "/releases/500":
            return httpx.Response(500, text="boom")
        return httpx.Response(404, json={"message": "Release not found."})

    app.dependency_overrides[get_discogs_service] = lambda: DiscogsService(transport=httpx.MockTransport(handler))
    return client


class TestDiscogsSearch:
    def test_search_maps_results(self, discogs_client, requests_seen):
        response = discogs_client.get("/api/discogs/search", params={"catalog_number": "POLS 272", "country": "Sweden"})
        assert response.status_code == 200
        result = response.json()[0]
        assert result["artist"] == "ABBA"
        assert result["title"] == "Arrival"
        assert result["label"] == "Polar"
        assert result["format"] == "Vinyl, LP, Album"
        assert result["catalog_number"] == "POLS 272"

        sent = requests_seen[0]
        assert sent.url.params["catno"] == "POLS 272"
        assert sent.url.params["country"] == "Sweden"
        assert sent.url.params["type"] == "release"
        assert "KollectorScum" in sent.headers["User-Agent"]

    def test_catalog_number_is_required(self, discogs_client):
        assert discogs_client.get("/api/discogs/search", params={"catalog_number": " "}).status_code == 400

    def test_title_without_artist(self):
        result = map_search_result({"id": 1, "title": "Untitled"})
        assert result.artist == ""
        assert result.title == "Untitled"


class TestDiscogsRelease:
    def test_get_release(self, discogs_client):
        release = discogs_client.get("/api/discogs/release/1234").json()
        assert release["id"] == "1234"
        assert release["artists"][0]["name"] == "ABBA"
        assert release["labels"][0]["catalog_number"] == "POLS 272"
        assert release["released_date"] == "1976-10-11"
        assert release["tracklist"][0]["position"] == "A1"
        assert release["identifiers"][0]["value"] == "7391946012345"

    def test_unknown_release_is_404(self, discogs_client):
        assert discogs_client.get("/api/discogs/release/999").status_code == 404

    def test_upstream_error_is_502(self, discogs_client):
        response = discogs_client.get("/api/discogs/release/500")
        assert response.status_code == 502
        assert "Discogs" in response.json()["detail"]
