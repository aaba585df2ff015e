"""
Kollector Scum - Browsing the collection

Filtering, sorting and paging of /api/musicreleases, plus suggestions,
random pick and the statistics dashboard.
"""

import datetime

import pytest

from kollector.models.music_release import MusicRelease
from kollector.schemas.music_release import MusicReleaseSummary
from kollector.services.statistics_service import build_statistics


@pytest.fixture
def artist_ids(make_lookup):
    """Twelve artists so that ids 1 and 12 both exist."""
    names = ["ABBA", "Bowie", "Can", "Devo", "Eno", "Faust", "Gong", "Harmonia", "Iggy Pop", "Japan", "Kraftwerk", "Low"]
    return {name: make_lookup("artists", name) for name in names}


def titles(body):
    return [r["title"] for r in body["items"]]


class TestFilters:
    def test_artist_filter_matches_whole_ids(self, client, make_release, artist_ids):
        assert artist_ids["ABBA"] == 1 and artist_ids["Low"] == 12
        make_release("Arrival", artist_ids=[1])
        make_release("The Idiot", artist_ids=[12])
        make_release("Low Symbolic", artist_ids=[12, 1])

        body = client.get("/api/musicreleases", params={"artist_id": 1}).json()
        assert titles(body) == ["Arrival", "Low Symbolic"]
        assert body["total_count"] == 2

    def test_genre_and_live_filters(self, client, make_release):
        make_release("Arrival", genre_names=["Pop"])
        make_release("ABBA Live", genre_names=["Pop"], live=True)
        make_release("Voulez-Vous", genre_names=["Disco"])
        pop_id = client.get("/api/genres", params={"search": "pop"}).json()["items"][0]["id"]

        assert titles(client.get("/api/musicreleases", params={"genre_id": pop_id}).json()) == ["ABBA Live", "Arrival"]
        assert titles(client.get("/api/musicreleases", params={"genre_id": pop_id, "live": False}).json()) == ["Arrival"]

    def test_search_and_year_range(self, client, make_release):
        make_release("Ring Ring", release_year="1973-03-26T00:00:00Z")
        make_release("Waterloo", release_year="1974-03-04T00:00:00Z")
        make_release("Arrival", release_year="1976-10-11T00:00:00Z")

        assert titles(client.get("/api/musicreleases", params={"search": "RING"}).json()) == ["Ring Ring"]
        body = client.get("/api/musicreleases", params={"year_from": 1974, "year_to": 1976}).json()
        assert titles(body) == ["Arrival", "Waterloo"]

    def test_kollection_filter_uses_its_genres(self, client, make_release):
        make_release("Arrival", genre_names=["Pop"])
        make_release("Autobahn", artist_names=["Kraftwerk"], genre_names=["Electronic"])
        make_release("Unknown Pleasures", artist_names=["Joy Division"], genre_names=["Post-Punk"])
        genres = {g["name"]: g["id"] for g in client.get("/api/genres").json()["items"]}

        kollection = client.post("/api/kollections", json={
            "name": "Synths and hooks", "genre_ids": [genres["Pop"], genres["Electronic"]],
        }).json()
        body = client.get("/api/musicreleases", params={"kollection_id": kollection["id"]}).json()
        assert titles(body) == ["Arrival", "Autobahn"]

    def test_empty_or_unknown_kollection_matches_nothing(self, client, make_release):
        make_release("Arrival", genre_names=["Pop"])
        empty = client.post("/api/kollections", json={"name": "Nothing yet"}).json()
        assert client.get("/api/musicreleases", params={"kollection_id": empty["id"]}).json()["items"] == []
        assert client.get("/api/musicreleases", params={"kollection_id": 999}).json()["total_count"] == 0


class TestSortingAndPaging:
    def test_sort_by_artist(self, client, make_release):
        make_release("Trans-Europe Express", artist_names=["Kraftwerk"])
        make_release("Arrival", artist_names=["ABBA"])
        make_release("Tago Mago", artist_names=["Can"])

        body = client.get("/api/musicreleases", params={"sort_by": "artist"}).json()
        assert titles(body) == ["Arrival", "Tago Mago", "Trans-Europe Express"]
        body = client.get("/api/musicreleases", params={"sort_by": "artist", "sort_order": "desc"}).json()
        assert titles(body) == ["Trans-Europe Express", "Tago Mago", "Arrival"]

    def test_page_size_is_capped(self, client, make_release):
        make_release()
        body = client.get("/api/musicreleases", params={"page_size": 500}).json()
        assert body["page_size"] == 100

    def test_summaries_carry_names(self, client, make_release):
        make_release("Arrival", label_name="Polar", format_name="Vinyl", genre_names=["Pop"])
        item = client.get("/api/musicreleases").json()["items"][0]
        assert item["artist_names"] == ["ABBA"]
        assert item["label_name"] == "Polar"
        assert item["format_name"] == "Vinyl"
        assert item["genre_names"] == ["Pop"]

    @pytest.mark.parametrize("params", [{"page": 0}, {"page_size": 0}, {"sort_by": "colour"}])
    def test_bad_query_is_400(self, client, params):
        assert client.get("/api/musicreleases", params=params).status_code == 400


class TestSuggestionsAndRandom:
    def test_short_query_returns_nothing(self, client, make_release):
        make_release()
        assert client.get("/api/musicreleases/suggestions", params={"query": "a"}).json() == []

    def test_matches_releases_artists_and_labels(self, client, make_release):
        make_release("Abbey Road", artist_names=["The Beatles"], label_name="Apple")
        make_release("Arrival", label_name="Polar")

        suggestions = client.get("/api/musicreleases/suggestions", params={"query": "ab"}).json()
        assert [(s["type"], s["name"]) for s in suggestions] == [("artist", "ABBA"), ("release", "Abbey Road")]

    def test_prefix_match_survives_the_limit(self, client, make_release):
        for title in ("Zebra ab", "Yak ab", "Abba ab"):
            make_release(title, artist_names=["Zed"])

        suggestions = client.get("/api/musicreleases/suggestions", params={"query": "ab", "limit": 2}).json()
        assert [s["name"] for s in suggestions] == ["Abba ab", "Yak ab"]

    def test_random_on_empty_collection_is_404(self, client):
        assert client.get("/api/musicreleases/random").status_code == 404

    def test_random_returns_a_release(self, client, make_release):
        release_id = make_release()["release"]["id"]
        assert client.get("/api/musicreleases/random").json() == {"id": release_id}


class TestStatistics:
    def test_endpoint(self, client, make_release):
        make_release("Arrival", genre_names=["Pop"], format_name="Vinyl",
                     release_year="1976-10-11T00:00:00Z",
                     purchase_info={"price": 20, "currency": "GBP"})
        make_release("Heroes", artist_names=["David Bowie"], genre_names=["Rock"], format_name="CD",
                     release_year="1977-10-14T00:00:00Z",
                     purchase_info={"price": 10, "currency": "GBP"})

        stats = client.get("/api/musicreleases/statistics").json()
        assert stats["total_releases"] == 2
        assert stats["total_artists"] == 2
        assert stats["total_genres"] == 2
        assert stats["releases_by_year"] == [{"year": 1976, "count": 1}, {"year": 1977, "count": 1}]
        assert stats["total_value"] == 30.0
        assert stats["average_price"] == 15.0
        assert stats["most_expensive_release"]["title"] == "Arrival"
        assert len(stats["recently_added"]) == 2

    def test_empty_collection(self, client):
        stats = client.get("/api/musicreleases/statistics").json()
        assert stats["total_releases"] == 0
        assert stats["total_value"] is None

    def test_build_statistics_percentages_and_top_lists(self):
        now = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        releases = [
            MusicRelease(id=i, title=f"R{i}", artists="[1]", genres="[1,2]" if i < 3 else "[3]",
                         format_id=1 if i < 2 else 2, country_id=7,
                         date_added=now + datetime.timedelta(days=i))
            for i in range(1, 5)
        ]
        summaries = {r.id: MusicReleaseSummary(id=r.id, title=r.title) for r in releases}

        stats = build_statistics(releases, summaries, {1: "Vinyl", 2: "CD"}, {7: "UK"}, {1: "Rock", 2: "Pop"})

        assert [(f.format_name, f.count, f.percentage) for f in stats.releases_by_format] == [
            ("CD", 3, 75.0), ("Vinyl", 1, 25.0),
        ]
        assert stats.releases_by_country[0].percentage == 100.0
        genres = {g.genre_id: (g.genre_name, g.count) for g in stats.releases_by_genre}
        assert genres == {1: ("Rock", 2), 2: ("Pop", 2), 3: ("Unknown", 2)}
        assert [s.id for s in stats.recently_added] == [4, 3, 2, 1]
        assert stats.total_value is None
