"""
Kollector Scum - Lookup table API tests

The seven lookup tables share one router factory, so most behaviour is
exercised through artists and spot-checked on the others.
"""

import pytest


class TestLookupCrud:
    def test_create_and_get(self, client):
        response = client.post("/api/artists", json={"name": "  Kraftwerk  "})
        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Kraftwerk"

        response = client.get(f"/api/artists/{created['id']}")
        assert response.status_code == 200
        assert response.json() == created

    def test_update(self, client, make_lookup):
        genre_id = make_lookup("genres", "Krautrok")
        response = client.put(f"/api/genres/{genre_id}", json={"name": "Krautrock"})
        assert response.status_code == 200
        assert response.json()["name"] == "Krautrock"

    def test_delete_returns_204(self, client, make_lookup):
        label_id = make_lookup("labels", "Factory")
        response = client.delete(f"/api/labels/{label_id}")
        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/api/labels/{label_id}").status_code == 404

    def test_missing_is_404(self, client):
        response = client.get("/api/countries/999")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    def test_non_positive_id_is_400(self, client):
        assert client.get("/api/formats/0").status_code == 400

    def test_duplicate_name_is_400_regardless_of_case(self, client, make_lookup):
        make_lookup("stores", "Rough Trade")
        response = client.post("/api/stores", json={"name": "rough trade"})
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_rename_onto_other_name_is_400(self, client, make_lookup):
        make_lookup("packagings", "Gatefold")
        sleeve_id = make_lookup("packagings", "Sleeve")
        response = client.put(f"/api/packagings/{sleeve_id}", json={"name": "GATEFOLD"})
        assert response.status_code == 400

    def test_blank_name_is_400(self, client):
        response = client.post("/api/genres", json={"name": "   "})
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_name_longer_than_column_is_400(self, client):
        response = client.post("/api/genres", json={"name": "x" * 51})
        assert response.status_code == 400


class TestLookupPaging:
    @pytest.fixture
    def artists(self, make_lookup):
        for name in ["Can", "Neu!", "Faust", "Cluster", "Harmonia"]:
            make_lookup("artists", name)

    def test_pages_are_ordered_by_name(self, client, artists):
        body = client.get("/api/artists", params={"page": 1, "page_size": 2}).json()
        assert [a["name"] for a in body["items"]] == ["Can", "Cluster"]
        assert body["total_count"] == 5
        assert body["total_pages"] == 3
        assert body["has_next"] is True
        assert body["has_previous"] is False

        last = client.get("/api/artists", params={"page": 3, "page_size": 2}).json()
        assert [a["name"] for a in last["items"]] == ["Neu!"]
        assert last["has_next"] is False

    def test_search_is_case_insensitive(self, client, artists):
        body = client.get("/api/artists", params={"search": "CL"}).json()
        assert [a["name"] for a in body["items"]] == ["Cluster"]
        assert body["total_count"] == 1

    @pytest.mark.parametrize("params", [{"page": 0}, {"page_size": 0}, {"page_size": 5001}])
    def test_bad_paging_is_400(self, client, params):
        assert client.get("/api/artists", params=params).status_code == 400
