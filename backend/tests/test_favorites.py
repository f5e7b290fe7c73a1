"""
Tattooed World Backend — Favorites Tests
==========================================

What we test:
    ✅ Adding is idempotent: 201 the first time, 200 with created=false after
    ✅ Removing reports whether a row was deleted
    ✅ Only CLIENT accounts have favorites
"""

import uuid

import pytest


class TestFavorites:
    """/api/favorites"""

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, test_client, client_user, artist_user):
        payload = {"artist_id": str(artist_user.artist_id)}

        first = await test_client.post("/api/favorites", json=payload, headers=client_user.headers)
        second = await test_client.post("/api/favorites", json=payload, headers=client_user.headers)
        listing = await test_client.get("/api/favorites", headers=client_user.headers)

        assert first.status_code == 201
        assert first.json()["created"] is True
        assert first.json()["message"] == "Added to favorites"
        assert second.status_code == 200
        assert second.json()["created"] is False
        assert second.json()["favorite"]["id"] == first.json()["favorite"]["id"]
        assert len(listing.json()["favorites"]) == 1
        assert listing.json()["favorites"][0]["artist"]["id"] == str(artist_user.artist_id)

    @pytest.mark.asyncio
    async def test_remove_reports_outcome(self, test_client, client_user, artist_user):
        await test_client.post(
            "/api/favorites",
            json={"artist_id": str(artist_user.artist_id)},
            headers=client_user.headers,
        )

        removed = await test_client.delete(
            f"/api/favorites/{artist_user.artist_id}", headers=client_user.headers
        )
        again = await test_client.delete(
            f"/api/favorites/{artist_user.artist_id}", headers=client_user.headers
        )

        assert removed.status_code == 200
        assert removed.json()["removed"] is True
        assert again.status_code == 200
        assert again.json()["removed"] is False

    @pytest.mark.asyncio
    async def test_check(self, test_client, client_user, artist_user):
        url = f"/api/favorites/check/{artist_user.artist_id}"

        before = await test_client.get(url, headers=client_user.headers)
        await test_client.post(
            "/api/favorites",
            json={"artist_id": str(artist_user.artist_id)},
            headers=client_user.headers,
        )
        after = await test_client.get(url, headers=client_user.headers)

        assert before.json() == {"is_favorited": False}
        assert after.json() == {"is_favorited": True}

    @pytest.mark.asyncio
    async def test_unknown_artist_is_404(self, test_client, client_user):
        response = await test_client.post(
            "/api/favorites", json={"artist_id": str(uuid.uuid4())}, headers=client_user.headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_artists_cannot_favorite(self, test_client, artist_user):
        response = await test_client.get("/api/favorites", headers=artist_user.headers)

        assert response.status_code == 403
