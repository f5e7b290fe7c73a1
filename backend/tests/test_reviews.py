"""
Tattooed World Backend — Review Tests
=======================================

What we test:
    ✅ Only CLIENT accounts may post, and only about artists
    ✅ One review per author and artist (409 on the second)
    ✅ Hidden reviews disappear from the public listing
    ✅ Authors edit their own reviews; admins may delete any
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from conftest import create_user
from tattooed_world.models import Review
from tattooed_world.services.mail_service import mail_service


class TestCreateReview:
    """POST /api/reviews"""

    @pytest.mark.asyncio
    async def test_client_reviews_artist(self, test_client, client_user, artist_user):
        with patch.object(
            mail_service, "send_review_notification", AsyncMock(return_value=True)
        ) as notify:
            response = await test_client.post(
                "/api/reviews",
                json={"recipient_id": str(artist_user.id), "rating": 4, "comment": "Great lines"},
                headers=client_user.headers,
            )

        assert response.status_code == 201
        body = response.json()
        assert body["rating"] == 4
        assert body["author"]["id"] == str(client_user.id)
        notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_review_is_conflict(self, test_client, client_user, artist_user):
        payload = {"recipient_id": str(artist_user.id), "rating": 5}

        await test_client.post("/api/reviews", json=payload, headers=client_user.headers)
        response = await test_client.post("/api/reviews", json=payload, headers=client_user.headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_recipient_must_be_artist(self, test_client, client_user, session_factory):
        other_client = await create_user(session_factory, "other@example.com")

        response = await test_client.post(
            "/api/reviews",
            json={"recipient_id": str(other_client.id), "rating": 3},
            headers=client_user.headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Can only review artists"

    @pytest.mark.asyncio
    async def test_unknown_recipient_is_404(self, test_client, client_user):
        response = await test_client.post(
            "/api/reviews",
            json={"recipient_id": str(uuid.uuid4()), "rating": 3},
            headers=client_user.headers,
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_artist_cannot_post_review(self, test_client, artist_user, session_factory):
        other = await create_user(session_factory, "x@example.com", role="ARTIST")

        response = await test_client.post(
            "/api/reviews",
            json={"recipient_id": str(other.id), "rating": 3},
            headers=artist_user.headers,
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rating_bounds(self, test_client, client_user, artist_user):
        response = await test_client.post(
            "/api/reviews",
            json={"recipient_id": str(artist_user.id), "rating": 6},
            headers=client_user.headers,
        )

        assert response.status_code == 400


class TestListAndModify:
    """GET/PUT/DELETE /api/reviews"""

    @pytest.mark.asyncio
    async def test_hidden_reviews_not_listed(self, test_client, artist_user, session_factory):
        a = await create_user(session_factory, "a@example.com")
        b = await create_user(session_factory, "b@example.com")
        async with session_factory() as db:
            db.add(Review(author_id=a.id, recipient_id=artist_user.id, rating=5))
            db.add(Review(author_id=b.id, recipient_id=artist_user.id, rating=1, is_hidden=True))
            await db.commit()

        response = await test_client.get(
            "/api/reviews", params={"recipientId": str(artist_user.id)}
        )

        body = response.json()
        assert [r["rating"] for r in body["reviews"]] == [5]
        assert body["pagination"]["total"] == 1

    @pytest.mark.asyncio
    async def test_only_author_updates(self, test_client, client_user, artist_user, session_factory):
        created = await test_client.post(
            "/api/reviews",
            json={"recipient_id": str(artist_user.id), "rating": 2},
            headers=client_user.headers,
        )
        review_id = created.json()["id"]
        stranger = await create_user(session_factory, "stranger@example.com")

        denied = await test_client.put(
            f"/api/reviews/{review_id}", json={"rating": 5}, headers=stranger.headers
        )
        allowed = await test_client.put(
            f"/api/reviews/{review_id}", json={"rating": 4}, headers=client_user.headers
        )

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["rating"] == 4

    @pytest.mark.asyncio
    async def test_admin_deletes_any_review(
        self, test_client, client_user, artist_user, admin_user
    ):
        created = await test_client.post(
            "/api/reviews",
            json={"recipient_id": str(artist_user.id), "rating": 1},
            headers=client_user.headers,
        )

        response = await test_client.delete(
            f"/api/reviews/{created.json()['id']}", headers=admin_user.headers
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Review deleted"}
