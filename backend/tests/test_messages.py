"""
Tattooed World Backend — Artist Message Tests
===============================================

What we test:
    ✅ At most 5 live messages per artist; the sixth is a 400
    ✅ Re-activating a message counts against the same cap
    ✅ Public listing hides inactive and expired messages, highest priority first
    ✅ Artists only touch their own messages
"""

from datetime import timedelta

import pytest

from conftest import create_artist
from tattooed_world.models import ArtistMessage
from tattooed_world.models.common import utcnow


class TestMessageCap:
    """POST /api/messages"""

    @pytest.mark.asyncio
    async def test_sixth_live_message_rejected(self, test_client, artist_user):
        for n in range(5):
            created = await test_client.post(
                "/api/messages", json={"content": f"Note {n}"}, headers=artist_user.headers
            )
            assert created.status_code == 201

        response = await test_client.post(
            "/api/messages", json={"content": "One too many"}, headers=artist_user.headers
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Maximum 5 active messages allowed")

    @pytest.mark.asyncio
    async def test_expired_messages_do_not_count(self, test_client, artist_user, session_factory):
        async with session_factory() as db:
            for n in range(5):
                db.add(
                    ArtistMessage(
                        artist_id=artist_user.artist_id,
                        content=f"Old {n}",
                        expires_at=utcnow() - timedelta(days=1),
                    )
                )
            await db.commit()

        response = await test_client.post(
            "/api/messages", json={"content": "Fresh"}, headers=artist_user.headers
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_reactivation_respects_cap(self, test_client, artist_user, session_factory):
        async with session_factory() as db:
            for n in range(5):
                db.add(ArtistMessage(artist_id=artist_user.artist_id, content=f"Live {n}"))
            dormant = ArtistMessage(
                artist_id=artist_user.artist_id, content="Dormant", is_active=False
            )
            db.add(dormant)
            await db.commit()

        response = await test_client.put(
            f"/api/messages/{dormant.id}", json={"is_active": True}, headers=artist_user.headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_past_expiry_rejected(self, test_client, artist_user):
        response = await test_client.post(
            "/api/messages",
            json={"content": "Late", "expires_at": (utcnow() - timedelta(hours=1)).isoformat()},
            headers=artist_user.headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_clients_cannot_post(self, test_client, client_user):
        response = await test_client.post(
            "/api/messages", json={"content": "Hi"}, headers=client_user.headers
        )

        assert response.status_code == 403


class TestMessageListing:
    """GET /api/messages/artist/{id} and /my-messages"""

    @pytest.mark.asyncio
    async def test_public_listing(self, test_client, artist_user, session_factory):
        async with session_factory() as db:
            db.add(ArtistMessage(artist_id=artist_user.artist_id, content="Low", priority=1))
            db.add(ArtistMessage(artist_id=artist_user.artist_id, content="High", priority=3))
            db.add(
                ArtistMessage(artist_id=artist_user.artist_id, content="Off", is_active=False)
            )
            db.add(
                ArtistMessage(
                    artist_id=artist_user.artist_id,
                    content="Expired",
                    expires_at=utcnow() - timedelta(minutes=5),
                )
            )
            await db.commit()

        public = await test_client.get(f"/api/messages/artist/{artist_user.artist_id}")
        own = await test_client.get("/api/messages/my-messages", headers=artist_user.headers)

        assert [m["content"] for m in public.json()["messages"]] == ["High", "Low"]
        assert len(own.json()["messages"]) == 4

    @pytest.mark.asyncio
    async def test_cannot_delete_someone_elses_message(
        self, test_client, artist_user, session_factory
    ):
        other = await create_artist(session_factory, "other@example.com")
        created = await test_client.post(
            "/api/messages", json={"content": "Mine"}, headers=artist_user.headers
        )

        response = await test_client.delete(
            f"/api/messages/{created.json()['id']}", headers=other.headers
        )

        assert response.status_code == 404
