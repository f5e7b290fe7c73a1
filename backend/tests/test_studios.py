"""
Tattooed World Backend — Studio Tests
=======================================

What:  /api/studios directory, proximity search, create/update, roster and claims.

What we test:
    ✅ Nearby search: radius, distance ordering, studios without coordinates ignored
    ✅ The search box wraps across the antimeridian
    ✅ Create claims the studio for its creator; duplicate titles → 409
    ✅ Changing the address clears stale coordinates (status back to pending)
    ✅ Explicitly clearing coordinates queues the studio for geocoding again
    ✅ Only managers may edit; claims are first-come
    ✅ Artists can be added to and leave a studio roster
"""

import uuid

import pytest

from conftest import create_artist, create_studio, create_user
from tattooed_world.models import GeocodeStatus, Studio
from tattooed_world.models.common import utcnow
from tattooed_world.services.studio_service import haversine_km, slugify

# Central London and two nearby points
LONDON = (51.5074, -0.1278)
CAMDEN = (51.5390, -0.1426)      # ~3.6 km
BRIGHTON = (50.8225, -0.1372)    # ~76 km


class TestHelpers:
    """Pure helpers in studio_service."""

    def test_slugify(self):
        assert slugify("  Black Lotus Tattoo & Co. ") == "black-lotus-tattoo-co"
        assert slugify("!!!") == "studio"

    def test_haversine_zero_and_known_distance(self):
        assert haversine_km(*LONDON, *LONDON) == 0
        assert 3.0 < haversine_km(*LONDON, *CAMDEN) < 4.5
        assert 70 < haversine_km(*LONDON, *BRIGHTON) < 80


class TestNearby:
    """GET /api/studios/nearby"""

    @pytest.mark.asyncio
    async def test_nearby_orders_by_distance(self, test_client, session_factory):
        await create_studio(session_factory, "Camden Ink", latitude=CAMDEN[0], longitude=CAMDEN[1])
        await create_studio(session_factory, "Soho Ink", latitude=LONDON[0], longitude=LONDON[1])
        await create_studio(
            session_factory, "Brighton Ink", latitude=BRIGHTON[0], longitude=BRIGHTON[1]
        )
        await create_studio(session_factory, "Nowhere Ink", city="London")

        response = await test_client.get(
            "/api/studios/nearby", params={"lat": LONDON[0], "lng": LONDON[1], "radius": 10}
        )

        assert response.status_code == 200
        body = response.json()
        assert [s["title"] for s in body["studios"]] == ["Soho Ink", "Camden Ink"]
        assert body["studios"][0]["distance_km"] == 0
        assert body["radius_km"] == 10

    @pytest.mark.asyncio
    async def test_search_box_wraps_at_antimeridian(self, test_client, session_factory):
        await create_studio(session_factory, "Taveuni Ink", latitude=-16.8, longitude=179.95)
        await create_studio(session_factory, "Vanua Ink", latitude=-16.8, longitude=-179.95)

        east = await test_client.get(
            "/api/studios/nearby", params={"lat": -16.8, "lng": -179.95, "radius": 50}
        )
        west = await test_client.get(
            "/api/studios/nearby", params={"lat": -16.8, "lng": 179.95, "radius": 50}
        )

        assert [s["title"] for s in east.json()["studios"]] == ["Vanua Ink", "Taveuni Ink"]
        assert [s["title"] for s in west.json()["studios"]] == ["Taveuni Ink", "Vanua Ink"]

    @pytest.mark.asyncio
    async def test_latitude_out_of_range(self, test_client):
        response = await test_client.get("/api/studios/nearby", params={"lat": 95, "lng": 0})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_nearby_is_not_treated_as_an_id(self, test_client):
        response = await test_client.get(
            "/api/studios/nearby", params={"lat": 0, "lng": 0}
        )

        assert response.status_code == 200
        assert response.json()["studios"] == []


class TestCreateStudio:
    """POST /api/studios"""

    @pytest.mark.asyncio
    async def test_create_claims_for_creator(self, test_client, client_user):
        response = await test_client.post(
            "/api/studios",
            json={"title": "Black Lotus", "address": "1 High St", "city": "York"},
            headers=client_user.headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "black-lotus"
        assert body["claimed_by"] == str(client_user.id)
        assert body["geocode_status"] == GeocodeStatus.PENDING.value
        assert body["latitude"] is None

    @pytest.mark.asyncio
    async def test_coordinates_supplied_means_geocoded(self, test_client, client_user):
        response = await test_client.post(
            "/api/studios",
            json={"title": "Soho Ink", "latitude": LONDON[0], "longitude": LONDON[1]},
            headers=client_user.headers,
        )

        assert response.status_code == 201
        assert response.json()["geocode_status"] == GeocodeStatus.OK.value

    @pytest.mark.asyncio
    async def test_duplicate_title_is_conflict(self, test_client, client_user, session_factory):
        await create_studio(session_factory, "Black Lotus")

        response = await test_client.post(
            "/api/studios", json={"title": "black lotus"}, headers=client_user.headers
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_requires_authentication(self, test_client):
        response = await test_client.post("/api/studios", json={"title": "Anon Ink"})

        assert response.status_code == 401


class TestUpdateStudio:
    """PUT /api/studios/{id}"""

    @pytest.mark.asyncio
    async def test_address_change_resets_coordinates(self, test_client, client_user, session_factory):
        studio = await create_studio(
            session_factory,
            "Soho Ink",
            address="1 Old St",
            city="London",
            latitude=LONDON[0],
            longitude=LONDON[1],
            geocode_status=GeocodeStatus.OK.value,
            claimed_by=client_user.id,
        )

        response = await test_client.put(
            f"/api/studios/{studio.id}",
            json={"address": "99 New Rd"},
            headers=client_user.headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["latitude"] is None
        assert body["longitude"] is None
        assert body["geocode_status"] == GeocodeStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_clearing_coordinates_requeues_geocoding(
        self, test_client, client_user, session_factory
    ):
        studio = await create_studio(
            session_factory,
            "Soho Ink",
            city="London",
            latitude=LONDON[0],
            longitude=LONDON[1],
            geocode_status=GeocodeStatus.OK.value,
            geocoded_at=utcnow(),
            claimed_by=client_user.id,
        )

        response = await test_client.put(
            f"/api/studios/{studio.id}",
            json={"latitude": None, "longitude": None},
            headers=client_user.headers,
        )

        assert response.status_code == 200
        assert response.json()["geocode_status"] == GeocodeStatus.PENDING.value
        async with session_factory() as db:
            stored = await db.get(Studio, studio.id)
        assert (stored.latitude, stored.longitude, stored.geocoded_at) == (None, None, None)

    @pytest.mark.asyncio
    async def test_non_manager_forbidden(self, test_client, client_user, session_factory):
        studio = await create_studio(session_factory, "Soho Ink")

        response = await test_client.put(
            f"/api/studios/{studio.id}", json={"phone": "123"}, headers=client_user.headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rename_updates_slug(self, test_client, client_user, session_factory):
        studio = await create_studio(session_factory, "Soho Ink", claimed_by=client_user.id)

        response = await test_client.put(
            f"/api/studios/{studio.id}",
            json={"title": "Soho Ink Collective"},
            headers=client_user.headers,
        )

        assert response.json()["slug"] == "soho-ink-collective"


class TestClaimAndRoster:
    """POST /api/studios/{id}/claim, /artists and /leave"""

    @pytest.mark.asyncio
    async def test_claim_is_first_come(self, test_client, session_factory):
        studio = await create_studio(session_factory, "Unclaimed Ink")
        first = await create_user(session_factory, "first@example.com")
        second = await create_user(session_factory, "second@example.com")

        won = await test_client.post(f"/api/studios/{studio.id}/claim", headers=first.headers)
        lost = await test_client.post(f"/api/studios/{studio.id}/claim", headers=second.headers)

        assert won.status_code == 200
        assert won.json()["claimed_by"] == str(first.id)
        assert lost.status_code == 409

    @pytest.mark.asyncio
    async def test_add_then_leave(self, test_client, client_user, artist_user, session_factory):
        studio = await create_studio(session_factory, "Roster Ink", claimed_by=client_user.id)

        added = await test_client.post(
            f"/api/studios/{studio.id}/artists",
            json={"artist_id": str(artist_user.artist_id), "role": "ARTIST"},
            headers=client_user.headers,
        )
        duplicate = await test_client.post(
            f"/api/studios/{studio.id}/artists",
            json={"artist_id": str(artist_user.artist_id)},
            headers=client_user.headers,
        )
        roster = await test_client.get(f"/api/studios/{studio.id}/artists")
        left = await test_client.post(
            f"/api/studios/{studio.id}/leave", headers=artist_user.headers
        )
        after = await test_client.get(f"/api/studios/{studio.id}")

        assert added.status_code == 201
        assert added.json()["artist_id"] == str(artist_user.artist_id)
        assert duplicate.status_code == 409
        assert len(roster.json()) == 1
        assert left.status_code == 200
        assert after.json()["artists"] == []

    @pytest.mark.asyncio
    async def test_leave_requires_artist_role(self, test_client, client_user, session_factory):
        studio = await create_studio(session_factory, "Roster Ink")

        response = await test_client.post(
            f"/api/studios/{studio.id}/leave", headers=client_user.headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_studio_is_404(self, test_client):
        response = await test_client.get(f"/api/studios/{uuid.uuid4()}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters_by_search(self, test_client, session_factory):
        await create_studio(session_factory, "Black Lotus", city="York")
        await create_studio(session_factory, "Red Rose", city="Leeds")

        response = await test_client.get("/api/studios", params={"search": "lotus"})

        assert [s["title"] for s in response.json()["studios"]] == ["Black Lotus"]
