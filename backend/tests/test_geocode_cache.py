"""
Tattooed World Backend — Geocode Cache Tests
==============================================

What we test:
    ✅ Equivalent spellings of an address share one entry
    ✅ Memory entries expire after the TTL; the database level refills memory
    ✅ The memory level is capped: expired entries go first, then the oldest
    ✅ clear() empties both levels and reports counts; stats() tracks hit rate
"""

import pytest
from sqlalchemy import select

from tattooed_world.models import GeocodeCache
from tattooed_world.services.geocode_cache import GeocodeCacheService
from tattooed_world.services.geocoder import GeocodeResult

RESULT = GeocodeResult(latitude=53.96, longitude=-1.08, formatted_address="York, UK")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestGeocodeCache:

    def setup_method(self):
        self.clock = FakeClock()
        self.cache = GeocodeCacheService(ttl_seconds=60, clock=self.clock)

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, db_session):
        assert await self.cache.get(db_session, "1 High St, York") is None

        await self.cache.set(db_session, "1 High St, York", RESULT)
        hit = await self.cache.get(db_session, "  1 HIGH ST ,york ")

        assert hit is not None
        assert hit.cached is True
        assert (hit.latitude, hit.longitude) == (53.96, -1.08)
        assert (self.cache.hits, self.cache.misses) == (1, 1)

    @pytest.mark.asyncio
    async def test_set_writes_one_row_per_key(self, db_session):
        await self.cache.set(db_session, "1 High St, York", RESULT)
        await self.cache.set(
            db_session, "1 high st,  york", GeocodeResult(latitude=1.0, longitude=2.0)
        )

        rows = (await db_session.execute(select(GeocodeCache))).scalars().all()
        assert len(rows) == 1
        assert rows[0].address_key == "geocode:1 high st, york"
        assert rows[0].latitude == 1.0

    @pytest.mark.asyncio
    async def test_expired_memory_falls_back_to_database(self, db_session):
        await self.cache.set(db_session, "1 High St, York", RESULT)
        self.clock.now += 61

        hit = await self.cache.get(db_session, "1 High St, York")

        assert hit is not None
        assert hit.formatted_address == "York, UK"
        assert len(self.cache._memory) == 1

    @pytest.mark.asyncio
    async def test_clear_and_stats(self, db_session):
        await self.cache.set(db_session, "1 High St, York", RESULT)
        await self.cache.set(db_session, "2 Low St, Leeds", RESULT)
        await self.cache.get(db_session, "1 High St, York")
        await self.cache.get(db_session, "9 Unknown Rd")

        stats = await self.cache.stats(db_session)
        memory, database = await self.cache.clear(db_session)

        assert stats["memory_entries"] == 2
        assert stats["database_entries"] == 2
        assert stats["hit_rate"] == 0.5
        assert stats["ttl_seconds"] == 60
        assert (memory, database) == (2, 2)
        assert await self.cache.get(db_session, "1 High St, York") is None

    @pytest.mark.asyncio
    async def test_memory_level_is_capped(self, db_session):
        cache = GeocodeCacheService(ttl_seconds=60, max_entries=2, clock=self.clock)
        await cache.set(db_session, "1 Old St", RESULT)
        await cache.set(db_session, "2 Mid St", RESULT)
        await cache.set(db_session, "3 New St", RESULT)

        assert list(cache._memory) == ["geocode:2 mid st", "geocode:3 new st"]
        # Evicted from memory, still served by the database level
        assert await cache.get(db_session, "1 Old St") is not None

    @pytest.mark.asyncio
    async def test_full_cache_sweeps_every_expired_entry(self, db_session):
        cache = GeocodeCacheService(ttl_seconds=60, max_entries=3, clock=self.clock)
        await cache.set(db_session, "1 Old St", RESULT)
        await cache.set(db_session, "2 Old St", RESULT)
        self.clock.now += 61
        await cache.set(db_session, "3 New St", RESULT)

        await cache.set(db_session, "4 New St", RESULT)

        assert list(cache._memory) == ["geocode:3 new st", "geocode:4 new st"]
