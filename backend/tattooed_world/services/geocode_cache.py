"""
Tattooed World Backend — Two-Level Geocode Cache
==================================================

What:  Remembers address → coordinates so the same address is never sent to
       the provider twice.
How:   Level 1 is an in-process dict with a TTL (default 24h) and a size cap;
       when full, expired entries are swept, then the oldest are evicted.
       Level 2 is the `geocode_cache` table, written with an upsert and read
       on a level-1 miss (warming level 1).
Who:   GeocodingService and GeocodingBatchProcessor; admins clear it through
       DELETE /api/geocoding/cache or the `cache-clear` CLI command.

Keys are `geocode:<normalized address>`, so spacing and case differences in
the input share one entry.
"""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.config import settings
from tattooed_world.models import GeocodeCache
from tattooed_world.models.common import utcnow
from tattooed_world.services.geocoder import GeocodeResult, cache_key

logger = logging.getLogger(__name__)


class GeocodeCacheService:
    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds or settings.geocode_cache_ttl_seconds
        self.max_entries = max_entries or settings.geocode_cache_max_entries
        self._clock = clock
        self._memory: Dict[str, Tuple[GeocodeResult, float]] = {}
        self.hits = 0
        self.misses = 0

    def _remember(self, key: str, result: GeocodeResult) -> None:
        now = self._clock()
        self._memory.pop(key, None)
        if len(self._memory) >= self.max_entries:
            self._evict(now)
        self._memory[key] = (result, now + self.ttl_seconds)

    def _evict(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._memory.items() if expires_at <= now]
        for key in expired:
            del self._memory[key]
        # Insertion order is oldest first
        while len(self._memory) >= self.max_entries:
            del self._memory[next(iter(self._memory))]
        logger.debug("Geocode memory cache evicted down to %d entries", len(self._memory))

    async def get(self, db: AsyncSession, address: str) -> Optional[GeocodeResult]:
        key = cache_key(address)

        entry = self._memory.get(key)
        if entry is not None:
            result, expires_at = entry
            if expires_at > self._clock():
                self.hits += 1
                return GeocodeResult(
                    latitude=result.latitude,
                    longitude=result.longitude,
                    formatted_address=result.formatted_address,
                    cached=True,
                )
            del self._memory[key]

        row = (
            await db.execute(select(GeocodeCache).where(GeocodeCache.address_key == key))
        ).scalar_one_or_none()
        if row is None:
            self.misses += 1
            return None

        self.hits += 1
        result = GeocodeResult(
            latitude=row.latitude,
            longitude=row.longitude,
            formatted_address=row.formatted_address,
            cached=True,
        )
        self._remember(key, result)
        return result

    async def set(self, db: AsyncSession, address: str, result: GeocodeResult) -> None:
        key = cache_key(address)
        self._remember(key, result)

        row = (
            await db.execute(select(GeocodeCache).where(GeocodeCache.address_key == key))
        ).scalar_one_or_none()
        if row is None:
            db.add(
                GeocodeCache(
                    address_key=key,
                    original_address=address,
                    latitude=result.latitude,
                    longitude=result.longitude,
                    formatted_address=result.formatted_address,
                )
            )
        else:
            row.original_address = address
            row.latitude = result.latitude
            row.longitude = result.longitude
            row.formatted_address = result.formatted_address
            row.updated_at = utcnow()
        await db.flush()

    async def clear(self, db: AsyncSession) -> Tuple[int, int]:
        """Empties both levels; returns (memory entries, database rows) removed."""
        memory_cleared = len(self._memory)
        self._memory.clear()
        outcome = await db.execute(delete(GeocodeCache))
        await db.flush()
        database_cleared = outcome.rowcount or 0
        logger.info(
            "Geocode cache cleared: %d memory entries, %d database rows",
            memory_cleared,
            database_cleared,
        )
        return memory_cleared, database_cleared

    async def stats(self, db: AsyncSession) -> Dict[str, float]:
        database_entries = (await db.execute(select(func.count(GeocodeCache.id)))).scalar() or 0
        lookups = self.hits + self.misses
        return {
            "memory_entries": len(self._memory),
            "database_entries": database_entries,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
            "ttl_seconds": self.ttl_seconds,
        }


geocode_cache = GeocodeCacheService()
