"""
Tattooed World Backend — Geocoding Service
============================================

What:  Everything behind /api/geocoding except batch control: ad-hoc address
       lookups, coverage statistics, the pending queue, manual and on-demand
       studio coordinates, GeoJSON map feeds and cache administration.
How:   Every lookup goes cache first (GeocodeCacheService), then the Google
       client; a fresh provider answer is written back to both cache levels.
Who:   routes/geocoding.py, the studio-create background task, the CLI.

Single-studio flow (POST /update-studio-coordinates, studio create):
    compose address ──empty──▶ 400 (status=skipped)
          │
          ▼
    cache ──hit──▶ write coordinates
          │ miss
          ▼
    Google ──ok──▶ write coordinates + cache
          │ error
          ▼
    status=failed committed, error re-raised (502 / 503)
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.config import settings
from tattooed_world.exceptions import (
    CircuitBreakerOpenError,
    GeocodingError,
    GeocodingUnavailableError,
    NotFoundError,
    TattooedWorldError,
    ValidationError,
)
from tattooed_world.models import GeocodeStatus, Studio, User
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.geocoding import (
    BatchGeocodeItem,
    BatchGeocodeResponse,
    CacheClearResponse,
    CacheStatsResponse,
    GeocodeResultResponse,
    GeocodingStatusResponse,
    GeoJSONFeature,
    GeoJSONFeatureCollection,
    GeoJSONPoint,
    PendingStudio,
    PendingStudiosResponse,
    SaveResultRequest,
    StudioCoordinatesResponse,
)
from tattooed_world.services.admin_service import record_action
from tattooed_world.services.geocode_cache import GeocodeCacheService, geocode_cache
from tattooed_world.services.geocoder import (
    GeocodeResult,
    GoogleGeocoder,
    compose_address,
    geocoder,
)
from tattooed_world.services.geocoding_batch import pending_studios_filter

logger = logging.getLogger(__name__)


def studio_address(studio: Studio) -> str:
    return compose_address(
        studio.address,
        studio.city,
        studio.state,
        studio.zip_code,
        studio.country,
        default_country=settings.geocode_default_country,
    )


def _coordinates_response(studio: Studio, cached: bool = False) -> StudioCoordinatesResponse:
    return StudioCoordinatesResponse(
        studio_id=studio.id,
        title=studio.title,
        latitude=studio.latitude,
        longitude=studio.longitude,
        geocode_status=studio.geocode_status,
        cached=cached,
    )


def _feature(studio: Studio) -> GeoJSONFeature:
    return GeoJSONFeature(
        geometry=GeoJSONPoint(coordinates=[studio.longitude, studio.latitude]),
        properties={
            "id": str(studio.id),
            "title": studio.title,
            "slug": studio.slug,
            "address": studio.address,
            "city": studio.city,
            "country": studio.country,
            "website": studio.website,
            "phone": studio.phone,
            "is_verified": studio.is_verified,
            "is_featured": studio.is_featured,
        },
    )


class GeocodingService:
    def __init__(
        self,
        client: Optional[GoogleGeocoder] = None,
        cache: Optional[GeocodeCacheService] = None,
    ):
        self.geocoder = client or geocoder
        self.cache = cache or geocode_cache

    async def resolve(self, db: AsyncSession, address: str) -> GeocodeResult:
        cached = await self.cache.get(db, address)
        if cached is not None:
            return cached
        result = await self.geocoder.geocode(address)
        await self.cache.set(db, address, result)
        return result

    # ── Ad-hoc lookups ────────────────────────────────────────────────────

    async def geocode_address(self, db: AsyncSession, address: str) -> GeocodeResultResponse:
        address = address.strip()
        if not address:
            raise ValidationError("Address is required", field="address")
        result = await self.resolve(db, address)
        return GeocodeResultResponse(
            address=address,
            latitude=result.latitude,
            longitude=result.longitude,
            formatted_address=result.formatted_address,
            cached=result.cached,
        )

    async def batch_geocode(self, db: AsyncSession, addresses: List[str]) -> BatchGeocodeResponse:
        limit = settings.geocode_batch_max_addresses
        if len(addresses) > limit:
            raise ValidationError(f"Maximum {limit} addresses per batch", field="addresses")

        items: List[BatchGeocodeItem] = []
        for address in addresses:
            try:
                result = await self.geocode_address(db, address)
            except (GeocodingError, CircuitBreakerOpenError, ValidationError) as exc:
                items.append(BatchGeocodeItem(address=address, success=False, error=exc.message))
                continue
            items.append(BatchGeocodeItem(address=address, success=True, result=result))

        succeeded = sum(1 for item in items if item.success)
        return BatchGeocodeResponse(
            results=items, succeeded=succeeded, failed=len(items) - succeeded
        )

    # ── Coverage ──────────────────────────────────────────────────────────

    async def status(self, db: AsyncSession) -> GeocodingStatusResponse:
        total = (
            await db.execute(select(func.count(Studio.id)).where(Studio.is_active.is_(True)))
        ).scalar() or 0
        without = (
            await db.execute(select(func.count(Studio.id)).where(pending_studios_filter()))
        ).scalar() or 0
        with_coordinates = total - without
        percentage = round(with_coordinates * 100.0 / total, 1) if total else 0.0
        return GeocodingStatusResponse(
            total=total,
            with_coordinates=with_coordinates,
            without_coordinates=without,
            percentage=percentage,
        )

    async def pending(self, db: AsyncSession, limit: int = 50) -> PendingStudiosResponse:
        studios = (
            await db.execute(
                select(Studio)
                .where(pending_studios_filter())
                .order_by(Studio.created_at.asc())
                .limit(limit)
            )
        ).scalars()
        items = [
            PendingStudio(
                id=s.id,
                title=s.title,
                address=s.address,
                city=s.city,
                state=s.state,
                zip_code=s.zip_code,
                country=s.country,
                full_address=studio_address(s),
                geocode_status=s.geocode_status,
                geocode_error=s.geocode_error,
            )
            for s in studios
        ]
        return PendingStudiosResponse(studios=items, count=len(items))

    # ── Studio coordinates ────────────────────────────────────────────────

    async def _studio(self, db: AsyncSession, studio_id: uuid.UUID) -> Studio:
        studio = await db.get(Studio, studio_id)
        if studio is None:
            raise NotFoundError(resource="studio", resource_id=str(studio_id))
        return studio

    async def save_result(
        self, db: AsyncSession, admin: User, data: SaveResultRequest
    ) -> StudioCoordinatesResponse:
        studio = await self._studio(db, data.studio_id)
        studio.mark_geocoded(data.latitude, data.longitude)
        await record_action(
            db,
            admin,
            "SAVE_GEOCODE_RESULT",
            "studio",
            studio.id,
            {"latitude": data.latitude, "longitude": data.longitude},
        )
        return _coordinates_response(studio)

    async def geocode_studio(
        self, db: AsyncSession, studio_id: uuid.UUID
    ) -> StudioCoordinatesResponse:
        """
        Geocode one studio now, regardless of its current coordinates.

        A failure is committed as `geocode_status=failed` before the error
        propagates, so the request-level rollback does not erase it.
        """
        studio = await self._studio(db, studio_id)
        address = studio_address(studio)
        if not address:
            studio.geocode_status = GeocodeStatus.SKIPPED.value
            studio.geocode_error = "No address or city to geocode"
            studio.updated_at = utcnow()
            await db.commit()
            raise ValidationError("Studio has no address or city to geocode", field="address")

        try:
            result = await self.resolve(db, address)
        except GeocodingUnavailableError:
            raise
        except GeocodingError as exc:
            studio.mark_geocode_failed(exc.message)
            await db.commit()
            logger.warning("Geocoding studio %s failed: %s", studio_id, exc.message)
            raise

        studio.mark_geocoded(result.latitude, result.longitude)
        await db.flush()
        logger.info(
            "Studio %s geocoded%s: (%.6f, %.6f)",
            studio_id,
            " from cache" if result.cached else "",
            result.latitude,
            result.longitude,
        )
        return _coordinates_response(studio, cached=result.cached)

    async def geocode_studio_in_background(self, studio_id: uuid.UUID) -> None:
        """Background task body: own session, errors logged rather than raised."""
        from tattooed_world.database import async_session_factory

        async with async_session_factory() as db:
            try:
                await self.geocode_studio(db, studio_id)
                await db.commit()
            except TattooedWorldError as exc:
                await db.rollback()
                logger.warning("Background geocoding of studio %s skipped: %s", studio_id, exc.message)

    # ── GeoJSON ───────────────────────────────────────────────────────────

    async def studios_geojson(self, db: AsyncSession) -> GeoJSONFeatureCollection:
        studios = (
            await db.execute(
                select(Studio)
                .where(
                    Studio.is_active.is_(True),
                    Studio.latitude.is_not(None),
                    Studio.longitude.is_not(None),
                )
                .order_by(Studio.title.asc())
            )
        ).scalars()
        return GeoJSONFeatureCollection(features=[_feature(s) for s in studios])

    async def studio_geojson(self, db: AsyncSession, studio_id: uuid.UUID) -> GeoJSONFeature:
        studio = await self._studio(db, studio_id)
        if studio.latitude is None or studio.longitude is None:
            raise NotFoundError(resource="studio coordinates", resource_id=str(studio_id))
        return _feature(studio)

    # ── Cache administration ──────────────────────────────────────────────

    async def cache_stats(self, db: AsyncSession) -> CacheStatsResponse:
        return CacheStatsResponse(**await self.cache.stats(db))

    async def clear_cache(self, db: AsyncSession, admin: User) -> CacheClearResponse:
        memory_cleared, database_cleared = await self.cache.clear(db)
        await record_action(
            db,
            admin,
            "CLEAR_GEOCODE_CACHE",
            "geocode_cache",
            details={"memory_cleared": memory_cleared, "database_cleared": database_cleared},
        )
        return CacheClearResponse(
            message="Geocode cache cleared",
            memory_cleared=memory_cleared,
            database_cleared=database_cleared,
        )


geocoding_service = GeocodingService()
