"""
Tattooed World Backend — Geocoding Routes
===========================================

What:  Address lookups, coordinate coverage, studio map feeds, batch control
       and cache administration under /api/geocoding.
How:   Lookups go through GeocodingService (cache first, then Google). The
       batch runs inside the API process as a single background task owned
       by `batch_controller`; its start/stop are audit-logged.

Access:
    public         status, pending, studios GeoJSON, batch status, cache stats
    authenticated  geocode, batch-geocode (they spend provider quota)
    admin          save-result, update-studio-coordinates, batch start/stop,
                   cache clear

Errors:
    provider failure / no match     → 502
    no API key / circuit open       → 503
    batch already running           → 409
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user, require_admin
from tattooed_world.models import User
from tattooed_world.schemas.common import ErrorResponse
from tattooed_world.schemas.geocoding import (
    BatchGeocodeRequest,
    BatchGeocodeResponse,
    BatchStartRequest,
    BatchStatusResponse,
    CacheClearResponse,
    CacheStatsResponse,
    GeocodeRequest,
    GeocodeResultResponse,
    GeocodingStatusResponse,
    GeoJSONFeature,
    GeoJSONFeatureCollection,
    PendingStudiosResponse,
    SaveResultRequest,
    StudioCoordinatesResponse,
    StudioIdRequest,
)
from tattooed_world.services.admin_service import record_action
from tattooed_world.services.geocoding_batch import batch_controller
from tattooed_world.services.geocoding_service import geocoding_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/geocoding", tags=["Geocoding"])

PROVIDER_ERRORS = {
    502: {"description": "Geocoding provider error or no match", "model": ErrorResponse},
    503: {"description": "Geocoding not configured or circuit open", "model": ErrorResponse},
}


# ── Lookups ───────────────────────────────────────────────────────────────


@router.post(
    "/geocode",
    response_model=GeocodeResultResponse,
    responses=PROVIDER_ERRORS,
    summary="Geocode one address",
)
async def geocode(
    data: GeocodeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GeocodeResultResponse:
    return await geocoding_service.geocode_address(db, data.address)


@router.post(
    "/batch-geocode",
    response_model=BatchGeocodeResponse,
    responses={400: {"description": "Too many addresses", "model": ErrorResponse}},
    summary="Geocode several addresses",
    description="Sequential lookups; a failing address is reported without aborting the rest.",
)
async def batch_geocode(
    data: BatchGeocodeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BatchGeocodeResponse:
    return await geocoding_service.batch_geocode(db, data.addresses)


# ── Coverage ──────────────────────────────────────────────────────────────


@router.get("/status", response_model=GeocodingStatusResponse, summary="Coordinate coverage")
async def coverage(db: AsyncSession = Depends(get_db_session)) -> GeocodingStatusResponse:
    return await geocoding_service.status(db)


@router.get("/pending", response_model=PendingStudiosResponse, summary="Studios without coordinates")
async def pending(
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db_session),
) -> PendingStudiosResponse:
    return await geocoding_service.pending(db, limit)


# ── Studio coordinates (admin) ────────────────────────────────────────────


@router.post(
    "/save-result",
    response_model=StudioCoordinatesResponse,
    summary="Store coordinates for a studio",
)
async def save_result(
    data: SaveResultRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> StudioCoordinatesResponse:
    return await geocoding_service.save_result(db, admin, data)


@router.post(
    "/update-studio-coordinates",
    response_model=StudioCoordinatesResponse,
    responses={400: {"description": "Studio has no address", "model": ErrorResponse}, **PROVIDER_ERRORS},
    summary="Geocode one studio now",
)
async def update_studio_coordinates(
    data: StudioIdRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> StudioCoordinatesResponse:
    return await geocoding_service.geocode_studio(db, data.studio_id)


# ── GeoJSON ───────────────────────────────────────────────────────────────


@router.get(
    "/studios",
    response_model=GeoJSONFeatureCollection,
    summary="Geocoded studios as a FeatureCollection",
)
async def studios_geojson(db: AsyncSession = Depends(get_db_session)) -> GeoJSONFeatureCollection:
    return await geocoding_service.studios_geojson(db)


@router.get(
    "/studios/{studio_id}",
    response_model=GeoJSONFeature,
    responses={404: {"description": "Studio or coordinates not found", "model": ErrorResponse}},
    summary="One studio as a GeoJSON Feature",
)
async def studio_geojson(
    studio_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> GeoJSONFeature:
    return await geocoding_service.studio_geojson(db, studio_id)


# ── Batch control ─────────────────────────────────────────────────────────


@router.post(
    "/batch/start",
    response_model=BatchStatusResponse,
    status_code=202,
    responses={409: {"description": "A batch is already running", "model": ErrorResponse}},
    summary="Start geocoding all pending studios",
)
async def start_batch(
    data: BatchStartRequest | None = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> BatchStatusResponse:
    limit = data.limit if data else None
    batch_controller.start(limit)
    await record_action(db, admin, "START_GEOCODING_BATCH", "geocoding", details={"limit": limit})
    logger.info("Geocoding batch started by %s (limit=%s)", admin.id, limit)
    return BatchStatusResponse(**batch_controller.status())


@router.post("/batch/stop", response_model=BatchStatusResponse, summary="Stop the running batch")
async def stop_batch(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> BatchStatusResponse:
    if batch_controller.stop():
        await record_action(db, admin, "STOP_GEOCODING_BATCH", "geocoding")
    return BatchStatusResponse(**batch_controller.status())


@router.get("/batch/status", response_model=BatchStatusResponse, summary="Batch progress")
async def batch_status() -> BatchStatusResponse:
    return BatchStatusResponse(**batch_controller.status())


# ── Cache ─────────────────────────────────────────────────────────────────


@router.get("/cache/stats", response_model=CacheStatsResponse, summary="Geocode cache statistics")
async def cache_stats(db: AsyncSession = Depends(get_db_session)) -> CacheStatsResponse:
    return await geocoding_service.cache_stats(db)


@router.delete("/cache", response_model=CacheClearResponse, summary="Clear the geocode cache")
async def clear_cache(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> CacheClearResponse:
    return await geocoding_service.clear_cache(db, admin)
