"""
Tattooed World Backend — Geocoding Schemas
============================================

What:  Contracts for /api/geocoding: single and multi-address lookups,
       coordinate coverage, the pending-studio queue, GeoJSON map feeds,
       batch run control and cache administration.

GeoJSON note:
    Coordinates are [longitude, latitude] per RFC 7946, the reverse of the
    (latitude, longitude) order used everywhere else in the API.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class GeocodeRequest(BaseModel):
    address: str = Field(min_length=1, max_length=500)


class GeocodeResultResponse(BaseModel):
    address: str
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    cached: bool = False


class BatchGeocodeRequest(BaseModel):
    addresses: List[str] = Field(min_length=1)


class BatchGeocodeItem(BaseModel):
    address: str
    success: bool
    result: Optional[GeocodeResultResponse] = None
    error: Optional[str] = None


class BatchGeocodeResponse(BaseModel):
    results: List[BatchGeocodeItem]
    succeeded: int
    failed: int


class GeocodingStatusResponse(BaseModel):
    total: int
    with_coordinates: int
    without_coordinates: int
    percentage: float


class PendingStudio(BaseModel):
    id: uuid.UUID
    title: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    full_address: str
    geocode_status: str
    geocode_error: Optional[str] = None


class PendingStudiosResponse(BaseModel):
    studios: List[PendingStudio]
    count: int


class SaveResultRequest(BaseModel):
    studio_id: uuid.UUID
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class StudioIdRequest(BaseModel):
    studio_id: uuid.UUID


class StudioCoordinatesResponse(BaseModel):
    studio_id: uuid.UUID
    title: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geocode_status: str
    cached: bool = False


class GeoJSONPoint(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: List[float]


class GeoJSONFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: GeoJSONPoint
    properties: Dict[str, Any]


class GeoJSONFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[GeoJSONFeature]


class BatchStartRequest(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1, le=10_000)


class BatchReportResponse(BaseModel):
    processed: int
    succeeded: int
    failed: int
    skipped: int
    cached: int
    rate_limited: int
    stopped: bool
    total: int
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    errors: List[Dict[str, str]] = Field(default_factory=list)


class BatchStatusResponse(BaseModel):
    running: bool
    stop_requested: bool
    report: Optional[BatchReportResponse] = None
    last_error: Optional[str] = None


class CacheStatsResponse(BaseModel):
    memory_entries: int
    database_entries: int
    hits: int
    misses: int
    hit_rate: float
    ttl_seconds: int


class CacheClearResponse(BaseModel):
    message: str
    memory_cleared: int
    database_cleared: int
