"""
Tattooed World Backend — Shared API Schemas
=============================================

What:  Response envelopes used by every router: errors, pagination,
       plain acknowledgements and the health report.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Validation failed",
            "details": [{"field": "password", "message": "String should have at least 6 characters"}],
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    geocoder: str = Field(description="Geocoder state: configured, unconfigured, circuit_open")
    batch_running: bool = Field(description="Whether a geocoding batch is in progress")
    uptime_seconds: float = Field(description="Seconds since service started")


# Shared common-error documentation for router `responses=` arguments
COMMON_ERROR_RESPONSES = {
    400: {"description": "Validation error", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Insufficient role", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def http_url_or_none(value: Optional[str]) -> Optional[str]:
    """Blank → None; anything else must be an http(s) URL."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not value.lower().startswith(("http://", "https://")):
        raise ValueError("must be a valid URL starting with http:// or https://")
    return value
