"""
Tattooed World Backend — Artist & Catalog Schemas
===================================================

What:  Directory listing items, full artist profiles, profile create/update
       bodies, and the specialty/service catalog.

Rating fields (`average_rating`, `review_count`) are not stored; the artist
service fills them from visible reviews after validation.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tattooed_world.schemas.common import PaginationMeta, http_url_or_none


# ══════════════════════════════════════════════════════════════════════════
# Catalog
# ══════════════════════════════════════════════════════════════════════════


class SpecialtyResponse(BaseModel):
    id: uuid.UUID
    name: str
    category: Optional[str] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class ServiceResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    duration: Optional[int] = None

    model_config = {"from_attributes": True}


class SpecialtyCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class ServiceCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=1, le=24 * 60)


# ══════════════════════════════════════════════════════════════════════════
# Artist Profiles
# ══════════════════════════════════════════════════════════════════════════


class ArtistUserSummary(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class ArtistBrief(BaseModel):
    """Compact artist reference embedded in flash, favorites and studio rosters."""
    id: uuid.UUID
    studio_name: Optional[str] = None
    city: Optional[str] = None
    is_verified: bool = False
    user: ArtistUserSummary

    model_config = {"from_attributes": True}


class ArtistSummary(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user: ArtistUserSummary
    bio: Optional[str] = None
    studio_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    hourly_rate: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    is_verified: bool
    is_featured: bool
    verification_status: str
    specialties: List[SpecialtyResponse] = Field(default_factory=list)
    average_rating: Optional[float] = None
    review_count: int = 0
    flash_count: int = 0

    model_config = {"from_attributes": True}


class ArtistMessageBrief(BaseModel):
    id: uuid.UUID
    title: Optional[str] = None
    content: str
    priority: int
    show_on_card: bool
    show_on_profile: bool
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StudioMembershipBrief(BaseModel):
    studio_id: uuid.UUID
    studio_title: str
    studio_slug: str
    role: str


class ArtistDetail(ArtistSummary):
    website: Optional[str] = None
    instagram: Optional[str] = None
    calendly_url: Optional[str] = None
    address: Optional[str] = None
    zip_code: Optional[str] = None
    verification_notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    services: List[ServiceResponse] = Field(default_factory=list)
    messages: List[ArtistMessageBrief] = Field(default_factory=list)
    studios: List[StudioMembershipBrief] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ArtistListResponse(BaseModel):
    artists: List[ArtistSummary]
    pagination: PaginationMeta


class _ArtistProfileFields(BaseModel):
    bio: Optional[str] = Field(default=None, min_length=10, max_length=1000)
    studio_name: Optional[str] = Field(default=None, max_length=100)
    website: Optional[str] = Field(default=None, max_length=500)
    instagram: Optional[str] = Field(default=None, max_length=50)
    calendly_url: Optional[str] = Field(default=None, max_length=500)
    address: Optional[str] = Field(default=None, max_length=200)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    specialty_ids: Optional[List[uuid.UUID]] = None
    service_ids: Optional[List[uuid.UUID]] = None

    @field_validator("website", "calendly_url")
    @classmethod
    def validate_urls(cls, v: Optional[str]) -> Optional[str]:
        return http_url_or_none(v)

    @field_validator("instagram")
    @classmethod
    def strip_instagram_handle(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().lstrip("@") or None


class ArtistCreateRequest(_ArtistProfileFields):
    city: str = Field(min_length=1, max_length=100)


class ArtistUpdateRequest(_ArtistProfileFields):
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
