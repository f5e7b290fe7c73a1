"""
Tattooed World Backend — Studio Schemas
=========================================

What:  Studio directory listings, detail with artist roster, create/update
       bodies and membership management.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from tattooed_world.schemas.artist import ArtistBrief
from tattooed_world.schemas.common import PaginationMeta, http_url_or_none

StudioRoleLiteral = Literal["OWNER", "MANAGER", "ARTIST", "GUEST"]


class _StudioFields(BaseModel):
    description: Optional[str] = Field(default=None, max_length=2000)
    website: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = None
    instagram: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        return http_url_or_none(v)


class StudioCreateRequest(_StudioFields):
    title: str = Field(min_length=1, max_length=200)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Studio title is required")
        return v


class StudioUpdateRequest(_StudioFields):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)


class StudioResponse(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    description: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    instagram: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geocode_status: str
    is_active: bool
    is_verified: bool
    is_featured: bool
    verification_status: str
    claimed_by: Optional[uuid.UUID] = None
    claimed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    artist_count: int = 0

    model_config = {"from_attributes": True}


class NearbyStudioResponse(StudioResponse):
    distance_km: float


class StudioMemberResponse(BaseModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    role: str
    is_active: bool
    joined_at: datetime
    artist: ArtistBrief

    model_config = {"from_attributes": True}


class StudioDetailResponse(StudioResponse):
    artists: List[StudioMemberResponse] = Field(default_factory=list)


class StudioListResponse(BaseModel):
    studios: List[StudioResponse]
    pagination: PaginationMeta


class NearbyStudiosResponse(BaseModel):
    studios: List[NearbyStudioResponse]
    radius_km: float


class AddStudioArtistRequest(BaseModel):
    artist_id: uuid.UUID
    role: StudioRoleLiteral = "ARTIST"
