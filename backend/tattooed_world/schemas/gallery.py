"""
Tattooed World Backend — Gallery Schemas
==========================================

What:  API contracts for /api/gallery, the portfolio of finished work.

Images travel as http(s) URLs; nothing is uploaded through this API.
Approval and featuring are admin decisions and are absent from the
create/update bodies.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from tattooed_world.schemas.artist import ArtistBrief
from tattooed_world.schemas.common import PaginationMeta, http_url_or_none
from tattooed_world.schemas.content import normalize_tag_list

MAX_GALLERY_TAGS = 20
MAX_GALLERY_CATEGORIES = 10

GallerySort = Literal["createdAt", "completedAt", "title"]


class GalleryCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    image_url: str = Field(min_length=1, max_length=500)
    thumbnail_url: Optional[str] = Field(default=None, max_length=500)
    before_image_url: Optional[str] = Field(default=None, max_length=500)
    after_image_url: Optional[str] = Field(default=None, max_length=500)
    tattoo_style: Optional[str] = Field(default=None, max_length=100)
    body_location: Optional[str] = Field(default=None, max_length=100)
    tattoo_size: Optional[str] = Field(default=None, max_length=50)
    color_type: Optional[str] = Field(default=None, max_length=50)
    session_count: int = Field(default=1, ge=1)
    hours_spent: Optional[int] = Field(default=None, ge=1)
    completed_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list, max_length=MAX_GALLERY_TAGS)
    categories: List[str] = Field(default_factory=list, max_length=MAX_GALLERY_CATEGORIES)
    client_consent: bool = False
    client_anonymous: bool = True
    client_age_verified: bool = False
    is_before_after: bool = False

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        url = http_url_or_none(v)
        if url is None:
            raise ValueError("image_url is required")
        return url

    @field_validator("thumbnail_url", "before_image_url", "after_image_url")
    @classmethod
    def validate_optional_urls(cls, v: Optional[str]) -> Optional[str]:
        return http_url_or_none(v)

    @field_validator("tags", "categories")
    @classmethod
    def normalize_labels(cls, v: List[str]) -> List[str]:
        return normalize_tag_list(v) or []


class GalleryUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    image_url: Optional[str] = Field(default=None, max_length=500)
    thumbnail_url: Optional[str] = Field(default=None, max_length=500)
    before_image_url: Optional[str] = Field(default=None, max_length=500)
    after_image_url: Optional[str] = Field(default=None, max_length=500)
    tattoo_style: Optional[str] = Field(default=None, max_length=100)
    body_location: Optional[str] = Field(default=None, max_length=100)
    tattoo_size: Optional[str] = Field(default=None, max_length=50)
    color_type: Optional[str] = Field(default=None, max_length=50)
    session_count: Optional[int] = Field(default=None, ge=1)
    hours_spent: Optional[int] = Field(default=None, ge=1)
    completed_at: Optional[datetime] = None
    tags: Optional[List[str]] = Field(default=None, max_length=MAX_GALLERY_TAGS)
    categories: Optional[List[str]] = Field(default=None, max_length=MAX_GALLERY_CATEGORIES)
    client_consent: Optional[bool] = None
    client_anonymous: Optional[bool] = None
    client_age_verified: Optional[bool] = None
    is_before_after: Optional[bool] = None
    is_hidden: Optional[bool] = None

    @field_validator("image_url", "thumbnail_url", "before_image_url", "after_image_url")
    @classmethod
    def validate_urls(cls, v: Optional[str]) -> Optional[str]:
        return http_url_or_none(v)

    @field_validator("tags", "categories")
    @classmethod
    def normalize_labels(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return normalize_tag_list(v)


class GalleryItemResponse(BaseModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    title: str
    description: Optional[str] = None
    image_url: str
    thumbnail_url: Optional[str] = None
    before_image_url: Optional[str] = None
    after_image_url: Optional[str] = None
    tattoo_style: Optional[str] = None
    body_location: Optional[str] = None
    tattoo_size: Optional[str] = None
    color_type: Optional[str] = None
    session_count: int
    hours_spent: Optional[int] = None
    completed_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    client_consent: bool
    client_anonymous: bool
    client_age_verified: bool
    is_before_after: bool
    is_approved: bool
    approved_at: Optional[datetime] = None
    is_hidden: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime
    artist: Optional[ArtistBrief] = None

    model_config = {"from_attributes": True}


class GalleryListResponse(BaseModel):
    items: List[GalleryItemResponse]
    pagination: PaginationMeta


class GalleryStatsResponse(BaseModel):
    """Counts over an artist's approved, visible items."""

    artist_id: uuid.UUID
    total_items: int
    featured_items: int
    before_after_items: int
    avg_hours_per_piece: Optional[float] = None
    total_hours_worked: int
    unique_styles: int
    unique_locations: int
