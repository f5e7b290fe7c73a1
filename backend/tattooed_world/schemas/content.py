"""
Tattooed World Backend — Flash, Review, Message & Favorite Schemas
===================================================================

What:  API contracts for the artist-content routers.

Limits mirror the database columns:
    review title ≤ 100, comment ≤ 1000, rating 1–5
    message title ≤ 200, content 1–2000, priority 1–3
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tattooed_world.schemas.artist import ArtistBrief, ArtistSummary
from tattooed_world.schemas.common import PaginationMeta, http_url_or_none

MAX_FLASH_TAGS = 20
MAX_REVIEW_IMAGES = 10


def normalize_tag_list(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned: List[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


# ── Flash ─────────────────────────────────────────────────────────────────


class FlashCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    image_url: str = Field(min_length=1, max_length=500)
    base_price: Optional[float] = Field(default=None, ge=0)
    size: Optional[str] = Field(default=None, max_length=50)
    tags: List[str] = Field(default_factory=list, max_length=MAX_FLASH_TAGS)
    is_available: bool = True
    is_repeatable: bool = True

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str) -> str:
        url = http_url_or_none(v)
        if url is None:
            raise ValueError("image_url is required")
        return url

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        return normalize_tag_list(v) or []


class FlashUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    image_url: Optional[str] = Field(default=None, max_length=500)
    base_price: Optional[float] = Field(default=None, ge=0)
    size: Optional[str] = Field(default=None, max_length=50)
    tags: Optional[List[str]] = Field(default=None, max_length=MAX_FLASH_TAGS)
    is_available: Optional[bool] = None
    is_repeatable: Optional[bool] = None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        return http_url_or_none(v)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return normalize_tag_list(v)


class FlashResponse(BaseModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    title: str
    description: Optional[str] = None
    image_url: str
    base_price: Optional[float] = None
    size: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_available: bool
    is_repeatable: bool
    created_at: datetime
    updated_at: datetime
    artist: Optional[ArtistBrief] = None

    model_config = {"from_attributes": True}


class FlashListResponse(BaseModel):
    flash: List[FlashResponse]
    pagination: PaginationMeta


# ── Reviews ───────────────────────────────────────────────────────────────


class ReviewCreateRequest(BaseModel):
    recipient_id: uuid.UUID = Field(description="User ID of the reviewed artist")
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=100)
    comment: Optional[str] = Field(default=None, max_length=1000)
    images: List[str] = Field(default_factory=list, max_length=MAX_REVIEW_IMAGES)


class ReviewUpdateRequest(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=100)
    comment: Optional[str] = Field(default=None, max_length=1000)
    images: Optional[List[str]] = Field(default=None, max_length=MAX_REVIEW_IMAGES)


class ReviewAuthor(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class ReviewResponse(BaseModel):
    id: uuid.UUID
    author_id: uuid.UUID
    recipient_id: uuid.UUID
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_hidden: bool
    moderation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    author: Optional[ReviewAuthor] = None

    model_config = {"from_attributes": True}


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    pagination: PaginationMeta


# ── Artist Messages ───────────────────────────────────────────────────────


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class MessageCreateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(min_length=1, max_length=2000)
    priority: int = Field(default=1, ge=1, le=3)
    show_on_card: bool = True
    show_on_profile: bool = True
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def expiry_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        v = _as_utc(v)
        if v <= datetime.now(timezone.utc):
            raise ValueError("expires_at must be in the future")
        return v


class MessageUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    priority: Optional[int] = Field(default=None, ge=1, le=3)
    show_on_card: Optional[bool] = None
    show_on_profile: Optional[bool] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if v is None else _as_utc(v)


class ArtistMessageResponse(BaseModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    title: Optional[str] = None
    content: str
    priority: int
    show_on_card: bool
    show_on_profile: bool
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArtistMessageListResponse(BaseModel):
    messages: List[ArtistMessageResponse]


# ── Favorites ─────────────────────────────────────────────────────────────


class FavoriteCreateRequest(BaseModel):
    artist_id: uuid.UUID


class FavoriteResponse(BaseModel):
    id: uuid.UUID
    artist_id: uuid.UUID
    created_at: datetime
    artist: Optional[ArtistSummary] = None

    model_config = {"from_attributes": True}


class FavoriteListResponse(BaseModel):
    favorites: List[FavoriteResponse]


class FavoriteAddResponse(BaseModel):
    message: str
    created: bool
    favorite: FavoriteResponse


class FavoriteRemoveResponse(BaseModel):
    message: str
    removed: bool


class FavoriteCheckResponse(BaseModel):
    is_favorited: bool
