"""Admin moderation schemas: dashboard, user management, verification, audit log."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from tattooed_world.schemas.artist import ArtistUserSummary
from tattooed_world.schemas.auth import UserResponse
from tattooed_world.schemas.common import PaginationMeta


class AdminActionResponse(BaseModel):
    id: uuid.UUID
    admin_id: Optional[uuid.UUID] = None
    action: str
    target_type: str
    target_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    admin: Optional[ArtistUserSummary] = None

    model_config = {"from_attributes": True}


class AdminActionListResponse(BaseModel):
    actions: List[AdminActionResponse]
    pagination: PaginationMeta


class DashboardStats(BaseModel):
    total_users: int
    total_artists: int
    total_clients: int
    pending_verifications: int
    total_reviews: int
    hidden_reviews: int
    total_flash: int
    pending_gallery_items: int
    total_studios: int
    studios_missing_coordinates: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_actions: List[AdminActionResponse]


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: PaginationMeta


class AdminUserUpdateRequest(BaseModel):
    role: Optional[Literal["CLIENT", "ARTIST", "ARTIST_ADMIN", "ADMIN"]] = None
    is_active: Optional[bool] = None
    email_verified: Optional[bool] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class VerifyArtistRequest(BaseModel):
    status: Literal["APPROVED", "REJECTED", "SUSPENDED"]
    notes: Optional[str] = Field(default=None, max_length=1000)


class FeatureRequest(BaseModel):
    is_featured: bool


class ModerateReviewRequest(BaseModel):
    is_hidden: bool
    reason: Optional[str] = Field(default=None, max_length=500)


class ModerateGalleryRequest(BaseModel):
    is_approved: bool
    is_featured: Optional[bool] = None


class VerifyStudioRequest(BaseModel):
    is_verified: bool
    notes: Optional[str] = Field(default=None, max_length=1000)
