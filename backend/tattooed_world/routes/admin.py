"""
Tattooed World Backend — Admin Routes
=======================================

What:  Back office under /api/admin: dashboard, user management, artist
       verification, review and gallery moderation, studio verification,
       catalog management and the audit log.
How:   The router-level dependency admits ADMIN and ARTIST_ADMIN only, so
       every route here answers 401/403 before touching the database.
       Every mutation writes an AdminAction row in the same transaction.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import require_admin
from tattooed_world.models import User
from tattooed_world.schemas.admin import (
    AdminActionListResponse,
    AdminUserUpdateRequest,
    DashboardResponse,
    FeatureRequest,
    ModerateGalleryRequest,
    ModerateReviewRequest,
    UserListResponse,
    VerifyArtistRequest,
    VerifyStudioRequest,
)
from tattooed_world.schemas.artist import (
    ArtistSummary,
    ServiceCreateRequest,
    ServiceResponse,
    SpecialtyCreateRequest,
    SpecialtyResponse,
)
from tattooed_world.schemas.auth import UserResponse
from tattooed_world.schemas.common import ErrorResponse
from tattooed_world.schemas.content import ReviewListResponse, ReviewResponse
from tattooed_world.schemas.gallery import GalleryItemResponse
from tattooed_world.schemas.studio import StudioResponse
from tattooed_world.services.admin_service import admin_service
from tattooed_world.services.gallery_service import gallery_service
from tattooed_world.services.review_service import review_service

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Administrator role required", "model": ErrorResponse},
    },
)


@router.get("/dashboard", response_model=DashboardResponse, summary="Platform counters")
async def dashboard(db: AsyncSession = Depends(get_db_session)) -> DashboardResponse:
    return await admin_service.dashboard(db)


# ── Users ─────────────────────────────────────────────────────────────────


@router.get("/users", response_model=UserListResponse, summary="List users")
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    role: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200, description="Name or e-mail"),
    is_active: bool | None = Query(default=None, alias="isActive"),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    return await admin_service.list_users(
        db, page=page, limit=limit, role=role, search=search, is_active=is_active
    )


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> UserResponse:
    return await admin_service.get_user(db, user_id)


@router.put("/users/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: uuid.UUID,
    data: AdminUserUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await admin_service.update_user(db, admin, user_id, data)


@router.delete(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={400: {"description": "Cannot deactivate yourself", "model": ErrorResponse}},
    summary="Deactivate a user",
)
async def deactivate_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await admin_service.deactivate_user(db, admin, user_id)


@router.post("/users/{user_id}/restore", response_model=UserResponse, summary="Reactivate a user")
async def restore_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await admin_service.restore_user(db, admin, user_id)


# ── Artists ───────────────────────────────────────────────────────────────


@router.get(
    "/artists/pending",
    response_model=List[ArtistSummary],
    summary="Artist profiles awaiting verification",
)
async def pending_artists(db: AsyncSession = Depends(get_db_session)) -> List[ArtistSummary]:
    return await admin_service.pending_artists(db)


@router.put(
    "/artists/{artist_id}/verify",
    response_model=ArtistSummary,
    summary="Approve, reject or suspend an artist",
)
async def verify_artist(
    artist_id: uuid.UUID,
    data: VerifyArtistRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistSummary:
    return await admin_service.verify_artist(db, admin, artist_id, data)


@router.put("/artists/{artist_id}/feature", response_model=ArtistSummary, summary="Feature an artist")
async def feature_artist(
    artist_id: uuid.UUID,
    data: FeatureRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistSummary:
    return await admin_service.feature_artist(db, admin, artist_id, data.is_featured)


# ── Reviews ───────────────────────────────────────────────────────────────


@router.get(
    "/reviews",
    response_model=ReviewListResponse,
    summary="All reviews, hidden ones included",
)
async def list_reviews(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    hidden: bool = Query(default=False, description="Only hidden reviews"),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewListResponse:
    return await review_service.list_reviews(
        db, page=page, limit=limit, include_hidden=True, hidden_only=hidden
    )


@router.put("/reviews/{review_id}/moderate", response_model=ReviewResponse, summary="Hide or show a review")
async def moderate_review(
    review_id: uuid.UUID,
    data: ModerateReviewRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    return await admin_service.moderate_review(db, admin, review_id, data.is_hidden, data.reason)


# ── Gallery ───────────────────────────────────────────────────────────────


@router.get(
    "/gallery/pending",
    response_model=List[GalleryItemResponse],
    summary="Gallery items awaiting approval",
)
async def pending_gallery(db: AsyncSession = Depends(get_db_session)) -> List[GalleryItemResponse]:
    return await gallery_service.pending(db)


@router.put(
    "/gallery/{item_id}/moderate",
    response_model=GalleryItemResponse,
    responses={404: {"description": "Gallery item not found", "model": ErrorResponse}},
    summary="Approve, reject or feature a gallery item",
)
async def moderate_gallery_item(
    item_id: uuid.UUID,
    data: ModerateGalleryRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> GalleryItemResponse:
    return await admin_service.moderate_gallery_item(
        db, admin, item_id, data.is_approved, data.is_featured
    )


# ── Studios ───────────────────────────────────────────────────────────────


@router.put("/studios/{studio_id}/verify", response_model=StudioResponse, summary="Verify a studio")
async def verify_studio(
    studio_id: uuid.UUID,
    data: VerifyStudioRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> StudioResponse:
    return await admin_service.verify_studio(db, admin, studio_id, data)


@router.put("/studios/{studio_id}/feature", response_model=StudioResponse, summary="Feature a studio")
async def feature_studio(
    studio_id: uuid.UUID,
    data: FeatureRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> StudioResponse:
    return await admin_service.feature_studio(db, admin, studio_id, data.is_featured)


# ── Catalog ───────────────────────────────────────────────────────────────


@router.post(
    "/specialties",
    response_model=SpecialtyResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Name already exists", "model": ErrorResponse}},
    summary="Add a specialty",
)
async def create_specialty(
    data: SpecialtyCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> SpecialtyResponse:
    return await admin_service.create_specialty(db, admin, data)


@router.post(
    "/services",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Name already exists", "model": ErrorResponse}},
    summary="Add a service",
)
async def create_service(
    data: ServiceCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ServiceResponse:
    return await admin_service.create_service(db, admin, data)


# ── Audit log ─────────────────────────────────────────────────────────────


@router.get("/actions", response_model=AdminActionListResponse, summary="Audit log")
async def list_actions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    action: str | None = Query(default=None, description="Filter by action name"),
    db: AsyncSession = Depends(get_db_session),
) -> AdminActionListResponse:
    return await admin_service.list_actions(db, page=page, limit=limit, action=action)
