"""
Tattooed World Backend — Studio Routes
========================================

What:  Studio directory, nearby search, editing, memberships and claiming
       under /api/studios.
How:   Studios created without coordinates are geocoded after the response
       is sent (BackgroundTasks) when `geocode_on_create` is enabled; the
       task opens its own session so it never shares the request's.

Who may manage a studio:
    administrators, the claimant, or an active OWNER/MANAGER member.
"""

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.config import settings
from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user, require_roles
from tattooed_world.models import ARTIST_ROLES, GeocodeStatus, User
from tattooed_world.schemas.common import ErrorResponse, MessageResponse
from tattooed_world.schemas.studio import (
    AddStudioArtistRequest,
    NearbyStudiosResponse,
    StudioCreateRequest,
    StudioDetailResponse,
    StudioListResponse,
    StudioMemberResponse,
    StudioResponse,
    StudioUpdateRequest,
)
from tattooed_world.services.geocoding_service import geocoding_service, studio_address
from tattooed_world.services.studio_service import studio_service

router = APIRouter(prefix="/api/studios", tags=["Studios"])


@router.get("", response_model=StudioListResponse, summary="List active studios")
async def list_studios(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None, max_length=200, description="Title contains"),
    verified: bool | None = Query(default=None),
    featured: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> StudioListResponse:
    return await studio_service.list_studios(
        db, page=page, limit=limit, search=search, verified=verified, featured=featured
    )


# Declared before /{studio_id} so "nearby" is not parsed as an ID
@router.get(
    "/nearby",
    response_model=NearbyStudiosResponse,
    summary="Geocoded studios within a radius",
    description="Great-circle distance in kilometres, nearest first.",
)
async def nearby_studios(
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius: float = Query(default=25.0, gt=0, le=500, description="Radius in km (max 500)"),
    db: AsyncSession = Depends(get_db_session),
) -> NearbyStudiosResponse:
    return await studio_service.nearby(db, lat, lng, radius)


@router.get(
    "/{studio_id}",
    response_model=StudioDetailResponse,
    responses={404: {"description": "Studio not found", "model": ErrorResponse}},
    summary="Get a studio with its artists",
)
async def get_studio(
    studio_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> StudioDetailResponse:
    return await studio_service.get_studio(db, studio_id)


@router.post(
    "",
    response_model=StudioResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Title or slug already taken", "model": ErrorResponse}},
    summary="Create a studio",
)
async def create_studio(
    data: StudioCreateRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StudioResponse:
    studio = await studio_service.create_studio(db, user, data)
    if (
        settings.geocode_on_create
        and studio.geocode_status == GeocodeStatus.PENDING.value
        and studio_address(studio)
    ):
        background_tasks.add_task(geocoding_service.geocode_studio_in_background, studio.id)
    return await studio_service.to_response(db, studio)


@router.put(
    "/{studio_id}",
    response_model=StudioResponse,
    responses={
        403: {"description": "Not allowed to manage this studio", "model": ErrorResponse},
        404: {"description": "Studio not found", "model": ErrorResponse},
    },
    summary="Update a studio",
    description="Changing any address field clears the coordinates and queues the studio for geocoding.",
)
async def update_studio(
    studio_id: uuid.UUID,
    data: StudioUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StudioResponse:
    studio = await studio_service.update_studio(db, user, studio_id, data)
    return await studio_service.to_response(db, studio)


# ── Membership ────────────────────────────────────────────────────────────


@router.get(
    "/{studio_id}/artists",
    response_model=list[StudioMemberResponse],
    summary="Active artists of a studio",
)
async def list_members(
    studio_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> list[StudioMemberResponse]:
    return await studio_service.list_members(db, studio_id)


@router.post(
    "/{studio_id}/artists",
    response_model=StudioMemberResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Not allowed to manage this studio", "model": ErrorResponse},
        409: {"description": "Artist already a member", "model": ErrorResponse},
    },
    summary="Add an artist to a studio",
)
async def add_artist(
    studio_id: uuid.UUID,
    data: AddStudioArtistRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StudioMemberResponse:
    return await studio_service.add_artist(db, user, studio_id, data)


@router.delete(
    "/{studio_id}/artists/{artist_id}",
    response_model=MessageResponse,
    summary="Remove an artist from a studio",
)
async def remove_artist(
    studio_id: uuid.UUID,
    artist_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await studio_service.remove_artist(db, user, studio_id, artist_id)
    return MessageResponse(message="Artist removed from studio")


@router.post(
    "/{studio_id}/leave",
    response_model=MessageResponse,
    summary="Leave a studio",
)
async def leave_studio(
    studio_id: uuid.UUID,
    user: User = Depends(require_roles(*ARTIST_ROLES)),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await studio_service.leave(db, user, studio_id)
    return MessageResponse(message="You have left the studio")


@router.post(
    "/{studio_id}/claim",
    response_model=StudioResponse,
    responses={409: {"description": "Studio already claimed", "model": ErrorResponse}},
    summary="Claim an unclaimed studio",
)
async def claim_studio(
    studio_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> StudioResponse:
    studio = await studio_service.claim(db, user, studio_id)
    return await studio_service.to_response(db, studio)
