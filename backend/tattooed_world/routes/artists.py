"""
Tattooed World Backend — Artist Routes
========================================

What:  Public artist directory plus profile create/edit under /api/artists.
Who:   The directory and map pages (anonymous), artists editing themselves,
       administrators editing anyone.

Directory filters (all optional, combined with AND):
    specialty   specialty name, case-insensitive
    city        substring of the profile city
    maxPrice    min_price at or below this value
    minRating   average of visible reviews at or above this value
    featured    only featured artists
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user, require_roles
from tattooed_world.models import ARTIST_ROLES, User
from tattooed_world.schemas.artist import (
    ArtistCreateRequest,
    ArtistDetail,
    ArtistListResponse,
    ArtistUpdateRequest,
)
from tattooed_world.schemas.common import ErrorResponse
from tattooed_world.services.artist_service import artist_service

router = APIRouter(prefix="/api/artists", tags=["Artists"])


@router.get(
    "",
    response_model=ArtistListResponse,
    summary="List verified artists",
    description="Verified artists of active accounts, featured first, then newest.",
)
async def list_artists(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100, description="Items per page (max 100)"),
    specialty: Optional[str] = Query(default=None, description="Specialty name"),
    city: Optional[str] = Query(default=None, max_length=100),
    max_price: Optional[float] = Query(default=None, ge=0, alias="maxPrice"),
    min_rating: Optional[float] = Query(default=None, ge=0, le=5, alias="minRating"),
    featured: Optional[bool] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistListResponse:
    return await artist_service.list_artists(
        db,
        page=page,
        limit=limit,
        specialty=specialty,
        city=city,
        max_price=max_price,
        min_rating=min_rating,
        featured=featured,
    )


@router.get(
    "/{artist_id}",
    response_model=ArtistDetail,
    responses={404: {"description": "Artist not found", "model": ErrorResponse}},
    summary="Get an artist profile",
)
async def get_artist(
    artist_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> ArtistDetail:
    return await artist_service.get_artist(db, artist_id)


@router.post(
    "",
    response_model=ArtistDetail,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Caller is not an artist", "model": ErrorResponse},
        409: {"description": "Profile already exists", "model": ErrorResponse},
    },
    summary="Create own artist profile",
    description="New profiles start PENDING and stay hidden until an admin approves them.",
)
async def create_artist(
    data: ArtistCreateRequest,
    user: User = Depends(require_roles(*ARTIST_ROLES)),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistDetail:
    return await artist_service.create_artist(db, user, data)


@router.put(
    "/{artist_id}",
    response_model=ArtistDetail,
    responses={
        403: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Artist not found", "model": ErrorResponse},
    },
    summary="Update an artist profile",
)
async def update_artist(
    artist_id: uuid.UUID,
    data: ArtistUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistDetail:
    return await artist_service.update_artist(db, user, artist_id, data)
