"""
Tattooed World Backend — Flash Routes
=======================================

What:  Flash designs (ready-made tattoo artwork) under /api/flash.
Who:   Browsed by anyone; posted by approved artists; edited or removed by
       their owner or an administrator.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user, require_verified_artist
from tattooed_world.models import ArtistProfile, User
from tattooed_world.schemas.common import ErrorResponse, MessageResponse
from tattooed_world.schemas.content import (
    FlashCreateRequest,
    FlashListResponse,
    FlashResponse,
    FlashUpdateRequest,
)
from tattooed_world.services.flash_service import flash_service

router = APIRouter(prefix="/api/flash", tags=["Flash"])


@router.get("", response_model=FlashListResponse, summary="Browse flash designs")
async def list_flash(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=50, description="Items per page (max 50)"),
    artist_id: uuid.UUID | None = Query(default=None, alias="artistId"),
    tags: str | None = Query(
        default=None, description="Comma-separated tags; a design matches if it has any of them"
    ),
    min_price: float | None = Query(default=None, ge=0, alias="minPrice"),
    max_price: float | None = Query(default=None, ge=0, alias="maxPrice"),
    available: bool | None = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> FlashListResponse:
    return await flash_service.list_flash(
        db,
        page=page,
        limit=limit,
        artist_id=artist_id,
        tags=tags,
        min_price=min_price,
        max_price=max_price,
        available=available,
    )


@router.get(
    "/{flash_id}",
    response_model=FlashResponse,
    responses={404: {"description": "Flash not found", "model": ErrorResponse}},
    summary="Get a flash design",
)
async def get_flash(flash_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> FlashResponse:
    return await flash_service.get_flash(db, flash_id)


@router.post(
    "",
    response_model=FlashResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"description": "Approved artist profile required", "model": ErrorResponse}},
    summary="Post a flash design",
)
async def create_flash(
    data: FlashCreateRequest,
    artist: ArtistProfile = Depends(require_verified_artist),
    db: AsyncSession = Depends(get_db_session),
) -> FlashResponse:
    return await flash_service.create_flash(db, artist, data)


@router.put(
    "/{flash_id}",
    response_model=FlashResponse,
    responses={
        403: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Flash not found", "model": ErrorResponse},
    },
    summary="Update a flash design",
)
async def update_flash(
    flash_id: uuid.UUID,
    data: FlashUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FlashResponse:
    return await flash_service.update_flash(db, user, flash_id, data)


@router.delete("/{flash_id}", response_model=MessageResponse, summary="Delete a flash design")
async def delete_flash(
    flash_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await flash_service.delete_flash(db, user, flash_id)
    return MessageResponse(message="Flash deleted")
