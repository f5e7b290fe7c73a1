"""
Tattooed World Backend — Gallery Routes
=========================================

What:  Artist portfolios (photos of finished tattoos) under /api/gallery.
Who:   Browsed by anyone once approved; submitted by approved artists;
       edited, hidden or removed by their owner or an administrator.
       Approval itself lives under /api/admin/gallery.
"""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user, require_verified_artist
from tattooed_world.models import ArtistProfile, User
from tattooed_world.schemas.common import ErrorResponse, MessageResponse
from tattooed_world.schemas.gallery import (
    GalleryCreateRequest,
    GalleryItemResponse,
    GalleryListResponse,
    GallerySort,
    GalleryStatsResponse,
    GalleryUpdateRequest,
)
from tattooed_world.services.gallery_service import gallery_service

router = APIRouter(prefix="/api/gallery", tags=["Gallery"])


@router.get("", response_model=GalleryListResponse, summary="Browse approved portfolio work")
async def list_gallery(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=50, description="Items per page (max 50)"),
    artist_id: uuid.UUID | None = Query(default=None, alias="artistId"),
    style: str | None = Query(default=None, max_length=100, description="Tattoo style"),
    location: str | None = Query(default=None, max_length=100, description="Body location"),
    featured: bool | None = Query(default=None),
    before_after: bool | None = Query(default=None, alias="beforeAfter"),
    sort: GallerySort = Query(default="createdAt"),
    order: Literal["asc", "desc"] = Query(default="desc"),
    db: AsyncSession = Depends(get_db_session),
) -> GalleryListResponse:
    return await gallery_service.list_items(
        db,
        page=page,
        limit=limit,
        artist_id=artist_id,
        style=style,
        location=location,
        featured=featured,
        before_after=before_after,
        sort=sort,
        order=order,
    )


@router.get(
    "/stats/artist/{artist_id}",
    response_model=GalleryStatsResponse,
    responses={404: {"description": "Artist not found", "model": ErrorResponse}},
    summary="Portfolio statistics for an artist",
)
async def artist_stats(
    artist_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> GalleryStatsResponse:
    return await gallery_service.artist_stats(db, artist_id)


@router.get(
    "/{item_id}",
    response_model=GalleryItemResponse,
    responses={404: {"description": "Gallery item not found", "model": ErrorResponse}},
    summary="Get a gallery item",
)
async def get_gallery_item(
    item_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> GalleryItemResponse:
    return await gallery_service.get_item(db, item_id)


@router.post(
    "",
    response_model=GalleryItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"description": "Approved artist profile required", "model": ErrorResponse}},
    summary="Submit a piece for the portfolio",
)
async def create_gallery_item(
    data: GalleryCreateRequest,
    artist: ArtistProfile = Depends(require_verified_artist),
    db: AsyncSession = Depends(get_db_session),
) -> GalleryItemResponse:
    return await gallery_service.create_item(db, artist, data)


@router.put(
    "/{item_id}",
    response_model=GalleryItemResponse,
    responses={
        403: {"description": "Not the owner", "model": ErrorResponse},
        404: {"description": "Gallery item not found", "model": ErrorResponse},
    },
    summary="Update a gallery item",
)
async def update_gallery_item(
    item_id: uuid.UUID,
    data: GalleryUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GalleryItemResponse:
    return await gallery_service.update_item(db, user, item_id, data)


@router.delete("/{item_id}", response_model=MessageResponse, summary="Delete a gallery item")
async def delete_gallery_item(
    item_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await gallery_service.delete_item(db, user, item_id)
    return MessageResponse(message="Gallery item deleted")
