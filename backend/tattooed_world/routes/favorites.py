"""
Tattooed World Backend — Favorite Routes
==========================================

What:  A client's bookmarked artists under /api/favorites (CLIENT only).

Idempotency:
    POST   201 + created=true on first add, 200 + created=false afterwards
    DELETE always 200; `removed` says whether anything was deleted
"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import require_roles
from tattooed_world.models import User, UserRole
from tattooed_world.schemas.common import ErrorResponse
from tattooed_world.schemas.content import (
    FavoriteAddResponse,
    FavoriteCheckResponse,
    FavoriteCreateRequest,
    FavoriteListResponse,
    FavoriteRemoveResponse,
)
from tattooed_world.services.favorite_service import favorite_service

router = APIRouter(prefix="/api/favorites", tags=["Favorites"])

require_client = require_roles(UserRole.CLIENT.value)


@router.get("", response_model=FavoriteListResponse, summary="List own favorites")
async def list_favorites(
    user: User = Depends(require_client), db: AsyncSession = Depends(get_db_session)
) -> FavoriteListResponse:
    return await favorite_service.list_favorites(db, user)


@router.post(
    "",
    response_model=FavoriteAddResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "Already a favorite", "model": FavoriteAddResponse},
        404: {"description": "Artist not found", "model": ErrorResponse},
    },
    summary="Add an artist to favorites",
)
async def add_favorite(
    data: FavoriteCreateRequest,
    response: Response,
    user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteAddResponse:
    favorite, created = await favorite_service.add(db, user, data.artist_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return FavoriteAddResponse(
        message="Added to favorites" if created else "Already in favorites",
        created=created,
        favorite=favorite,
    )


@router.delete(
    "/{artist_id}",
    response_model=FavoriteRemoveResponse,
    summary="Remove an artist from favorites",
)
async def remove_favorite(
    artist_id: uuid.UUID,
    user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteRemoveResponse:
    removed = await favorite_service.remove(db, user, artist_id)
    return FavoriteRemoveResponse(
        message="Removed from favorites" if removed else "Artist was not in favorites",
        removed=removed,
    )


@router.get(
    "/check/{artist_id}",
    response_model=FavoriteCheckResponse,
    summary="Is this artist a favorite?",
)
async def check_favorite(
    artist_id: uuid.UUID,
    user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteCheckResponse:
    return FavoriteCheckResponse(is_favorited=await favorite_service.is_favorited(db, user, artist_id))
