"""
Tattooed World Backend — Artist Message Routes
================================================

What:  Artist announcements under /api/messages.
How:   Public reads by artist ID; writes are scoped to the caller's own
       artist profile, so another artist's message ID answers 404.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import require_roles
from tattooed_world.models import ARTIST_ROLES, User
from tattooed_world.schemas.common import ErrorResponse, MessageResponse
from tattooed_world.schemas.content import (
    ArtistMessageListResponse,
    ArtistMessageResponse,
    MessageCreateRequest,
    MessageUpdateRequest,
)
from tattooed_world.services.message_service import message_service

router = APIRouter(prefix="/api/messages", tags=["Messages"])

require_artist = require_roles(*ARTIST_ROLES)


@router.get(
    "/artist/{artist_id}",
    response_model=ArtistMessageListResponse,
    summary="Live messages of an artist",
    description="Active and unexpired messages, highest priority first.",
)
async def artist_messages(
    artist_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)
) -> ArtistMessageListResponse:
    return await message_service.list_for_artist(db, artist_id)


@router.get(
    "/my-messages",
    response_model=ArtistMessageListResponse,
    summary="All of the caller's messages",
)
async def my_messages(
    user: User = Depends(require_artist), db: AsyncSession = Depends(get_db_session)
) -> ArtistMessageListResponse:
    return await message_service.list_own(db, user)


@router.post(
    "",
    response_model=ArtistMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Active message limit reached", "model": ErrorResponse}},
    summary="Post a message",
)
async def create_message(
    data: MessageCreateRequest,
    user: User = Depends(require_artist),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistMessageResponse:
    return await message_service.create(db, user, data)


@router.put(
    "/{message_id}",
    response_model=ArtistMessageResponse,
    responses={404: {"description": "Message not found", "model": ErrorResponse}},
    summary="Edit own message",
)
async def update_message(
    message_id: uuid.UUID,
    data: MessageUpdateRequest,
    user: User = Depends(require_artist),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistMessageResponse:
    return await message_service.update(db, user, message_id, data)


@router.delete("/{message_id}", response_model=MessageResponse, summary="Delete own message")
async def delete_message(
    message_id: uuid.UUID,
    user: User = Depends(require_artist),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await message_service.delete(db, user, message_id)
    return MessageResponse(message="Message deleted")
