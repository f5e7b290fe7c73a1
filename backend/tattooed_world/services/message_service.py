"""
Tattooed World Backend — Artist Message Service
=================================================

What:  Short announcements ("Books open in March", "Guest spot in Berlin")
       shown on an artist's card and profile until they expire.
Who:   routes/messages.py.

Limits:
    An artist may have at most `settings.max_active_messages` (default 5)
    messages that are active and not yet expired. Creating one more, or
    re-activating one beyond the cap, is a 400.

Visibility:
    Public listing → is_active AND (expires_at IS NULL OR expires_at > now),
    ordered by priority DESC, then newest first.
    Owner listing  → every message, including inactive and expired ones.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.config import settings
from tattooed_world.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from tattooed_world.models import ArtistMessage, ArtistProfile, User
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.content import (
    ArtistMessageListResponse,
    ArtistMessageResponse,
    MessageCreateRequest,
    MessageUpdateRequest,
)

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = ("content", "priority", "show_on_card", "show_on_profile", "is_active")


def _live_condition():
    now = utcnow()
    return (
        ArtistMessage.is_active.is_(True),
        or_(ArtistMessage.expires_at.is_(None), ArtistMessage.expires_at > now),
    )


class MessageService:
    async def _artist_for(self, db: AsyncSession, user: User) -> ArtistProfile:
        profile = (
            await db.execute(select(ArtistProfile).where(ArtistProfile.user_id == user.id))
        ).scalar_one_or_none()
        if profile is None:
            raise PermissionDeniedError("Artist profile required")
        return profile

    async def _own_message(
        self, db: AsyncSession, artist: ArtistProfile, message_id: uuid.UUID
    ) -> ArtistMessage:
        message = await db.get(ArtistMessage, message_id)
        if message is None or message.artist_id != artist.id:
            raise NotFoundError(resource="message", resource_id=str(message_id))
        return message

    async def _live_count(
        self, db: AsyncSession, artist_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None
    ) -> int:
        query = select(func.count(ArtistMessage.id)).where(
            ArtistMessage.artist_id == artist_id, *_live_condition()
        )
        if exclude_id is not None:
            query = query.where(ArtistMessage.id != exclude_id)
        return (await db.execute(query)).scalar() or 0

    async def _enforce_cap(
        self, db: AsyncSession, artist_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        if await self._live_count(db, artist_id, exclude_id) >= settings.max_active_messages:
            raise ValidationError(
                f"Maximum {settings.max_active_messages} active messages allowed. "
                "Please deactivate or delete existing messages first."
            )

    async def list_for_artist(
        self, db: AsyncSession, artist_id: uuid.UUID
    ) -> ArtistMessageListResponse:
        if await db.get(ArtistProfile, artist_id) is None:
            raise NotFoundError(resource="artist", resource_id=str(artist_id))
        messages = (
            await db.execute(
                select(ArtistMessage)
                .where(ArtistMessage.artist_id == artist_id, *_live_condition())
                .order_by(ArtistMessage.priority.desc(), ArtistMessage.created_at.desc())
            )
        ).scalars()
        return ArtistMessageListResponse(
            messages=[ArtistMessageResponse.model_validate(m) for m in messages]
        )

    async def list_own(self, db: AsyncSession, user: User) -> ArtistMessageListResponse:
        artist = await self._artist_for(db, user)
        messages = (
            await db.execute(
                select(ArtistMessage)
                .where(ArtistMessage.artist_id == artist.id)
                .order_by(ArtistMessage.created_at.desc())
            )
        ).scalars()
        return ArtistMessageListResponse(
            messages=[ArtistMessageResponse.model_validate(m) for m in messages]
        )

    async def create(
        self, db: AsyncSession, user: User, data: MessageCreateRequest
    ) -> ArtistMessageResponse:
        artist = await self._artist_for(db, user)
        await self._enforce_cap(db, artist.id)

        message = ArtistMessage(artist_id=artist.id, is_active=True, **data.model_dump())
        db.add(message)
        await db.flush()
        logger.info("Artist %s posted message %s", artist.id, message.id)
        return ArtistMessageResponse.model_validate(message)

    async def update(
        self, db: AsyncSession, user: User, message_id: uuid.UUID, data: MessageUpdateRequest
    ) -> ArtistMessageResponse:
        artist = await self._artist_for(db, user)
        message = await self._own_message(db, artist, message_id)
        values = data.model_dump(exclude_unset=True)

        if values.get("is_active") and not message.is_active:
            await self._enforce_cap(db, artist.id, exclude_id=message.id)

        for field, value in values.items():
            if field in NON_NULLABLE_FIELDS and value is None:
                continue
            setattr(message, field, value)
        message.updated_at = utcnow()
        await db.flush()
        return ArtistMessageResponse.model_validate(message)

    async def delete(self, db: AsyncSession, user: User, message_id: uuid.UUID) -> None:
        artist = await self._artist_for(db, user)
        message = await self._own_message(db, artist, message_id)
        await db.delete(message)
        await db.flush()
        logger.info("Artist %s deleted message %s", artist.id, message_id)


message_service = MessageService()
