"""
Tattooed World Backend — Favorite Service
===========================================

What:  A client's bookmarked artists.
Who:   routes/favorites.py (CLIENT role only).

Both mutations are idempotent:
    add    → (favorite, created=True) the first time, (favorite, created=False) after
    remove → removed=True when a row was deleted, removed=False when none existed
"""

import logging
import uuid
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import ConflictError, NotFoundError
from tattooed_world.models import ArtistProfile, Favorite, User
from tattooed_world.schemas.content import FavoriteListResponse, FavoriteResponse
from tattooed_world.services.artist_service import artist_service

logger = logging.getLogger(__name__)


class FavoriteService:
    async def _find(
        self, db: AsyncSession, user_id: uuid.UUID, artist_id: uuid.UUID
    ) -> Favorite | None:
        return (
            await db.execute(
                select(Favorite).where(Favorite.user_id == user_id, Favorite.artist_id == artist_id)
            )
        ).scalar_one_or_none()

    async def _to_response(self, db: AsyncSession, favorite: Favorite) -> FavoriteResponse:
        summaries = await artist_service.summaries_for(db, [favorite.artist])
        return FavoriteResponse(
            id=favorite.id,
            artist_id=favorite.artist_id,
            created_at=favorite.created_at,
            artist=summaries.get(favorite.artist_id),
        )

    async def list_favorites(self, db: AsyncSession, user: User) -> FavoriteListResponse:
        favorites = list(
            (
                await db.execute(
                    select(Favorite)
                    .where(Favorite.user_id == user.id)
                    .order_by(Favorite.created_at.desc())
                )
            ).scalars()
        )
        summaries = await artist_service.summaries_for(db, [f.artist for f in favorites])
        return FavoriteListResponse(
            favorites=[
                FavoriteResponse(
                    id=f.id,
                    artist_id=f.artist_id,
                    created_at=f.created_at,
                    artist=summaries.get(f.artist_id),
                )
                for f in favorites
            ]
        )

    async def add(
        self, db: AsyncSession, user: User, artist_id: uuid.UUID
    ) -> Tuple[FavoriteResponse, bool]:
        artist = await db.get(ArtistProfile, artist_id)
        if artist is None:
            raise NotFoundError(resource="artist", resource_id=str(artist_id))

        existing = await self._find(db, user.id, artist_id)
        if existing is not None:
            return await self._to_response(db, existing), False

        favorite = Favorite(user_id=user.id, artist_id=artist_id)
        db.add(favorite)
        try:
            await db.flush()
        except IntegrityError as exc:
            # lost a race with a concurrent add of the same pair
            raise ConflictError("Artist is already in your favorites") from exc

        await db.refresh(favorite, attribute_names=["artist"])
        logger.info("User %s favorited artist %s", user.id, artist_id)
        return await self._to_response(db, favorite), True

    async def remove(self, db: AsyncSession, user: User, artist_id: uuid.UUID) -> bool:
        favorite = await self._find(db, user.id, artist_id)
        if favorite is None:
            return False
        await db.delete(favorite)
        await db.flush()
        logger.info("User %s unfavorited artist %s", user.id, artist_id)
        return True

    async def is_favorited(self, db: AsyncSession, user: User, artist_id: uuid.UUID) -> bool:
        return await self._find(db, user.id, artist_id) is not None


favorite_service = FavoriteService()
