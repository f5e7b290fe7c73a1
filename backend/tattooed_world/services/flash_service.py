"""
Tattooed World Backend — Flash Service
========================================

What:  Browse, publish, edit and delete flash designs.
Who:   routes/flash.py. Publishing requires an approved artist profile
       (enforced by the `require_verified_artist` dependency); edit/delete
       are limited to the owning artist or an admin.

Tag filter:
    `tags=dragon,koi` matches flash carrying ANY of the listed tags. Tags are
    stored lower-cased as a JSON list, so the match runs in Python over the
    price/artist-filtered rows before pagination.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import NotFoundError, PermissionDeniedError
from tattooed_world.models import ArtistProfile, Flash, User
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.common import PaginationMeta
from tattooed_world.schemas.content import (
    FlashCreateRequest,
    FlashListResponse,
    FlashResponse,
    FlashUpdateRequest,
)

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [t.strip().lower() for t in raw.split(",") if t.strip()]


class FlashService:
    async def get_flash_model(self, db: AsyncSession, flash_id: uuid.UUID) -> Flash:
        flash = await db.get(Flash, flash_id)
        if flash is None:
            raise NotFoundError(resource="flash", resource_id=str(flash_id))
        return flash

    async def list_flash(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        artist_id: Optional[uuid.UUID] = None,
        tags: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        available: Optional[bool] = None,
    ) -> FlashListResponse:
        query = select(Flash)
        if artist_id is not None:
            query = query.where(Flash.artist_id == artist_id)
        if min_price is not None:
            query = query.where(Flash.base_price >= min_price)
        if max_price is not None:
            query = query.where(Flash.base_price <= max_price)
        if available is not None:
            query = query.where(Flash.is_available.is_(available))
        query = query.order_by(Flash.created_at.desc())

        wanted = set(parse_tags(tags))
        offset = (page - 1) * limit
        if wanted:
            rows = [
                f for f in (await db.execute(query)).scalars()
                if wanted.intersection(f.tags or [])
            ]
            total = len(rows)
            items = rows[offset:offset + limit]
        else:
            total = (
                await db.execute(select(func.count()).select_from(query.subquery()))
            ).scalar() or 0
            items = list((await db.execute(query.offset(offset).limit(limit))).scalars())

        return FlashListResponse(
            flash=[FlashResponse.model_validate(f) for f in items],
            pagination=PaginationMeta.build(page, limit, total),
        )

    async def get_flash(self, db: AsyncSession, flash_id: uuid.UUID) -> FlashResponse:
        return FlashResponse.model_validate(await self.get_flash_model(db, flash_id))

    async def create_flash(
        self, db: AsyncSession, artist: ArtistProfile, data: FlashCreateRequest
    ) -> FlashResponse:
        flash = Flash(artist_id=artist.id, **data.model_dump())
        db.add(flash)
        await db.flush()
        await db.refresh(flash, attribute_names=["artist"])
        logger.info("Flash %s created by artist %s", flash.id, artist.id)
        return FlashResponse.model_validate(flash)

    async def _check_owner(self, db: AsyncSession, user: User, flash: Flash) -> None:
        if user.is_admin:
            return
        owner = await db.get(ArtistProfile, flash.artist_id)
        if owner is None or owner.user_id != user.id:
            raise PermissionDeniedError("Not authorized to modify this flash item")

    async def update_flash(
        self, db: AsyncSession, user: User, flash_id: uuid.UUID, data: FlashUpdateRequest
    ) -> FlashResponse:
        flash = await self.get_flash_model(db, flash_id)
        await self._check_owner(db, user, flash)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("title", "image_url") and value is None:
                continue
            setattr(flash, field, value)
        flash.updated_at = utcnow()
        await db.flush()
        return FlashResponse.model_validate(flash)

    async def delete_flash(self, db: AsyncSession, user: User, flash_id: uuid.UUID) -> None:
        flash = await self.get_flash_model(db, flash_id)
        await self._check_owner(db, user, flash)
        await db.delete(flash)
        await db.flush()
        logger.info("Flash %s deleted by %s", flash_id, user.id)


flash_service = FlashService()
