"""
Tattooed World Backend — Gallery Service
==========================================

What:  Artist portfolios: browse, publish, edit and delete finished work,
       per-artist portfolio statistics, and the admin approval queue.
Who:   routes/gallery.py, and admin_service for moderation.

Visibility:
    A gallery item is public once an admin has approved it, its owner has
    not hidden it, and the client consented to publication. New items start
    unapproved. On the public read endpoints an item that is not public
    answers 404 to everyone, its owner included.

Statistics count approved, non-hidden items whether or not consent was
given; the numbers describe the artist's work, not what is on display.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import NotFoundError, PermissionDeniedError
from tattooed_world.models import ArtistProfile, GalleryItem, User
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.common import PaginationMeta
from tattooed_world.schemas.gallery import (
    GalleryCreateRequest,
    GalleryItemResponse,
    GalleryListResponse,
    GalleryStatsResponse,
    GallerySort,
    GalleryUpdateRequest,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": GalleryItem.created_at,
    "completedAt": GalleryItem.completed_at,
    "title": GalleryItem.title,
}

# Columns an update may not null out
REQUIRED_FIELDS = (
    "title",
    "image_url",
    "session_count",
    "client_consent",
    "client_anonymous",
    "client_age_verified",
    "is_before_after",
    "is_hidden",
)


def public_filter():
    return and_(
        GalleryItem.is_approved.is_(True),
        GalleryItem.is_hidden.is_(False),
        GalleryItem.client_consent.is_(True),
    )


class GalleryService:
    async def get_item_model(self, db: AsyncSession, item_id: uuid.UUID) -> GalleryItem:
        item = await db.get(GalleryItem, item_id)
        if item is None:
            raise NotFoundError(resource="gallery item", resource_id=str(item_id))
        return item

    async def list_items(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        artist_id: Optional[uuid.UUID] = None,
        style: Optional[str] = None,
        location: Optional[str] = None,
        featured: Optional[bool] = None,
        before_after: Optional[bool] = None,
        sort: GallerySort = "createdAt",
        order: str = "desc",
    ) -> GalleryListResponse:
        query = select(GalleryItem).where(public_filter())
        if artist_id is not None:
            query = query.where(GalleryItem.artist_id == artist_id)
        if style:
            query = query.where(func.lower(GalleryItem.tattoo_style) == style.strip().lower())
        if location:
            query = query.where(func.lower(GalleryItem.body_location) == location.strip().lower())
        if featured is not None:
            query = query.where(GalleryItem.is_featured.is_(featured))
        if before_after is not None:
            query = query.where(GalleryItem.is_before_after.is_(before_after))

        total = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0

        column = SORT_COLUMNS[sort]
        query = query.order_by(
            column.asc() if order == "asc" else column.desc(), GalleryItem.id
        )
        items = (await db.execute(query.offset((page - 1) * limit).limit(limit))).scalars()

        return GalleryListResponse(
            items=[GalleryItemResponse.model_validate(i) for i in items],
            pagination=PaginationMeta.build(page, limit, total),
        )

    async def get_item(self, db: AsyncSession, item_id: uuid.UUID) -> GalleryItemResponse:
        item = (
            await db.execute(select(GalleryItem).where(GalleryItem.id == item_id, public_filter()))
        ).scalar_one_or_none()
        if item is None:
            raise NotFoundError(resource="gallery item", resource_id=str(item_id))
        return GalleryItemResponse.model_validate(item)

    async def create_item(
        self, db: AsyncSession, artist: ArtistProfile, data: GalleryCreateRequest
    ) -> GalleryItemResponse:
        item = GalleryItem(artist_id=artist.id, **data.model_dump())
        db.add(item)
        await db.flush()
        await db.refresh(item, attribute_names=["artist"])
        logger.info("Gallery item %s submitted by artist %s", item.id, artist.id)
        return GalleryItemResponse.model_validate(item)

    async def _check_owner(self, db: AsyncSession, user: User, item: GalleryItem) -> None:
        if user.is_admin:
            return
        owner = await db.get(ArtistProfile, item.artist_id)
        if owner is None or owner.user_id != user.id:
            raise PermissionDeniedError("Not authorized to modify this gallery item")

    async def update_item(
        self, db: AsyncSession, user: User, item_id: uuid.UUID, data: GalleryUpdateRequest
    ) -> GalleryItemResponse:
        item = await self.get_item_model(db, item_id)
        await self._check_owner(db, user, item)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in REQUIRED_FIELDS and value is None:
                continue
            setattr(item, field, value)
        item.updated_at = utcnow()
        await db.flush()
        return GalleryItemResponse.model_validate(item)

    async def delete_item(self, db: AsyncSession, user: User, item_id: uuid.UUID) -> None:
        item = await self.get_item_model(db, item_id)
        await self._check_owner(db, user, item)
        await db.delete(item)
        await db.flush()
        logger.info("Gallery item %s deleted by %s", item_id, user.id)

    async def artist_stats(self, db: AsyncSession, artist_id: uuid.UUID) -> GalleryStatsResponse:
        if await db.get(ArtistProfile, artist_id) is None:
            raise NotFoundError(resource="artist", resource_id=str(artist_id))

        visible = and_(
            GalleryItem.artist_id == artist_id,
            GalleryItem.is_approved.is_(True),
            GalleryItem.is_hidden.is_(False),
        )
        row = (
            await db.execute(
                select(
                    func.count(GalleryItem.id),
                    func.count(case((GalleryItem.is_featured.is_(True), 1))),
                    func.count(case((GalleryItem.is_before_after.is_(True), 1))),
                    func.avg(GalleryItem.hours_spent),
                    func.sum(GalleryItem.hours_spent),
                    func.count(func.distinct(GalleryItem.tattoo_style)),
                    func.count(func.distinct(GalleryItem.body_location)),
                ).where(visible)
            )
        ).one()
        total, featured, before_after, avg_hours, sum_hours, styles, locations = row

        return GalleryStatsResponse(
            artist_id=artist_id,
            total_items=total or 0,
            featured_items=featured or 0,
            before_after_items=before_after or 0,
            avg_hours_per_piece=round(float(avg_hours), 1) if avg_hours is not None else None,
            total_hours_worked=int(sum_hours or 0),
            unique_styles=styles or 0,
            unique_locations=locations or 0,
        )

    # ── Moderation ────────────────────────────────────────────────────────

    async def pending(self, db: AsyncSession) -> List[GalleryItemResponse]:
        items = (
            await db.execute(
                select(GalleryItem)
                .where(GalleryItem.is_approved.is_(False))
                .order_by(GalleryItem.created_at.asc(), GalleryItem.id)
            )
        ).scalars()
        return [GalleryItemResponse.model_validate(i) for i in items]

    async def moderate(
        self,
        db: AsyncSession,
        item_id: uuid.UUID,
        is_approved: bool,
        is_featured: Optional[bool] = None,
    ) -> GalleryItemResponse:
        item = await self.get_item_model(db, item_id)
        item.is_approved = is_approved
        item.approved_at = utcnow() if is_approved else None
        if is_featured is not None:
            item.is_featured = is_featured
        item.updated_at = utcnow()
        await db.flush()
        return GalleryItemResponse.model_validate(item)


gallery_service = GalleryService()
