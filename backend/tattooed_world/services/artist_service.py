"""
Tattooed World Backend — Artist Service
=========================================

What:  Public artist directory, full profiles, and profile create/update.
How:   Rating and flash counts are aggregated in SQL (subqueries joined to
       artist_profiles) so filtering by `min_rating` stays in the database.
Who:   routes/artists.py; FavoriteService reuses `summaries_for`.

Directory query (GET /api/artists):
    SELECT artist_profiles.*, avg(rating), count(reviews), count(flash)
    FROM artist_profiles
    JOIN users ON users.id = artist_profiles.user_id AND users.is_active
    LEFT JOIN (visible review stats per recipient) ...
    LEFT JOIN (flash count per artist) ...
    WHERE artist_profiles.is_verified
    ORDER BY is_featured DESC, created_at DESC
    LIMIT :limit OFFSET (:page - 1) * :limit

Ratings only count reviews with is_hidden = false; hidden reviews never
move an artist's average.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from tattooed_world.models import (
    ArtistMessage,
    ArtistProfile,
    Flash,
    Review,
    Service,
    Specialty,
    StudioArtist,
    User,
)
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.artist import (
    ArtistCreateRequest,
    ArtistDetail,
    ArtistListResponse,
    ArtistMessageBrief,
    ArtistSummary,
    ArtistUpdateRequest,
    StudioMembershipBrief,
)
from tattooed_world.schemas.common import PaginationMeta

logger = logging.getLogger(__name__)

Stats = Tuple[Optional[float], int, int]  # (average rating, review count, flash count)


def _review_stats():
    return (
        select(
            Review.recipient_id.label("recipient_id"),
            func.avg(Review.rating).label("average_rating"),
            func.count(Review.id).label("review_count"),
        )
        .where(Review.is_hidden.is_(False))
        .group_by(Review.recipient_id)
        .subquery()
    )


def _flash_counts():
    return (
        select(Flash.artist_id.label("artist_id"), func.count(Flash.id).label("flash_count"))
        .group_by(Flash.artist_id)
        .subquery()
    )


def _round_rating(value) -> Optional[float]:
    return round(float(value), 1) if value is not None else None


def to_summary(profile: ArtistProfile, stats: Stats = (None, 0, 0)) -> ArtistSummary:
    average, reviews, flash = stats
    return ArtistSummary.model_validate(profile).model_copy(
        update={
            "average_rating": _round_rating(average),
            "review_count": int(reviews or 0),
            "flash_count": int(flash or 0),
        }
    )


class ArtistService:
    async def get_profile(self, db: AsyncSession, artist_id: uuid.UUID) -> ArtistProfile:
        profile = await db.get(ArtistProfile, artist_id)
        if profile is None:
            raise NotFoundError(resource="artist", resource_id=str(artist_id))
        return profile

    async def get_profile_for_user(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> Optional[ArtistProfile]:
        result = await db.execute(select(ArtistProfile).where(ArtistProfile.user_id == user_id))
        return result.scalar_one_or_none()

    async def stats_for(
        self, db: AsyncSession, profiles: Iterable[ArtistProfile]
    ) -> Dict[uuid.UUID, Stats]:
        profiles = list(profiles)
        if not profiles:
            return {}
        reviews = _review_stats()
        flash = _flash_counts()
        rows = await db.execute(
            select(
                ArtistProfile.id,
                reviews.c.average_rating,
                reviews.c.review_count,
                flash.c.flash_count,
            )
            .outerjoin(reviews, reviews.c.recipient_id == ArtistProfile.user_id)
            .outerjoin(flash, flash.c.artist_id == ArtistProfile.id)
            .where(ArtistProfile.id.in_([p.id for p in profiles]))
        )
        return {row[0]: (row[1], row[2] or 0, row[3] or 0) for row in rows.all()}

    async def summaries_for(
        self, db: AsyncSession, profiles: Iterable[ArtistProfile]
    ) -> Dict[uuid.UUID, ArtistSummary]:
        profiles = list(profiles)
        stats = await self.stats_for(db, profiles)
        return {p.id: to_summary(p, stats.get(p.id, (None, 0, 0))) for p in profiles}

    # ── Directory ─────────────────────────────────────────────────────────

    async def list_artists(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 12,
        specialty: Optional[str] = None,
        city: Optional[str] = None,
        max_price: Optional[float] = None,
        min_rating: Optional[float] = None,
        featured: Optional[bool] = None,
    ) -> ArtistListResponse:
        reviews = _review_stats()
        flash = _flash_counts()

        query = (
            select(
                ArtistProfile,
                reviews.c.average_rating,
                reviews.c.review_count,
                flash.c.flash_count,
            )
            .join(User, User.id == ArtistProfile.user_id)
            .outerjoin(reviews, reviews.c.recipient_id == ArtistProfile.user_id)
            .outerjoin(flash, flash.c.artist_id == ArtistProfile.id)
            .where(ArtistProfile.is_verified.is_(True), User.is_active.is_(True))
        )

        if specialty:
            query = query.where(
                ArtistProfile.specialties.any(Specialty.name.ilike(f"%{specialty.strip()}%"))
            )
        if city:
            query = query.where(ArtistProfile.city.ilike(f"%{city.strip()}%"))
        if max_price is not None:
            query = query.where(
                or_(ArtistProfile.max_price <= max_price, ArtistProfile.hourly_rate <= max_price)
            )
        if min_rating is not None:
            query = query.where(reviews.c.average_rating >= min_rating)
        if featured is not None:
            query = query.where(ArtistProfile.is_featured.is_(featured))

        total = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0

        rows = await db.execute(
            query.order_by(ArtistProfile.is_featured.desc(), ArtistProfile.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        artists = [
            to_summary(profile, (average, review_count or 0, flash_count or 0))
            for profile, average, review_count, flash_count in rows.all()
        ]
        return ArtistListResponse(
            artists=artists,
            pagination=PaginationMeta.build(page, limit, total),
        )

    async def get_artist(self, db: AsyncSession, artist_id: uuid.UUID) -> ArtistDetail:
        profile = await self.get_profile(db, artist_id)
        stats = (await self.stats_for(db, [profile])).get(profile.id, (None, 0, 0))
        average, review_count, flash_count = stats

        now = utcnow()
        messages = (
            await db.execute(
                select(ArtistMessage)
                .where(
                    ArtistMessage.artist_id == profile.id,
                    ArtistMessage.is_active.is_(True),
                    ArtistMessage.show_on_profile.is_(True),
                    or_(ArtistMessage.expires_at.is_(None), ArtistMessage.expires_at > now),
                )
                .order_by(ArtistMessage.priority.desc(), ArtistMessage.created_at.desc())
            )
        ).scalars().all()

        memberships = (
            await db.execute(
                select(StudioArtist).where(
                    StudioArtist.artist_id == profile.id,
                    StudioArtist.is_active.is_(True),
                )
            )
        ).scalars().all()

        return ArtistDetail.model_validate(profile).model_copy(
            update={
                "average_rating": _round_rating(average),
                "review_count": int(review_count or 0),
                "flash_count": int(flash_count or 0),
                "messages": [ArtistMessageBrief.model_validate(m) for m in messages],
                "studios": [
                    StudioMembershipBrief(
                        studio_id=m.studio_id,
                        studio_title=m.studio.title,
                        studio_slug=m.studio.slug,
                        role=m.role,
                    )
                    for m in memberships
                ],
            }
        )

    # ── Create / Update ───────────────────────────────────────────────────

    async def _load_catalog(
        self, db: AsyncSession, model, ids: List[uuid.UUID], field: str
    ) -> list:
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return []
        items = list((await db.execute(select(model).where(model.id.in_(unique_ids)))).scalars())
        if len(items) != len(unique_ids):
            raise ValidationError(f"One or more {field} do not exist", field=field)
        return items

    async def create_artist(
        self, db: AsyncSession, user: User, data: ArtistCreateRequest
    ) -> ArtistDetail:
        if await self.get_profile_for_user(db, user.id) is not None:
            raise ConflictError("Artist profile already exists for this user")

        values = data.model_dump(exclude={"specialty_ids", "service_ids"}, exclude_none=True)
        profile = ArtistProfile(user_id=user.id, **values)
        profile.specialties = await self._load_catalog(
            db, Specialty, data.specialty_ids or [], "specialty_ids"
        )
        profile.services = await self._load_catalog(
            db, Service, data.service_ids or [], "service_ids"
        )
        db.add(profile)
        await db.flush()
        logger.info("Artist profile created: %s for user %s", profile.id, user.id)

        await db.refresh(profile, attribute_names=["user"])
        return await self.get_artist(db, profile.id)

    async def update_artist(
        self,
        db: AsyncSession,
        user: User,
        artist_id: uuid.UUID,
        data: ArtistUpdateRequest,
    ) -> ArtistDetail:
        profile = await self.get_profile(db, artist_id)
        if profile.user_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Not authorized to update this profile")

        values = data.model_dump(exclude_unset=True, exclude={"specialty_ids", "service_ids"})
        for field, value in values.items():
            setattr(profile, field, value)
        if data.specialty_ids is not None:
            profile.specialties = await self._load_catalog(
                db, Specialty, data.specialty_ids, "specialty_ids"
            )
        if data.service_ids is not None:
            profile.services = await self._load_catalog(
                db, Service, data.service_ids, "service_ids"
            )
        profile.updated_at = utcnow()
        await db.flush()
        logger.info("Artist profile %s updated by %s", profile.id, user.id)
        return await self.get_artist(db, profile.id)


artist_service = ArtistService()
