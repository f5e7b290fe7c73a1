"""
Tattooed World Backend — Studio Service
=========================================

What:  Studio directory, proximity search, create/update, artist membership
       and claiming.
Who:   routes/studios.py. Coordinates are filled in afterwards by the
       geocoding service (on create, when enabled) or by the batch processor.

Permissions:
    update / manage roster → claimant, an OWNER or MANAGER member, or an admin
    leave                  → the member artist themself
    claim                  → any authenticated user, only while unclaimed

Address edits:
    Changing any address part (address, city, state, zip, country) without
    sending new coordinates clears latitude/longitude and puts the studio
    back into the `pending` geocoding queue.

Nearby search:
    A latitude/longitude bounding box narrows the rows in SQL; exact
    great-circle (haversine) distances are then computed for the survivors
    and filtered against the radius.
"""

import logging
import math
import re
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from tattooed_world.models import (
    ArtistProfile,
    GeocodeStatus,
    Studio,
    StudioArtist,
    StudioRole,
    User,
)
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.common import PaginationMeta
from tattooed_world.schemas.studio import (
    AddStudioArtistRequest,
    NearbyStudioResponse,
    NearbyStudiosResponse,
    StudioCreateRequest,
    StudioDetailResponse,
    StudioListResponse,
    StudioMemberResponse,
    StudioResponse,
    StudioUpdateRequest,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0088
KM_PER_DEGREE_LAT = 111.32

ADDRESS_FIELDS = ("address", "city", "state", "zip_code", "country")
MANAGER_ROLES = (StudioRole.OWNER.value, StudioRole.MANAGER.value)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    slug = _NON_SLUG.sub("-", title.lower()).strip("-")
    return slug or "studio"


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


class StudioService:
    async def get_studio_model(self, db: AsyncSession, studio_id: uuid.UUID) -> Studio:
        studio = await db.get(Studio, studio_id)
        if studio is None:
            raise NotFoundError(resource="studio", resource_id=str(studio_id))
        return studio

    async def artist_counts(
        self, db: AsyncSession, studio_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, int]:
        ids = list(studio_ids)
        if not ids:
            return {}
        rows = await db.execute(
            select(StudioArtist.studio_id, func.count(StudioArtist.id))
            .where(StudioArtist.studio_id.in_(ids), StudioArtist.is_active.is_(True))
            .group_by(StudioArtist.studio_id)
        )
        return {studio_id: count for studio_id, count in rows.all()}

    async def to_response(self, db: AsyncSession, studio: Studio) -> StudioResponse:
        counts = await self.artist_counts(db, [studio.id])
        return StudioResponse.model_validate(studio).model_copy(
            update={"artist_count": counts.get(studio.id, 0)}
        )

    async def _ensure_unique(
        self, db: AsyncSession, title: str, slug: str, exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        query = select(Studio.id).where(
            (func.lower(Studio.title) == title.lower()) | (Studio.slug == slug)
        )
        if exclude_id is not None:
            query = query.where(Studio.id != exclude_id)
        if (await db.execute(query.limit(1))).first() is not None:
            raise ConflictError("A studio with this title already exists")

    async def _can_manage(self, db: AsyncSession, user: User, studio: Studio) -> bool:
        if user.is_admin or studio.claimed_by == user.id:
            return True
        membership = (
            await db.execute(
                select(StudioArtist)
                .join(ArtistProfile, ArtistProfile.id == StudioArtist.artist_id)
                .where(
                    StudioArtist.studio_id == studio.id,
                    ArtistProfile.user_id == user.id,
                    StudioArtist.is_active.is_(True),
                    StudioArtist.role.in_(MANAGER_ROLES),
                )
            )
        ).scalar_one_or_none()
        return membership is not None

    # ── Directory ─────────────────────────────────────────────────────────

    async def list_studios(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        verified: Optional[bool] = None,
        featured: Optional[bool] = None,
    ) -> StudioListResponse:
        query = select(Studio).where(Studio.is_active.is_(True))
        if search:
            query = query.where(Studio.title.ilike(f"%{search.strip()}%"))
        if verified is not None:
            query = query.where(Studio.is_verified.is_(verified))
        if featured is not None:
            query = query.where(Studio.is_featured.is_(featured))

        total = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0
        studios = list(
            (
                await db.execute(
                    query.order_by(Studio.title.asc()).offset((page - 1) * limit).limit(limit)
                )
            ).scalars()
        )
        counts = await self.artist_counts(db, [s.id for s in studios])
        return StudioListResponse(
            studios=[
                StudioResponse.model_validate(s).model_copy(
                    update={"artist_count": counts.get(s.id, 0)}
                )
                for s in studios
            ],
            pagination=PaginationMeta.build(page, limit, total),
        )

    async def nearby(
        self, db: AsyncSession, latitude: float, longitude: float, radius_km: float = 25.0
    ) -> NearbyStudiosResponse:
        lat_delta = radius_km / KM_PER_DEGREE_LAT
        cos_lat = math.cos(math.radians(latitude))
        lng_delta = 180.0 if cos_lat < 1e-6 else min(180.0, radius_km / (KM_PER_DEGREE_LAT * cos_lat))

        query = select(Studio).where(
            Studio.is_active.is_(True),
            Studio.latitude.is_not(None),
            Studio.longitude.is_not(None),
            Studio.latitude.between(latitude - lat_delta, latitude + lat_delta),
        )
        if lng_delta < 180.0:
            west, east = longitude - lng_delta, longitude + lng_delta
            # A box crossing the antimeridian becomes two ranges
            if west < -180.0:
                lng_filter = or_(
                    Studio.longitude.between(west + 360.0, 180.0),
                    Studio.longitude.between(-180.0, east),
                )
            elif east > 180.0:
                lng_filter = or_(
                    Studio.longitude.between(west, 180.0),
                    Studio.longitude.between(-180.0, east - 360.0),
                )
            else:
                lng_filter = Studio.longitude.between(west, east)
            query = query.where(lng_filter)

        candidates = list((await db.execute(query)).scalars())
        hits = []
        for studio in candidates:
            distance = haversine_km(latitude, longitude, studio.latitude, studio.longitude)
            if distance <= radius_km:
                hits.append((distance, studio))
        hits.sort(key=lambda pair: pair[0])

        counts = await self.artist_counts(db, [s.id for _, s in hits])
        return NearbyStudiosResponse(
            studios=[
                NearbyStudioResponse.model_validate(
                    {
                        **StudioResponse.model_validate(s).model_dump(),
                        "artist_count": counts.get(s.id, 0),
                        "distance_km": round(distance, 2),
                    }
                )
                for distance, s in hits
            ],
            radius_km=radius_km,
        )

    async def get_studio(self, db: AsyncSession, studio_id: uuid.UUID) -> StudioDetailResponse:
        studio = await self.get_studio_model(db, studio_id)
        members = await self._members(db, studio.id)
        base = StudioResponse.model_validate(studio).model_dump()
        base["artist_count"] = len(members)
        return StudioDetailResponse.model_validate({**base, "artists": members})

    # ── Create / Update ───────────────────────────────────────────────────

    async def create_studio(
        self, db: AsyncSession, user: User, data: StudioCreateRequest
    ) -> Studio:
        slug = slugify(data.title)
        await self._ensure_unique(db, data.title, slug)

        studio = Studio(
            **data.model_dump(exclude_none=True),
            slug=slug,
            claimed_by=user.id,
            claimed_at=utcnow(),
        )
        if studio.latitude is not None and studio.longitude is not None:
            studio.geocode_status = GeocodeStatus.OK.value
            studio.geocoded_at = utcnow()
        db.add(studio)
        await db.flush()
        logger.info("Studio created: %s (%s) by %s", studio.id, studio.slug, user.id)
        return studio

    async def update_studio(
        self,
        db: AsyncSession,
        user: User,
        studio_id: uuid.UUID,
        data: StudioUpdateRequest,
    ) -> Studio:
        studio = await self.get_studio_model(db, studio_id)
        if not await self._can_manage(db, user, studio):
            raise PermissionDeniedError("Not authorized to update this studio")

        values = data.model_dump(exclude_unset=True)
        if values.get("title"):
            title = values["title"].strip()
            slug = slugify(title)
            await self._ensure_unique(db, title, slug, exclude_id=studio.id)
            values["title"] = title
            studio.slug = slug

        address_changed = any(
            field in values and values[field] != getattr(studio, field) for field in ADDRESS_FIELDS
        )
        coordinates_sent = values.get("latitude") is not None and values.get("longitude") is not None
        coordinates_cleared = any(
            field in values and values[field] is None for field in ("latitude", "longitude")
        )

        for field, value in values.items():
            setattr(studio, field, value)

        if coordinates_sent:
            studio.mark_geocoded(studio.latitude, studio.longitude)
        elif address_changed or coordinates_cleared:
            studio.latitude = None
            studio.longitude = None
            studio.geocode_status = GeocodeStatus.PENDING.value
            studio.geocode_error = None
            studio.geocoded_at = None
            logger.info("Studio %s location reset; queued for geocoding", studio.id)

        studio.updated_at = utcnow()
        await db.flush()
        return studio

    # ── Membership ────────────────────────────────────────────────────────

    async def _members(self, db: AsyncSession, studio_id: uuid.UUID) -> List[StudioMemberResponse]:
        rows = await db.execute(
            select(StudioArtist)
            .where(StudioArtist.studio_id == studio_id, StudioArtist.is_active.is_(True))
            .order_by(StudioArtist.joined_at.asc())
        )
        return [StudioMemberResponse.model_validate(m) for m in rows.scalars()]

    async def list_members(
        self, db: AsyncSession, studio_id: uuid.UUID
    ) -> List[StudioMemberResponse]:
        await self.get_studio_model(db, studio_id)
        return await self._members(db, studio_id)

    async def _membership(
        self, db: AsyncSession, studio_id: uuid.UUID, artist_id: uuid.UUID
    ) -> Optional[StudioArtist]:
        return (
            await db.execute(
                select(StudioArtist).where(
                    StudioArtist.studio_id == studio_id,
                    StudioArtist.artist_id == artist_id,
                )
            )
        ).scalar_one_or_none()

    async def add_artist(
        self,
        db: AsyncSession,
        user: User,
        studio_id: uuid.UUID,
        data: AddStudioArtistRequest,
    ) -> StudioMemberResponse:
        studio = await self.get_studio_model(db, studio_id)
        if not await self._can_manage(db, user, studio):
            raise PermissionDeniedError("Not authorized to manage this studio's artists")
        if await db.get(ArtistProfile, data.artist_id) is None:
            raise NotFoundError(resource="artist", resource_id=str(data.artist_id))

        membership = await self._membership(db, studio.id, data.artist_id)
        if membership is not None and membership.is_active:
            raise ConflictError("Artist is already a member of this studio")

        if membership is None:
            membership = StudioArtist(studio_id=studio.id, artist_id=data.artist_id, role=data.role)
            db.add(membership)
        else:
            membership.is_active = True
            membership.role = data.role
            membership.joined_at = utcnow()
        await db.flush()
        await db.refresh(membership, attribute_names=["artist", "studio"])
        logger.info("Artist %s joined studio %s as %s", data.artist_id, studio.id, data.role)
        return StudioMemberResponse.model_validate(membership)

    async def remove_artist(
        self,
        db: AsyncSession,
        user: User,
        studio_id: uuid.UUID,
        artist_id: uuid.UUID,
    ) -> None:
        studio = await self.get_studio_model(db, studio_id)
        if not await self._can_manage(db, user, studio):
            raise PermissionDeniedError("Not authorized to manage this studio's artists")
        membership = await self._membership(db, studio.id, artist_id)
        if membership is None or not membership.is_active:
            raise NotFoundError(resource="studio membership", resource_id=str(artist_id))
        await db.delete(membership)
        await db.flush()
        logger.info("Artist %s removed from studio %s", artist_id, studio.id)

    async def leave(self, db: AsyncSession, user: User, studio_id: uuid.UUID) -> None:
        studio = await self.get_studio_model(db, studio_id)
        profile = (
            await db.execute(select(ArtistProfile).where(ArtistProfile.user_id == user.id))
        ).scalar_one_or_none()
        membership = (
            await self._membership(db, studio.id, profile.id) if profile is not None else None
        )
        if membership is None or not membership.is_active:
            raise NotFoundError(resource="studio membership")
        await db.delete(membership)
        await db.flush()
        logger.info("Artist %s left studio %s", profile.id, studio.id)

    async def claim(self, db: AsyncSession, user: User, studio_id: uuid.UUID) -> Studio:
        studio = await self.get_studio_model(db, studio_id)
        if studio.claimed_by is not None:
            raise ConflictError("This studio has already been claimed")
        studio.claimed_by = user.id
        studio.claimed_at = utcnow()
        studio.updated_at = utcnow()
        await db.flush()
        logger.info("Studio %s claimed by %s", studio.id, user.id)
        return studio


studio_service = StudioService()
