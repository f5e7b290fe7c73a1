"""
Tattooed World Backend — Admin Service
========================================

What:  Moderation and back-office operations for ADMIN / ARTIST_ADMIN users:
       dashboard counts, user management, artist verification and
       featuring, review and gallery moderation, studio verification,
       catalog entries and the audit log.
How:   Every mutating method ends with `record_action`, which appends an
       AdminAction row in the same transaction as the change it describes.
       Either both are committed or neither is.
Who:   routes/admin.py; the geocoding routes also call `record_action` for
       cache clears and manual coordinate edits.

Audit action names:
    UPDATE_USER, DEACTIVATE_USER, RESTORE_USER,
    VERIFY_ARTIST, FEATURE_ARTIST, MODERATE_REVIEW, MODERATE_GALLERY_ITEM,
    VERIFY_STUDIO, FEATURE_STUDIO, CREATE_SPECIALTY, CREATE_SERVICE,
    SAVE_GEOCODE_RESULT, GEOCODE_STUDIO, START_GEOCODE_BATCH,
    STOP_GEOCODE_BATCH, CLEAR_GEOCODE_CACHE
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import NotFoundError, ValidationError
from tattooed_world.models import (
    AdminAction,
    ArtistProfile,
    Flash,
    GalleryItem,
    Review,
    Studio,
    User,
    UserRole,
    VerificationStatus,
)
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.admin import (
    AdminActionListResponse,
    AdminActionResponse,
    AdminUserUpdateRequest,
    DashboardResponse,
    DashboardStats,
    UserListResponse,
    VerifyArtistRequest,
    VerifyStudioRequest,
)
from tattooed_world.schemas.artist import (
    ArtistSummary,
    ServiceCreateRequest,
    ServiceResponse,
    SpecialtyCreateRequest,
    SpecialtyResponse,
)
from tattooed_world.schemas.auth import UserResponse
from tattooed_world.schemas.common import PaginationMeta
from tattooed_world.schemas.content import ReviewResponse
from tattooed_world.schemas.gallery import GalleryItemResponse
from tattooed_world.schemas.studio import StudioResponse
from tattooed_world.services.artist_service import artist_service
from tattooed_world.services.catalog_service import catalog_service
from tattooed_world.services.gallery_service import gallery_service
from tattooed_world.services.geocoding_batch import pending_studios_filter
from tattooed_world.services.mail_service import mail_service
from tattooed_world.services.review_service import review_service
from tattooed_world.services.studio_service import studio_service

logger = logging.getLogger(__name__)

RECENT_ACTIONS = 10


async def record_action(
    db: AsyncSession,
    admin: User,
    action: str,
    target_type: str,
    target_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AdminAction:
    entry = AdminAction(
        admin_id=admin.id,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        details=details or {},
    )
    db.add(entry)
    await db.flush()
    logger.info(
        "Admin action %s by %s on %s %s", action, admin.id, target_type, entry.target_id
    )
    return entry


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar() or 0


class AdminService:
    # ── Dashboard ─────────────────────────────────────────────────────────

    async def dashboard(self, db: AsyncSession) -> DashboardResponse:
        stats = DashboardStats(
            total_users=await _count(db, select(func.count(User.id))),
            total_artists=await _count(db, select(func.count(ArtistProfile.id))),
            total_clients=await _count(
                db, select(func.count(User.id)).where(User.role == UserRole.CLIENT.value)
            ),
            pending_verifications=await _count(
                db,
                select(func.count(ArtistProfile.id)).where(
                    ArtistProfile.verification_status == VerificationStatus.PENDING.value
                ),
            ),
            total_reviews=await _count(db, select(func.count(Review.id))),
            hidden_reviews=await _count(
                db, select(func.count(Review.id)).where(Review.is_hidden.is_(True))
            ),
            total_flash=await _count(db, select(func.count(Flash.id))),
            pending_gallery_items=await _count(
                db, select(func.count(GalleryItem.id)).where(GalleryItem.is_approved.is_(False))
            ),
            total_studios=await _count(db, select(func.count(Studio.id))),
            studios_missing_coordinates=await _count(
                db, select(func.count(Studio.id)).where(pending_studios_filter())
            ),
        )
        recent = (
            await db.execute(
                select(AdminAction).order_by(AdminAction.created_at.desc()).limit(RECENT_ACTIONS)
            )
        ).scalars()
        return DashboardResponse(
            stats=stats,
            recent_actions=[AdminActionResponse.model_validate(a) for a in recent],
        )

    # ── Users ─────────────────────────────────────────────────────────────

    async def _user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def list_users(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        role: Optional[str] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> UserListResponse:
        query = select(User)
        if role:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )
        total = await _count(db, select(func.count()).select_from(query.subquery()))
        users = (
            await db.execute(
                query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
            )
        ).scalars()
        return UserListResponse(
            users=[UserResponse.model_validate(u) for u in users],
            pagination=PaginationMeta.build(page, limit, total),
        )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        return UserResponse.model_validate(await self._user(db, user_id))

    async def update_user(
        self, db: AsyncSession, admin: User, user_id: uuid.UUID, data: AdminUserUpdateRequest
    ) -> UserResponse:
        user = await self._user(db, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if user.id == admin.id and changes.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account", field="is_active")

        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        await record_action(db, admin, "UPDATE_USER", "user", user.id, changes)
        return UserResponse.model_validate(user)

    async def deactivate_user(
        self, db: AsyncSession, admin: User, user_id: uuid.UUID
    ) -> UserResponse:
        if user_id == admin.id:
            raise ValidationError("You cannot deactivate your own account")
        user = await self._user(db, user_id)
        user.is_active = False
        user.updated_at = utcnow()
        await record_action(db, admin, "DEACTIVATE_USER", "user", user.id, {"email": user.email})
        return UserResponse.model_validate(user)

    async def restore_user(self, db: AsyncSession, admin: User, user_id: uuid.UUID) -> UserResponse:
        user = await self._user(db, user_id)
        user.is_active = True
        user.updated_at = utcnow()
        await record_action(db, admin, "RESTORE_USER", "user", user.id, {"email": user.email})
        return UserResponse.model_validate(user)

    # ── Artists ───────────────────────────────────────────────────────────

    async def pending_artists(self, db: AsyncSession) -> List[ArtistSummary]:
        profiles = list(
            (
                await db.execute(
                    select(ArtistProfile)
                    .where(ArtistProfile.verification_status == VerificationStatus.PENDING.value)
                    .order_by(ArtistProfile.created_at.asc())
                )
            ).scalars()
        )
        summaries = await artist_service.summaries_for(db, profiles)
        return [summaries[p.id] for p in profiles]

    async def verify_artist(
        self, db: AsyncSession, admin: User, artist_id: uuid.UUID, data: VerifyArtistRequest
    ) -> ArtistSummary:
        profile = await artist_service.get_profile(db, artist_id)
        previous = profile.verification_status

        profile.verification_status = data.status
        profile.is_verified = data.status == VerificationStatus.APPROVED.value
        profile.verification_notes = data.notes
        profile.verified_at = utcnow()
        profile.verified_by = admin.id
        profile.updated_at = utcnow()

        await record_action(
            db,
            admin,
            "VERIFY_ARTIST",
            "artist",
            profile.id,
            {"from": previous, "to": data.status, "notes": data.notes},
        )
        await mail_service.send_artist_status_email(
            profile.user.email, profile.user.first_name, data.status
        )
        return (await artist_service.summaries_for(db, [profile]))[profile.id]

    async def feature_artist(
        self, db: AsyncSession, admin: User, artist_id: uuid.UUID, is_featured: bool
    ) -> ArtistSummary:
        profile = await artist_service.get_profile(db, artist_id)
        profile.is_featured = is_featured
        profile.updated_at = utcnow()
        await record_action(
            db, admin, "FEATURE_ARTIST", "artist", profile.id, {"is_featured": is_featured}
        )
        return (await artist_service.summaries_for(db, [profile]))[profile.id]

    # ── Reviews ───────────────────────────────────────────────────────────

    async def moderate_review(
        self,
        db: AsyncSession,
        admin: User,
        review_id: uuid.UUID,
        is_hidden: bool,
        reason: Optional[str],
    ) -> ReviewResponse:
        review = await review_service.moderate(db, review_id, is_hidden, reason)
        await record_action(
            db,
            admin,
            "MODERATE_REVIEW",
            "review",
            review.id,
            {"is_hidden": is_hidden, "reason": reason},
        )
        return review

    # ── Gallery ───────────────────────────────────────────────────────────

    async def moderate_gallery_item(
        self,
        db: AsyncSession,
        admin: User,
        item_id: uuid.UUID,
        is_approved: bool,
        is_featured: Optional[bool],
    ) -> GalleryItemResponse:
        item = await gallery_service.moderate(db, item_id, is_approved, is_featured)
        await record_action(
            db,
            admin,
            "MODERATE_GALLERY_ITEM",
            "gallery_item",
            item.id,
            {"is_approved": is_approved, "is_featured": is_featured},
        )
        return item

    # ── Studios ───────────────────────────────────────────────────────────

    async def verify_studio(
        self, db: AsyncSession, admin: User, studio_id: uuid.UUID, data: VerifyStudioRequest
    ) -> StudioResponse:
        studio = await studio_service.get_studio_model(db, studio_id)
        studio.is_verified = data.is_verified
        studio.verification_status = (
            VerificationStatus.APPROVED.value if data.is_verified else VerificationStatus.REJECTED.value
        )
        studio.updated_at = utcnow()
        await record_action(
            db,
            admin,
            "VERIFY_STUDIO",
            "studio",
            studio.id,
            {"is_verified": data.is_verified, "notes": data.notes},
        )
        return await studio_service.to_response(db, studio)

    async def feature_studio(
        self, db: AsyncSession, admin: User, studio_id: uuid.UUID, is_featured: bool
    ) -> StudioResponse:
        studio = await studio_service.get_studio_model(db, studio_id)
        studio.is_featured = is_featured
        studio.updated_at = utcnow()
        await record_action(
            db, admin, "FEATURE_STUDIO", "studio", studio.id, {"is_featured": is_featured}
        )
        return await studio_service.to_response(db, studio)

    # ── Catalog ───────────────────────────────────────────────────────────

    async def create_specialty(
        self, db: AsyncSession, admin: User, data: SpecialtyCreateRequest
    ) -> SpecialtyResponse:
        specialty = await catalog_service.create_specialty(db, data)
        await record_action(
            db, admin, "CREATE_SPECIALTY", "specialty", specialty.id, {"name": specialty.name}
        )
        return specialty

    async def create_service(
        self, db: AsyncSession, admin: User, data: ServiceCreateRequest
    ) -> ServiceResponse:
        service = await catalog_service.create_service(db, data)
        await record_action(
            db, admin, "CREATE_SERVICE", "service", service.id, {"name": service.name}
        )
        return service

    # ── Audit log ─────────────────────────────────────────────────────────

    async def list_actions(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        action: Optional[str] = None,
    ) -> AdminActionListResponse:
        query = select(AdminAction)
        if action:
            query = query.where(AdminAction.action == action.upper())
        total = await _count(db, select(func.count()).select_from(query.subquery()))
        actions = (
            await db.execute(
                query.order_by(AdminAction.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        ).scalars()
        return AdminActionListResponse(
            actions=[AdminActionResponse.model_validate(a) for a in actions],
            pagination=PaginationMeta.build(page, limit, total),
        )


admin_service = AdminService()
