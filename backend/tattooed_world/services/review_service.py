"""
Tattooed World Backend — Review Service
=========================================

What:  Client reviews of artists: listing, writing, editing, deleting and
       admin moderation (hide/show).
Who:   routes/reviews.py and AdminService.

Rules:
    - Only CLIENT accounts write reviews (route dependency).
    - The recipient must be an artist account: unknown → 404, not an
      artist → 400.
    - One review per (author, recipient): a second attempt → 409.
    - Public listings never include hidden reviews; the admin listing does.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from tattooed_world.models import ARTIST_ROLES, Review, User
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.common import PaginationMeta
from tattooed_world.schemas.content import (
    ReviewCreateRequest,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdateRequest,
)
from tattooed_world.services.mail_service import mail_service

logger = logging.getLogger(__name__)


class ReviewService:
    async def get_review_model(self, db: AsyncSession, review_id: uuid.UUID) -> Review:
        review = await db.get(Review, review_id)
        if review is None:
            raise NotFoundError(resource="review", resource_id=str(review_id))
        return review

    async def list_reviews(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        recipient_id: Optional[uuid.UUID] = None,
        rating: Optional[int] = None,
        include_hidden: bool = False,
        hidden_only: bool = False,
    ) -> ReviewListResponse:
        query = select(Review)
        if hidden_only:
            query = query.where(Review.is_hidden.is_(True))
        elif not include_hidden:
            query = query.where(Review.is_hidden.is_(False))
        if recipient_id is not None:
            query = query.where(Review.recipient_id == recipient_id)
        if rating is not None:
            query = query.where(Review.rating == rating)

        total = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar() or 0
        reviews = (
            await db.execute(
                query.order_by(Review.created_at.desc()).offset((page - 1) * limit).limit(limit)
            )
        ).scalars()
        return ReviewListResponse(
            reviews=[ReviewResponse.model_validate(r) for r in reviews],
            pagination=PaginationMeta.build(page, limit, total),
        )

    async def create_review(
        self, db: AsyncSession, author: User, data: ReviewCreateRequest
    ) -> ReviewResponse:
        recipient = await db.get(User, data.recipient_id)
        if recipient is None or not recipient.is_active:
            raise NotFoundError(resource="recipient", resource_id=str(data.recipient_id))
        if recipient.role not in ARTIST_ROLES:
            raise ValidationError("Can only review artists", field="recipient_id")

        existing = (
            await db.execute(
                select(Review.id).where(
                    Review.author_id == author.id,
                    Review.recipient_id == recipient.id,
                )
            )
        ).first()
        if existing is not None:
            raise ConflictError("You have already reviewed this artist")

        review = Review(author_id=author.id, **data.model_dump())
        db.add(review)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("You have already reviewed this artist") from exc
        await db.refresh(review, attribute_names=["author"])
        logger.info("Review %s: %s → %s (%d stars)", review.id, author.id, recipient.id, review.rating)

        await mail_service.send_review_notification(
            recipient.email, recipient.first_name, review.rating
        )
        return ReviewResponse.model_validate(review)

    async def update_review(
        self, db: AsyncSession, user: User, review_id: uuid.UUID, data: ReviewUpdateRequest
    ) -> ReviewResponse:
        review = await self.get_review_model(db, review_id)
        if review.author_id != user.id:
            raise PermissionDeniedError("Not authorized to update this review")
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("rating", "images") and value is None:
                continue
            setattr(review, field, value)
        review.updated_at = utcnow()
        await db.flush()
        return ReviewResponse.model_validate(review)

    async def delete_review(self, db: AsyncSession, user: User, review_id: uuid.UUID) -> None:
        review = await self.get_review_model(db, review_id)
        if review.author_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Not authorized to delete this review")
        await db.delete(review)
        await db.flush()
        logger.info("Review %s deleted by %s", review_id, user.id)

    async def moderate(
        self, db: AsyncSession, review_id: uuid.UUID, is_hidden: bool, reason: Optional[str]
    ) -> ReviewResponse:
        review = await self.get_review_model(db, review_id)
        review.is_hidden = is_hidden
        review.moderation_reason = reason if is_hidden else None
        review.updated_at = utcnow()
        await db.flush()
        return ReviewResponse.model_validate(review)


review_service = ReviewService()
