"""
Tattooed World Backend — Review Routes
========================================

What:  Client reviews of artists under /api/reviews.

Rules:
    - Only CLIENT accounts write reviews, one per (author, artist).
    - The recipient must be an ARTIST user; any other account is a 400.
    - Hidden (moderated) reviews never appear here; admins see them under
      /api/admin/reviews.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user, require_roles
from tattooed_world.models import User, UserRole
from tattooed_world.schemas.common import ErrorResponse, MessageResponse
from tattooed_world.schemas.content import (
    ReviewCreateRequest,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdateRequest,
)
from tattooed_world.services.review_service import review_service

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


@router.get("", response_model=ReviewListResponse, summary="List visible reviews")
async def list_reviews(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    recipient_id: uuid.UUID | None = Query(
        default=None, alias="recipientId", description="User ID of the reviewed artist"
    ),
    rating: int | None = Query(default=None, ge=1, le=5),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewListResponse:
    return await review_service.list_reviews(
        db, page=page, limit=limit, recipient_id=recipient_id, rating=rating
    )


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Recipient is not an artist", "model": ErrorResponse},
        403: {"description": "Only clients can review", "model": ErrorResponse},
        404: {"description": "Recipient not found", "model": ErrorResponse},
        409: {"description": "Already reviewed this artist", "model": ErrorResponse},
    },
    summary="Review an artist",
)
async def create_review(
    data: ReviewCreateRequest,
    user: User = Depends(require_roles(UserRole.CLIENT.value)),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    return await review_service.create_review(db, user, data)


@router.put(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={403: {"description": "Not the author", "model": ErrorResponse}},
    summary="Edit own review",
)
async def update_review(
    review_id: uuid.UUID,
    data: ReviewUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewResponse:
    return await review_service.update_review(db, user, review_id, data)


@router.delete("/{review_id}", response_model=MessageResponse, summary="Delete a review")
async def delete_review(
    review_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await review_service.delete_review(db, user, review_id)
    return MessageResponse(message="Review deleted")
