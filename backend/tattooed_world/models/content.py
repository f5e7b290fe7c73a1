"""
Tattooed World Backend — Artist Content Models
================================================

What:  Flash designs, portfolio gallery items, reviews, artist messages and
       client favorites.

Constraints enforced by the database:
    reviews:   one review per (author, recipient); rating between 1 and 5
    favorites: one bookmark per (user, artist)
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tattooed_world.database import Base
from tattooed_world.models.artist import ArtistProfile
from tattooed_world.models.common import TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from tattooed_world.models.user import User


class Flash(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A ready-to-tattoo design sold at a fixed base price."""

    __tablename__ = "flash"

    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    base_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_repeatable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    artist: Mapped[ArtistProfile] = relationship(lazy="selectin")


class GalleryItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A finished tattoo in an artist's portfolio.

    Publicly listed only when approved by an admin, not hidden by its owner,
    and photographed with client consent.
    """

    __tablename__ = "gallery_items"

    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    before_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    after_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    tattoo_style: Mapped[str | None] = mapped_column(String(100), nullable=True)
    body_location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tattoo_size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    session_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    hours_spent: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    categories: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    client_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    client_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    client_age_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_before_after: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # ── Moderation ────────────────────────────────────────────────────────
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    artist: Mapped[ArtistProfile] = relationship(lazy="selectin")

    __table_args__ = (
        Index("ix_gallery_items_public", "is_approved", "is_hidden", "client_consent"),
        CheckConstraint("session_count >= 1", name="ck_gallery_session_count"),
    )


class Review(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "reviews"

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    author: Mapped[User] = relationship(foreign_keys=[author_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("author_id", "recipient_id", name="uq_review_author_recipient"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )


class ArtistMessage(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Time-limited announcement shown on an artist's card and/or profile."""

    __tablename__ = "artist_messages"

    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # 1 = normal, 2 = high, 3 = urgent
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    show_on_card: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_on_profile: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_artist_messages_artist_active", "artist_id", "is_active"),
        CheckConstraint("priority >= 1 AND priority <= 3", name="ck_message_priority_range"),
    )


class Favorite(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "favorites"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    artist: Mapped[ArtistProfile] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "artist_id", name="uq_favorite_user_artist"),
    )
