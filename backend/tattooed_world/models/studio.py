"""
Tattooed World Backend — Studio Models
========================================

What:  `studios` (physical locations) and `studio_artists` (membership).
Who:   Used by the studio service and by the geocoding batch processor.

Geocoding state (`geocode_status`):
    pending  → waiting for the batch processor (or never tried)
    ok       → latitude/longitude written from a geocode result
    failed   → last attempt failed; `geocode_error` holds the reason
    skipped  → no composable address; nothing to look up

Query Patterns:
    - Batch selection: WHERE is_active AND (latitude IS NULL OR longitude IS NULL)
      ORDER BY created_at → ix_studios_geocode_pending
    - Directory: WHERE is_active ORDER BY title
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tattooed_world.database import Base
from tattooed_world.models.artist import ArtistProfile
from tattooed_world.models.common import TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class GeocodeStatus(str, enum.Enum):
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


class StudioRole(str, enum.Enum):
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    ARTIST = "ARTIST"
    GUEST = "GUEST"


class Studio(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "studios"

    title: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(220), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instagram: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # ── Address ───────────────────────────────────────────────────────────
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Geocoding bookkeeping ─────────────────────────────────────────────
    geocode_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=GeocodeStatus.PENDING.value
    )
    geocode_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    geocoded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # ── Moderation ────────────────────────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verification_status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")

    claimed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_studios_geocode_pending", "is_active", "latitude", "longitude", "created_at"),
    )

    def mark_geocoded(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.geocode_status = GeocodeStatus.OK.value
        self.geocode_error = None
        self.geocoded_at = utcnow()
        self.updated_at = utcnow()

    def mark_geocode_failed(self, reason: str) -> None:
        self.geocode_status = GeocodeStatus.FAILED.value
        self.geocode_error = reason[:1000]
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<Studio(id={self.id}, slug='{self.slug}', geocode='{self.geocode_status}')>"


class StudioArtist(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "studio_artists"

    studio_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("studios.id", ondelete="CASCADE"), nullable=False
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=StudioRole.ARTIST.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    studio: Mapped[Studio] = relationship(lazy="selectin")
    artist: Mapped[ArtistProfile] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("studio_id", "artist_id", name="uq_studio_artist"),
    )
