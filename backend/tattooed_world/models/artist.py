"""
Tattooed World Backend — Artist Profile & Catalog Models
==========================================================

What:  `artist_profiles`, `specialties`, `services` and the two join tables
       linking artists to the catalog.
Who:   Used by the artist, admin, favorite and catalog services.

Verification lifecycle:
    PENDING → APPROVED (is_verified = True)
            → REJECTED
            → SUSPENDED
    Only APPROVED artists appear in the public directory and may publish flash.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tattooed_world.database import Base
from tattooed_world.models.common import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from tattooed_world.models.user import User


class VerificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


artist_specialties = Table(
    "artist_specialties",
    Base.metadata,
    Column("artist_id", Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("specialty_id", Uuid, ForeignKey("specialties.id", ondelete="CASCADE"), primary_key=True),
)

artist_services = Table(
    "artist_services",
    Base.metadata,
    Column("artist_id", Uuid, ForeignKey("artist_profiles.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", Uuid, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Specialty(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "specialties"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Service(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes


class ArtistProfile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "artist_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    studio_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    instagram: Mapped[str | None] = mapped_column(String(50), nullable=True)
    calendly_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # ── Location ──────────────────────────────────────────────────────────
    address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Pricing ───────────────────────────────────────────────────────────
    hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    # ── Verification ──────────────────────────────────────────────────────
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verification_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value
    )
    verification_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship(
        back_populates="artist_profile",
        foreign_keys=[user_id],
        lazy="selectin",
    )
    specialties: Mapped[List[Specialty]] = relationship(
        secondary=artist_specialties,
        lazy="selectin",
        order_by=Specialty.name,
    )
    services: Mapped[List[Service]] = relationship(
        secondary=artist_services,
        lazy="selectin",
        order_by=Service.name,
    )

    def __repr__(self) -> str:
        return (
            f"<ArtistProfile(id={self.id}, user_id={self.user_id}, "
            f"status='{self.verification_status}')>"
        )
