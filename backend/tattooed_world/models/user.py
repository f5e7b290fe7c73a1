"""
Tattooed World Backend — User Model
=====================================

What:  ORM model for the `users` table: every account (client, artist, admin).
Who:   Used by the auth service, the auth dependencies and the admin service.

Role model:
    CLIENT        → browses, favorites artists, writes reviews
    ARTIST        → owns an ArtistProfile, flash, messages
    ARTIST_ADMIN  → artist with administrator rights
    ADMIN         → full moderation rights

One-time tokens (password reset, e-mail verification) are stored as SHA-256
digests together with their expiry; the raw token only ever leaves the
server inside an e-mail link.
"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tattooed_world.database import Base
from tattooed_world.models.common import TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from tattooed_world.models.artist import ArtistProfile


class UserRole(str, enum.Enum):
    CLIENT = "CLIENT"
    ARTIST = "ARTIST"
    ARTIST_ADMIN = "ARTIST_ADMIN"
    ADMIN = "ADMIN"


ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.ARTIST_ADMIN.value)
ARTIST_ROLES = (UserRole.ARTIST.value, UserRole.ARTIST_ADMIN.value)


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.CLIENT.value,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # ── E-mail verification ───────────────────────────────────────────────
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_verification_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    email_verification_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Password reset ────────────────────────────────────────────────────
    reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    reset_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    artist_profile: Mapped["ArtistProfile | None"] = relationship(
        back_populates="user",
        uselist=False,
        lazy="selectin",
        foreign_keys="ArtistProfile.user_id",
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
