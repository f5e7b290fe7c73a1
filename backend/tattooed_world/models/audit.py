"""
Tattooed World Backend — Admin Audit & Geocode Cache Models
=============================================================

What:  `admin_actions` (append-only moderation log) and `geocode_cache`
       (address key → coordinates, the persistent level of the geocode cache).
"""

import uuid
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tattooed_world.database import Base
from tattooed_world.models.common import TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from tattooed_world.models.user import User


class AdminAction(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "admin_actions"

    admin_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # e.g. VERIFY_ARTIST, FEATURE_ARTIST, UPDATE_USER, MODERATE_REVIEW, CLEAR_GEOCODE_CACHE
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    target_type: Mapped[str] = mapped_column(String(30), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    admin: Mapped[User | None] = relationship(lazy="selectin")

    __table_args__ = (
        Index("ix_admin_actions_created_at", "created_at"),
    )


class GeocodeCache(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "geocode_cache"

    # "geocode:<normalized address>"
    address_key: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    original_address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    formatted_address: Mapped[str | None] = mapped_column(Text, nullable=True)
