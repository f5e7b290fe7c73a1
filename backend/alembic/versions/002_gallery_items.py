"""Artist portfolio gallery

Revision ID: 002
Revises: 001
Create Date: 2026-10-20 00:00:00.000000+00:00

What:  Adds `gallery_items`, the finished-work portfolio of each artist.
       Images are stored as URLs; moderation flags default to unapproved.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "gallery_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("artist_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=False),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("before_image_url", sa.String(500), nullable=True),
        sa.Column("after_image_url", sa.String(500), nullable=True),
        sa.Column("tattoo_style", sa.String(100), nullable=True),
        sa.Column("body_location", sa.String(100), nullable=True),
        sa.Column("tattoo_size", sa.String(50), nullable=True),
        sa.Column("color_type", sa.String(50), nullable=True),
        sa.Column("session_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("hours_spent", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("client_consent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("client_anonymous", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("client_age_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_before_after", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("approved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["artist_id"], ["artist_profiles.id"], ondelete="CASCADE"),
        sa.CheckConstraint("session_count >= 1", name="ck_gallery_session_count"),
    )
    op.create_index("ix_gallery_items_artist_id", "gallery_items", ["artist_id"])
    op.create_index(
        "ix_gallery_items_public",
        "gallery_items",
        ["is_approved", "is_hidden", "client_consent"],
    )


def downgrade() -> None:
    op.drop_index("ix_gallery_items_public", table_name="gallery_items")
    op.drop_index("ix_gallery_items_artist_id", table_name="gallery_items")
    op.drop_table("gallery_items")
