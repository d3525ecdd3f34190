"""initial schema: users and album_reviews

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Hey future me - uq_album_reviews_user_album is the ON CONFLICT target of the
review upsert. Any later migration that rebuilds album_reviews (SQLite batch
mode does!) must keep it, or upserts turn into duplicate inserts.

rating_scale defaults to 'five_star' at the SQL level: rows copied in from the
old 0-5 store by hand get tagged legacy and are converted by
migrate_legacy_ratings() at the next startup. The ORM always writes 'percent'.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("spotify_id", sa.String(length=64), primary_key=True),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("spotify_access_token", sa.Text(), nullable=True),
        sa.Column("spotify_refresh_token", sa.Text(), nullable=True),
        sa.Column(
            "spotify_token_expires_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "album_reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_spotify_id", sa.String(length=64), nullable=False),
        sa.Column("album_id", sa.String(length=64), nullable=False),
        sa.Column("overall_rating", sa.Float(), nullable=False),
        sa.Column("base_overall_rating", sa.Float(), nullable=True),
        sa.Column("adjusted_overall_rating", sa.Float(), nullable=True),
        sa.Column("score_modifiers", sa.JSON(), nullable=True),
        sa.Column("song_ratings", sa.JSON(), nullable=False),
        sa.Column("writeup", sa.Text(), nullable=False, server_default=""),
        sa.Column("album_name", sa.String(length=512), nullable=True),
        sa.Column("album_artists", sa.JSON(), nullable=False),
        sa.Column("album_image", sa.Text(), nullable=True),
        sa.Column(
            "rating_scale",
            sa.String(length=16),
            nullable=False,
            server_default="five_star",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "user_spotify_id", "album_id", name="uq_album_reviews_user_album"
        ),
    )
    op.create_index(
        "ix_album_reviews_album_created", "album_reviews", ["album_id", "created_at"]
    )
    op.create_index(
        "ix_album_reviews_user_updated",
        "album_reviews",
        ["user_spotify_id", "updated_at"],
    )
    op.create_index("ix_album_reviews_created_at", "album_reviews", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_album_reviews_created_at", table_name="album_reviews")
    op.drop_index("ix_album_reviews_user_updated", table_name="album_reviews")
    op.drop_index("ix_album_reviews_album_created", table_name="album_reviews")
    op.drop_table("album_reviews")
    op.drop_table("users")
