"""create catalog tables: artworks, creators, artwork_creators

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "artworks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lon", sa.Float(), nullable=False),
        sa.Column("external_id", sa.String(length=200), nullable=True),
        sa.Column("source", sa.String(length=200), nullable=False),
        sa.Column("import_batch", sa.String(length=200), nullable=True),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("photos", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_artworks"),
    )
    op.create_index("ix_artworks_lat_lon", "artworks", ["lat", "lon"], unique=False)
    op.create_index("ix_artworks_external_id", "artworks", ["external_id"], unique=False)
    op.create_index("ix_artworks_created_at", "artworks", ["created_at"], unique=False)

    op.create_table(
        "creators",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("website", sa.String(length=2048), nullable=True),
        sa.Column("birth_date", sa.String(length=32), nullable=True),
        sa.Column("death_date", sa.String(length=32), nullable=True),
        sa.Column("external_id", sa.String(length=200), nullable=True),
        sa.Column("source", sa.String(length=200), nullable=False),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_creators"),
    )
    op.create_index("ix_creators_name", "creators", ["name"], unique=False)
    op.create_index("ix_creators_external_id", "creators", ["external_id"], unique=False)

    op.create_table(
        "artwork_creators",
        sa.Column("artwork_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("creator_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["artwork_id"],
            ["artworks.id"],
            name="fk_artwork_creators_artwork_id_artworks",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["creator_id"],
            ["creators.id"],
            name="fk_artwork_creators_creator_id_creators",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("artwork_id", "creator_id", name="pk_artwork_creators"),
    )
    op.create_index("ix_artwork_creators_creator_id", "artwork_creators", ["creator_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_artwork_creators_creator_id", table_name="artwork_creators")
    op.drop_table("artwork_creators")
    op.drop_index("ix_creators_external_id", table_name="creators")
    op.drop_index("ix_creators_name", table_name="creators")
    op.drop_table("creators")
    op.drop_index("ix_artworks_created_at", table_name="artworks")
    op.drop_index("ix_artworks_external_id", table_name="artworks")
    op.drop_index("ix_artworks_lat_lon", table_name="artworks")
    op.drop_table("artworks")
