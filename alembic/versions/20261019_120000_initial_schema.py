"""initial_schema

Revision ID: 3b7e2d91c5a0
Revises:
Create Date: 2026-10-19 12:00:00

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b7e2d91c5a0"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Assets
    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("original_name", sa.String(), nullable=False),
        sa.Column("storage_path", sa.String(), nullable=False),
        sa.Column("original_storage_path", sa.String(), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("duration_seconds", sa.Float(), nullable=False),
        sa.Column("media_type", sa.String(), nullable=False),
        sa.Column("derived_from", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Shareable links
    op.create_table(
        "shareable_links",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["assets.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    # Matches ORM: token is unique + indexed
    op.create_index(
        op.f("ix_shareable_links_token"), "shareable_links", ["token"], unique=True
    )
    op.create_index(
        op.f("ix_shareable_links_asset_id"), "shareable_links", ["asset_id"], unique=False
    )
    op.create_index(
        op.f("ix_shareable_links_expires_at"),
        "shareable_links",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_shareable_links_expires_at"), table_name="shareable_links")
    op.drop_index(op.f("ix_shareable_links_asset_id"), table_name="shareable_links")
    op.drop_index(op.f("ix_shareable_links_token"), table_name="shareable_links")
    op.drop_table("shareable_links")
    op.drop_table("assets")
