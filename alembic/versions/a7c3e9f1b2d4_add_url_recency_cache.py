"""add url_recency_cache table

Revision ID: a7c3e9f1b2d4
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "a7c3e9f1b2d4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "url_recency_cache",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("publication_date", sa.Date(), nullable=True),
        sa.Column("recency_score", sa.Integer(), nullable=True),
        sa.Column("extraction_method", sa.String(30), nullable=False),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("url", name="url_recency_cache_url_key"),
    )
    op.create_index("ix_url_recency_cache_domain", "url_recency_cache", ["domain"])


def downgrade() -> None:
    op.drop_index("ix_url_recency_cache_domain", table_name="url_recency_cache")
    op.drop_table("url_recency_cache")
