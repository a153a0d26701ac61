"""Create categories — the category relation, its constraints and indexes.

Revision ID: 001_categories
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from ledger_backend.db.types import UTCDateTime

revision: str = "001_categories"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("url_slug", sa.String(100), nullable=True),
        sa.Column("category_type", sa.String(20), nullable=False),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("icon", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_on", UTCDateTime, nullable=False),
        sa.Column("updated_on", UTCDateTime, nullable=False),
        sa.UniqueConstraint("name", name="uq_categories_name"),
        sa.UniqueConstraint("url_slug", name="uq_categories_url_slug"),
        sa.CheckConstraint(
            "category_type IN ('asset', 'liability', 'income', 'expense', 'equity')",
            name="ck_categories_category_type",
        ),
        sa.CheckConstraint(
            "color IS NULL OR (length(color) = 7 AND substr(color, 1, 1) = '#')",
            name="ck_categories_color_format",
        ),
    )
    op.create_index(
        "ix_categories_created_on_id", "categories", ["created_on", "id"],
    )
    op.create_index(
        "uq_categories_code_lower", "categories",
        [sa.text("lower(code)")], unique=True,
    )


def downgrade() -> None:
    op.drop_index("uq_categories_code_lower", table_name="categories")
    op.drop_index("ix_categories_created_on_id", table_name="categories")
    op.drop_table("categories")
