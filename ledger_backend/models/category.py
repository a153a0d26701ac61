"""Category ORM — the `categories` relation and its store-level constraints.

Invariants:
    - id is a UUID primary key assigned by the application (uuid4)
    - lower(code) is unique: case-insensitive business key
    - name and url_slug are unique across active and inactive rows
    - category_type is one of the five literals (CHECK)
    - color is NULL or '#' + 6 chars (CHECK); hex digits enforced by HexColor
    - created_on/updated_on are tz-aware UTC (UTCDateTime)

Design Decisions:
    - Constraint names are explicit so store rejections can be attributed to a field
    - No trigger for updated_on: the repository advances it in the same UPDATE
      statement as the data change (works on SQLite and PostgreSQL alike)
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, CheckConstraint, Index, String, Text, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from ledger_backend.core.category_values import (
    CODE_MAX_LENGTH, ICON_MAX_LENGTH, NAME_MAX_LENGTH, SLUG_MAX_LENGTH,
)
from ledger_backend.core.domain_types import CategoryType
from ledger_backend.db.base import Base
from ledger_backend.db.types import UTCDateTime

CATEGORY_TYPE_LITERALS = ", ".join(f"'{t.value}'" for t in CategoryType)

# constraint name -> domain field it protects
UNIQUE_CONSTRAINT_FIELDS = {
    "uq_categories_code_lower": "code",
    "uq_categories_name": "name",
    "uq_categories_url_slug": "slug",
}


class CategoryRow(Base):
    """Persisted category row."""
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("name", name="uq_categories_name"),
        UniqueConstraint("url_slug", name="uq_categories_url_slug"),
        CheckConstraint(
            f"category_type IN ({CATEGORY_TYPE_LITERALS})",
            name="ck_categories_category_type",
        ),
        CheckConstraint(
            "color IS NULL OR (length(color) = 7 AND substr(color, 1, 1) = '#')",
            name="ck_categories_color_format",
        ),
        Index(
            "ix_categories_created_on_id", "created_on", "id",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH), nullable=False)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url_slug: Mapped[str | None] = mapped_column(
        String(SLUG_MAX_LENGTH), nullable=True,
    )
    category_type: Mapped[str] = mapped_column(String(20), nullable=False)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    icon: Mapped[str | None] = mapped_column(
        String(ICON_MAX_LENGTH), nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    created_on: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_on: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


# Functional unique index: case-insensitive code
Index(
    "uq_categories_code_lower",
    func.lower(CategoryRow.code),
    unique=True,
)
