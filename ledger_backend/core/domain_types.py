"""Domain Types — identity and enumerated types for the category ledger.

Invariants:
    - CategoryId wraps a UUID: never pass bare strings as ids into the repository
    - CategoryType has exactly the five accounting literals
    - CategoryType.parse is case-sensitive and never falls back to a default

Design Decisions:
    - NewType for ids: zero runtime cost, full type-checker support
    - str Enum for CategoryType: serializes to JSON and binds to a TEXT column as-is
"""

from enum import Enum
from typing import NewType
from uuid import UUID

from ledger_backend.core.errors import ValidationError


# ─── Identity Types ──────────────────────────────────────────────

CategoryId = NewType("CategoryId", UUID)


def parse_category_id(raw: str, field: str = "id") -> CategoryId:
    """Parse a wire id into a CategoryId."""
    try:
        return CategoryId(UUID(str(raw).strip()))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(
            field, "uuid", f"{field} must be a valid UUID, got '{raw}'",
        ) from None


# ─── Enums ───────────────────────────────────────────────────────

class CategoryType(str, Enum):
    """The fundamental accounting categories (Assets = Liabilities + Equity)."""
    ASSET = "asset"
    LIABILITY = "liability"
    INCOME = "income"
    EXPENSE = "expense"
    EQUITY = "equity"

    @classmethod
    def all(cls) -> tuple["CategoryType", ...]:
        return tuple(cls)

    @classmethod
    def parse(cls, raw: object, field: str = "category_type") -> "CategoryType":
        if isinstance(raw, cls):
            return raw
        for member in cls:
            if raw == member.value:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(
            field, "choice",
            f"{field} must be one of: {allowed} (got '{raw}')",
        )
