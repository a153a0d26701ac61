"""Category Aggregate — entity, draft, patch and filter, built from wire input.

Invariants:
    - CategoryDraft/CategoryPatch/CategoryFilter only hold validated value types
    - A patch carries exactly the fields the caller supplied (presence matters)
    - code is immutable: a patch may repeat it verbatim but never change it
    - apply_patch is pure; it never touches timestamps (the repository owns them)

Design Decisions:
    - build_* functions are the single place wire dicts become domain values,
      so the service adapter stays free of rules
    - Patch stored as an ordered dict of field -> value instead of sentinel
      attributes: "absent" and "clear to None" stay distinguishable
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Mapping

from ledger_backend.core.category_values import (
    CategoryCode, CategoryName, Description, HexColor, Icon, UrlSlug,
)
from ledger_backend.core.domain_types import CategoryId, CategoryType
from ledger_backend.core.errors import ValidationError


@dataclass(frozen=True)
class Category:
    """A persisted category, as read back from the store."""
    id: CategoryId
    code: CategoryCode
    name: CategoryName
    category_type: CategoryType
    description: Description | None
    slug: UrlSlug | None
    color: HexColor | None
    icon: Icon | None
    is_active: bool
    created_on: datetime
    updated_on: datetime


@dataclass(frozen=True)
class CategoryDraft:
    """A fully validated category minus id and timestamps."""
    code: CategoryCode
    name: CategoryName
    category_type: CategoryType
    description: Description | None = None
    slug: UrlSlug | None = None
    color: HexColor | None = None
    icon: Icon | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CategoryPatch:
    """Partial update: only the fields present in `changes` are touched."""
    changes: dict[str, Any] = field(default_factory=dict)
    expected_updated_on: datetime | None = None

    def __contains__(self, name: str) -> bool:
        return name in self.changes

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.changes)


@dataclass(frozen=True)
class CategoryFilter:
    category_type: CategoryType | None = None
    is_active: bool | None = None


# ─── Construction from wire input ───────────────────────────────

PATCH_PARSERS: dict[str, Callable[[object], Any]] = {
    "code": CategoryCode.parse,
    "name": CategoryName.parse,
    "category_type": CategoryType.parse,
    "description": Description.parse_optional,
    "slug": UrlSlug.parse_optional,
    "color": HexColor.parse_optional,
    "icon": Icon.parse_optional,
}


def _parse_bool(raw: object, field_name: str) -> bool:
    if isinstance(raw, bool):
        return raw
    raise ValidationError(field_name, "type", f"{field_name} must be a boolean")


def build_draft(raw: Mapping[str, object]) -> CategoryDraft:
    """Validate a create request into a CategoryDraft."""
    is_active = raw.get("is_active")
    return CategoryDraft(
        code=CategoryCode.parse(raw.get("code")),
        name=CategoryName.parse(raw.get("name")),
        category_type=CategoryType.parse(raw.get("category_type")),
        description=Description.parse_optional(raw.get("description")),
        slug=UrlSlug.parse_optional(raw.get("slug")),
        color=HexColor.parse_optional(raw.get("color")),
        icon=Icon.parse_optional(raw.get("icon")),
        is_active=True if is_active is None else _parse_bool(is_active, "is_active"),
    )


def build_patch(
    raw: Mapping[str, object],
    expected_updated_on: datetime | None = None,
) -> CategoryPatch:
    """Validate every supplied field of an update request."""
    if expected_updated_on is not None and expected_updated_on.tzinfo is None:
        raise ValidationError(
            "expected_updated_on", "timezone",
            "expected_updated_on must include a timezone offset",
        )
    changes: dict[str, Any] = {}
    for name, value in raw.items():
        parser = PATCH_PARSERS.get(name)
        if parser is None:
            raise ValidationError(
                name, "unknown_field", f"'{name}' cannot be updated",
            )
        changes[name] = parser(value)
    return CategoryPatch(changes=changes, expected_updated_on=expected_updated_on)


def build_filter(
    category_type: object = None, is_active: bool | None = None,
) -> CategoryFilter:
    return CategoryFilter(
        category_type=(
            None if category_type is None else CategoryType.parse(category_type)
        ),
        is_active=is_active,
    )


# ─── Pure transitions ───────────────────────────────────────────

def apply_patch(current: Category, patch: CategoryPatch) -> Category:
    """Return `current` with the patch applied. Timestamps are left alone."""
    if "code" in patch and patch.changes["code"] != current.code:
        raise ValidationError(
            "code", "immutable",
            f"code is immutable once set (current '{current.code}')",
        )
    return replace(current, **patch.changes)


def changed_fields(before: Category, after: Category) -> list[str]:
    """Names of mutable fields whose values differ."""
    return [
        name for name in PATCH_PARSERS
        if getattr(before, name) != getattr(after, name)
    ]
