"""Category Schemas — wire shapes for the category RPCs.

Invariants:
    - Request models declare types only; business rules live in core/category_values.py
    - CategoryUpdateRequest field presence (model_fields_set) defines the patch
    - Responses are built from core Category values, never from ORM rows

Design Decisions:
    - extra="forbid" on requests: unknown wire fields are a shape error, rendered
      as INVALID_ARGUMENT by the RequestValidationError handler
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ledger_backend.core.category import Category


class CategoryCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str | None = None
    name: str | None = None
    category_type: str | None = None
    description: str | None = None
    slug: str | None = None
    color: str | None = None
    icon: str | None = None
    is_active: bool | None = None


class CategoryUpdateRequest(BaseModel):
    """Partial update: omitted fields are untouched, explicit null clears."""
    model_config = ConfigDict(extra="forbid")

    code: str | None = None
    name: str | None = None
    category_type: str | None = None
    description: str | None = None
    slug: str | None = None
    color: str | None = None
    icon: str | None = None
    expected_updated_on: datetime | None = None

    def patch_fields(self) -> dict[str, object]:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "expected_updated_on"
        }


class CategoryDeleteBatchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ids: list[str]


class CategoryResponse(BaseModel):
    id: UUID
    code: str
    name: str
    description: str | None = None
    slug: str | None = None
    category_type: str
    color: str | None = None
    icon: str | None = None
    is_active: bool
    created_on: datetime
    updated_on: datetime

    @classmethod
    def from_domain(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            code=category.code.value,
            name=category.name.value,
            description=category.description.value if category.description else None,
            slug=category.slug.value if category.slug else None,
            category_type=category.category_type.value,
            color=category.color.value if category.color else None,
            icon=category.icon.value if category.icon else None,
            is_active=category.is_active,
            created_on=category.created_on,
            updated_on=category.updated_on,
        )


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]
    next_cursor: str | None = None


class DeleteResponse(BaseModel):
    rows_deleted: int
