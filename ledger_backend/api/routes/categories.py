"""Category RPCs — thin adapter from wire requests to the category repository.

Invariants:
    - No business rules here: values are built by core.category.build_* and
      core.category_values parsers; persistence rules live in the repository
    - Every failure leaves as a LedgerError and is rendered by api/error_handlers.py
    - Hard-delete RPCs are gated by require_admin (UNAUTHENTICATED otherwise)

Design Decisions:
    - One route per RPC, named after the RPC it serves
    - Static paths (by-code, by-slug, delete-batch) declared before /{category_id}
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from ledger_backend.api.dependencies import get_category_repository, require_admin
from ledger_backend.core.category import build_draft, build_filter, build_patch
from ledger_backend.core.category_values import CategoryCode, UrlSlug
from ledger_backend.core.domain_types import parse_category_id
from ledger_backend.core.repository_protocols import CategoryRepository
from ledger_backend.schemas.category import (
    CategoryCreateRequest, CategoryDeleteBatchRequest, CategoryListResponse,
    CategoryResponse, CategoryUpdateRequest, DeleteResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.post(
    "", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED,
)
async def category_create(
    body: CategoryCreateRequest,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Create a category."""
    category = await repo.create(build_draft(body.model_dump()))
    return CategoryResponse.from_domain(category)


@router.get("", response_model=CategoryListResponse)
async def categories_list(
    category_type: str | None = Query(None),
    is_active: bool | None = Query(None),
    limit: int | None = Query(None),
    cursor: str | None = Query(None),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """List categories newest first; pass next_cursor back to continue."""
    page = await repo.list(
        build_filter(category_type, is_active), repo.page_request(limit, cursor),
    )
    return CategoryListResponse(
        categories=[CategoryResponse.from_domain(c) for c in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/by-code/{code}", response_model=CategoryResponse)
async def category_get_by_code(
    code: str,
    active_only: bool = Query(False),
    repo: CategoryRepository = Depends(get_category_repository),
):
    category = await repo.get_by_code(CategoryCode.parse(code), active_only)
    return CategoryResponse.from_domain(category)


@router.get("/by-slug/{slug}", response_model=CategoryResponse)
async def category_get_by_slug(
    slug: str,
    active_only: bool = Query(False),
    repo: CategoryRepository = Depends(get_category_repository),
):
    category = await repo.get_by_slug(UrlSlug.parse(slug), active_only)
    return CategoryResponse.from_domain(category)


@router.post("/delete-batch", response_model=DeleteResponse)
async def categories_delete_batch(
    body: CategoryDeleteBatchRequest,
    _: None = Depends(require_admin),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Privileged: physically remove several categories in one transaction."""
    ids = [parse_category_id(raw, "ids") for raw in body.ids]
    rows_deleted = await repo.delete_many(ids)
    logger.warning(
        f"Hard-deleted {rows_deleted} categories",
        extra={"operation": "delete_many", "outcome": "ok"},
    )
    return DeleteResponse(rows_deleted=rows_deleted)


@router.get("/{category_id}", response_model=CategoryResponse)
async def category_get(
    category_id: str,
    active_only: bool = Query(False),
    repo: CategoryRepository = Depends(get_category_repository),
):
    category = await repo.get_by_id(parse_category_id(category_id), active_only)
    return CategoryResponse.from_domain(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def category_update(
    category_id: str,
    body: CategoryUpdateRequest,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Partial update. Omitted fields are untouched; null clears optional fields."""
    patch = build_patch(body.patch_fields(), body.expected_updated_on)
    category = await repo.update(parse_category_id(category_id), patch)
    return CategoryResponse.from_domain(category)


@router.post("/{category_id}/deactivate", response_model=CategoryResponse)
async def category_deactivate(
    category_id: str,
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Soft delete. Idempotent."""
    category = await repo.deactivate(parse_category_id(category_id))
    return CategoryResponse.from_domain(category)


@router.post("/{category_id}/activate", response_model=CategoryResponse)
async def category_activate(
    category_id: str,
    repo: CategoryRepository = Depends(get_category_repository),
):
    category = await repo.activate(parse_category_id(category_id))
    return CategoryResponse.from_domain(category)


@router.delete("/{category_id}", response_model=DeleteResponse)
async def category_delete(
    category_id: str,
    _: None = Depends(require_admin),
    repo: CategoryRepository = Depends(get_category_repository),
):
    """Privileged: physically remove one category. Missing ids delete 0 rows."""
    rows_deleted = await repo.delete(parse_category_id(category_id))
    return DeleteResponse(rows_deleted=rows_deleted)
