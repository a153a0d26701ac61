"""Boundary Protocols — the contract between the service adapter and persistence.

Invariants:
    - Core NEVER imports from infrastructure: dependency arrows point inward only
    - Repository methods accept validated domain values only (drafts, patches, ids)
    - Every failure surfaces as a LedgerError subclass (core/errors.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, tests can pass fakes without inheritance
    - Async methods: implementations do IO over a shared connection pool
"""

from typing import AsyncIterator, Protocol, Sequence

from ledger_backend.core.category import (
    Category, CategoryDraft, CategoryFilter, CategoryPatch,
)
from ledger_backend.core.category_values import CategoryCode, UrlSlug
from ledger_backend.core.domain_types import CategoryId
from ledger_backend.core.pagination import Page, PageRequest


class CategoryRepository(Protocol):
    """Contract for category persistence: implemented by infrastructure."""
    def page_request(self, limit: int | None, cursor: str | None) -> PageRequest: ...
    async def create(self, draft: CategoryDraft) -> Category: ...
    async def get_by_id(
        self, category_id: CategoryId, active_only: bool = False,
    ) -> Category: ...
    async def get_by_code(
        self, code: CategoryCode, active_only: bool = False,
    ) -> Category: ...
    async def get_by_slug(
        self, slug: UrlSlug, active_only: bool = False,
    ) -> Category: ...
    async def list(
        self, filters: CategoryFilter, page: PageRequest,
    ) -> Page[Category]: ...
    def iterate(
        self, filters: CategoryFilter, page_size: int,
    ) -> AsyncIterator[Category]: ...
    async def update(
        self, category_id: CategoryId, patch: CategoryPatch,
    ) -> Category: ...
    async def deactivate(self, category_id: CategoryId) -> Category: ...
    async def activate(self, category_id: CategoryId) -> Category: ...
    async def delete(self, category_id: CategoryId) -> int: ...
    async def delete_many(self, category_ids: Sequence[CategoryId]) -> int: ...
