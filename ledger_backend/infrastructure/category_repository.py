"""Category Repository — the only component that reads or writes `categories`.

Invariants:
    - Each public operation is exactly one transaction (DatabaseSessionManager.transaction)
    - code/name/slug are unique across active AND inactive rows
    - A unique violation lost to a concurrent writer is retried once, then raised
      as ValidationError, never InternalError
    - updated_on is written in the same UPDATE as the data change, guarded by a
      compare-and-swap on the previous updated_on; it strictly increases
    - No-op updates and repeated (de)activations perform no write at all

Design Decisions:
    - Pre-check before write: gives precise field attribution; the store's unique
      indexes remain the final arbiter under concurrency
    - Keyset pagination on (created_on DESC, id DESC): stable under concurrent inserts
    - Clock injected for tests; defaults to UTC now
"""

import functools
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Callable, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_backend.core.category import (
    Category, CategoryDraft, CategoryFilter, CategoryPatch,
    apply_patch, changed_fields,
)
from ledger_backend.core.category_values import (
    CategoryCode, CategoryName, Description, HexColor, Icon, UrlSlug,
)
from ledger_backend.core.domain_types import CategoryId, CategoryType
from ledger_backend.core.errors import (
    ConflictError, ErrorKind, LedgerError, NotFoundError, ValidationError,
)
from ledger_backend.core.pagination import (
    Page, PageRequest, build_page_request, decode_cursor, encode_cursor,
)
from ledger_backend.infrastructure.database import DatabaseSessionManager
from ledger_backend.models.category import CategoryRow

logger = logging.getLogger(__name__)

# domain field -> column
_COLUMNS = {
    "code": "code",
    "name": "name",
    "description": "description",
    "slug": "url_slug",
    "category_type": "category_type",
    "color": "color",
    "icon": "icon",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _advance(previous: datetime, now: datetime) -> datetime:
    """Next updated_on: now, but always strictly after `previous`."""
    return now if now > previous else previous + timedelta(microseconds=1)


def _to_column(value: object) -> object:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, CategoryType):
        return value.value
    return str(value)


def _optional(value_type, raw: str | None):
    return None if raw is None else value_type(raw)


def _to_domain(row: CategoryRow) -> Category:
    """Rows were validated on the way in; wrap without re-parsing."""
    return Category(
        id=CategoryId(row.id),
        code=CategoryCode(row.code),
        name=CategoryName(row.name),
        category_type=CategoryType(row.category_type),
        description=_optional(Description, row.description),
        slug=_optional(UrlSlug, row.url_slug),
        color=_optional(HexColor, row.color),
        icon=_optional(Icon, row.icon),
        is_active=row.is_active,
        created_on=row.created_on,
        updated_on=row.updated_on,
    )


class _UniqueRace(Exception):
    """Store rejected a write the pre-check had allowed."""

    def __init__(self, field: str):
        super().__init__(field)
        self.field = field


def _emit(operation: str, category_id: object, outcome: str, level: int = logging.INFO) -> None:
    logger.log(
        level, f"{operation} {outcome}",
        extra={
            "operation": operation,
            "category_id": str(category_id) if category_id is not None else None,
            "outcome": outcome,
        },
    )


def _observed(operation: str):
    """Emit one structured event per call: outcome is "ok" or the error code."""
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            hint = args[0] if args and isinstance(args[0], UUID) else None
            try:
                result = await fn(self, *args, **kwargs)
            except LedgerError as e:
                level = logging.ERROR if e.kind is ErrorKind.INTERNAL else logging.WARNING
                _emit(operation, hint, e.code, level)
                raise
            if isinstance(result, Category):
                hint = result.id
            _emit(operation, hint, "ok")
            return result
        return wrapper
    return decorator


class SqlCategoryRepository:
    """CategoryRepository over SQLAlchemy async sessions (SQLite or PostgreSQL)."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        default_page_size: int,
        max_page_size: int,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._db = db
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self._clock = clock

    def page_request(self, limit: int | None, cursor: str | None) -> PageRequest:
        return build_page_request(
            limit, cursor, self.default_page_size, self.max_page_size,
        )

    # ─── Create ─────────────────────────────────────────────────

    @_observed("create")
    async def create(self, draft: CategoryDraft) -> Category:
        return await self._with_race_retry(
            "create", lambda: self._insert(draft),
        )

    async def _insert(self, draft: CategoryDraft) -> Category:
        stage = "precheck"
        now = self._clock()
        try:
            async with self._db.transaction("create") as session:
                await self._ensure_unique(
                    session, code=draft.code, name=draft.name, slug=draft.slug,
                )
                stage = "write"
                row = CategoryRow(
                    code=draft.code.value,
                    name=draft.name.value,
                    description=_to_column(draft.description),
                    url_slug=_to_column(draft.slug),
                    category_type=draft.category_type.value,
                    color=_to_column(draft.color),
                    icon=_to_column(draft.icon),
                    is_active=draft.is_active,
                    created_on=now,
                    updated_on=now,
                )
                session.add(row)
                await session.flush()
                category = _to_domain(row)
        except ValidationError as e:
            if stage == "write" and e.rule == "unique":
                raise _UniqueRace(e.field) from e
            raise
        return category

    async def _with_race_retry(self, operation: str, attempt):
        """Run `attempt`; on a lost unique race re-run it once (re-validating)."""
        try:
            return await attempt()
        except _UniqueRace as race:
            logger.warning(
                f"{operation}: unique race on {race.field}, retrying once",
                extra={"operation": operation},
            )
        try:
            return await attempt()
        except _UniqueRace as race:
            raise ValidationError(
                race.field, "unique", f"{race.field} already exists",
            ) from race

    async def _ensure_unique(
        self,
        session: AsyncSession,
        code: CategoryCode | None = None,
        name: CategoryName | None = None,
        slug: UrlSlug | None = None,
        exclude_id: UUID | None = None,
    ) -> None:
        checks = []
        if code is not None:
            checks.append(("code", code, func.lower(CategoryRow.code) == code.casefold_key))
        if name is not None:
            checks.append(("name", name, CategoryRow.name == name.value))
        if slug is not None:
            checks.append(("slug", slug, CategoryRow.url_slug == slug.value))
        for field, value, condition in checks:
            stmt = select(CategoryRow.id).where(condition)
            if exclude_id is not None:
                stmt = stmt.where(CategoryRow.id != exclude_id)
            existing = (await session.execute(stmt.limit(1))).scalar_one_or_none()
            if existing is not None:
                raise ValidationError(
                    field, "unique", f"{field} '{value}' is already in use",
                )

    # ─── Read ───────────────────────────────────────────────────

    async def _get_one(
        self, operation: str, condition, key: str, value: object, active_only: bool,
    ) -> Category:
        async with self._db.transaction(operation) as session:
            row = (
                await session.execute(select(CategoryRow).where(condition))
            ).scalar_one_or_none()
            if row is None or (active_only and not row.is_active):
                raise NotFoundError("Category", key, str(value))
            return _to_domain(row)

    @_observed("get_by_id")
    async def get_by_id(
        self, category_id: CategoryId, active_only: bool = False,
    ) -> Category:
        return await self._get_one(
            "get_by_id", CategoryRow.id == category_id, "id", category_id, active_only,
        )

    @_observed("get_by_code")
    async def get_by_code(
        self, code: CategoryCode, active_only: bool = False,
    ) -> Category:
        return await self._get_one(
            "get_by_code", func.lower(CategoryRow.code) == code.casefold_key,
            "code", code, active_only,
        )

    @_observed("get_by_slug")
    async def get_by_slug(
        self, slug: UrlSlug, active_only: bool = False,
    ) -> Category:
        return await self._get_one(
            "get_by_slug", CategoryRow.url_slug == slug.value, "slug", slug, active_only,
        )

    @_observed("list")
    async def list(
        self, filters: CategoryFilter, page: PageRequest,
    ) -> Page[Category]:
        stmt = select(CategoryRow)
        if filters.category_type is not None:
            stmt = stmt.where(CategoryRow.category_type == filters.category_type.value)
        if filters.is_active is not None:
            stmt = stmt.where(CategoryRow.is_active == filters.is_active)
        if page.cursor is not None:
            stmt = stmt.where(or_(
                CategoryRow.created_on < page.cursor.created_on,
                and_(
                    CategoryRow.created_on == page.cursor.created_on,
                    CategoryRow.id < page.cursor.id,
                ),
            ))
        stmt = stmt.order_by(
            CategoryRow.created_on.desc(), CategoryRow.id.desc(),
        ).limit(page.limit + 1)

        async with self._db.transaction("list") as session:
            rows = (await session.execute(stmt)).scalars().all()

        items = [_to_domain(row) for row in rows[:page.limit]]
        next_cursor = None
        if len(rows) > page.limit:
            last = items[-1]
            next_cursor = encode_cursor(last.created_on, last.id)
        return Page(items=items, next_cursor=next_cursor)

    async def iterate(
        self, filters: CategoryFilter, page_size: int,
    ) -> AsyncIterator[Category]:
        """Lazily walk every matching row, one page per round-trip."""
        page = build_page_request(
            page_size, None, self.default_page_size, self.max_page_size,
        )
        while True:
            result = await self.list(filters, page)
            for category in result.items:
                yield category
            if result.next_cursor is None:
                return
            page = PageRequest(limit=page.limit, cursor=decode_cursor(result.next_cursor))

    # ─── Update ─────────────────────────────────────────────────

    @_observed("update")
    async def update(
        self, category_id: CategoryId, patch: CategoryPatch,
    ) -> Category:
        return await self._with_race_retry(
            "update", lambda: self._apply_update(category_id, patch),
        )

    async def _apply_update(
        self, category_id: CategoryId, patch: CategoryPatch,
    ) -> Category:
        stage = "precheck"
        try:
            async with self._db.transaction("update") as session:
                current = await self._load(session, category_id)
                if (
                    patch.expected_updated_on is not None
                    and patch.expected_updated_on != current.updated_on
                ):
                    raise ConflictError(
                        str(category_id), patch.expected_updated_on, current.updated_on,
                    )
                target = apply_patch(current, patch)
                changed = changed_fields(current, target)
                if not changed:
                    logger.debug(
                        "update is a no-op", extra={"category_id": str(category_id)},
                    )
                    return current
                await self._ensure_unique(
                    session,
                    name=target.name if "name" in changed else None,
                    slug=target.slug if "slug" in changed and target.slug else None,
                    exclude_id=category_id,
                )
                stage = "write"
                values = {_COLUMNS[f]: _to_column(getattr(target, f)) for f in changed}
                return await self._compare_and_swap(session, current, target, values)
        except ValidationError as e:
            if stage == "write" and e.rule == "unique":
                raise _UniqueRace(e.field) from e
            raise

    async def _load(self, session: AsyncSession, category_id: CategoryId) -> Category:
        row = (
            await session.execute(
                select(CategoryRow)
                .where(CategoryRow.id == category_id)
                .execution_options(populate_existing=True),
            )
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError("Category", "id", str(category_id))
        return _to_domain(row)

    async def _compare_and_swap(
        self,
        session: AsyncSession,
        current: Category,
        target: Category,
        values: dict,
    ) -> Category:
        """Write `values` + new updated_on iff nobody changed the row since `current`."""
        updated_on = _advance(current.updated_on, self._clock())
        result = await session.execute(
            update(CategoryRow)
            .where(
                CategoryRow.id == current.id,
                CategoryRow.updated_on == current.updated_on,
            )
            .values(**values, updated_on=updated_on)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            raise ConflictError(str(current.id), current.updated_on)
        return replace(target, updated_on=updated_on)

    # ─── Soft delete ────────────────────────────────────────────

    @_observed("deactivate")
    async def deactivate(self, category_id: CategoryId) -> Category:
        return await self._set_active(category_id, False)

    @_observed("activate")
    async def activate(self, category_id: CategoryId) -> Category:
        return await self._set_active(category_id, True)

    async def _set_active(self, category_id: CategoryId, active: bool) -> Category:
        operation = "activate" if active else "deactivate"
        async with self._db.transaction(operation) as session:
            current = await self._load(session, category_id)
            if current.is_active == active:
                return current
            target = replace(current, is_active=active)
            try:
                return await self._compare_and_swap(
                    session, current, target, {"is_active": active},
                )
            except ConflictError:
                latest = await self._load(session, category_id)
                if latest.is_active == active:
                    return latest
                raise

    # ─── Hard delete (privileged) ───────────────────────────────

    @_observed("delete")
    async def delete(self, category_id: CategoryId) -> int:
        async with self._db.transaction("delete") as session:
            result = await session.execute(
                delete(CategoryRow).where(CategoryRow.id == category_id),
            )
            return result.rowcount

    @_observed("delete_many")
    async def delete_many(self, category_ids: Sequence[CategoryId]) -> int:
        if not category_ids:
            return 0
        async with self._db.transaction("delete_many") as session:
            result = await session.execute(
                delete(CategoryRow).where(CategoryRow.id.in_(list(category_ids))),
            )
            return result.rowcount
