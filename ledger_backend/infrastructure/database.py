"""Database Session Manager — async connection pool, transactions and store-error classification.

Invariants:
    - Every transaction rolls back on any exception, task cancellation included
    - Store exceptions leave this module only as LedgerError subclasses
      (unique violation -> ValidationError, timeout -> StoreTimeoutError, rest -> InternalError)
    - The engine's pool is the only shared mutable resource; no extra locking

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
      (ADR: no global import side effects)
    - expire_on_commit=False: returned rows stay readable after the transaction closes
    - Pool sizing only applied to server engines; SQLite uses SQLAlchemy's defaults
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from ledger_backend.core.errors import (
    InternalError, LedgerError, StoreTimeoutError, ValidationError,
)
from ledger_backend.db.base import Base
from ledger_backend.models.category import UNIQUE_CONSTRAINT_FIELDS

logger = logging.getLogger(__name__)

# column name in store messages -> domain field
_UNIQUE_COLUMN_FIELDS = {"code": "code", "name": "name", "url_slug": "slug"}
_SQLITE_UNIQUE_COLUMN = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")

# asyncio.TimeoutError is distinct from the builtin before Python 3.11
_TIMEOUT_ERRORS = (PoolTimeoutError, TimeoutError, asyncio.TimeoutError)


def unique_violation_field(exc: IntegrityError) -> str | None:
    """Field a unique violation refers to; None if not a unique violation.

    Returns "category" when the store reports a unique violation it does not
    attribute to a known constraint.
    """
    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()
    if "unique" not in lowered and "duplicate key" not in lowered:
        return None
    for constraint, field in UNIQUE_CONSTRAINT_FIELDS.items():
        if constraint in message:
            return field
    match = _SQLITE_UNIQUE_COLUMN.search(message)
    if match:
        return _UNIQUE_COLUMN_FIELDS.get(match.group(1), "category")
    return "category"


def classify_store_error(exc: Exception, operation: str) -> LedgerError:
    """Map a store/driver exception to the error taxonomy."""
    if isinstance(exc, IntegrityError):
        field = unique_violation_field(exc)
        if field is not None:
            return ValidationError(
                field, "unique", f"{field} already exists",
            )
        return InternalError("Integrity constraint violated", operation)
    if isinstance(exc, _TIMEOUT_ERRORS):
        return StoreTimeoutError(operation)
    if isinstance(exc, OperationalError):
        return InternalError("Connection or operational error", operation)
    if isinstance(exc, DBAPIError):
        return InternalError("Database driver error", operation)
    return InternalError("Database operation failed", operation)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        timeout_seconds: float = 30.0,
    ):
        url = make_url(database_url)
        self.backend = url.get_backend_name()
        engine_kwargs: dict = {"pool_pre_ping": True}
        if self.backend == "sqlite":
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine_kwargs["connect_args"] = {"timeout": timeout_seconds}
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=timeout_seconds,
                pool_recycle=3600,
                connect_args={
                    "timeout": timeout_seconds,
                    "command_timeout": timeout_seconds,
                },
            )
        self.engine = create_async_engine(url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def transaction(
        self, operation: str = "transaction",
    ) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: commit on success, roll back on any exception."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except LedgerError:
            raise
        except (SQLAlchemyError, TimeoutError, asyncio.TimeoutError) as e:
            error = classify_store_error(e, operation)
            log = logger.warning if isinstance(error, ValidationError) else logger.error
            log(
                "Store error during %s: %s", operation, e,
                extra={"operation": operation, "error_code": error.code},
            )
            raise error from e

    async def create_schema(self) -> None:
        """Create all tables (development / tests; production uses alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.transaction("health_check") as db:
                await db.execute(text("SELECT 1"))
            return True
        except LedgerError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


def get_db_manager() -> DatabaseSessionManager:
    """FastAPI dependency for the shared session manager."""
    if not db_manager:
        raise InternalError("Database not initialized", "get_db_manager")
    return db_manager
