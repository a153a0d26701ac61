"""Ledger Backend API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map LedgerError → structured JSON responses
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Schema auto-creation is a setting: alembic owns migrations in deployed stores
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ledger_backend import __version__
from ledger_backend.api.error_handlers import register_error_handlers
from ledger_backend.api.routes import categories, health
from ledger_backend.config import get_settings
from ledger_backend.infrastructure.database import init_db
from ledger_backend.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        timeout_seconds=settings.database_timeout_seconds,
    )
    if settings.database_auto_create:
        await manager.create_schema()
    logger.info("Ledger backend started")
    yield
    logger.info("Ledger backend shutting down")
    await manager.dispose()


app = FastAPI(
    title="Ledger Backend", version=__version__, lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(categories.router)
