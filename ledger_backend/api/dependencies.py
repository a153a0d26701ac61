"""Route Dependencies — repository wiring and the privileged-operation gate.

Invariants:
    - Repositories are constructed per request from the shared session manager
    - require_admin raises AuthenticationError; it never returns a falsy value

Design Decisions:
    - FastAPI Depends over module globals: tests swap get_db_manager/get_settings
      through app.dependency_overrides
"""

import secrets

from fastapi import Depends, Header

from ledger_backend.config import Settings, get_settings
from ledger_backend.core.errors import AuthenticationError
from ledger_backend.infrastructure.category_repository import SqlCategoryRepository
from ledger_backend.infrastructure.database import (
    DatabaseSessionManager, get_db_manager,
)


def get_category_repository(
    manager: DatabaseSessionManager = Depends(get_db_manager),
    settings: Settings = Depends(get_settings),
) -> SqlCategoryRepository:
    return SqlCategoryRepository(
        manager,
        default_page_size=settings.page_size_default,
        max_page_size=settings.page_size_max,
    )


def require_admin(
    x_admin_token: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Gate for hard-delete RPCs."""
    if settings.admin_token is None:
        raise AuthenticationError("privileged operations are disabled")
    if not x_admin_token:
        raise AuthenticationError("missing X-Admin-Token header")
    if not secrets.compare_digest(
        x_admin_token.encode(), settings.admin_token.get_secret_value().encode(),
    ):
        raise AuthenticationError("invalid admin token")
