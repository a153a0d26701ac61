"""Cursor Pagination — opaque keyset cursors over (created_on, id).

Invariants:
    - A cursor encodes the sort key of the last row returned, never an offset
    - decode_cursor(encode_cursor(ts, id)) == (ts, id)
    - Malformed cursors raise ValidationError(field="cursor", rule="format")

Design Decisions:
    - URL-safe base64 of a JSON pair: opaque to callers, trivially debuggable
      by operators, safe in query strings
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import UUID

from ledger_backend.core.errors import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class CursorKey:
    created_on: datetime
    id: UUID


@dataclass(frozen=True)
class PageRequest:
    limit: int
    cursor: CursorKey | None = None


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    next_cursor: str | None = None


def encode_cursor(created_on: datetime, row_id: UUID) -> str:
    payload = json.dumps(
        [created_on.astimezone(timezone.utc).isoformat(), row_id.hex],
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def decode_cursor(token: str) -> CursorKey:
    try:
        padded = token + "=" * (-len(token) % 4)
        created_raw, id_raw = json.loads(base64.urlsafe_b64decode(padded))
        created_on = datetime.fromisoformat(created_raw)
        if created_on.tzinfo is None:
            raise ValueError("cursor timestamp must be timezone-aware")
        return CursorKey(created_on=created_on, id=UUID(hex=id_raw))
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError, AttributeError):
        raise ValidationError("cursor", "format", "cursor is malformed") from None


def build_page_request(
    limit: int | None, cursor: str | None, default_limit: int, max_limit: int,
) -> PageRequest:
    """Validate page size and cursor. Defaults come from configuration."""
    size = default_limit if limit is None else limit
    if size < 1 or size > max_limit:
        raise ValidationError(
            "limit", "range", f"limit must be between 1 and {max_limit} (got {size})",
        )
    return PageRequest(
        limit=size,
        cursor=decode_cursor(cursor) if cursor else None,
    )
