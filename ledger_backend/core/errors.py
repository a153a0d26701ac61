"""Error Taxonomy — closed set of error kinds with a deterministic status mapping.

Invariants:
    - Exactly one LedgerError subclass per ErrorKind (tagged variant)
    - STATUS_BY_KIND covers every ErrorKind: the RPC boundary never guesses
    - Store/driver exceptions never escape as-is; they are reclassified first
    - InternalError.to_response() never carries diagnostic detail

Design Decisions:
    - Exception subclasses over result objects: FastAPI handlers catch by type
      and the repository raises where the failure is detected (ADR: uniform error shape)
    - Kind-specific context stored as attributes (field/rule, resource/key,
      expected/actual) so handlers and tests can match without parsing messages
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """The five failure classes the RPC boundary knows about."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class RpcStatus(str, Enum):
    """Transport status names (gRPC canonical codes)."""
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    INTERNAL = "INTERNAL"


STATUS_BY_KIND: dict[ErrorKind, RpcStatus] = {
    ErrorKind.VALIDATION: RpcStatus.INVALID_ARGUMENT,
    ErrorKind.NOT_FOUND: RpcStatus.NOT_FOUND,
    ErrorKind.AUTHENTICATION: RpcStatus.UNAUTHENTICATED,
    ErrorKind.CONFLICT: RpcStatus.FAILED_PRECONDITION,
    ErrorKind.INTERNAL: RpcStatus.INTERNAL,
}

HTTP_STATUS_BY_RPC: dict[RpcStatus, int] = {
    RpcStatus.INVALID_ARGUMENT: 400,
    RpcStatus.NOT_FOUND: 404,
    RpcStatus.UNAUTHENTICATED: 401,
    RpcStatus.FAILED_PRECONDITION: 412,
    RpcStatus.INTERNAL: 500,
}

OPAQUE_INTERNAL_MESSAGE = "An internal error occurred"


@dataclass
class ErrorContext:
    """Observability context attached to every error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    category_id: str | None = None
    debug_info: dict[str, Any] | None = None


class LedgerError(Exception):
    """Base exception for all ledger backend errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context or ErrorContext()

    @property
    def status(self) -> RpcStatus:
        return STATUS_BY_KIND[self.kind]

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_RPC[self.status]

    def details(self) -> dict:
        """Kind-specific fields safe to show the caller."""
        return {}

    def public_message(self) -> str:
        return self.message

    def to_response(self) -> dict:
        """Convert to the wire error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.public_message(),
                "kind": self.kind.value,
                "status": self.status.value,
                "timestamp": self.context.timestamp.isoformat(),
                "details": self.details(),
            }
        }


# ─── Caller errors ──────────────────────────────────────────────

class ValidationError(LedgerError):
    """Input failed a domain rule or a uniqueness constraint."""
    kind = ErrorKind.VALIDATION

    def __init__(
        self, field: str, rule: str, message: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(message, "VALIDATION_ERROR", context)
        self.field = field
        self.rule = rule

    def details(self) -> dict:
        return {"field": self.field, "rule": self.rule}


class NotFoundError(LedgerError):
    """Point lookup found no (eligible) row."""
    kind = ErrorKind.NOT_FOUND

    def __init__(
        self, resource: str, key: str, value: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource} with {key} '{value}' not found",
            "RESOURCE_NOT_FOUND", context,
        )
        self.resource = resource
        self.key = key
        self.value = value

    def details(self) -> dict:
        return {"resource": self.resource, "key": self.key, "value": self.value}


class AuthenticationError(LedgerError):
    """Caller credential missing or invalid."""
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(f"Authentication required: {reason}", "UNAUTHENTICATED", context)
        self.reason = reason


class ConflictError(LedgerError):
    """Optimistic concurrency check failed."""
    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        resource_id: str,
        expected: datetime | None = None,
        actual: datetime | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Category '{resource_id}' was modified concurrently",
            "CONCURRENCY_CONFLICT", context,
        )
        self.resource_id = resource_id
        self.expected = expected
        self.actual = actual

    def details(self) -> dict:
        return {
            "resource_id": self.resource_id,
            "expected_updated_on": self.expected.isoformat() if self.expected else None,
            "actual_updated_on": self.actual.isoformat() if self.actual else None,
        }


# ─── Infrastructure errors ──────────────────────────────────────

class InternalError(LedgerError):
    """Unexpected store, I/O or serialization failure."""
    kind = ErrorKind.INTERNAL

    def __init__(
        self, message: str, operation: str,
        code: str = "INTERNAL_ERROR",
        context: ErrorContext | None = None,
    ):
        super().__init__(message, code, context)
        self.operation = operation

    def public_message(self) -> str:
        return OPAQUE_INTERNAL_MESSAGE


class StoreTimeoutError(InternalError):
    """Store did not answer within the configured timeout."""

    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store timed out during {operation}", operation,
            code="STORE_TIMEOUT", context=context,
        )
