"""Error Handlers — global exception handlers for the ledger API.

Invariants:
    - LedgerError → its kind's status and the uniform error envelope
    - RequestValidationError → INVALID_ARGUMENT with field-level details
    - Exception (catch-all) → opaque INTERNAL, never leaks internal details
    - Internal errors are logged with their traceback; caller errors at warning

Design Decisions:
    - Three-layer handler: domain (LedgerError), validation (Pydantic), catch-all (Exception)
    - Malformed wire shapes share the VALIDATION envelope with domain rule failures,
      so callers see a single INVALID_ARGUMENT contract
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ledger_backend.core.errors import (
    ErrorKind, HTTP_STATUS_BY_RPC, LedgerError, OPAQUE_INTERNAL_MESSAGE,
    RpcStatus, STATUS_BY_KIND,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_ledger_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_ledger_error_handler(app: FastAPI) -> None:

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        """Handle all ledger domain/infrastructure errors."""
        extra = {
            "error_code": exc.code,
            "path": request.url.path,
            "operation": exc.context.operation,
        }
        if exc.kind is ErrorKind.INTERNAL:
            logger.error(
                f"LedgerError: {exc.message}", extra=extra,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            logger.warning(f"LedgerError: {exc.message}", extra=extra)
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic request-shape errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=HTTP_STATUS_BY_RPC[RpcStatus.INVALID_ARGUMENT],
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
            exc_info=True,
        )
        return JSONResponse(
            status_code=HTTP_STATUS_BY_RPC[RpcStatus.INTERNAL],
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": OPAQUE_INTERNAL_MESSAGE,
                    "kind": ErrorKind.INTERNAL.value,
                    "status": RpcStatus.INTERNAL.value,
                    "details": {},
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build the INVALID_ARGUMENT envelope from Pydantic errors."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "kind": ErrorKind.VALIDATION.value,
            "status": STATUS_BY_KIND[ErrorKind.VALIDATION].value,
            "details": {
                "fields": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in exc.errors()
                ],
            },
        },
    }
