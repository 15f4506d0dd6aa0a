"""FastAPI middleware and exception handlers.

Stack:
    1. RequestIDMiddleware - injects X-Request-ID into every request/response
    2. Exception handlers - domain exceptions -> {"error": CODE, "message": ...}
    3. CORSMiddleware - origins from CORS_ORIGINS
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from freelance_escrow.domain.exceptions import (
    ConcurrentModificationError,
    EscrowJobError,
    ForbiddenError,
    InvalidTransitionError,
    JobNotFoundError,
    MisconfiguredError,
    StorageError,
    ValidationError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

    from freelance_escrow.config import Settings

logger = structlog.get_logger(__name__)

STATUS_CODES: dict[type[EscrowJobError], int] = {
    ValidationError: 400,
    ForbiddenError: 403,
    JobNotFoundError: 404,
    InvalidTransitionError: 409,
    ConcurrentModificationError: 409,
    StorageError: 500,
    MisconfiguredError: 503,
}


# ---------------------------------------------------------------------------
# 1. Request ID Middleware
# ---------------------------------------------------------------------------
class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject a unique X-Request-ID into every request for log correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Use client-provided ID or generate one
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# 2. Exception handlers
# ---------------------------------------------------------------------------
def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


async def handle_domain_error(request: Request, exc: EscrowJobError) -> JSONResponse:
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
        400,
    )
    if isinstance(exc, InvalidTransitionError):
        logger.warning(
            "state_machine.invalid_transition",
            current=exc.current_state,
            action=exc.action,
            attempted=exc.attempted_state,
        )
    elif status_code >= 500:
        logger.error("domain.error", error=exc.message, code=exc.code, path=request.url.path)
    else:
        logger.warning("domain.rejected", error=exc.message, code=exc.code)
    return _error(status_code, exc.code, exc.message)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    logger.warning("request.invalid", path=request.url.path, problems=problems)
    return _error(400, "VALIDATION_ERROR", problems or "Invalid request")


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled.error", error=str(exc), path=request.url.path)
    return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")


# ---------------------------------------------------------------------------
# Setup function
# ---------------------------------------------------------------------------
def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register middleware and exception handlers on the FastAPI application.

    Middleware is applied bottom-up, so the last added runs first.
    """
    app.add_exception_handler(EscrowJobError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    # Request ID (runs last = outermost)
    app.add_middleware(RequestIDMiddleware)
