"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse shape ``{"error", "detail"}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cryptosim.domain.errors import (
    AccessDeniedError,
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
    DomainError,
    EntityNotFoundError,
    InvalidUploadError,
    UpstreamServiceError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_401 = 401
HTTP_403 = 403
HTTP_404 = 404
HTTP_409 = 409
HTTP_413 = 413
HTTP_500 = 500
HTTP_502 = 502


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    headers = {"WWW-Authenticate": "Bearer"} if status_code == HTTP_401 else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(EntityNotFoundError)
    async def handle_not_found(_request: Request, exc: EntityNotFoundError) -> JSONResponse:
        """Handle missing records."""
        logger.info("%s not found: %s", exc.entity, exc.key)
        return _error_response(HTTP_404, f"{exc.entity} not found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(_request: Request, exc: ConflictError) -> JSONResponse:
        """Handle uniqueness violations."""
        logger.info("Conflict on %s", exc.field)
        return _error_response(HTTP_409, "Conflict", exc.message)

    @app.exception_handler(BusinessRuleError)
    async def handle_business_rule(_request: Request, exc: BusinessRuleError) -> JSONResponse:
        """Handle well-formed requests that break a business rule."""
        logger.info("Business rule violated: %s", exc.message)
        return _error_response(HTTP_400, "Bad request", exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(
        _request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle failed logins and invalid tokens."""
        logger.info("Authentication failed: %s", type(exc).__name__)
        return _error_response(HTTP_401, "Unauthorized", exc.message)

    @app.exception_handler(AccessDeniedError)
    async def handle_access_denied(_request: Request, exc: AccessDeniedError) -> JSONResponse:
        """Handle authenticated callers without the needed rights."""
        logger.warning("Access denied: %s", exc.message)
        return _error_response(HTTP_403, "Forbidden", exc.message)

    @app.exception_handler(InvalidUploadError)
    async def handle_invalid_upload(_request: Request, exc: InvalidUploadError) -> JSONResponse:
        """Handle rejected file uploads."""
        logger.info("Upload rejected: %s", exc.message)
        status = HTTP_413 if exc.too_large else HTTP_400
        return _error_response(status, "Invalid upload", exc.message)

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream(_request: Request, exc: UpstreamServiceError) -> JSONResponse:
        """Handle exchange API failures; upstream client errors pass through."""
        logger.error("Upstream failure from %s: %s", exc.service, exc.reason)
        status = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else HTTP_502
        return _error_response(status, f"{exc.service} API error", exc.message)

    @app.exception_handler(DomainError)
    async def handle_domain(_request: Request, exc: DomainError) -> JSONResponse:
        """Catch-all for unhandled domain errors."""
        logger.error("Unhandled domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
