"""
Centralized error handlers for FastAPI.

Maps brokerage domain errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses share the ``{"error", "detail"}`` shape.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portal.domain.brokerage.errors import (
    AccountDisabledError,
    AccountOwnershipError,
    AuthenticationRequiredError,
    BrokerageDomainError,
    DuplicateAdminError,
    EmailAlreadyRegisteredError,
    EntityNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidCredentialsError,
    InvalidStatusTransitionError,
    PermissionDeniedError,
    SchemaBootstrapError,
    ValidationError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_401 = 401
HTTP_403 = 403
HTTP_404 = 404
HTTP_409 = 409
HTTP_500 = 500

# Business-rule failures that are the caller's to fix.
BAD_REQUEST_ERRORS = (
    ValidationError,
    InvalidAmountError,
    InsufficientBalanceError,
    AccountOwnershipError,
    AccountDisabledError,
    InvalidStatusTransitionError,
)


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(AuthenticationRequiredError)
    async def handle_authentication_required(
        _request: Request, exc: AuthenticationRequiredError
    ) -> JSONResponse:
        return _error_response(HTTP_401, "Not authenticated", exc.message)

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(
        _request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        """Handle failed sign-ins without revealing which part was wrong."""
        logger.warning("Failed sign-in (%s)", exc.login_field)
        return _error_response(HTTP_401, exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(
        _request: Request, exc: PermissionDeniedError
    ) -> JSONResponse:
        logger.warning("Permission denied: requires %s", exc.required_role)
        return _error_response(HTTP_403, "Forbidden", exc.message)

    @app.exception_handler(EntityNotFoundError)
    async def handle_not_found(_request: Request, exc: EntityNotFoundError) -> JSONResponse:
        """Handle missing records and records outside the caller's reach."""
        logger.info("Not found: %s %s", exc.entity, exc.entity_id)
        return _error_response(HTTP_404, f"{exc.entity} not found")

    @app.exception_handler(EmailAlreadyRegisteredError)
    async def handle_email_taken(
        _request: Request, exc: EmailAlreadyRegisteredError
    ) -> JSONResponse:
        return _error_response(HTTP_409, "Email already registered")

    @app.exception_handler(DuplicateAdminError)
    async def handle_duplicate_admin(
        _request: Request, exc: DuplicateAdminError
    ) -> JSONResponse:
        return _error_response(HTTP_409, f"Admin {exc.field_name} already exists")

    for error_class in BAD_REQUEST_ERRORS:

        @app.exception_handler(error_class)
        async def handle_bad_request(_request: Request, exc: BrokerageDomainError) -> JSONResponse:
            """Handle rejected business rules."""
            logger.info("Rejected request: %s", exc.message)
            return _error_response(HTTP_400, exc.message)

    @app.exception_handler(SchemaBootstrapError)
    async def handle_schema_bootstrap(
        _request: Request, exc: SchemaBootstrapError
    ) -> JSONResponse:
        logger.error("Schema bootstrap error: %s", exc.reason)
        return _error_response(HTTP_500, "Database initialization failed")

    @app.exception_handler(BrokerageDomainError)
    async def handle_brokerage_domain(
        _request: Request, exc: BrokerageDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled brokerage domain errors."""
        logger.error("Unhandled brokerage domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
