"""Custom exception handlers for consistent error responses.

Every failure leaves the API as the same envelope:

    {"error": {"code": "...", "message": "...", "details": {...}}}

The domain exceptions defined here are also raised by the Python client
(`desicargo.client`) when it decodes an error envelope, so callers handle
one taxonomy regardless of which side detected the problem.
"""

import logging
import traceback
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class DesiCargoException(Exception):
    """Base exception for DesiCargo application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class InvalidIdentifierError(DesiCargoException):
    """A reference id is not a well-formed UUID. Raised before any store access."""

    def __init__(self, message: str = "Invalid ID format"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="INVALID_IDENTIFIER",
        )


class PersistenceError(DesiCargoException):
    """The store rejected a read or write (including referential-integrity rejections)."""

    def __init__(self, message: str, error_code: str = "PERSISTENCE_ERROR"):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
        )


class DomainValidationError(DesiCargoException):
    """A domain rule was violated before persistence."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class AuthError(DesiCargoException):
    """Identity rejection on sign-in, sign-up, verification or password reset."""

    def __init__(self, message: str = "Authentication failed", error_code: str = "AUTH_ERROR"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=error_code,
        )


class BusinessLogicError(DesiCargoException):
    """Exception for business logic violations."""

    def __init__(self, message: str, error_code: str = "BUSINESS_LOGIC_ERROR"):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
        )


class ResourceNotFoundError(DesiCargoException):
    """Exception for resources not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class PermissionDeniedError(DesiCargoException):
    """Exception for permission denied."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="PERMISSION_DENIED",
        )


# error_code -> exception class, used by the client to rebuild typed errors
ERROR_CODE_MAP: dict[str, type[DesiCargoException]] = {
    "INVALID_IDENTIFIER": InvalidIdentifierError,
    "PERSISTENCE_ERROR": PersistenceError,
    "REFERENTIAL_INTEGRITY": PersistenceError,
    "DUPLICATE_RECORD": PersistenceError,
    "VALIDATION_ERROR": DomainValidationError,
    "AUTH_ERROR": AuthError,
    "EMAIL_NOT_VERIFIED": AuthError,
    "BUSINESS_LOGIC_ERROR": BusinessLogicError,
    "INVALID_TRANSITION": BusinessLogicError,
    "RESOURCE_NOT_FOUND": ResourceNotFoundError,
    "PERMISSION_DENIED": PermissionDeniedError,
}


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Create standardized error response."""
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
    )


async def desicargo_exception_handler(
    request: Request,
    exc: DesiCargoException,
) -> JSONResponse:
    """Handle custom DesiCargo exceptions."""
    logger.warning(
        f"DesiCargo exception: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
    )


def _request_context(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    """Handle FastAPI HTTP exceptions (auth dependencies, unknown routes)."""
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}", extra=_request_context(request))

    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """Request body or query failed schema validation.

    Field paths drop the leading location ("body", "query") so a client can
    match them against its own form fields.
    """
    logger.warning(f"Validation error on {request.url.path}", extra=_request_context(request))

    errors = []
    for error in exc.errors():
        loc = list(error["loc"])
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors.append({
            "field": ".".join(str(part) for part in loc) or None,
            "message": error["msg"],
            "type": error["type"],
        })

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


# Unique columns -> message shown when a concurrent write slips past the
# service-level duplicate checks
UNIQUE_MESSAGES: dict[str, str] = {
    "lr_number": "LR number already exists",
    "ogpl_number": "OGPL number already exists",
    "vehicle_number": "Vehicle number already registered",
    "email": "Email already registered",
    "code": "Branch code already exists",
}


def describe_integrity_error(exc: IntegrityError) -> tuple[str, str]:
    """(error_code, message) for a constraint violation reported by the store."""
    detail = str(getattr(exc, "orig", exc)).lower()

    if "unique" in detail or "duplicate key" in detail:
        for column, message in UNIQUE_MESSAGES.items():
            if column in detail:
                return "DUPLICATE_RECORD", message
        return "DUPLICATE_RECORD", "A record with this value already exists"
    if "foreign key" in detail:
        return "REFERENTIAL_INTEGRITY", "Referenced record does not exist or is still referenced"
    if "not null" in detail:
        return "PERSISTENCE_ERROR", "Required field is missing"
    return "PERSISTENCE_ERROR", "Database constraint violation"


async def database_exception_handler(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    """Constraint violations that reached the database surface as 409s."""
    logger.error(f"Integrity error on {request.url.path}: {exc.orig}", extra=_request_context(request))
    error_code, message = describe_integrity_error(exc)
    return create_error_response(
        status_code=status.HTTP_409_CONFLICT,
        message=message,
        error_code=error_code,
    )


async def operational_exception_handler(
    request: Request,
    exc: OperationalError,
) -> JSONResponse:
    logger.error(f"Database unavailable on {request.url.path}: {exc}", extra=_request_context(request))
    return create_error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Database temporarily unavailable. Please try again.",
        error_code="DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra={**_request_context(request), "traceback": traceback.format_exc()},
        exc_info=True,
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(DesiCargoException, desicargo_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
