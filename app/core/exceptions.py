"""
Global exception handling for the application.
Every error body is a flat JSON object: message, code, path and any details.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed request fields."""
    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class InvalidReferenceError(ValidationError):
    """A submitted id points at a row that does not exist."""
    def __init__(self, message: str = "Referenced record does not exist", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ConflictError(AppError):
    """Duplicate email or username."""
    def __init__(self, message: str = "Resource already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class InvalidCodeError(AppError):
    """Bad, expired or missing verification code, OTP or login credentials."""
    def __init__(self, message: str = "Invalid or expired code", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class UnauthorizedException(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class DatabaseUnavailableError(AppError):
    """Terminal driver failure; the connection that raised it has been evicted."""
    def __init__(self, message: str = "Database connection error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class QueryError(AppError):
    """Statement failed without invalidating the connection."""
    def __init__(self, message: str = "Database query failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class PoolTimeoutError(AppError):
    """No pooled connection became available in time."""
    def __init__(self, message: str = "Database is busy, try again later", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, details)


class PoolClosedError(AppError):
    """The pool has been shut down."""
    def __init__(self, message: str = "Database pool is closed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, details)


class UpstreamError(AppError):
    """Email or object-storage collaborator failure."""
    def __init__(self, message: str = "Upstream service failure", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render application errors."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        error_code=exc.__class__.__name__,
        error_message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            **exc.details,
            "message": exc.message,
            "code": exc.__class__.__name__,
            "path": request.url.path,
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI body/path validation failures to 400."""
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Invalid request",
            "code": "ValidationError",
            "path": request.url.path,
            "details": errors,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "An unexpected error occurred. Please try again later.",
            "code": "InternalServerError",
            "path": request.url.path,
        },
    )
