"""
Enhanced Error Handling Middleware

Provides consistent, informative error responses across the API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)
- Custom exception classes, one per error kind of the quiz engine

Usage:
    from fretninja.middleware.error_handling import setup_error_handling

    # Register the ServiceError handler and the catch-all middleware
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise custom exceptions from services
    raise SessionConflictError("You have an unfinished quiz session")

How Exception Interception Works:
    This middleware uses ASGI middleware architecture (via Starlette's
    BaseHTTPMiddleware), not special Python exception hooks.

    The `dispatch()` method wraps `call_next(request)` in a try/except block.
    Since `call_next()` executes all downstream code (other middleware, route
    handlers, dependencies, services), any unhandled exception bubbles up
    through normal Python exception propagation and is caught here.

    Exception handling hierarchy:
        - ServiceError: Rendered by the exception handler registered in
          setup_error_handling before it reaches the middleware
        - HTTPException: Re-raised for FastAPI's built-in handler
        - Exception: Catch-all for unexpected errors → sanitized response
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str  # Error code (e.g., "session_in_progress")
    message: str  # Human-readable message
    error_id: str  # For log correlation
    details: Optional[dict] = None  # Additional context (sanitized)
    timestamp: datetime


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class ServerError(ServiceError):
    """
    Unexpected storage or collaborator failure.

    Raised in place of low-level exceptions so callers always see a stable
    error kind.
    """

    status_code = 500
    error_code = "server_error"


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when input data fails validation (e.g. hard difficulty without
    a time limit).
    """

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a session or profile doesn't exist, or its id can't be parsed.
    """

    status_code = 404
    error_code = "not_found"


class AuthorizationError(ServiceError):
    """
    Authorization error.

    Raised when the caller does not own the resource.
    """

    status_code = 403
    error_code = "forbidden"


class SessionConflictError(ServiceError):
    """Raised when the learner already has a session in progress."""

    status_code = 409
    error_code = "session_in_progress"


class SessionNotActiveError(ServiceError):
    """Raised when an answer is submitted to a finalized session."""

    status_code = 409
    error_code = "session_not_active"


class DuplicateAnswerError(ServiceError):
    """Raised when a question of a session has already been answered."""

    status_code = 409
    error_code = "duplicate_answer"


class AlreadyFinalizedError(ServiceError):
    """Raised when finalize is called on a completed or abandoned session."""

    status_code = 409
    error_code = "already_finalized"


class IncompleteAnswersError(ServiceError):
    """Raised when completing a session that doesn't have every answer."""

    status_code = 400
    error_code = "incomplete_answers"


class InsufficientDataError(ServiceError):
    """Raised when an analysis needs more history than the learner has."""

    status_code = 404
    error_code = "insufficient_data"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches exceptions that no exception handler rendered
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            response = await call_next(request)
            return response

        except HTTPException:
            # Let FastAPI handle HTTP exceptions
            raise

        except Exception as e:
            # Log full traceback for unexpected errors
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            # Return sanitized response
            content = {
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "error_id": error_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

            # Include details in debug mode
            if self.debug:
                content["details"] = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(status_code=500, content=content)


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Registers an exception handler for ServiceError (so errors raised inside
    routes are rendered before reaching the middleware) and the catch-all
    middleware.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """

    async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        error_id = str(uuid4())[:8]
        log = logger.error if exc.status_code >= 500 else logger.info
        log(f"[{error_id}] {exc.error_code}: {exc.message} ({request.method} {request.url.path})")
        return service_error_response(exc, error_id)

    app.add_exception_handler(ServiceError, _handle_service_error)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Helper Functions
# =============================================================================


def service_error_response(error: ServiceError, error_id: str) -> JSONResponse:
    """
    Render a ServiceError in the standard error format.

    Service error details are composed by the services themselves (counts,
    ids) and are always returned.
    """
    body = ErrorResponse(
        error=error.error_code,
        message=error.message,
        error_id=error_id,
        details=error.details,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=error.status_code, content=body.model_dump(mode="json"))


def handle_endpoint_errors(operation: str):
    """
    Decorator for route handlers.

    ServiceError and HTTPException propagate unchanged; anything else is
    logged and re-raised as a ServerError naming the failed operation.

    Usage:
        @router.get("/overview")
        @handle_endpoint_errors("Get stats overview")
        async def get_overview(...):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (ServiceError, HTTPException):
                raise
            except Exception as e:
                logger.error(f"{operation} failed: {type(e).__name__}: {e}")
                raise ServerError(f"{operation} failed") from e

        return wrapper

    return decorator
