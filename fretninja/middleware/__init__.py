"""
Middleware Package

Provides FastAPI middleware for error handling and the error kinds
raised by the quiz services.

Usage:
    from fretninja.middleware import setup_error_handling

    setup_error_handling(app, debug=settings.DEBUG)
"""

from fretninja.middleware.error_handling import (
    AlreadyFinalizedError,
    AuthorizationError,
    DuplicateAnswerError,
    ErrorHandlingMiddleware,
    IncompleteAnswersError,
    InsufficientDataError,
    NotFoundError,
    ServerError,
    ServiceError,
    SessionConflictError,
    SessionNotActiveError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)

__all__ = [
    "AlreadyFinalizedError",
    "AuthorizationError",
    "DuplicateAnswerError",
    "ErrorHandlingMiddleware",
    "IncompleteAnswersError",
    "InsufficientDataError",
    "NotFoundError",
    "ServerError",
    "ServiceError",
    "SessionConflictError",
    "SessionNotActiveError",
    "ValidationError",
    "handle_endpoint_errors",
    "setup_error_handling",
]
