"""
Middleware Package

Provides FastAPI middleware and the typed service errors it renders.

Usage:
    from study_tracker.middleware import setup_error_handling, NotFoundError

    setup_error_handling(app, debug=settings.DEBUG)
"""

from study_tracker.middleware.error_handling import (
    ClockError,
    ConflictError,
    ErrorHandlingMiddleware,
    NotFoundError,
    ServiceError,
    SessionAlreadyEndedError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "setup_error_handling",
    "handle_endpoint_errors",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "SessionAlreadyEndedError",
    "ConflictError",
    "ClockError",
]
