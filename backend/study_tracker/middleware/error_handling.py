"""
Error Handling Middleware

Turns service failures into one JSON error shape for every endpoint.

Features:
- Typed service errors carrying their own HTTP status and error code
- Short correlation id in every error body and log line
- Internal details and tracebacks only exposed when DEBUG is on

Usage:
    from study_tracker.middleware.error_handling import (
        ConflictError,
        setup_error_handling,
    )

    # Wire handlers and middleware into the app
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise typed errors from services
    raise ConflictError("You already have an active session")

Exception handling hierarchy:
    - HTTPException: Left to FastAPI's built-in handler
    - ServiceError: Typed service failures → structured JSON response with
      the error's own status code (registered as an exception handler)
    - Exception: Catch-all in ErrorHandlingMiddleware → sanitized 500

Error body (see models.base.ErrorDetail):
    {"error": "<code>", "message": "...", "error_id": "1a2b3c4d",
     "details": {...} | null, "timestamp": "<iso8601>"}
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Root of the typed errors raised by the services.

    Each subclass fixes an HTTP status and a machine-readable error code;
    both can be overridden per instance. ``details`` is logged always and
    returned to the client only in debug mode.

    Example:
        raise ServiceError("Task store unavailable", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class ValidationError(ServiceError):
    """
    Input rejected by a service.

    Raised when input data fails validation, e.g. a session start without
    a task reference.
    """

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """
    Unknown session or task.

    Raised when a requested session or task doesn't exist for the user.
    """

    status_code = 404
    error_code = "not_found"


class SessionAlreadyEndedError(NotFoundError):
    """
    The session exists but is no longer active.

    Treated as not-found for the purpose of completion: there is no active
    session with that id to finish.
    """

    error_code = "session_already_ended"


class ConflictError(ServiceError):
    """
    State conflict error.

    Raised when a user tries to start a session while one is already active.
    """

    status_code = 409
    error_code = "conflict"


class ClockError(ServiceError):
    """
    Clock skew error.

    Raised when a computed duration is negative, which means a stored
    timestamp is ahead of the server clock.
    """

    status_code = 500
    error_code = "clock_error"


# =============================================================================
# Error Handling Middleware
# =============================================================================


def _error_content(
    error_code: str,
    message: str,
    error_id: str,
    details: Optional[dict] = None,
) -> dict[str, Any]:
    return {
        "error": error_code,
        "message": message,
        "error_id": error_id,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last line of defense for exceptions escaping the route handlers.

    ServiceErrors are normally rendered by the registered exception handler
    before they get here; this catches whatever slips past it and turns any
    other exception into a sanitized 500 with a correlation id.
    """

    def __init__(self, app, debug: bool = False):
        """
        Args:
            app: ASGI application to wrap
            debug: Include exception type, message and traceback in 500 bodies
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        error_id = str(uuid4())[:8]

        try:
            return await call_next(request)

        except HTTPException:
            raise

        except ServiceError as e:
            return _service_error_response(e, request, error_id, self.debug)

        except Exception as e:
            logger.error(
                f"[{error_id}] Unhandled error on {request.method} "
                f"{request.url.path}: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(
                status_code=500,
                content=_error_content(
                    "internal_server_error",
                    "An unexpected error occurred",
                    error_id,
                    details,
                ),
            )


def _service_error_response(
    exc: ServiceError, request: Request, error_id: str, debug: bool
) -> JSONResponse:
    """Log a typed service error and render it."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"[{error_id}] {exc.error_code}: {exc.message}",
        extra={
            "error_id": error_id,
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(
            exc.error_code,
            exc.message,
            error_id,
            exc.details if debug else None,
        ),
    )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Register the ServiceError handler and the catch-all middleware.

    Args:
        app: FastAPI application instance
        debug: Expose error details and tracebacks in responses
    """

    async def service_error_handler(request: Request, exc: ServiceError):
        return _service_error_response(exc, request, str(uuid4())[:8], debug)

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling enabled (debug={debug})")


# =============================================================================
# Helper Functions
# =============================================================================


def handle_endpoint_errors(operation: str) -> Callable:
    """
    Decorate a route handler with operation-scoped error logging.

    ServiceError and HTTPException pass through untouched so their own
    handlers render them. Anything else is logged with the operation name
    and re-raised for the middleware to sanitize.

    Args:
        operation: Human-readable operation name for log messages

    Example:
        @router.get("/analytics")
        @handle_endpoint_errors("Compute analytics")
        async def get_analytics(...):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (ServiceError, HTTPException):
                raise
            except Exception as e:
                logger.exception(f"{operation} failed: {type(e).__name__}: {e}")
                raise

        return wrapper

    return decorator
