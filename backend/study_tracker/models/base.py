"""
Shared Pydantic Base Models

Request bodies reject unknown fields so a client sending a field the API
does not know (for example a client-side ``start_time``) gets a 422 instead
of having it silently dropped. Response models are lenient and build
straight from ORM rows.

Usage:
    class SessionStartRequest(StrictRequest):
        task_id: str

    class SessionResponse(StrictResponse):
        id: str

Flow:
    JSON body → StrictRequest → router → service
    ORM row → StrictResponse → JSON response
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base for request bodies.

    Config:
        - extra="forbid": an unknown field fails validation (422)
        - validate_default=True: defaults go through validation too
        - str_strip_whitespace=True: surrounding whitespace is removed
        - from_attributes=True: can be built from ORM objects

    Example:
        >>> class SessionStartRequest(StrictRequest):
        ...     task_id: str
        >>>
        >>> SessionStartRequest(task_id="abc")  # OK
        >>> SessionStartRequest(taskId="abc")  # Raises ValidationError
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """Base for response bodies; extra ORM attributes are ignored."""

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class ErrorDetail(StrictResponse):
    """
    Body of every error response rendered by the error handling middleware.

    Used in route ``responses=`` declarations so the error shape shows up in
    the OpenAPI schema.
    """

    error: str  # Error code, e.g. "conflict" or "session_already_ended"
    message: str
    error_id: str  # Correlation id, also present in the server log
    details: Optional[dict] = None  # Only populated in debug mode
    timestamp: datetime
