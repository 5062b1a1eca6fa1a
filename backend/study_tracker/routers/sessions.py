"""
Study Sessions API Router

Endpoints for the study session lifecycle.

Endpoints:
- POST /api/sessions - Start a session for a task
- PUT /api/sessions/{session_id} - Complete or cancel the active session
- GET /api/sessions - List sessions, most recent first
- GET /api/sessions/active - Get the active session, if any
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from study_tracker.dependencies import CurrentUserId, get_session_service
from study_tracker.middleware.error_handling import handle_endpoint_errors
from study_tracker.models.base import ErrorDetail
from study_tracker.models.study import (
    SessionCompleteRequest,
    SessionCompleteResponse,
    SessionResponse,
    SessionStartRequest,
    SessionStartResponse,
)
from study_tracker.services.study import SessionService

router = APIRouter(
    prefix="/api/sessions",
    tags=["sessions"],
    responses={401: {"description": "Missing X-User-Id"}},
)


@router.post(
    "",
    response_model=SessionStartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorDetail, "description": "Task not found"},
        409: {"model": ErrorDetail, "description": "A session is already active"},
    },
)
@handle_endpoint_errors("Start session")
async def start_session(
    request: SessionStartRequest,
    user_id: str = CurrentUserId,
    service: SessionService = Depends(get_session_service),
) -> SessionStartResponse:
    """
    Start a study session.

    Fails with 409 if the user already has an active session; the existing
    session is left untouched.
    """
    return await service.start_session(user_id, request.task_id)


@router.get("", response_model=list[SessionResponse])
@handle_endpoint_errors("List sessions")
async def list_sessions(
    user_id: str = CurrentUserId,
    service: SessionService = Depends(get_session_service),
) -> list[SessionResponse]:
    """List all sessions for the user with their tasks, newest first."""
    return await service.list_sessions(user_id)


@router.get("/active", response_model=Optional[SessionResponse])
@handle_endpoint_errors("Get active session")
async def get_active_session(
    user_id: str = CurrentUserId,
    service: SessionService = Depends(get_session_service),
) -> Optional[SessionResponse]:
    """
    Get the running session.

    Lets a client timer resume after a reload. Returns null when idle.
    """
    return await service.get_active_session(user_id)


@router.put(
    "/{session_id}",
    response_model=SessionCompleteResponse,
    responses={
        404: {"model": ErrorDetail, "description": "No active session with this id"},
        500: {"model": ErrorDetail, "description": "Clock skew"},
    },
)
@handle_endpoint_errors("Complete session")
async def complete_session(
    session_id: str,
    request: SessionCompleteRequest,
    user_id: str = CurrentUserId,
    service: SessionService = Depends(get_session_service),
) -> SessionCompleteResponse:
    """
    Finish the active session.

    The end time is the server's current time. Completed minutes are added
    to the task's actual hours; if the task was deleted in the meantime the
    session is still finalized and the response carries a warning.
    """
    return await service.complete_session(
        user_id,
        session_id,
        pomodoros_completed=request.pomodoros_completed,
        was_completed=request.was_completed,
        notes=request.notes,
    )
