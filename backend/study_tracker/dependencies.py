"""
FastAPI Dependencies

Common dependencies for request identity and database-backed services.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from study_tracker.db.base import get_db
from study_tracker.services.study import AnalyticsService, SessionService


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    """
    Resolve the authenticated user for the request.

    Token verification happens upstream (API gateway / auth proxy), which
    forwards the verified user id in the X-User-Id header.

    Returns:
        str: The user id

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return x_user_id.strip()


async def get_session_service(
    db: AsyncSession = Depends(get_db),
) -> SessionService:
    """Get session lifecycle service."""
    return SessionService(db)


async def get_analytics_service(
    db: AsyncSession = Depends(get_db),
) -> AnalyticsService:
    """Get analytics service."""
    return AnalyticsService(db)


# Dependency that can be used in routers
CurrentUserId = Depends(get_current_user_id)
