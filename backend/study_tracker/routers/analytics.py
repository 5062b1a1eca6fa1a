"""
Analytics API Router

Endpoints for study productivity analytics.

Endpoints:
- GET /api/analytics - Get the full analytics snapshot
"""

from fastapi import APIRouter, Depends

from study_tracker.dependencies import CurrentUserId, get_analytics_service
from study_tracker.middleware.error_handling import handle_endpoint_errors
from study_tracker.models.study import AnalyticsResponse
from study_tracker.services.study import AnalyticsService

router = APIRouter(
    prefix="/api/analytics",
    tags=["analytics"],
    responses={401: {"description": "Missing X-User-Id"}},
)


@router.get("", response_model=AnalyticsResponse)
@handle_endpoint_errors("Compute analytics")
async def get_analytics(
    user_id: str = CurrentUserId,
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """
    Get study analytics.

    Returns:
    - Summary: pomodoros, hours studied, overall accuracy, streak
    - Estimation accuracy per task
    - Study hours by subject, hour of day and day (last 7 days)
    - Most productive hour
    - Insights
    """
    return await service.compute_analytics(user_id)
