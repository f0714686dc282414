"""
NewsNext Backend — Analytics Relay Route
=========================================

POST /api/v1/analytics/track

The frontend posts page views and clicks here instead of calling GA4
directly (ad blockers drop direct GA4 traffic). The event is forwarded
in the background and the route answers 202 at once; it is not in the
access log.
"""

from fastapi import APIRouter

from newsnext.schemas.common import ApiResponse
from newsnext.schemas.media import TrackEventRequest
from newsnext.services.analytics_service import analytics_service

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


@router.post("/track", status_code=202, response_model=ApiResponse[None], summary="Relay an event to GA4")
async def track_event(body: TrackEventRequest) -> ApiResponse[None]:
    task = analytics_service.dispatch(body.name, body.params, body.client_id)
    return ApiResponse(message="Event accepted" if task is not None else "Analytics disabled")
