"""
NewsNext Backend — Ad Route Handlers
=====================================

Public:
    GET   /api/v1/ads                     list (or rotate with ?slot=)
    GET   /api/v1/ads/calendar            booked days of a month
    GET   /api/v1/ads/check-conflict      is a date range / position free?
    GET   /api/v1/ads/{id}
    POST  /api/v1/ads/{id}/impression
    POST  /api/v1/ads/{id}/click

Advertisers and admins:
    POST   /api/v1/ads                    book an ad
    PUT    /api/v1/ads/{id}
    DELETE /api/v1/ads/{id}
    PATCH  /api/v1/ads/{id}/pause | /resume
    POST   /api/v1/ads/{id}/payment-intent
    GET    /api/v1/ads/{id}/analytics
    GET    /api/v1/ads/analytics/advertiser

Admins:
    PATCH  /api/v1/ads/{id}/approve | /reject

Fixed paths are declared before /{ad_id} so they are not parsed as ids.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.database import get_db_session
from newsnext.dependencies import get_optional_user, require_ad_manager, require_admin
from newsnext.models.ad import Ad
from newsnext.models.enums import AdStatus, AdType
from newsnext.models.user import User
from newsnext.schemas.ad import (
    AdAnalytics,
    AdCreate,
    AdListResponse,
    AdRejectRequest,
    AdResponse,
    AdUpdate,
    AdvertiserAnalytics,
    BookingConflict,
    CalendarEntry,
    PaymentIntentResponse,
)
from newsnext.schemas.common import ApiResponse, ErrorResponse, PageMeta
from newsnext.services.ad_service import ad_service
from newsnext.utils.urls import get_absolute_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ads", tags=["Ads"])

ERRORS = {
    400: {"description": "Business rule violated", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "Ad not found", "model": ErrorResponse},
}


def _ad_out(ad: Ad) -> AdResponse:
    out = AdResponse.model_validate(ad)
    out.image_url = get_absolute_url(ad.image_url)
    return out


# ── Collection ────────────────────────────────────────────────────────────


@router.get("", response_model=ApiResponse[AdListResponse], summary="List ads or rotate a slot")
async def list_ads(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: Optional[AdStatus] = Query(default=None),
    type: Optional[AdType] = Query(default=None),
    slot: Optional[str] = Query(default=None, max_length=50, description="Placement slot, e.g. HEADER"),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdListResponse]:
    result = await ad_service.get_ads(
        db,
        page=page,
        limit=limit,
        status=status,
        ad_type=type,
        slot=slot,
        user_id=user.id if user else None,
        role=user.role if user else None,
    )
    return ApiResponse(
        message="Ads retrieved successfully",
        data=AdListResponse(
            ads=[_ad_out(ad) for ad in result["ads"]],
            meta=PageMeta(**result["meta"]),
        ),
    )


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[AdResponse],
    responses={**ERRORS, 409: {"description": "Position already booked", "model": ErrorResponse}},
    summary="Book an ad",
)
async def create_ad(
    body: AdCreate,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.create_ad(db, body, user.id, user.role)
    return ApiResponse(message="Ad created successfully", data=_ad_out(ad))


@router.get("/calendar", response_model=ApiResponse[Dict[str, List[CalendarEntry]]], summary="Booking calendar")
async def get_calendar(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12, description="1 = January"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[Dict[str, List[CalendarEntry]]]:
    calendar = await ad_service.get_calendar(db, year, month)
    return ApiResponse(message="Calendar retrieved successfully", data=calendar)


@router.get("/check-conflict", response_model=ApiResponse[BookingConflict], summary="Check a booking")
async def check_conflict(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    position: Optional[str] = Query(default=None, max_length=50),
    exclude_id: Optional[UUID] = Query(default=None, description="Ad being edited"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[BookingConflict]:
    conflict = await ad_service.check_booking_conflict(db, start_date, end_date, position, exclude_id)
    return ApiResponse(message="Conflict check completed", data=BookingConflict(**conflict))


@router.get(
    "/analytics/advertiser",
    response_model=ApiResponse[AdvertiserAnalytics],
    summary="Totals across the caller's ads",
)
async def advertiser_analytics(
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdvertiserAnalytics]:
    analytics = await ad_service.get_advertiser_analytics(db, user.id)
    return ApiResponse(message="Analytics retrieved successfully", data=AdvertiserAnalytics(**analytics))


# ── Single ad ─────────────────────────────────────────────────────────────


@router.get("/{ad_id}", response_model=ApiResponse[AdResponse], responses=ERRORS, summary="Get an ad")
async def get_ad(
    ad_id: UUID,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.get_ad(db, ad_id, user.id if user else None, user.role if user else None)
    return ApiResponse(message="Ad retrieved successfully", data=_ad_out(ad))


@router.put(
    "/{ad_id}",
    response_model=ApiResponse[AdResponse],
    responses={**ERRORS, 409: {"description": "Position already booked", "model": ErrorResponse}},
    summary="Update an ad",
)
async def update_ad(
    ad_id: UUID,
    body: AdUpdate,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.update_ad(db, ad_id, body, user.id, user.role)
    return ApiResponse(message="Ad updated successfully", data=_ad_out(ad))


@router.delete(
    "/{ad_id}",
    response_model=ApiResponse[None],
    responses={**ERRORS, 409: {"description": "Ad has active transactions", "model": ErrorResponse}},
    summary="Delete an ad",
)
async def delete_ad(
    ad_id: UUID,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await ad_service.delete_ad(db, ad_id, user.id, user.role)
    return ApiResponse(message="Ad deleted successfully")


@router.patch("/{ad_id}/approve", response_model=ApiResponse[AdResponse], responses=ERRORS, summary="Approve a pending ad")
async def approve_ad(
    ad_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.approve_ad(db, ad_id)
    return ApiResponse(message="Ad approved successfully", data=_ad_out(ad))


@router.patch("/{ad_id}/reject", response_model=ApiResponse[AdResponse], responses=ERRORS, summary="Reject a pending ad")
async def reject_ad(
    ad_id: UUID,
    body: AdRejectRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.reject_ad(db, ad_id, body.reason)
    return ApiResponse(message="Ad rejected successfully", data=_ad_out(ad))


@router.patch("/{ad_id}/pause", response_model=ApiResponse[AdResponse], responses=ERRORS, summary="Pause an active ad")
async def pause_ad(
    ad_id: UUID,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.pause_ad(db, ad_id, user.id, user.role)
    return ApiResponse(message="Ad paused successfully", data=_ad_out(ad))


@router.patch("/{ad_id}/resume", response_model=ApiResponse[AdResponse], responses=ERRORS, summary="Resume a paused ad")
async def resume_ad(
    ad_id: UUID,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdResponse]:
    ad = await ad_service.resume_ad(db, ad_id, user.id, user.role)
    return ApiResponse(message="Ad resumed successfully", data=_ad_out(ad))


@router.post(
    "/{ad_id}/payment-intent",
    response_model=ApiResponse[PaymentIntentResponse],
    responses={**ERRORS, 502: {"description": "Stripe unavailable", "model": ErrorResponse}},
    summary="Start paying for an ad",
)
async def create_payment_intent(
    ad_id: UUID,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[PaymentIntentResponse]:
    intent = await ad_service.create_payment_intent(db, ad_id, user.id)
    return ApiResponse(message="Payment intent created", data=PaymentIntentResponse(**intent))


@router.get("/{ad_id}/analytics", response_model=ApiResponse[AdAnalytics], responses=ERRORS, summary="Ad performance")
async def ad_analytics(
    ad_id: UUID,
    user: User = Depends(require_ad_manager),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AdAnalytics]:
    analytics = await ad_service.get_ad_analytics(db, ad_id, user.id, user.role)
    return ApiResponse(message="Analytics retrieved successfully", data=AdAnalytics(**analytics))


# ── Tracking ──────────────────────────────────────────────────────────────


@router.post("/{ad_id}/impression", response_model=ApiResponse[None], summary="Count an impression")
async def track_impression(ad_id: UUID, db: AsyncSession = Depends(get_db_session)) -> ApiResponse[None]:
    await ad_service.track_impression(db, ad_id)
    return ApiResponse(message="Impression tracked")


@router.post("/{ad_id}/click", response_model=ApiResponse[None], summary="Count a click")
async def track_click(ad_id: UUID, db: AsyncSession = Depends(get_db_session)) -> ApiResponse[None]:
    await ad_service.track_click(db, ad_id)
    return ApiResponse(message="Click tracked")
