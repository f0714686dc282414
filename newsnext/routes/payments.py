"""
NewsNext Backend — Stripe Webhook Route
========================================

POST /api/v1/payment/webhook

Reads the raw body (signature verification needs the exact bytes), hands
the event to AdService and always answers {"received": true} for events
it could parse, so Stripe does not retry events we chose to ignore.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.database import get_db_session
from newsnext.schemas.common import ErrorResponse
from newsnext.services.ad_service import ad_service
from newsnext.services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/payment", tags=["Payments"])


@router.post(
    "/webhook",
    responses={400: {"description": "Bad signature or payload", "model": ErrorResponse}},
    summary="Stripe webhook",
    include_in_schema=False,
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    payload = await request.body()
    event = payment_service.parse_webhook_event(payload, stripe_signature)
    handled = await ad_service.handle_stripe_webhook(db, event)
    logger.info("Stripe webhook %s (%s) handled=%s", event.get("id"), event.get("type"), handled)
    return {"received": True}
