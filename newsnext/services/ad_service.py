"""
NewsNext Backend — Ad Service
==============================

What:  Every rule about ads: who sees which ads, how a slot picks the ad
       to show, booking conflicts, pricing, moderation, pause/resume,
       click/impression tracking, Stripe payment and the booking calendar.
Who:   Called by routes/ads.py and routes/payments.py.

Visibility (get_ads):
    ADMIN / SUPER_ADMIN   all ads
    ADVERTISER            own ads only
    everyone else         ACTIVE ads whose date range contains "now"

Slot rotation:
    A page asks for a slot (HEADER, SIDEBAR, ...). Candidates are ACTIVE,
    in-date ads whose position belongs to the slot, or legacy ads without
    a position whose type belongs to the slot. One candidate is drawn with
    weight 1 / (1 + impressions) so rarely shown ads catch up. If the
    winner is a slider the first `limit` candidates are returned instead.

Status lifecycle:
    PENDING ──approve (paid)──▶ ACTIVE ◀──resume── PAUSED
       │                          │  └────pause─────▶
       └──reject──▶ REJECTED      └─ webhook payment_intent.succeeded
                                     also activates a PENDING ad

Booking conflicts:
    Two bookings conflict when they share a position and their inclusive
    date ranges overlap (a.start <= b.end and a.end >= b.start). Only
    ACTIVE and PENDING ads hold a booking.
"""

import logging
import math
import random
import uuid
from calendar import monthrange
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.config import settings
from newsnext.database import utcnow
from newsnext.exceptions import (
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from newsnext.models.ad import Ad, Transaction
from newsnext.models.enums import (
    ADMIN_ROLES,
    BOOKED_STATUSES,
    SLIDER_TYPES,
    AdStatus,
    AdType,
    Role,
    TransactionStatus,
)
from newsnext.schemas.ad import AdCreate, AdUpdate
from newsnext.services.ad_pricing import booking_days, calculate_ad_price
from newsnext.services.analytics_service import analytics_service
from newsnext.services.email_service import email_service
from newsnext.services.payment_service import payment_service

logger = logging.getLogger(__name__)

MAX_PRICE = Decimal("99999999.99")
CENT = Decimal("0.01")

# Legacy ads without a position are matched to a slot by type
SLOT_TO_TYPES: Dict[str, List[AdType]] = {
    "HEADER": [AdType.BANNER_TOP],
    "TOP_BANNER": [AdType.BANNER_TOP, AdType.SLIDER_TOP],
    "SIDEBAR": [AdType.BANNER_SIDE],
    "INLINE": [AdType.INLINE],
    "FOOTER": [AdType.FOOTER],
    "MID_PAGE": [AdType.INLINE, AdType.BANNER_TOP],
    "BETWEEN_SECTIONS": [AdType.INLINE, AdType.BANNER_TOP],
    "MOBILE": [AdType.BANNER_SIDE, AdType.BANNER_TOP, AdType.INLINE],
}

SLOT_TO_POSITIONS: Dict[str, List[str]] = {
    "HEADER": ["HEADER"],
    "TOP_BANNER": ["TOP_BANNER", "HEADER"],
    "SIDEBAR": ["SIDEBAR"],
    "INLINE": ["INLINE", "INLINE_ARTICLE"],
    "FOOTER": ["FOOTER"],
    "MID_PAGE": ["MID_PAGE", "INLINE", "INLINE_ARTICLE"],
    "BETWEEN_SECTIONS": ["BETWEEN_SECTIONS", "INLINE", "INLINE_ARTICLE"],
    "MOBILE": ["MOBILE"],
}


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes from clients are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _start_of_today(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _ctr(clicks: int, impressions: int) -> float:
    if impressions <= 0:
        return 0.0
    return round(clicks / impressions * 100, 2)


def _page_meta(total: int, page: int, limit: int) -> Dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def _conflict_message(title: str) -> str:
    return (
        f'This date and position are already booked by ad: "{title}". '
        "Please select a different date or position."
    )


class AdService:
    """Stateless; the session is passed to every call."""

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def parse_price(value: Union[None, str, int, float, Decimal]) -> Optional[Decimal]:
        """
        Parse a price override. None / "" mean "not provided".

        Raises:
            ValidationError: not a number, negative, or above 99,999,999.99.
        """
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        if isinstance(value, bool):
            raise ValidationError("Price must be a valid number", field="price")
        try:
            price = Decimal(value.strip()) if isinstance(value, str) else Decimal(str(value))
        except InvalidOperation:
            raise ValidationError("Price must be a valid positive number", field="price")
        if not price.is_finite() or price < 0:
            raise ValidationError("Price must be a valid positive number", field="price")
        if price > MAX_PRICE:
            raise ValidationError(f"Price cannot exceed {MAX_PRICE:,}", field="price")
        return price.quantize(CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def pick_weighted(ads: Sequence[Ad], rand: float) -> Ad:
        """
        Single-pass weighted choice; `rand` is uniform in [0, 1).

        Weight is 1 / (1 + impressions). Falls back to the first ad if
        floating point leaves a remainder after the last subtraction.
        """
        weights = [1 / (1 + ad.impressions) for ad in ads]
        remaining = rand * sum(weights)
        for ad, weight in zip(ads, weights):
            remaining -= weight
            if remaining <= 0:
                return ad
        return ads[0]

    @staticmethod
    def _check_owner(ad: Ad, user_id: Optional[uuid.UUID], role: Optional[Role]) -> None:
        if role == Role.ADVERTISER and ad.advertiser_id != user_id:
            raise AuthorizationError("Unauthorized", context={"ad_id": str(ad.id)})

    async def _get_ad(self, db: AsyncSession, ad_id: uuid.UUID) -> Ad:
        # populate_existing reloads relationships on objects already in the
        # identity map (e.g. right after create)
        result = await db.execute(
            select(Ad).where(Ad.id == ad_id).execution_options(populate_existing=True)
        )
        ad = result.scalar_one_or_none()
        if ad is None:
            raise NotFoundError("Ad", str(ad_id))
        return ad

    async def _ensure_no_conflict(
        self,
        db: AsyncSession,
        start: datetime,
        end: datetime,
        position: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        conflict = await self.check_booking_conflict(db, start, end, position, exclude_id)
        if conflict["is_conflict"]:
            other = conflict["conflicting_ad"]
            raise ConflictError(
                _conflict_message(other["title"]),
                context={"conflicting_ad_id": str(other["id"]), "position": position},
            )

    def _validate_duration(self, start: datetime, end: datetime) -> None:
        days = booking_days(start, end)
        if days < settings.min_ad_duration_days:
            raise ValidationError(
                f"Ad duration must be at least {settings.min_ad_duration_days} day(s)",
                field="end_date",
            )
        if days > settings.max_ad_duration_days:
            raise ValidationError(
                f"Ad duration cannot exceed {settings.max_ad_duration_days} days",
                field="end_date",
            )

    # ── Listing ───────────────────────────────────────────────────────────

    async def get_ads(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        status: Optional[AdStatus] = None,
        ad_type: Optional[AdType] = None,
        slot: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        role: Optional[Role] = None,
    ) -> Dict[str, Any]:
        """
        List ads visible to the caller, or rotate one for a slot.

        Returns ``{"ads": [Ad, ...], "meta": {total, page, limit, total_pages}}``.
        """
        now = utcnow()
        conditions = []
        status_filter = status
        in_date_only = False

        if ad_type:
            conditions.append(Ad.type == ad_type)

        if slot:
            slot = slot.upper()
            allowed_types = SLOT_TO_TYPES.get(slot, [])
            allowed_positions = SLOT_TO_POSITIONS.get(slot, [slot])
            status_filter = AdStatus.ACTIVE
            in_date_only = True
            slot_match = [Ad.position.in_(allowed_positions)]
            if allowed_types:
                slot_match.append(
                    and_(
                        Ad.type.in_(allowed_types),
                        or_(Ad.position.is_(None), Ad.position == ""),
                    )
                )
            conditions.append(or_(*slot_match))

        is_staff = role in ADMIN_ROLES
        is_advertiser = role == Role.ADVERTISER
        if is_staff:
            logger.debug("Admin (%s) listing ads without owner filter", role)
        elif is_advertiser:
            conditions.append(Ad.advertiser_id == user_id)
        else:
            status_filter = AdStatus.ACTIVE
            in_date_only = True

        if status_filter:
            conditions.append(Ad.status == status_filter)
        if in_date_only:
            conditions.extend([Ad.start_date <= now, Ad.end_date >= now])

        if slot and not (is_staff or is_advertiser):
            return await self._rotate_slot(db, conditions, page, limit)

        total = (
            await db.execute(select(func.count()).select_from(Ad).where(*conditions))
        ).scalar() or 0
        result = await db.execute(
            select(Ad)
            .where(*conditions)
            .order_by(Ad.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        ads = list(result.scalars().all())
        logger.debug("Ads query returned %d of %d", len(ads), total)
        return {"ads": ads, "meta": _page_meta(total, page, limit)}

    async def _rotate_slot(
        self,
        db: AsyncSession,
        conditions: list,
        page: int,
        limit: int,
    ) -> Dict[str, Any]:
        result = await db.execute(select(Ad).where(*conditions).order_by(Ad.created_at.desc()))
        candidates = list(result.scalars().all())
        if not candidates:
            return {"ads": [], "meta": _page_meta(0, page, limit)}

        selected = self.pick_weighted(candidates, random.random())
        if selected.type in SLIDER_TYPES:
            ads = candidates[:limit]
            total = len(candidates)
        else:
            ads = [selected]
            total = 1
        return {"ads": ads, "meta": _page_meta(total, page, limit)}

    async def get_ad(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        role: Optional[Role] = None,
    ) -> Ad:
        ad = await self._get_ad(db, ad_id)
        if role in ADMIN_ROLES:
            return ad
        if role == Role.ADVERTISER and ad.advertiser_id == user_id:
            return ad
        now = utcnow()
        if ad.status == AdStatus.ACTIVE and ad.start_date <= now <= ad.end_date:
            return ad
        # Hidden ads look missing to callers who may not see them
        raise NotFoundError("Ad", str(ad_id))

    # ── Booking ───────────────────────────────────────────────────────────

    async def create_ad(
        self,
        db: AsyncSession,
        data: AdCreate,
        user_id: uuid.UUID,
        role: Optional[Role],
    ) -> Ad:
        start = _as_utc(data.start_date)
        end = _as_utc(data.end_date)

        if start < _start_of_today():
            raise ValidationError("Start date cannot be in the past", field="start_date")
        if end <= start:
            raise ValidationError("End date must be after start date", field="end_date")
        self._validate_duration(start, end)

        position = data.position or None
        if position:
            await self._ensure_no_conflict(db, start, end, position)

        price = self.parse_price(data.price)
        if price is None:
            price = calculate_ad_price(data.type, start, end)

        is_admin = role in ADMIN_ROLES
        ad = Ad(
            title=data.title,
            type=data.type,
            position=position,
            image_url=data.image_url,
            target_url=data.target_url,
            start_date=start,
            end_date=end,
            price=price,
            advertiser_id=user_id,
            status=AdStatus.ACTIVE if is_admin else AdStatus.PENDING,
            is_paid=is_admin,
        )
        db.add(ad)
        await db.flush()
        logger.info("Ad %s created by %s (status=%s, price=%s)", ad.id, user_id, ad.status.value, price)
        return await self._get_ad(db, ad.id)

    async def update_ad(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        data: AdUpdate,
        user_id: uuid.UUID,
        role: Optional[Role],
    ) -> Ad:
        ad = await self._get_ad(db, ad_id)
        self._check_owner(ad, user_id, role)

        changes = data.model_dump(exclude_unset=True)
        explicit_price = self.parse_price(changes.pop("price", None))

        new_start = _as_utc(changes.pop("start_date")) if changes.get("start_date") else None
        new_end = _as_utc(changes.pop("end_date")) if changes.get("end_date") else None
        changes.pop("start_date", None)
        changes.pop("end_date", None)

        if new_start and new_start < _start_of_today():
            raise ValidationError("Start date cannot be in the past", field="start_date")

        effective_start = new_start or ad.start_date
        effective_end = new_end or ad.end_date
        dates_changed = new_start is not None or new_end is not None
        if dates_changed:
            if effective_end <= effective_start:
                raise ValidationError("End date must be after start date", field="end_date")
            self._validate_duration(effective_start, effective_end)

        type_changed = changes.get("type") is not None
        effective_type = changes.get("type") or ad.type

        if explicit_price is None and (dates_changed or type_changed):
            explicit_price = calculate_ad_price(effective_type, effective_start, effective_end)

        position_changed = "position" in changes
        effective_position = (changes.get("position") or None) if position_changed else ad.position
        if effective_position and (dates_changed or position_changed):
            await self._ensure_no_conflict(
                db, effective_start, effective_end, effective_position, exclude_id=ad.id
            )

        for field in ("title", "type", "image_url", "target_url"):
            if changes.get(field) is not None:
                setattr(ad, field, changes[field])
        if position_changed:
            ad.position = effective_position
        ad.start_date = effective_start
        ad.end_date = effective_end
        if explicit_price is not None:
            ad.price = explicit_price

        await db.flush()
        logger.info("Ad %s updated by %s", ad.id, user_id)
        return await self._get_ad(db, ad.id)

    async def check_booking_conflict(
        self,
        db: AsyncSession,
        start: datetime,
        end: datetime,
        position: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, Any]:
        """
        Find an ACTIVE/PENDING ad overlapping [start, end] (inclusive).

        Without a position every placement counts, which is what the
        booking form uses to warn about a busy day in general.
        """
        conditions = [
            Ad.status.in_(BOOKED_STATUSES),
            Ad.start_date <= _as_utc(end),
            Ad.end_date >= _as_utc(start),
        ]
        if position:
            conditions.append(Ad.position == position)
        if exclude_id:
            conditions.append(Ad.id != exclude_id)

        row = (
            await db.execute(
                select(Ad.id, Ad.title).where(*conditions).order_by(Ad.start_date).limit(1)
            )
        ).first()
        if row is None:
            return {"is_conflict": False, "conflicting_ad": None}
        return {"is_conflict": True, "conflicting_ad": {"id": row.id, "title": row.title}}

    async def get_calendar(
        self,
        db: AsyncSession,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Booked days of a month: ``{"YYYY-MM-DD": [{id, title, position, type, status}]}``.

        `month` is 1-based; both default to the current UTC month.
        """
        now = utcnow()
        year = year or now.year
        month = month or now.month
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12", field="month")

        month_start = datetime(year, month, 1, tzinfo=timezone.utc)
        last_day = monthrange(year, month)[1]
        month_end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)

        result = await db.execute(
            select(Ad)
            .where(
                Ad.status.in_(BOOKED_STATUSES),
                Ad.start_date <= month_end,
                Ad.end_date >= month_start,
            )
            .order_by(Ad.start_date)
        )
        ads = result.scalars().all()

        calendar: Dict[str, List[Dict[str, Any]]] = {}
        for ad in ads:
            day = max(ad.start_date.date(), month_start.date())
            last = min(ad.end_date.date(), month_end.date())
            while day <= last:
                calendar.setdefault(day.isoformat(), []).append(
                    {
                        "id": ad.id,
                        "title": ad.title,
                        "position": ad.position or None,
                        "type": ad.type,
                        "status": ad.status,
                    }
                )
                day += timedelta(days=1)

        logger.debug(
            "Calendar %04d-%02d: %d ads over %d booked days", year, month, len(ads), len(calendar)
        )
        return calendar

    # ── Payment ───────────────────────────────────────────────────────────

    async def create_payment_intent(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Dict[str, Any]:
        ad = await self._get_ad(db, ad_id)
        if ad.advertiser_id != user_id:
            raise AuthorizationError("Unauthorized", context={"ad_id": str(ad_id)})
        if ad.is_paid:
            raise ConflictError("Ad is already paid", context={"ad_id": str(ad_id)})

        price = Decimal(ad.price)
        amount_cents = int((price * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        currency = settings.stripe_currency
        intent = await payment_service.create_payment_intent(
            amount_cents,
            currency,
            metadata={"adId": str(ad.id), "userId": str(user_id)},
        )

        db.add(
            Transaction(
                ad_id=ad.id,
                user_id=user_id,
                amount=price,
                currency=currency,
                status=TransactionStatus.PENDING,
                stripe_payment_intent_id=intent["id"],
            )
        )
        await db.flush()
        return {
            "client_secret": intent["client_secret"],
            "amount": float(price),
            "currency": currency,
        }

    async def handle_stripe_webhook(self, db: AsyncSession, event: Dict[str, Any]) -> bool:
        """
        Apply a verified Stripe event. Returns True when it changed state.

        Unknown ads are logged and acknowledged so Stripe stops retrying.
        """
        event_type = event.get("type")
        intent = (event.get("data") or {}).get("object") or {}
        intent_id = intent.get("id")
        metadata = intent.get("metadata") or {}

        if event_type == "payment_intent.succeeded":
            await self._set_transaction_status(db, intent_id, TransactionStatus.SUCCEEDED)
            raw_ad_id = metadata.get("adId")
            if not raw_ad_id:
                logger.warning("payment_intent.succeeded %s without adId metadata", intent_id)
                return False
            try:
                ad_id = uuid.UUID(str(raw_ad_id))
            except ValueError:
                logger.warning("payment_intent.succeeded %s has malformed adId %r", intent_id, raw_ad_id)
                return False
            ad = await db.get(Ad, ad_id)
            if ad is None:
                logger.warning("payment_intent.succeeded for unknown ad %s", ad_id)
                return False
            ad.is_paid = True
            ad.status = AdStatus.ACTIVE
            await db.flush()
            logger.info("Ad %s marked as paid", ad_id)
            return True

        if event_type == "payment_intent.payment_failed":
            changed = await self._set_transaction_status(db, intent_id, TransactionStatus.FAILED)
            logger.info("PaymentIntent %s failed", intent_id)
            return changed

        logger.debug("Ignoring Stripe event %s", event_type)
        return False

    async def _set_transaction_status(
        self,
        db: AsyncSession,
        intent_id: Optional[str],
        status: TransactionStatus,
    ) -> bool:
        if not intent_id:
            return False
        result = await db.execute(
            update(Transaction)
            .where(Transaction.stripe_payment_intent_id == intent_id)
            .values(status=status)
        )
        return bool(result.rowcount)

    # ── Tracking ──────────────────────────────────────────────────────────

    async def track_impression(self, db: AsyncSession, ad_id: uuid.UUID) -> None:
        title = await self._increment(db, ad_id, "impressions")
        analytics_service.track_ad_impression(str(ad_id), title)

    async def track_click(self, db: AsyncSession, ad_id: uuid.UUID) -> None:
        title = await self._increment(db, ad_id, "clicks")
        analytics_service.track_ad_click(str(ad_id), title)

    async def _increment(self, db: AsyncSession, ad_id: uuid.UUID, counter: str) -> str:
        column = getattr(Ad, counter)
        result = await db.execute(
            update(Ad)
            .where(Ad.id == ad_id)
            .values({counter: column + 1})
            .returning(Ad.title)
            .execution_options(synchronize_session=False)
        )
        title = result.scalar_one_or_none()
        if title is None:
            raise NotFoundError("Ad", str(ad_id))
        return title

    # ── Moderation ────────────────────────────────────────────────────────

    async def approve_ad(self, db: AsyncSession, ad_id: uuid.UUID) -> Ad:
        ad = await self._get_ad(db, ad_id)
        if ad.status != AdStatus.PENDING:
            raise ValidationError("Only PENDING ads can be approved", field="status")
        if not ad.is_paid:
            raise ValidationError("Ad must be paid before approval", field="is_paid")

        ad.status = AdStatus.ACTIVE
        ad.rejection_reason = None
        await db.flush()
        logger.info("Ad %s approved", ad.id)

        if ad.advertiser and ad.advertiser.email:
            try:
                await email_service.send_ad_approval_email(
                    ad.advertiser.email,
                    {
                        "id": ad.id,
                        "title": ad.title,
                        "type": ad.type.value,
                        "start_date": ad.start_date,
                        "end_date": ad.end_date,
                    },
                )
            except ExternalServiceError as e:
                logger.error("Failed to send ad approval email for %s: %s", ad.id, e.message)
        return ad

    async def reject_ad(self, db: AsyncSession, ad_id: uuid.UUID, reason: str) -> Ad:
        ad = await self._get_ad(db, ad_id)
        if ad.status != AdStatus.PENDING:
            raise ValidationError("Only PENDING ads can be rejected", field="status")

        ad.status = AdStatus.REJECTED
        ad.rejection_reason = reason
        await db.flush()
        logger.info("Ad %s rejected", ad.id)

        if ad.advertiser and ad.advertiser.email:
            try:
                await email_service.send_ad_rejection_email(
                    ad.advertiser.email,
                    {"id": ad.id, "title": ad.title},
                    reason,
                )
            except ExternalServiceError as e:
                logger.error("Failed to send ad rejection email for %s: %s", ad.id, e.message)
        return ad

    async def delete_ad(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Optional[Role],
    ) -> None:
        ad = await self._get_ad(db, ad_id)
        self._check_owner(ad, user_id, role)

        active = [
            t for t in ad.transactions
            if t.status in (TransactionStatus.PENDING, TransactionStatus.SUCCEEDED)
        ]
        if active:
            raise ConflictError(
                "Cannot delete ad with active transactions",
                context={"transactions": len(active)},
            )

        await db.delete(ad)
        await db.flush()
        logger.info("Ad %s deleted by %s", ad_id, user_id)

    async def pause_ad(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Optional[Role],
    ) -> Ad:
        ad = await self._get_ad(db, ad_id)
        self._check_owner(ad, user_id, role)
        if ad.status != AdStatus.ACTIVE:
            raise ValidationError("Only ACTIVE ads can be paused", field="status")
        ad.status = AdStatus.PAUSED
        await db.flush()
        return ad

    async def resume_ad(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Optional[Role],
    ) -> Ad:
        ad = await self._get_ad(db, ad_id)
        self._check_owner(ad, user_id, role)
        if ad.status != AdStatus.PAUSED:
            raise ValidationError("Only PAUSED ads can be resumed", field="status")

        now = utcnow()
        if ad.end_date < now:
            raise ValidationError("Cannot resume expired ad", field="end_date")

        if ad.start_date > now:
            ad.status = AdStatus.ACTIVE if ad.is_paid else AdStatus.PENDING
        else:
            ad.status = AdStatus.ACTIVE
        await db.flush()
        return ad

    # ── Analytics ─────────────────────────────────────────────────────────

    @staticmethod
    def _analytics_row(ad: Ad) -> Dict[str, Any]:
        return {
            "ad_id": ad.id,
            "title": ad.title,
            "impressions": ad.impressions,
            "clicks": ad.clicks,
            "ctr": _ctr(ad.clicks, ad.impressions),
            "status": ad.status,
            "start_date": ad.start_date,
            "end_date": ad.end_date,
            "created_at": ad.created_at,
        }

    async def get_ad_analytics(
        self,
        db: AsyncSession,
        ad_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        role: Optional[Role] = None,
    ) -> Dict[str, Any]:
        ad = await self._get_ad(db, ad_id)
        self._check_owner(ad, user_id, role)
        return self._analytics_row(ad)

    async def get_advertiser_analytics(self, db: AsyncSession, user_id: uuid.UUID) -> Dict[str, Any]:
        result = await db.execute(
            select(Ad).where(Ad.advertiser_id == user_id).order_by(Ad.created_at.desc())
        )
        ads = result.scalars().all()
        total_impressions = sum(ad.impressions for ad in ads)
        total_clicks = sum(ad.clicks for ad in ads)
        return {
            "total_ads": len(ads),
            "total_impressions": total_impressions,
            "total_clicks": total_clicks,
            "average_ctr": _ctr(total_clicks, total_impressions),
            "ads": [self._analytics_row(ad) for ad in ads],
        }


ad_service = AdService()
