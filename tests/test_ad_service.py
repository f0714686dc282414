"""
Tests for AdService: listing and slot rotation, booking rules, pricing,
moderation, payment webhooks, tracking and analytics.
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import select

from newsnext.database import utcnow
from newsnext.exceptions import (
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from newsnext.models.ad import Ad, Transaction
from newsnext.models.enums import AdStatus, AdType, Role, TransactionStatus
from newsnext.schemas.ad import AdCreate, AdUpdate
from newsnext.services.ad_service import AdService


def tomorrow_midnight() -> datetime:
    now = utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)


class TestParsePrice:
    def test_empty_values_mean_not_provided(self):
        assert AdService.parse_price(None) is None
        assert AdService.parse_price("") is None
        assert AdService.parse_price("   ") is None

    def test_rounds_to_cents(self):
        assert AdService.parse_price("123.456") == Decimal("123.46")
        assert AdService.parse_price(10) == Decimal("10.00")

    def test_rejects_garbage(self):
        with pytest.raises(ValidationError) as exc_info:
            AdService.parse_price("abc")
        assert exc_info.value.message == "Price must be a valid positive number"

    def test_rejects_negative(self):
        with pytest.raises(ValidationError):
            AdService.parse_price(-1)

    def test_rejects_above_maximum(self):
        with pytest.raises(ValidationError) as exc_info:
            AdService.parse_price(100_000_000)
        assert exc_info.value.message == "Price cannot exceed 99,999,999.99"


class TestPickWeighted:
    def setup_method(self):
        self.fresh = SimpleNamespace(impressions=0)
        self.worn = SimpleNamespace(impressions=9)
        self.ads = [self.fresh, self.worn]

    def test_low_draw_picks_first(self):
        # weights 1.0 and 0.1
        assert AdService.pick_weighted(self.ads, 0.5) is self.fresh

    def test_high_draw_picks_last(self):
        assert AdService.pick_weighted(self.ads, 0.95) is self.worn

    def test_single_candidate(self):
        assert AdService.pick_weighted([self.worn], 0.999) is self.worn


class TestGetAds:
    def setup_method(self):
        self.service = AdService()

    @pytest.mark.asyncio
    async def test_public_sees_only_active_in_date(self, db_session, make_ad):
        await make_ad(title="Live")
        await make_ad(title="Paused", status=AdStatus.PAUSED)
        await make_ad(title="Future", start_date=utcnow() + timedelta(days=3))

        result = await self.service.get_ads(db_session)

        assert [ad.title for ad in result["ads"]] == ["Live"]
        assert result["meta"]["total"] == 1

    @pytest.mark.asyncio
    async def test_regular_user_is_treated_as_public(self, db_session, make_ad, make_user):
        user = await make_user(Role.USER)
        await make_ad(title="Live")
        await make_ad(title="Pending", status=AdStatus.PENDING, is_paid=False)

        result = await self.service.get_ads(db_session, user_id=user.id, role=Role.USER)

        assert [ad.title for ad in result["ads"]] == ["Live"]

    @pytest.mark.asyncio
    async def test_advertiser_sees_own_ads_in_any_status(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        other = await make_user(Role.ADVERTISER)
        await make_ad(owner, title="Mine", status=AdStatus.PENDING, is_paid=False)
        await make_ad(other, title="Theirs")

        result = await self.service.get_ads(db_session, user_id=owner.id, role=Role.ADVERTISER)

        assert [ad.title for ad in result["ads"]] == ["Mine"]

    @pytest.mark.asyncio
    async def test_admin_sees_everything_and_can_filter(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        await make_ad(title="Live")
        await make_ad(title="Rejected", status=AdStatus.REJECTED)

        everything = await self.service.get_ads(db_session, user_id=admin.id, role=Role.ADMIN)
        rejected = await self.service.get_ads(
            db_session, status=AdStatus.REJECTED, user_id=admin.id, role=Role.ADMIN
        )

        assert everything["meta"]["total"] == 2
        assert [ad.title for ad in rejected["ads"]] == ["Rejected"]

    @pytest.mark.asyncio
    async def test_pagination_meta(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        for i in range(5):
            await make_ad(title=f"Ad {i}")

        result = await self.service.get_ads(db_session, page=2, limit=2, user_id=admin.id, role=Role.ADMIN)

        assert len(result["ads"]) == 2
        assert result["meta"] == {"total": 5, "page": 2, "limit": 2, "total_pages": 3}

    @pytest.mark.asyncio
    async def test_slot_returns_single_matching_ad(self, db_session, make_ad):
        await make_ad(title="Header", position="HEADER")
        await make_ad(title="Sidebar", type=AdType.BANNER_SIDE, position="SIDEBAR")
        await make_ad(title="Paused header", position="HEADER", status=AdStatus.PAUSED)

        result = await self.service.get_ads(db_session, slot="header")

        assert [ad.title for ad in result["ads"]] == ["Header"]
        assert result["meta"]["total"] == 1

    @pytest.mark.asyncio
    async def test_slot_matches_legacy_ads_by_type(self, db_session, make_ad):
        await make_ad(title="Legacy", type=AdType.BANNER_SIDE, position=None)

        result = await self.service.get_ads(db_session, slot="SIDEBAR")

        assert [ad.title for ad in result["ads"]] == ["Legacy"]

    @pytest.mark.asyncio
    async def test_slider_winner_returns_all_candidates(self, db_session, make_ad):
        await make_ad(title="Slide 1", type=AdType.SLIDER_TOP, position="TOP_BANNER")
        await make_ad(title="Slide 2", type=AdType.SLIDER_TOP, position="TOP_BANNER")

        result = await self.service.get_ads(db_session, slot="TOP_BANNER", limit=10)

        assert {ad.title for ad in result["ads"]} == {"Slide 1", "Slide 2"}
        assert result["meta"]["total"] == 2

    @pytest.mark.asyncio
    async def test_empty_slot(self, db_session):
        result = await self.service.get_ads(db_session, slot="FOOTER")
        assert result["ads"] == []
        assert result["meta"]["total"] == 0

    @pytest.mark.asyncio
    async def test_get_ad_hides_inactive_from_public(self, db_session, make_ad):
        ad = await make_ad(status=AdStatus.PENDING, is_paid=False)

        with pytest.raises(NotFoundError):
            await self.service.get_ad(db_session, ad.id)

        found = await self.service.get_ad(db_session, ad.id, role=Role.ADMIN)
        assert found.id == ad.id


class TestBooking:
    def setup_method(self):
        self.service = AdService()

    def _create_data(self, **overrides) -> AdCreate:
        start = tomorrow_midnight()
        values = {
            "title": "Spring Sale",
            "type": AdType.BANNER_TOP,
            "position": "HEADER",
            "start_date": start,
            "end_date": start + timedelta(days=3),
        }
        values.update(overrides)
        return AdCreate(**values)

    @pytest.mark.asyncio
    async def test_advertiser_ad_starts_pending_with_calculated_price(self, db_session, make_user):
        advertiser = await make_user(Role.ADVERTISER)

        ad = await self.service.create_ad(db_session, self._create_data(), advertiser.id, Role.ADVERTISER)

        assert ad.status == AdStatus.PENDING
        assert ad.is_paid is False
        assert Decimal(ad.price) == Decimal("150.00")
        assert ad.advertiser.id == advertiser.id

    @pytest.mark.asyncio
    async def test_admin_ad_is_active_and_paid(self, db_session, make_user):
        admin = await make_user(Role.ADMIN)

        ad = await self.service.create_ad(db_session, self._create_data(), admin.id, Role.ADMIN)

        assert ad.status == AdStatus.ACTIVE
        assert ad.is_paid is True

    @pytest.mark.asyncio
    async def test_explicit_price_wins(self, db_session, make_user):
        admin = await make_user(Role.ADMIN)

        ad = await self.service.create_ad(
            db_session, self._create_data(price="99.999"), admin.id, Role.ADMIN
        )

        assert Decimal(ad.price) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_start_in_past_rejected(self, db_session, make_user):
        user = await make_user(Role.ADVERTISER)
        start = utcnow() - timedelta(days=2)
        data = self._create_data(start_date=start, end_date=start + timedelta(days=5))

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_ad(db_session, data, user.id, Role.ADVERTISER)
        assert exc_info.value.message == "Start date cannot be in the past"

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, db_session, make_user):
        user = await make_user(Role.ADVERTISER)
        start = tomorrow_midnight()
        data = self._create_data(start_date=start, end_date=start)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_ad(db_session, data, user.id, Role.ADVERTISER)
        assert exc_info.value.message == "End date must be after start date"

    @pytest.mark.asyncio
    async def test_duration_over_maximum_rejected(self, db_session, make_user):
        user = await make_user(Role.ADVERTISER)
        start = tomorrow_midnight()
        data = self._create_data(start_date=start, end_date=start + timedelta(days=400))

        with pytest.raises(ValidationError):
            await self.service.create_ad(db_session, data, user.id, Role.ADVERTISER)

    @pytest.mark.asyncio
    async def test_double_booking_rejected(self, db_session, make_user, make_ad):
        user = await make_user(Role.ADVERTISER)
        start = tomorrow_midnight()
        await make_ad(title="Taken", start_date=start, end_date=start + timedelta(days=2))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_ad(db_session, self._create_data(), user.id, Role.ADVERTISER)
        assert exc_info.value.message == (
            'This date and position are already booked by ad: "Taken". '
            "Please select a different date or position."
        )

    @pytest.mark.asyncio
    async def test_conflict_boundaries_are_inclusive(self, db_session, make_ad):
        start = tomorrow_midnight()
        booked = await make_ad(title="Booked", start_date=start, end_date=start + timedelta(days=5))
        end = start + timedelta(days=5)

        touching = await self.service.check_booking_conflict(db_session, end, end + timedelta(days=2), "HEADER")
        after = await self.service.check_booking_conflict(
            db_session, end + timedelta(days=1), end + timedelta(days=3), "HEADER"
        )

        assert touching == {"is_conflict": True, "conflicting_ad": {"id": booked.id, "title": "Booked"}}
        assert after["is_conflict"] is False

    @pytest.mark.asyncio
    async def test_conflict_scoped_to_position_and_status(self, db_session, make_ad):
        start = tomorrow_midnight()
        end = start + timedelta(days=2)
        await make_ad(title="Sidebar", position="SIDEBAR", start_date=start, end_date=end)
        await make_ad(title="Rejected", status=AdStatus.REJECTED, start_date=start, end_date=end)

        result = await self.service.check_booking_conflict(db_session, start, end, "HEADER")

        assert result == {"is_conflict": False, "conflicting_ad": None}

    @pytest.mark.asyncio
    async def test_conflict_excludes_given_ad(self, db_session, make_ad):
        start = tomorrow_midnight()
        ad = await make_ad(start_date=start, end_date=start + timedelta(days=2))

        result = await self.service.check_booking_conflict(
            db_session, start, start + timedelta(days=1), "HEADER", exclude_id=ad.id
        )

        assert result["is_conflict"] is False

    @pytest.mark.asyncio
    async def test_update_dates_recalculates_price(self, db_session, make_user, make_ad):
        owner = await make_user(Role.ADVERTISER)
        start = tomorrow_midnight()
        ad = await make_ad(owner, start_date=start, end_date=start + timedelta(days=1), price=Decimal("50.00"))

        updated = await self.service.update_ad(
            db_session,
            ad.id,
            AdUpdate(end_date=start + timedelta(days=4)),
            owner.id,
            Role.ADVERTISER,
        )

        assert Decimal(updated.price) == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_update_by_other_advertiser_forbidden(self, db_session, make_user, make_ad):
        owner = await make_user(Role.ADVERTISER)
        intruder = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner)

        with pytest.raises(AuthorizationError):
            await self.service.update_ad(db_session, ad.id, AdUpdate(title="Mine now"), intruder.id, Role.ADVERTISER)

    @pytest.mark.asyncio
    async def test_update_into_booked_position_conflicts(self, db_session, make_user, make_ad):
        admin = await make_user(Role.ADMIN)
        start = tomorrow_midnight()
        end = start + timedelta(days=2)
        await make_ad(title="Footer owner", type=AdType.FOOTER, position="FOOTER", start_date=start, end_date=end)
        ad = await make_ad(title="Mover", start_date=start, end_date=end)

        with pytest.raises(ConflictError):
            await self.service.update_ad(db_session, ad.id, AdUpdate(position="FOOTER"), admin.id, Role.ADMIN)


class TestCalendar:
    def setup_method(self):
        self.service = AdService()

    @pytest.mark.asyncio
    async def test_days_are_clamped_to_month(self, db_session, make_ad):
        await make_ad(
            title="Across months",
            start_date=datetime(2030, 1, 30, 10, 0, tzinfo=timezone.utc),
            end_date=datetime(2030, 2, 2, 10, 0, tzinfo=timezone.utc),
        )

        calendar = await self.service.get_calendar(db_session, 2030, 2)

        assert sorted(calendar) == ["2030-02-01", "2030-02-02"]
        assert calendar["2030-02-01"][0]["title"] == "Across months"

    @pytest.mark.asyncio
    async def test_paused_ads_do_not_block_days(self, db_session, make_ad):
        await make_ad(
            status=AdStatus.PAUSED,
            start_date=datetime(2030, 3, 1, tzinfo=timezone.utc),
            end_date=datetime(2030, 3, 3, tzinfo=timezone.utc),
        )

        assert await self.service.get_calendar(db_session, 2030, 3) == {}

    @pytest.mark.asyncio
    async def test_invalid_month(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.get_calendar(db_session, 2030, 13)


class TestModeration:
    def setup_method(self):
        self.service = AdService()

    @pytest.mark.asyncio
    async def test_approve_requires_payment(self, db_session, make_ad):
        ad = await make_ad(status=AdStatus.PENDING, is_paid=False)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.approve_ad(db_session, ad.id)
        assert exc_info.value.message == "Ad must be paid before approval"

    @pytest.mark.asyncio
    async def test_approve_only_pending(self, db_session, make_ad):
        ad = await make_ad(status=AdStatus.ACTIVE)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.approve_ad(db_session, ad.id)
        assert exc_info.value.message == "Only PENDING ads can be approved"

    @pytest.mark.asyncio
    async def test_approve_activates_and_emails(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER, email="owner@example.com")
        ad = await make_ad(owner, status=AdStatus.PENDING, is_paid=True)

        with patch("newsnext.services.ad_service.email_service") as mock_email:
            mock_email.send_ad_approval_email = AsyncMock(return_value=True)
            approved = await self.service.approve_ad(db_session, ad.id)

        assert approved.status == AdStatus.ACTIVE
        mock_email.send_ad_approval_email.assert_awaited_once()
        assert mock_email.send_ad_approval_email.call_args.args[0] == "owner@example.com"

    @pytest.mark.asyncio
    async def test_approve_survives_email_failure(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, status=AdStatus.PENDING, is_paid=True)

        with patch("newsnext.services.ad_service.email_service") as mock_email:
            mock_email.send_ad_approval_email = AsyncMock(
                side_effect=ExternalServiceError("Email API down", service="email")
            )
            approved = await self.service.approve_ad(db_session, ad.id)

        assert approved.status == AdStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_reject_stores_reason(self, db_session, make_ad):
        ad = await make_ad(status=AdStatus.PENDING, is_paid=False)

        rejected = await self.service.reject_ad(db_session, ad.id, "Image is blurry")

        assert rejected.status == AdStatus.REJECTED
        assert rejected.rejection_reason == "Image is blurry"

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner)

        paused = await self.service.pause_ad(db_session, ad.id, owner.id, Role.ADVERTISER)
        assert paused.status == AdStatus.PAUSED

        resumed = await self.service.resume_ad(db_session, ad.id, owner.id, Role.ADVERTISER)
        assert resumed.status == AdStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_pause_requires_active(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        ad = await make_ad(status=AdStatus.PENDING)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.pause_ad(db_session, ad.id, admin.id, Role.ADMIN)
        assert exc_info.value.message == "Only ACTIVE ads can be paused"

    @pytest.mark.asyncio
    async def test_resume_future_unpaid_goes_pending(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        start = utcnow() + timedelta(days=2)
        ad = await make_ad(
            status=AdStatus.PAUSED, is_paid=False, start_date=start, end_date=start + timedelta(days=3)
        )

        resumed = await self.service.resume_ad(db_session, ad.id, admin.id, Role.ADMIN)

        assert resumed.status == AdStatus.PENDING

    @pytest.mark.asyncio
    async def test_resume_expired_rejected(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        now = utcnow()
        ad = await make_ad(
            status=AdStatus.PAUSED, start_date=now - timedelta(days=10), end_date=now - timedelta(days=1)
        )

        with pytest.raises(ValidationError) as exc_info:
            await self.service.resume_ad(db_session, ad.id, admin.id, Role.ADMIN)
        assert exc_info.value.message == "Cannot resume expired ad"

    @pytest.mark.asyncio
    async def test_pause_by_other_advertiser_forbidden(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        intruder = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner)

        with pytest.raises(AuthorizationError):
            await self.service.pause_ad(db_session, ad.id, intruder.id, Role.ADVERTISER)

    @pytest.mark.asyncio
    async def test_delete_blocked_by_pending_transaction(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, is_paid=False, status=AdStatus.PENDING)
        db_session.add(
            Transaction(
                ad_id=ad.id,
                user_id=owner.id,
                amount=Decimal("100.00"),
                status=TransactionStatus.PENDING,
                stripe_payment_intent_id="pi_pending",
            )
        )
        await db_session.flush()

        with pytest.raises(ConflictError) as exc_info:
            await self.service.delete_ad(db_session, ad.id, owner.id, Role.ADVERTISER)
        assert exc_info.value.message == "Cannot delete ad with active transactions"

    @pytest.mark.asyncio
    async def test_delete_allowed_after_failed_payment(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, is_paid=False, status=AdStatus.PENDING)
        db_session.add(
            Transaction(
                ad_id=ad.id,
                user_id=owner.id,
                amount=Decimal("100.00"),
                status=TransactionStatus.FAILED,
                stripe_payment_intent_id="pi_failed",
            )
        )
        await db_session.flush()

        await self.service.delete_ad(db_session, ad.id, owner.id, Role.ADVERTISER)

        remaining = await db_session.scalar(select(Ad.id).where(Ad.id == ad.id))
        assert remaining is None


class TestPayments:
    def setup_method(self):
        self.service = AdService()

    @pytest.mark.asyncio
    async def test_create_payment_intent_records_transaction(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, status=AdStatus.PENDING, is_paid=False, price=Decimal("150.00"))

        with patch("newsnext.services.ad_service.payment_service") as mock_payments:
            mock_payments.create_payment_intent = AsyncMock(
                return_value={"id": "pi_123", "client_secret": "pi_123_secret"}
            )
            result = await self.service.create_payment_intent(db_session, ad.id, owner.id)

        assert result == {"client_secret": "pi_123_secret", "amount": 150.0, "currency": "eur"}
        assert mock_payments.create_payment_intent.call_args.args[0] == 15000
        status = await db_session.scalar(
            select(Transaction.status).where(Transaction.stripe_payment_intent_id == "pi_123")
        )
        assert status == TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_payment_intent_only_for_owner(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        other = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, is_paid=False)

        with pytest.raises(AuthorizationError):
            await self.service.create_payment_intent(db_session, ad.id, other.id)

    @pytest.mark.asyncio
    async def test_payment_intent_for_paid_ad_conflicts(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, is_paid=True)

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_payment_intent(db_session, ad.id, owner.id)
        assert exc_info.value.message == "Ad is already paid"

    @pytest.mark.asyncio
    async def test_succeeded_webhook_marks_ad_paid(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, status=AdStatus.PENDING, is_paid=False)
        db_session.add(
            Transaction(
                ad_id=ad.id,
                user_id=owner.id,
                amount=Decimal("100.00"),
                status=TransactionStatus.PENDING,
                stripe_payment_intent_id="pi_ok",
            )
        )
        await db_session.flush()
        event = {
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_ok", "metadata": {"adId": str(ad.id)}}},
        }

        changed = await self.service.handle_stripe_webhook(db_session, event)

        assert changed is True
        row = (await db_session.execute(select(Ad.is_paid, Ad.status).where(Ad.id == ad.id))).one()
        assert row.is_paid is True
        assert row.status == AdStatus.ACTIVE
        tx_status = await db_session.scalar(
            select(Transaction.status).where(Transaction.stripe_payment_intent_id == "pi_ok")
        )
        assert tx_status == TransactionStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_failed_webhook_marks_transaction_failed(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        ad = await make_ad(owner, status=AdStatus.PENDING, is_paid=False)
        db_session.add(
            Transaction(
                ad_id=ad.id,
                user_id=owner.id,
                amount=Decimal("100.00"),
                status=TransactionStatus.PENDING,
                stripe_payment_intent_id="pi_bad",
            )
        )
        await db_session.flush()
        event = {"type": "payment_intent.payment_failed", "data": {"object": {"id": "pi_bad"}}}

        assert await self.service.handle_stripe_webhook(db_session, event) is True
        tx_status = await db_session.scalar(
            select(Transaction.status).where(Transaction.stripe_payment_intent_id == "pi_bad")
        )
        assert tx_status == TransactionStatus.FAILED

    @pytest.mark.asyncio
    async def test_webhook_for_unknown_ad_is_acknowledged(self, db_session):
        event = {
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_ghost", "metadata": {"adId": str(uuid.uuid4())}}},
        }

        assert await self.service.handle_stripe_webhook(db_session, event) is False

    @pytest.mark.asyncio
    async def test_unrelated_event_ignored(self, db_session):
        assert await self.service.handle_stripe_webhook(db_session, {"type": "charge.refunded"}) is False


class TestTrackingAndAnalytics:
    def setup_method(self):
        self.service = AdService()

    @pytest.mark.asyncio
    async def test_track_impression_increments_and_reports(self, db_session, make_ad):
        ad = await make_ad(title="Counted")

        with patch("newsnext.services.ad_service.analytics_service") as mock_analytics:
            mock_analytics.track_ad_impression = MagicMock()
            await self.service.track_impression(db_session, ad.id)
            await self.service.track_impression(db_session, ad.id)

        impressions = await db_session.scalar(select(Ad.impressions).where(Ad.id == ad.id))
        assert impressions == 2
        mock_analytics.track_ad_impression.assert_called_with(str(ad.id), "Counted")

    @pytest.mark.asyncio
    async def test_track_click_unknown_ad(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.track_click(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_ad_analytics_ctr(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        ad = await make_ad(impressions=200, clicks=7)

        stats = await self.service.get_ad_analytics(db_session, ad.id, admin.id, Role.ADMIN)

        assert stats["ctr"] == 3.5
        assert stats["impressions"] == 200

    @pytest.mark.asyncio
    async def test_ctr_zero_without_impressions(self, db_session, make_ad, make_user):
        admin = await make_user(Role.ADMIN)
        ad = await make_ad(impressions=0, clicks=0)

        stats = await self.service.get_ad_analytics(db_session, ad.id, admin.id, Role.ADMIN)

        assert stats["ctr"] == 0.0

    @pytest.mark.asyncio
    async def test_advertiser_totals(self, db_session, make_ad, make_user):
        owner = await make_user(Role.ADVERTISER)
        await make_ad(owner, impressions=100, clicks=1)
        await make_ad(owner, impressions=300, clicks=3)
        await make_ad(impressions=1000, clicks=500)

        stats = await self.service.get_advertiser_analytics(db_session, owner.id)

        assert stats["total_ads"] == 2
        assert stats["total_impressions"] == 400
        assert stats["total_clicks"] == 4
        assert stats["average_ctr"] == 1.0
