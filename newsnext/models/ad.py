"""
NewsNext Backend — Ad & Transaction Models
===========================================

What:  `ads` (bookable placements) and `transactions` (Stripe payments).

Table Design Rationale:
    - position is a free-form string (HEADER, SIDEBAR, ...) and nullable:
      legacy ads only carry a type, and slot lookup falls back to the
      type for them
    - price is Numeric(10, 2): the service rejects anything above
      99,999,999.99 before it reaches the column
    - impressions/clicks are incremented with UPDATE ... SET x = x + 1 so
      concurrent trackers never lose counts
    - advertiser_id is nullable: deleting an advertiser detaches their ads
      instead of deleting paid placements

    Index on (status, start_date, end_date):
        Serves both slot rotation (ACTIVE + in date) and the booking
        conflict / calendar overlap queries.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsnext.database import Base, UTCDateTime, utcnow
from newsnext.models.enums import AdStatus, AdType, TransactionStatus
from newsnext.models.user import User


class Ad(Base):
    __tablename__ = "ads"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[AdType] = mapped_column(SAEnum(AdType, native_enum=False, length=32), nullable=False)
    position: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    target_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status: Mapped[AdStatus] = mapped_column(
        SAEnum(AdStatus, native_enum=False, length=32),
        nullable=False,
        default=AdStatus.PENDING,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    impressions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    advertiser_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    advertiser: Mapped[Optional[User]] = relationship(lazy="selectin")
    transactions: Mapped[List["Transaction"]] = relationship(
        back_populates="ad",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_ads_status_dates", "status", "start_date", "end_date"),
        Index("idx_ads_advertiser_id", "advertiser_id"),
        Index("idx_ads_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Ad(id={self.id}, title='{self.title}', status='{self.status}')>"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ad_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ads.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="eur")
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(TransactionStatus, native_enum=False, length=32),
        nullable=False,
        default=TransactionStatus.PENDING,
    )
    stripe_payment_intent_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, unique=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    ad: Mapped[Ad] = relationship(back_populates="transactions")
