"""
NewsNext Backend — Ad Schemas
==============================

Request bodies validate shape only (types, lengths, enums). Date-range,
duration, price and booking rules live in AdService because they depend
on "today" and on other rows.

`price` accepts a number or a numeric string on input, matching what the
admin dashboard sends from a text field; AdService parses and bounds it.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from newsnext.models.enums import AdStatus, AdType
from newsnext.schemas.common import PageMeta
from newsnext.schemas.user import AdvertiserSummary

PriceInput = Optional[Union[float, str]]


class AdCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    type: AdType
    position: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=500)
    target_url: Optional[str] = Field(default=None, max_length=500)
    start_date: datetime
    end_date: datetime
    price: PriceInput = Field(default=None, description="Override the calculated price")


class AdUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[AdType] = None
    position: Optional[str] = Field(default=None, max_length=50)
    image_url: Optional[str] = Field(default=None, max_length=500)
    target_url: Optional[str] = Field(default=None, max_length=500)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    price: PriceInput = None


class AdRejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class AdResponse(BaseModel):
    id: uuid.UUID
    title: str
    type: AdType
    position: Optional[str] = None
    image_url: Optional[str] = None
    target_url: Optional[str] = None
    start_date: datetime
    end_date: datetime
    status: AdStatus
    price: float
    is_paid: bool
    impressions: int
    clicks: int
    rejection_reason: Optional[str] = None
    advertiser_id: Optional[uuid.UUID] = None
    advertiser: Optional[AdvertiserSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdListResponse(BaseModel):
    ads: List[AdResponse]
    meta: PageMeta


class ConflictingAd(BaseModel):
    id: uuid.UUID
    title: str


class BookingConflict(BaseModel):
    is_conflict: bool
    conflicting_ad: Optional[ConflictingAd] = None


class PaymentIntentResponse(BaseModel):
    client_secret: Optional[str]
    amount: float
    currency: str


class AdAnalytics(BaseModel):
    ad_id: uuid.UUID
    title: str
    impressions: int
    clicks: int
    ctr: float = Field(description="Click-through rate in percent, 2 decimals")
    status: AdStatus
    start_date: datetime
    end_date: datetime
    created_at: datetime


class AdvertiserAnalytics(BaseModel):
    total_ads: int
    total_impressions: int
    total_clicks: int
    average_ctr: float
    ads: List[AdAnalytics]


class CalendarEntry(BaseModel):
    id: uuid.UUID
    title: str
    position: Optional[str] = None
    type: AdType
    status: AdStatus


CalendarData = Dict[str, List[CalendarEntry]]
