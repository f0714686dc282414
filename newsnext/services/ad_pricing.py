"""
Ad pricing: a daily rate per ad type multiplied by the booked days.

Rates come from settings (AD_DAILY_RATES, JSON) so sales can change them
without a deploy; types missing from the table use AD_DEFAULT_DAILY_RATE.
"""

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from newsnext.config import settings
from newsnext.models.enums import AdType

SECONDS_PER_DAY = 24 * 60 * 60


def booking_days(start: datetime, end: datetime) -> int:
    """Whole days covered by [start, end], rounding partial days up."""
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def daily_rate(ad_type: Union[AdType, str]) -> Decimal:
    key = ad_type.value if isinstance(ad_type, AdType) else str(ad_type).upper()
    rate = settings.ad_daily_rates.get(key, settings.ad_default_daily_rate)
    return Decimal(str(rate))


def calculate_ad_price(ad_type: Union[AdType, str], start: datetime, end: datetime) -> Decimal:
    days = max(booking_days(start, end), 0)
    price = daily_rate(ad_type) * days
    return price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
