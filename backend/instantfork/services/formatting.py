"""Display helpers for prices, savings and countdowns."""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union
from zoneinfo import ZoneInfo

from instantfork.config import settings
from instantfork.models.base import ensure_aware, utcnow

Number = Union[Decimal, float, int, str]


def calculate_savings(original_price: Number, deal_price: Number) -> int:
    """Percentage saved, rounded half up to a whole percent.

    >>> calculate_savings(45, "22.50")
    50
    """
    original = Decimal(str(original_price))
    deal = Decimal(str(deal_price))
    if original == 0:
        return 0
    pct = (original - deal) / original * 100
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(price: Number) -> str:
    amount = Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"${amount}"


def _whole_minutes_until(target: datetime, now: Optional[datetime]) -> int:
    now = ensure_aware(now) if now else utcnow()
    seconds = (ensure_aware(target) - now).total_seconds()
    return int(seconds // 60)


def format_time_remaining(end_time: datetime, now: Optional[datetime] = None) -> str:
    """Countdown text for a deal: "2d left", "3h 15m left", "40m left" or "Expired"."""
    total_minutes = _whole_minutes_until(end_time, now)
    if total_minutes <= 0:
        return "Expired"

    hours, minutes = divmod(total_minutes, 60)
    if hours > 24:
        return f"{hours // 24}d left"
    if hours > 0:
        return f"{hours}h {minutes}m left"
    return f"{minutes}m left"


def get_claim_time_remaining(expires_at: datetime, now: Optional[datetime] = None) -> str:
    """Countdown text for a claim; never rolls up into days."""
    now = ensure_aware(now) if now else utcnow()
    if ensure_aware(expires_at) <= now:
        return "Expired"

    hours, minutes = divmod(_whole_minutes_until(expires_at, now), 60)
    if hours > 0:
        return f"{hours}h {minutes}m left"
    return f"{minutes}m left"


def hours_remaining(end_time: datetime, now: Optional[datetime] = None) -> int:
    """Whole hours until ``end_time``; negative once it has passed."""
    now = ensure_aware(now) if now else utcnow()
    seconds = (ensure_aware(end_time) - now).total_seconds()
    # truncate toward zero
    return int(seconds / 3600)


def get_time_of_day(now: Optional[datetime] = None) -> str:
    """Meal period in the service region's local time."""
    now = ensure_aware(now) if now else utcnow()
    hour = now.astimezone(ZoneInfo(settings.SERVICE_TIMEZONE)).hour
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"
