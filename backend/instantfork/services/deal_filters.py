"""Catalog filtering, featured ranking and the "Hungry now" suggestion.

Everything here is a pure function over already-loaded deals: no database
access, no mutation. Deals only need the attributes of ``models.Deal`` with
its ``restaurant`` relationship populated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from instantfork.models.base import ensure_aware, utcnow
from instantfork.models.deal import Deal
from instantfork.services.formatting import calculate_savings, get_time_of_day, hours_remaining
from instantfork.services.geo import UserLocation, calculate_distance

MEAL_TAGS = {
    "morning": ["breakfast", "coffee", "brunch"],
    "afternoon": ["lunch", "quick-bite"],
    "evening": ["dinner", "happy-hour"],
    "night": ["dinner", "late-night"],
}


@dataclass
class DealFilters:
    """Active catalog predicates. ``None`` / empty disables a predicate."""

    cuisines: List[str] = field(default_factory=list)
    max_price: Optional[Decimal] = None
    max_distance_miles: Optional[float] = None
    max_hours_left: Optional[int] = None
    dietary_needs: List[str] = field(default_factory=list)


def deal_distance(deal: Deal, location: UserLocation) -> Optional[float]:
    """Miles from the user to the deal, or None when the deal has no point."""
    if deal.latitude is None or deal.longitude is None:
        return None
    return calculate_distance(location.latitude, location.longitude, deal.latitude, deal.longitude)


def _matches_query(deal: Deal, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True

    restaurant = deal.restaurant
    fields = [deal.title, deal.description]
    if restaurant is not None:
        fields.extend([restaurant.name, restaurant.category])
    fields.extend(deal.tags or [])

    return any(needle in value.lower() for value in fields if value)


def _matches_dietary(deal: Deal, needs: Sequence[str]) -> bool:
    tags = [tag.lower() for tag in (deal.tags or [])]
    return any(need.lower() in tag for need in needs for tag in tags)


def matches_filters(
    deal: Deal,
    filters: DealFilters,
    query: Optional[str] = None,
    user_location: Optional[UserLocation] = None,
    now: Optional[datetime] = None,
) -> bool:
    """True when the deal satisfies every active predicate."""
    now = ensure_aware(now) if now else utcnow()

    if filters.max_price is not None and Decimal(deal.deal_price) > Decimal(str(filters.max_price)):
        return False

    if user_location is not None and filters.max_distance_miles is not None:
        distance = deal_distance(deal, user_location)
        if distance is None or distance > filters.max_distance_miles:
            return False

    # Ended deals never show, whatever the ceiling
    if ensure_aware(deal.end_time) <= now:
        return False
    if filters.max_hours_left is not None:
        if hours_remaining(deal.end_time, now) > filters.max_hours_left:
            return False

    if filters.cuisines:
        category = deal.restaurant.category if deal.restaurant is not None else None
        if category not in filters.cuisines:
            return False

    if filters.dietary_needs and not _matches_dietary(deal, filters.dietary_needs):
        return False

    if query and not _matches_query(deal, query):
        return False

    return True


def filter_deals(
    deals: Iterable[Deal],
    filters: DealFilters,
    query: Optional[str] = None,
    user_location: Optional[UserLocation] = None,
    now: Optional[datetime] = None,
) -> List[Deal]:
    """Stable subsequence of ``deals`` matching all active predicates."""
    now = ensure_aware(now) if now else utcnow()
    return [
        deal for deal in deals
        if matches_filters(deal, filters, query=query, user_location=user_location, now=now)
    ]


def featured_deals(deals: Iterable[Deal], limit: int = 6) -> List[Deal]:
    """Biggest discounts first; ties keep catalog order."""
    ranked = sorted(deals, key=lambda d: d.discount_percentage, reverse=True)
    return ranked[:limit]


def score_deal(deal: Deal, user_location: UserLocation, now: datetime) -> float:
    """Heuristic "Hungry now" score: proximity, savings, meal fit and urgency."""
    score = 0.0

    distance = deal_distance(deal, user_location)
    if distance is not None:
        score += (10 - min(distance, 10)) * 10

    score += calculate_savings(deal.original_price, deal.deal_price)

    relevant = MEAL_TAGS[get_time_of_day(now)]
    if any(pref in tag for tag in (deal.tags or []) for pref in relevant):
        score += 20

    hours_left = hours_remaining(deal.end_time, now)
    if hours_left < 2:
        score += 15
    elif hours_left < 4:
        score += 10

    return score


def suggest_best_deal(
    deals: Sequence[Deal],
    user_location: Optional[UserLocation],
    now: Optional[datetime] = None,
) -> Optional[Deal]:
    """The single best deal to eat right now, or None without deals or location."""
    if not deals or user_location is None:
        return None

    now = ensure_aware(now) if now else utcnow()
    live = [deal for deal in deals if ensure_aware(deal.end_time) > now]
    if not live:
        return None

    # max() keeps the first of equal scores
    return max(live, key=lambda deal: score_deal(deal, user_location, now))
