"""Deal catalog service.

Reads the live catalog for diners (search, featured, single deal with view
counting) and handles the owner-side lifecycle of a restaurant's deals
(create, edit, activate/deactivate).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from instantfork.core.exceptions import InvalidDealError, NotFoundError
from instantfork.models.base import ensure_aware, to_utc, utcnow
from instantfork.models.deal import Deal
from instantfork.models.restaurant import Restaurant
from instantfork.services.deal_filters import DealFilters, featured_deals, filter_deals, suggest_best_deal
from instantfork.services.geo import UserLocation

logger = structlog.get_logger(__name__)

_TIME_FIELDS = ("start_time", "end_time")


class DealService:
    """Service for managing deals.

    Handles catalog reads, filtering via the pure predicate evaluator, and
    owner-side deal CRUD.
    """

    def __init__(self, db: AsyncSession):
        """Initialize deal service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="deal_service")

    async def get_active_deals(self, now: Optional[datetime] = None) -> List[Deal]:
        """Active, not-yet-ended deals with restaurants loaded, newest first."""
        now = ensure_aware(now) if now else utcnow()

        query = (
            select(Deal)
            .options(selectinload(Deal.restaurant))
            .where(Deal.is_active == True)
            .where(Deal.end_time > now)
            .order_by(Deal.created_at.desc())
        )
        result = await self.db.execute(query)
        deals = list(result.scalars().all())

        self.logger.debug("active_deals_fetched", count=len(deals))
        return deals

    async def search_deals(
        self,
        filters: DealFilters,
        query: Optional[str] = None,
        user_location: Optional[UserLocation] = None,
        now: Optional[datetime] = None,
    ) -> List[Deal]:
        """Catalog narrowed by the filter predicates and free-text query.

        Args:
            filters: Active predicates
            query: Free-text search
            user_location: Enables distance filtering when present
            now: Clock override (tests)

        Returns:
            Matching deals in catalog order
        """
        now = ensure_aware(now) if now else utcnow()
        catalog = await self.get_active_deals(now=now)
        deals = filter_deals(catalog, filters, query=query, user_location=user_location, now=now)

        self.logger.info(
            "deals_searched",
            catalog=len(catalog),
            matched=len(deals),
            query=query,
            has_location=user_location is not None,
        )
        return deals

    async def get_featured_deals(self, limit: int = 6) -> List[Deal]:
        """Highest-discount live deals."""
        return featured_deals(await self.get_active_deals(), limit=limit)

    async def suggest_deal(
        self,
        user_location: UserLocation,
        now: Optional[datetime] = None,
    ) -> Optional[Deal]:
        """Best deal to eat right now near the user."""
        now = ensure_aware(now) if now else utcnow()
        deals = await self.get_active_deals(now=now)
        return suggest_best_deal(deals, user_location, now=now)

    async def get_deal_by_id(self, deal_id: UUID, count_view: bool = True) -> Optional[Deal]:
        """Get single deal with its restaurant loaded.

        Also increments the view count for the deal unless told otherwise.

        Args:
            deal_id: Deal UUID
            count_view: Whether this read counts as a view

        Returns:
            Deal object or None if not found
        """
        query = (
            select(Deal)
            .options(selectinload(Deal.restaurant))
            .where(Deal.id == deal_id)
        )

        result = await self.db.execute(query)
        deal = result.scalar_one_or_none()

        if deal and count_view:
            deal.view_count += 1
            await self.db.commit()

            self.logger.info(
                "deal_viewed",
                deal_id=str(deal_id),
                view_count=deal.view_count,
            )

        return deal

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------

    async def get_restaurant_deals(self, restaurant_id: UUID) -> List[Deal]:
        """Every deal of a restaurant regardless of status, newest first."""
        result = await self.db.execute(
            select(Deal)
            .options(selectinload(Deal.restaurant))
            .where(Deal.restaurant_id == restaurant_id)
            .order_by(Deal.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_restaurant_deal(self, restaurant_id: UUID, deal_id: UUID) -> Deal:
        """A deal that must belong to the restaurant.

        Raises:
            NotFoundError: missing, or owned by another restaurant
        """
        result = await self.db.execute(
            select(Deal)
            .options(selectinload(Deal.restaurant))
            .where(Deal.id == deal_id, Deal.restaurant_id == restaurant_id)
        )
        deal = result.scalar_one_or_none()
        if deal is None:
            raise NotFoundError("Deal", str(deal_id))
        return deal

    async def create_deal(self, restaurant: Restaurant, data: Dict[str, Any]) -> Deal:
        """Publish a new deal for a restaurant.

        The deal's point defaults to the restaurant's location.

        Args:
            restaurant: Owning restaurant
            data: Validated field values (see ``DealCreateRequest``)

        Returns:
            Created Deal
        """
        values = dict(data)
        for key in _TIME_FIELDS:
            if values.get(key) is not None:
                values[key] = to_utc(values[key])

        if values.get("latitude") is None or values.get("longitude") is None:
            values["latitude"] = restaurant.latitude
            values["longitude"] = restaurant.longitude

        deal = Deal(restaurant_id=restaurant.id, **values)
        self.db.add(deal)
        await self.db.commit()
        deal = await self.get_restaurant_deal(restaurant.id, deal.id)

        self.logger.info(
            "deal_created",
            deal_id=str(deal.id),
            restaurant_id=str(restaurant.id),
            deal_price=float(deal.deal_price),
        )
        return deal

    async def update_deal(self, deal: Deal, data: Dict[str, Any]) -> Deal:
        """Apply a partial update from the owner dashboard."""
        for key, value in data.items():
            if key in _TIME_FIELDS and value is not None:
                value = to_utc(value)
            setattr(deal, key, value)

        if deal.deal_price > deal.original_price:
            raise InvalidDealError("Deal price cannot exceed the original price")
        if ensure_aware(deal.end_time) <= ensure_aware(deal.start_time):
            raise InvalidDealError("Deal must end after it starts")

        await self.db.commit()
        deal = await self.get_restaurant_deal(deal.restaurant_id, deal.id)

        self.logger.info("deal_updated", deal_id=str(deal.id), fields=sorted(data))
        return deal

    async def set_active(self, deal: Deal, active: bool) -> Deal:
        deal.is_active = active
        await self.db.commit()

        self.logger.info("deal_active_toggled", deal_id=str(deal.id), is_active=active)
        return deal
