"""Restaurant back-office service."""

import uuid
from typing import Any, Dict, Optional

import structlog
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.core.exceptions import ConflictError, NotFoundError
from instantfork.models.claimed_deal import CLAIM_STATUS_REDEEMED, ClaimedDeal
from instantfork.models.deal import Deal
from instantfork.models.restaurant import Restaurant
from instantfork.services.geo import check_service_area

logger = structlog.get_logger(__name__)


class RestaurantService:
    """Handles an owner's restaurant profile and dashboard numbers."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="restaurant_service")

    async def create_restaurant(self, owner_id: uuid.UUID, data: Dict[str, Any]) -> Restaurant:
        """Register the owner's restaurant. One restaurant per owner."""
        if await self.get_by_owner(owner_id):
            raise ConflictError("You already have a restaurant registered")

        check_service_area(data["latitude"], data["longitude"])

        restaurant = Restaurant(owner_id=owner_id, **data)
        self.db.add(restaurant)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("You already have a restaurant registered")

        self.logger.info(
            "restaurant_created",
            restaurant_id=str(restaurant.id),
            owner_id=str(owner_id),
        )
        return restaurant

    async def get_by_owner(self, owner_id: uuid.UUID) -> Optional[Restaurant]:
        stmt = select(Restaurant).where(Restaurant.owner_id == owner_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def require_by_owner(self, owner_id: uuid.UUID) -> Restaurant:
        """The owner's restaurant, or NotFoundError for non-owners."""
        restaurant = await self.get_by_owner(owner_id)
        if restaurant is None:
            raise NotFoundError("Restaurant", f"owner:{owner_id}")
        return restaurant

    async def update_restaurant(self, restaurant: Restaurant, data: Dict[str, Any]) -> Restaurant:
        if "latitude" in data or "longitude" in data:
            check_service_area(
                data.get("latitude", restaurant.latitude),
                data.get("longitude", restaurant.longitude),
            )

        for key, value in data.items():
            setattr(restaurant, key, value)
        await self.db.flush()

        self.logger.info(
            "restaurant_updated",
            restaurant_id=str(restaurant.id),
            fields=sorted(data),
        )
        return restaurant

    async def get_dashboard_stats(self, restaurant_id: uuid.UUID) -> Dict[str, int]:
        """Headline numbers for the owner dashboard."""
        deal_row = (await self.db.execute(
            select(
                func.count(Deal.id),
                func.count(Deal.id).filter(Deal.is_active == True),
                func.coalesce(func.sum(Deal.view_count), 0),
            ).where(Deal.restaurant_id == restaurant_id)
        )).one()

        claim_row = (await self.db.execute(
            select(
                func.count(ClaimedDeal.id),
                func.count(ClaimedDeal.id).filter(ClaimedDeal.status == CLAIM_STATUS_REDEEMED),
            ).where(ClaimedDeal.restaurant_id == restaurant_id)
        )).one()

        return {
            "total_deals": int(deal_row[0]),
            "active_deals": int(deal_row[1]),
            "total_views": int(deal_row[2]),
            "total_claims": int(claim_row[0]),
            "redeemed_claims": int(claim_row[1]),
        }
