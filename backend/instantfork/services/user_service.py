"""Diner-side personal features: profile, favorites, history, preferences, ratings."""

import uuid
from typing import Any, Dict, List

import structlog
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from instantfork.core.exceptions import NotFoundError
from instantfork.models.app_rating import AppRating
from instantfork.models.deal import Deal
from instantfork.models.deal_history import DealHistory
from instantfork.models.favorite import Favorite
from instantfork.models.user import User
from instantfork.models.user_preferences import UserPreferences

logger = structlog.get_logger(__name__)


class UserService:
    """Service for the signed-in diner's own data."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="user_service")

    async def update_profile(self, user: User, data: Dict[str, Any]) -> User:
        for key, value in data.items():
            setattr(user, key, value)
        await self.db.flush()

        self.logger.info("profile_updated", user_id=str(user.id), fields=sorted(data))
        return user

    # Favorites

    async def add_favorite(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> bool:
        """Bookmark a deal.

        Adding an existing favorite is a no-op.

        Args:
            user_id: Diner
            deal_id: Deal to save

        Returns:
            True if a new favorite was created, False if it already existed

        Raises:
            NotFoundError: If the deal does not exist
        """
        deal = await self.db.get(Deal, deal_id)
        if deal is None:
            raise NotFoundError("Deal", str(deal_id))

        existing = await self.db.execute(
            select(Favorite).where(Favorite.user_id == user_id, Favorite.deal_id == deal_id)
        )
        if existing.scalar_one_or_none():
            return False

        self.db.add(Favorite(user_id=user_id, deal_id=deal_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent add of the same pair
            await self.db.rollback()
            return False

        self.logger.info("favorite_added", user_id=str(user_id), deal_id=str(deal_id))
        return True

    async def remove_favorite(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> bool:
        """Remove a bookmark. Returns False if there was nothing to remove."""
        result = await self.db.execute(
            delete(Favorite)
            .where(Favorite.user_id == user_id, Favorite.deal_id == deal_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        removed = result.rowcount > 0
        if removed:
            self.logger.info("favorite_removed", user_id=str(user_id), deal_id=str(deal_id))
        return removed

    async def get_favorite_deals(self, user_id: uuid.UUID) -> List[Deal]:
        """Saved deals, most recently saved first."""
        result = await self.db.execute(
            select(Deal)
            .join(Favorite, Favorite.deal_id == Deal.id)
            .options(selectinload(Deal.restaurant))
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc())
        )
        return list(result.scalars().all())

    # History

    async def get_history(self, user_id: uuid.UUID) -> List[DealHistory]:
        result = await self.db.execute(
            select(DealHistory)
            .where(DealHistory.user_id == user_id)
            .order_by(DealHistory.redeemed_at.desc())
        )
        return list(result.scalars().all())

    # Preferences

    async def get_preferences(self, user_id: uuid.UUID) -> UserPreferences:
        """Stored preferences, created with defaults on first access."""
        result = await self.db.execute(
            select(UserPreferences).where(UserPreferences.user_id == user_id)
        )
        prefs = result.scalar_one_or_none()
        if prefs is None:
            prefs = UserPreferences(user_id=user_id)
            self.db.add(prefs)
            await self.db.flush()
            await self.db.refresh(prefs)
        return prefs

    async def update_preferences(self, user_id: uuid.UUID, data: Dict[str, Any]) -> UserPreferences:
        prefs = await self.get_preferences(user_id)
        for key, value in data.items():
            setattr(prefs, key, value)
        await self.db.flush()

        self.logger.info("preferences_updated", user_id=str(user_id), fields=sorted(data))
        return prefs

    # Ratings

    async def rate_app(self, user_id: uuid.UUID, rating: int, review: str = None) -> AppRating:
        """Create or replace the user's app rating."""
        result = await self.db.execute(select(AppRating).where(AppRating.user_id == user_id))
        app_rating = result.scalar_one_or_none()

        if app_rating is None:
            app_rating = AppRating(user_id=user_id, rating=rating, review=review)
            self.db.add(app_rating)
        else:
            app_rating.rating = rating
            app_rating.review = review
        await self.db.flush()

        self.logger.info("app_rated", user_id=str(user_id), rating=rating)
        return app_rating

    async def get_rating_summary(self) -> Dict[str, Any]:
        """Average rating rounded to one decimal and the number of ratings."""
        row = (await self.db.execute(
            select(func.avg(AppRating.rating), func.count(AppRating.id))
        )).one()

        average, count = row
        return {
            "average_rating": round(float(average), 1) if average is not None else 0.0,
            "total_ratings": int(count),
        }
