"""SQLAlchemy models for InstantFork.

All models are imported here so ``Base.metadata`` knows every table.
"""

from instantfork.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from instantfork.models.user import User
from instantfork.models.restaurant import Restaurant
from instantfork.models.deal import Deal
from instantfork.models.claimed_deal import ClaimedDeal
from instantfork.models.favorite import Favorite
from instantfork.models.deal_history import DealHistory
from instantfork.models.user_preferences import UserPreferences
from instantfork.models.app_rating import AppRating

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "Restaurant",
    "Deal",
    "ClaimedDeal",
    "Favorite",
    "DealHistory",
    "UserPreferences",
    "AppRating",
]
