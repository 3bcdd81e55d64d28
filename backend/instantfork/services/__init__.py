"""Services module for business logic and data operations.

Services own the rules of the InstantFork platform: the deal catalog,
claiming and redeeming, the restaurant back office and the diner's personal
data. Pure helpers (geo, filters, formatting, claim codes, QR payloads) live
alongside them as plain functions.
"""

from instantfork.services.auth_service import AuthService
from instantfork.services.claim_service import ClaimService
from instantfork.services.deal_service import DealService
from instantfork.services.geocoding_service import GeocodingService
from instantfork.services.restaurant_service import RestaurantService
from instantfork.services.user_service import UserService

__all__ = [
    "AuthService",
    "ClaimService",
    "DealService",
    "GeocodingService",
    "RestaurantService",
    "UserService",
]
