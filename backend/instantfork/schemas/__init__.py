"""Pydantic schemas for the InstantFork API.

All request/response models are defined here for easy import.
"""

from instantfork.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, ListMeta
from instantfork.schemas.auth import (
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from instantfork.schemas.claim import (
    ClaimQRResponse,
    ClaimResponse,
    ClaimResult,
    RedeemRequest,
    RedeemResult,
    RedeemScanRequest,
    RestaurantClaimResponse,
)
from instantfork.schemas.deal import DealCreateRequest, DealResponse, DealUpdateRequest, RestaurantBrief
from instantfork.schemas.health import HealthCheckResponse
from instantfork.schemas.location import LocationResolveResponse, ServiceLocationResponse
from instantfork.schemas.restaurant import (
    DashboardStatsResponse,
    RestaurantCreateRequest,
    RestaurantResponse,
    RestaurantUpdateRequest,
)
from instantfork.schemas.user import (
    DealHistoryResponse,
    FavoriteResponse,
    PreferencesResponse,
    PreferencesUpdateRequest,
    RatingRequest,
    RatingResponse,
    RatingSummaryResponse,
)

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "ListMeta",
    # Auth
    "LoginRequest",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    # Claim
    "ClaimQRResponse",
    "ClaimResponse",
    "ClaimResult",
    "RedeemRequest",
    "RedeemResult",
    "RedeemScanRequest",
    "RestaurantClaimResponse",
    # Deal
    "DealCreateRequest",
    "DealResponse",
    "DealUpdateRequest",
    "RestaurantBrief",
    # Health
    "HealthCheckResponse",
    # Location
    "LocationResolveResponse",
    "ServiceLocationResponse",
    # Restaurant
    "DashboardStatsResponse",
    "RestaurantCreateRequest",
    "RestaurantResponse",
    "RestaurantUpdateRequest",
    # User
    "DealHistoryResponse",
    "FavoriteResponse",
    "PreferencesResponse",
    "PreferencesUpdateRequest",
    "RatingRequest",
    "RatingResponse",
    "RatingSummaryResponse",
]
