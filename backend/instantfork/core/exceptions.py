"""Custom exception classes for the application.

Every exception carries a machine-readable ``code`` and the HTTP status it
maps to, so the API layer can render them without branching on type.
"""

from typing import Any, Dict, Optional


class InstantForkException(Exception):
    """Base exception for all InstantFork errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)

    def extra(self) -> Optional[Dict[str, Any]]:
        """Additional structured data for the error response."""
        return None


class NotFoundError(InstantForkException):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class ConflictError(InstantForkException):
    """Raised when a write collides with existing state."""

    code = "CONFLICT"
    status_code = 409


class ServiceAreaError(InstantForkException):
    """Raised when a coordinate falls outside the supported metro region."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 422

    def __init__(self, latitude: float, longitude: float, nearest: Optional[dict] = None):
        self.latitude = latitude
        self.longitude = longitude
        self.nearest = nearest
        super().__init__(
            "InstantFork is not available in your area yet. "
            "We currently serve Washington DC, Maryland and Northern Virginia."
        )

    def extra(self) -> Optional[Dict[str, Any]]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "nearest_location": self.nearest,
        }


class GeocodingError(InstantForkException):
    """Raised when the reverse geocoder cannot resolve a coordinate."""

    code = "GEOCODING_FAILED"
    status_code = 502


# Claim issuing

class ClaimError(InstantForkException):
    """Base class for failures while claiming a deal."""

    code = "CLAIM_FAILED"
    status_code = 409


class DealUnavailableError(ClaimError):
    """Deal is inactive, has not started yet, or has already ended."""

    code = "DEAL_UNAVAILABLE"


class DealSoldOutError(ClaimError):
    """No remaining quantity for the deal."""

    code = "SOLD_OUT"

    def __init__(self, message: str = "This deal has been fully claimed"):
        super().__init__(message)


class AlreadyClaimedError(ClaimError):
    """User already holds an active claim for the deal."""

    code = "ALREADY_CLAIMED"

    def __init__(self, message: str = "You have already claimed this deal"):
        super().__init__(message)


class ClaimCodeGenerationError(ClaimError):
    """Could not draw an unused claim code."""

    code = "CLAIM_CODE_EXHAUSTED"
    status_code = 503


# Redemption

class RedeemError(InstantForkException):
    """Base class for failures while redeeming a claim."""

    code = "REDEEM_FAILED"
    status_code = 409


class InvalidClaimCodeError(RedeemError):
    """Claim code is malformed."""

    code = "INVALID_CLAIM_CODE"
    status_code = 422

    def __init__(self, message: str = "Claim code must be 8 letters or digits"):
        super().__init__(message)


class InvalidQRCodeError(RedeemError):
    """Scanned payload is not an InstantFork claim."""

    code = "INVALID_QR"
    status_code = 422

    def __init__(self, message: str = "Invalid QR code"):
        super().__init__(message)


class ClaimNotFoundError(RedeemError):
    code = "CLAIM_NOT_FOUND"
    status_code = 404

    def __init__(self, claim_code: str):
        self.claim_code = claim_code
        super().__init__(f"No claim found for code {claim_code}")


class ClaimAlreadyRedeemedError(RedeemError):
    code = "ALREADY_REDEEMED"
    status_code = 409

    def __init__(self, claim_code: str):
        self.claim_code = claim_code
        super().__init__(f"Claim {claim_code} has already been redeemed")


class ClaimExpiredError(RedeemError):
    code = "CLAIM_EXPIRED"
    status_code = 410

    def __init__(self, claim_code: str):
        self.claim_code = claim_code
        super().__init__(f"Claim {claim_code} has expired")


class RestaurantMismatchError(RedeemError):
    code = "RESTAURANT_MISMATCH"
    status_code = 403

    def __init__(self, claim_code: str):
        self.claim_code = claim_code
        super().__init__(f"Claim {claim_code} belongs to a different restaurant")


class InvalidDealError(InstantForkException):
    """Deal fields are inconsistent (price above original, ends before it starts)."""

    code = "INVALID_DEAL"
    status_code = 422
