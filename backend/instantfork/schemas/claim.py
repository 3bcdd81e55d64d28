"""Claim and redemption schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from instantfork.models.base import ensure_aware
from instantfork.services.claim_lifecycle import effective_status, is_claim_valid
from instantfork.services.formatting import format_price, get_claim_time_remaining
from instantfork.services.qr_service import build_qr_payload, encode_qr_payload


class ClaimResult(BaseModel):
    """Outcome of claiming a deal."""

    success: bool = True
    claimed_deal_id: UUID
    claim_code: str
    expires_at: datetime
    qr_data: str

    @classmethod
    def from_claim(cls, claim) -> "ClaimResult":
        return cls(
            claimed_deal_id=claim.id,
            claim_code=claim.claim_code,
            expires_at=ensure_aware(claim.expires_at),
            qr_data=encode_qr_payload(build_qr_payload(claim)),
        )


class ClaimResponse(BaseModel):
    """A claim as its holder sees it."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    deal_id: UUID
    restaurant_id: UUID
    claim_code: str
    status: str
    claimed_at: datetime
    expires_at: datetime
    redeemed_at: Optional[datetime] = None
    deal_title: str
    restaurant_name: str
    deal_price: Decimal
    original_price: Decimal
    time_remaining: Optional[str] = None
    is_valid: bool = False
    price_display: Optional[str] = None

    @field_validator("claimed_at", "expires_at", "redeemed_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(v) if v is not None else None

    @classmethod
    def from_claim(cls, claim, now: Optional[datetime] = None):
        response = cls.model_validate(claim)
        response.status = effective_status(claim, now)
        response.time_remaining = get_claim_time_remaining(claim.expires_at, now)
        response.is_valid = is_claim_valid(claim, now)
        response.price_display = format_price(claim.deal_price)
        return response


class RestaurantClaimResponse(ClaimResponse):
    """A claim as the restaurant sees it, with the customer attached."""

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    @classmethod
    def from_claim(cls, claim, now: Optional[datetime] = None):
        response = super().from_claim(claim, now)
        if claim.user is not None:
            response.customer_name = claim.user.full_name
            response.customer_email = claim.user.email
        return response


class ClaimQRResponse(BaseModel):
    claim_code: str
    payload: Dict[str, Any]
    qr_data: str
    image_data_url: str


class RedeemRequest(BaseModel):
    """Manual entry of a claim code at the counter."""

    code: str = Field(min_length=1, max_length=32)


class RedeemScanRequest(BaseModel):
    """Raw text decoded from a customer's QR code."""

    qr_data: str = Field(min_length=1, max_length=4096)


class RedeemResult(BaseModel):
    """Outcome of a successful redemption."""

    success: bool = True
    deal_title: str
    restaurant_name: str
    deal_price: Decimal
    original_price: Decimal
    price_display: str
    claimed_at: datetime
    redeemed_at: datetime

    @classmethod
    def from_claim(cls, claim) -> "RedeemResult":
        return cls(
            deal_title=claim.deal_title,
            restaurant_name=claim.restaurant_name,
            deal_price=claim.deal_price,
            original_price=claim.original_price,
            price_display=format_price(claim.deal_price),
            claimed_at=ensure_aware(claim.claimed_at),
            redeemed_at=ensure_aware(claim.redeemed_at),
        )
