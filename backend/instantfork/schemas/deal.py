"""Deal Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from instantfork.models.base import ensure_aware, to_utc
from instantfork.services.deal_filters import deal_distance
from instantfork.services.formatting import format_time_remaining
from instantfork.services.geo import UserLocation


class RestaurantBrief(BaseModel):
    """Brief restaurant information for deal responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    address: str
    latitude: float
    longitude: float
    logo_url: Optional[str] = None


class DealResponse(BaseModel):
    """Standard deal response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    tags: List[str] = []
    original_price: Decimal
    deal_price: Decimal
    discount_percentage: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_time: datetime
    end_time: datetime
    is_active: bool
    quantity_available: Optional[int] = None
    quantity_claimed: int
    quantity_remaining: Optional[int] = None
    view_count: int
    created_at: datetime
    restaurant: RestaurantBrief

    # Filled per request
    time_remaining: Optional[str] = None
    distance_miles: Optional[float] = None

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @classmethod
    def from_deal(
        cls,
        deal,
        user_location: Optional[UserLocation] = None,
        now: Optional[datetime] = None,
    ) -> "DealResponse":
        response = cls.model_validate(deal)
        response.time_remaining = format_time_remaining(deal.end_time, now)
        if user_location is not None:
            distance = deal_distance(deal, user_location)
            response.distance_miles = round(distance, 1) if distance is not None else None
        return response


class DealCreateRequest(BaseModel):
    """Owner request to publish a deal."""

    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1000)
    tags: List[str] = []
    original_price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    deal_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    start_time: datetime
    end_time: datetime
    quantity_available: Optional[int] = Field(default=None, ge=1)
    is_active: bool = True

    @model_validator(mode="after")
    def check_consistency(self) -> "DealCreateRequest":
        if self.deal_price > self.original_price:
            raise ValueError("deal_price cannot exceed original_price")
        if to_utc(self.end_time) <= to_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class DealUpdateRequest(BaseModel):
    """Partial update; pairs are cross-checked again after merging."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1000)
    tags: Optional[List[str]] = None
    original_price: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    deal_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    quantity_available: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_consistency(self) -> "DealUpdateRequest":
        if self.deal_price is not None and self.original_price is not None:
            if self.deal_price > self.original_price:
                raise ValueError("deal_price cannot exceed original_price")
        if self.start_time is not None and self.end_time is not None:
            if to_utc(self.end_time) <= to_utc(self.start_time):
                raise ValueError("end_time must be after start_time")
        return self
