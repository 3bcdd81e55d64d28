"""Schemas for the diner's personal data: favorites, history, preferences, ratings."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FavoriteResponse(BaseModel):
    deal_id: UUID
    is_favorite: bool
    changed: bool


class DealHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    deal_id: Optional[UUID] = None
    claimed_deal_id: Optional[UUID] = None
    deal_title: str
    restaurant_name: str
    deal_price: Decimal
    original_price: Decimal
    redeemed_at: datetime


class PreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    favorite_cuisines: List[str] = []
    dietary_preferences: List[str] = []
    distance_preference: float
    price_min: Decimal
    price_max: Decimal
    notification_enabled: bool
    email_notifications: bool
    push_notifications: bool


class PreferencesUpdateRequest(BaseModel):
    favorite_cuisines: Optional[List[str]] = None
    dietary_preferences: Optional[List[str]] = None
    distance_preference: Optional[float] = Field(default=None, gt=0, le=500)
    price_min: Optional[Decimal] = Field(default=None, ge=0)
    price_max: Optional[Decimal] = Field(default=None, ge=0)
    notification_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None

    @model_validator(mode="after")
    def check_price_range(self) -> "PreferencesUpdateRequest":
        if self.price_min is not None and self.price_max is not None:
            if self.price_min > self.price_max:
                raise ValueError("price_min cannot exceed price_max")
        return self


class RatingRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)


class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rating: int
    review: Optional[str] = None
    updated_at: datetime


class RatingSummaryResponse(BaseModel):
    average_rating: float
    total_ratings: int
