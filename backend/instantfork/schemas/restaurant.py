"""Restaurant Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RestaurantCreateRequest(BaseModel):
    """Owner registering their restaurant."""

    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: str = Field(min_length=1, max_length=50)
    address: str = Field(min_length=1, max_length=500)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(default=None, max_length=500)
    logo_url: Optional[str] = Field(default=None, max_length=1000)
    opening_hours: Dict[str, Any] = {}


class RestaurantUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    address: Optional[str] = Field(default=None, min_length=1, max_length=500)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(default=None, max_length=500)
    logo_url: Optional[str] = Field(default=None, max_length=1000)
    opening_hours: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class RestaurantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    category: str
    address: str
    latitude: float
    longitude: float
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    opening_hours: Dict[str, Any] = {}
    is_active: bool
    created_at: datetime


class DashboardStatsResponse(BaseModel):
    """Headline numbers on the owner dashboard."""

    total_deals: int
    active_deals: int
    total_views: int
    total_claims: int
    redeemed_claims: int
