"""Deals API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.config import settings
from instantfork.core.exceptions import NotFoundError
from instantfork.dependencies import get_db, get_current_user
from instantfork.models.user import User
from instantfork.schemas import ApiResponse, ClaimResult, DealResponse, ListMeta
from instantfork.services.cache_service import (
    FEATURED_DEALS_TTL,
    CacheService,
    cache_key_for_featured,
    get_cache,
    invalidate_deals_cache,
)
from instantfork.services.claim_service import ClaimService
from instantfork.services.deal_filters import DealFilters
from instantfork.services.deal_service import DealService
from instantfork.services.geo import UserLocation, check_service_area, resolve_user_location

router = APIRouter()


def _location_from_query(lat: Optional[float], lng: Optional[float]) -> Optional[UserLocation]:
    """The caller's coordinate, refused when outside the service region."""
    if lat is None or lng is None:
        return None
    check_service_area(lat, lng)
    return UserLocation(latitude=lat, longitude=lng)


@router.get("", response_model=ApiResponse)
async def list_deals(
    q: Optional[str] = Query(None, max_length=200, description="Free-text search"),
    cuisine: List[str] = Query([], description="Cuisine allow-list (repeatable)"),
    dietary: List[str] = Query([], description="Dietary needs matched against tags (repeatable)"),
    max_price: Optional[float] = Query(None, ge=0, description="Maximum deal price"),
    max_distance: Optional[float] = Query(
        settings.DEFAULT_MAX_DISTANCE_MILES, gt=0, description="Maximum distance in miles"
    ),
    max_hours_left: Optional[int] = Query(
        settings.DEFAULT_MAX_HOURS_LEFT, ge=0, description="Only deals ending within this many hours"
    ),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    db: AsyncSession = Depends(get_db),
):
    """List live deals narrowed by the catalog filters.

    Distance filtering applies only when the caller supplies a location. A
    location outside the service region is refused with SERVICE_UNAVAILABLE.
    """
    user_location = _location_from_query(lat, lng)
    filters = DealFilters(
        cuisines=cuisine,
        max_price=max_price,
        max_distance_miles=max_distance,
        max_hours_left=max_hours_left,
        dietary_needs=dietary,
    )

    service = DealService(db)
    deals = await service.search_deals(filters, query=q, user_location=user_location)

    return ApiResponse(
        status="success",
        data=[DealResponse.from_deal(d, user_location) for d in deals],
        meta=ListMeta(total=len(deals)),
    )


@router.get("/featured", response_model=ApiResponse)
async def featured_deals(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Highest-discount live deals.

    This endpoint is cached for 60 seconds.
    """
    limit = settings.FEATURED_DEALS_LIMIT
    cache_key = cache_key_for_featured(limit)

    cached = await cache.get(cache_key)
    if cached:
        return ApiResponse.model_validate_json(cached)

    service = DealService(db)
    deals = await service.get_featured_deals(limit=limit)

    response = ApiResponse(
        status="success",
        data=[DealResponse.from_deal(d) for d in deals],
    )
    await cache.set(cache_key, response.model_dump_json(), ttl=FEATURED_DEALS_TTL)

    return response


@router.get("/suggestion", response_model=ApiResponse)
async def suggest_deal(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    db: AsyncSession = Depends(get_db),
):
    """The single best deal to eat right now near the caller.

    Falls back to the downtown coordinate when no location is given.
    """
    if lat is not None and lng is not None:
        check_service_area(lat, lng)
    user_location = resolve_user_location(lat, lng)

    service = DealService(db)
    deal = await service.suggest_deal(user_location)

    return ApiResponse(
        status="success",
        data=DealResponse.from_deal(deal, user_location) if deal else None,
    )


@router.get("/{deal_id}", response_model=ApiResponse)
async def get_deal(
    deal_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get deal details by ID.

    Also increments the view count for this deal.
    """
    service = DealService(db)
    deal = await service.get_deal_by_id(deal_id)

    if not deal:
        raise NotFoundError("Deal", str(deal_id))

    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


@router.post("/{deal_id}/claim", response_model=ApiResponse, status_code=201)
async def claim_deal(
    deal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Claim one unit of a deal. Requires authentication.

    Returns the claim code, its expiry and the QR payload text.
    """
    service = ClaimService(db)
    claim = await service.claim_deal(deal_id, current_user.id)

    # Remaining quantity changed
    await invalidate_deals_cache(cache)

    return ApiResponse(status="success", data=ClaimResult.from_claim(claim))
