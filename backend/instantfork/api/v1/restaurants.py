"""Restaurant back office: profile, deal management and redemption."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.dependencies import get_current_restaurant, get_current_user, get_db
from instantfork.models.restaurant import Restaurant
from instantfork.models.user import User
from instantfork.schemas import (
    ApiResponse,
    DashboardStatsResponse,
    DealCreateRequest,
    DealResponse,
    DealUpdateRequest,
    ListMeta,
    RedeemRequest,
    RedeemResult,
    RedeemScanRequest,
    RestaurantClaimResponse,
    RestaurantCreateRequest,
    RestaurantResponse,
    RestaurantUpdateRequest,
)
from instantfork.services.cache_service import CacheService, get_cache, invalidate_deals_cache
from instantfork.services.claim_service import ClaimService
from instantfork.services.deal_service import DealService
from instantfork.services.restaurant_service import RestaurantService

router = APIRouter()


# Profile

@router.post("", response_model=ApiResponse, status_code=201)
async def create_restaurant(
    body: RestaurantCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Register the signed-in user's restaurant (one per owner)."""
    service = RestaurantService(db)
    restaurant = await service.create_restaurant(current_user.id, body.model_dump())
    return ApiResponse(status="success", data=RestaurantResponse.model_validate(restaurant))


@router.get("/me", response_model=ApiResponse)
async def get_my_restaurant(restaurant: Restaurant = Depends(get_current_restaurant)):
    return ApiResponse(status="success", data=RestaurantResponse.model_validate(restaurant))


@router.patch("/me", response_model=ApiResponse)
async def update_my_restaurant(
    body: RestaurantUpdateRequest,
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    service = RestaurantService(db)
    restaurant = await service.update_restaurant(
        restaurant, body.model_dump(exclude_unset=True, exclude_none=True)
    )
    await db.refresh(restaurant)

    # Deals embed the restaurant name and category
    await invalidate_deals_cache(cache)

    return ApiResponse(status="success", data=RestaurantResponse.model_validate(restaurant))


@router.get("/me/stats", response_model=ApiResponse)
async def get_dashboard_stats(
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
):
    stats = await RestaurantService(db).get_dashboard_stats(restaurant.id)
    return ApiResponse(status="success", data=DashboardStatsResponse(**stats))


# Deals

@router.get("/me/deals", response_model=ApiResponse)
async def list_my_deals(
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Every deal of the restaurant, active or not."""
    deals = await DealService(db).get_restaurant_deals(restaurant.id)
    return ApiResponse(
        status="success",
        data=[DealResponse.from_deal(d) for d in deals],
        meta=ListMeta(total=len(deals)),
    )


@router.post("/me/deals", response_model=ApiResponse, status_code=201)
async def create_deal(
    body: DealCreateRequest,
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    deal = await DealService(db).create_deal(restaurant, body.model_dump())
    await invalidate_deals_cache(cache)
    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


@router.patch("/me/deals/{deal_id}", response_model=ApiResponse)
async def update_deal(
    deal_id: UUID,
    body: DealUpdateRequest,
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    service = DealService(db)
    deal = await service.get_restaurant_deal(restaurant.id, deal_id)
    deal = await service.update_deal(deal, body.model_dump(exclude_unset=True, exclude_none=True))
    await invalidate_deals_cache(cache)
    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


@router.post("/me/deals/{deal_id}/toggle", response_model=ApiResponse)
async def toggle_deal(
    deal_id: UUID,
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Flip a deal between active and inactive."""
    service = DealService(db)
    deal = await service.get_restaurant_deal(restaurant.id, deal_id)
    deal = await service.set_active(deal, not deal.is_active)
    await invalidate_deals_cache(cache)
    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


# Claims and redemption

@router.get("/me/claims", response_model=ApiResponse)
async def list_restaurant_claims(
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
):
    claims = await ClaimService(db).get_restaurant_claims(restaurant.id)
    return ApiResponse(
        status="success",
        data=[RestaurantClaimResponse.from_claim(c) for c in claims],
        meta=ListMeta(total=len(claims)),
    )


@router.post("/me/redeem", response_model=ApiResponse)
async def redeem_code(
    body: RedeemRequest,
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Redeem a claim code typed in at the counter."""
    claim = await ClaimService(db).redeem(body.code, restaurant_id=restaurant.id)
    return ApiResponse(status="success", data=RedeemResult.from_claim(claim))


@router.post("/me/redeem/scan", response_model=ApiResponse)
async def redeem_scan(
    body: RedeemScanRequest,
    restaurant: Restaurant = Depends(get_current_restaurant),
    db: AsyncSession = Depends(get_db),
):
    """Redeem from the text decoded out of a customer's QR code."""
    claim = await ClaimService(db).redeem_qr(body.qr_data, restaurant_id=restaurant.id)
    return ApiResponse(status="success", data=RedeemResult.from_claim(claim))
