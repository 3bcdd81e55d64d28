"""The signed-in diner's personal data."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.dependencies import get_current_user, get_db
from instantfork.models.user import User
from instantfork.schemas import (
    ApiResponse,
    DealHistoryResponse,
    DealResponse,
    FavoriteResponse,
    ListMeta,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProfileUpdateRequest,
    RatingRequest,
    RatingResponse,
    UserResponse,
)
from instantfork.services.user_service import UserService

router = APIRouter()


@router.patch("/profile", response_model=ApiResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).update_profile(current_user, body.model_dump(exclude_unset=True))
    return ApiResponse(status="success", data=UserResponse.model_validate(user))


# Favorites

@router.get("/favorites", response_model=ApiResponse)
async def list_favorites(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Saved deals, most recently saved first."""
    deals = await UserService(db).get_favorite_deals(current_user.id)
    return ApiResponse(
        status="success",
        data=[DealResponse.from_deal(d) for d in deals],
        meta=ListMeta(total=len(deals)),
    )


@router.put("/favorites/{deal_id}", response_model=ApiResponse)
async def add_favorite(
    deal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Save a deal. Saving it twice is harmless."""
    created = await UserService(db).add_favorite(current_user.id, deal_id)
    return ApiResponse(
        status="success",
        data=FavoriteResponse(deal_id=deal_id, is_favorite=True, changed=created),
    )


@router.delete("/favorites/{deal_id}", response_model=ApiResponse)
async def remove_favorite(
    deal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await UserService(db).remove_favorite(current_user.id, deal_id)
    return ApiResponse(
        status="success",
        data=FavoriteResponse(deal_id=deal_id, is_favorite=False, changed=removed),
    )


# History

@router.get("/history", response_model=ApiResponse)
async def list_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Redeemed deals, newest first."""
    history = await UserService(db).get_history(current_user.id)
    return ApiResponse(
        status="success",
        data=[DealHistoryResponse.model_validate(h) for h in history],
        meta=ListMeta(total=len(history)),
    )


# Preferences

@router.get("/preferences", response_model=ApiResponse)
async def get_preferences(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prefs = await UserService(db).get_preferences(current_user.id)
    return ApiResponse(status="success", data=PreferencesResponse.model_validate(prefs))


@router.patch("/preferences", response_model=ApiResponse)
async def update_preferences(
    body: PreferencesUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prefs = await UserService(db).update_preferences(
        current_user.id, body.model_dump(exclude_unset=True, exclude_none=True)
    )
    return ApiResponse(status="success", data=PreferencesResponse.model_validate(prefs))


# Rating

@router.post("/rating", response_model=ApiResponse)
async def rate_app(
    body: RatingRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit or replace the user's app rating."""
    rating = await UserService(db).rate_app(current_user.id, body.rating, body.review)
    return ApiResponse(status="success", data=RatingResponse.model_validate(rating))
