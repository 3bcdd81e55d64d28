"""Public app rating summary."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.dependencies import get_db
from instantfork.schemas import ApiResponse, RatingSummaryResponse
from instantfork.services.user_service import UserService

router = APIRouter()


@router.get("/summary", response_model=ApiResponse)
async def rating_summary(db: AsyncSession = Depends(get_db)):
    summary = await UserService(db).get_rating_summary()
    return ApiResponse(status="success", data=RatingSummaryResponse(**summary))
