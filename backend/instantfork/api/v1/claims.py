"""A diner's own claims."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.dependencies import get_db, get_current_user
from instantfork.models.user import User
from instantfork.schemas import ApiResponse, ClaimQRResponse, ClaimResponse, ListMeta
from instantfork.services.claim_service import ClaimService
from instantfork.services.qr_service import build_qr_payload, encode_qr_payload, render_qr_data_url

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_claims(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All claims of the signed-in user, newest first."""
    claims = await ClaimService(db).get_user_claims(current_user.id)
    return ApiResponse(
        status="success",
        data=[ClaimResponse.from_claim(c) for c in claims],
        meta=ListMeta(total=len(claims)),
    )


@router.get("/{claim_id}", response_model=ApiResponse)
async def get_claim(
    claim_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    claim = await ClaimService(db).get_claim(claim_id, current_user.id)
    return ApiResponse(status="success", data=ClaimResponse.from_claim(claim))


@router.get("/{claim_id}/qr", response_model=ApiResponse)
async def get_claim_qr(
    claim_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """QR document for showing at the counter, with a rendered PNG."""
    claim = await ClaimService(db).get_claim(claim_id, current_user.id)

    payload = build_qr_payload(claim)
    text = encode_qr_payload(payload)

    return ApiResponse(
        status="success",
        data=ClaimQRResponse(
            claim_code=claim.claim_code,
            payload=payload,
            qr_data=text,
            image_data_url=render_qr_data_url(text),
        ),
    )
