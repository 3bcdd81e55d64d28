"""Claim issuing and redemption.

Both operations run inside the caller's transaction and rely on conditional
UPDATEs for mutual exclusion: inventory is reserved with
``quantity_claimed < quantity_available`` in the WHERE clause and redemption
flips ``status`` only while it is still ``'active'``. A lost race therefore
shows up as zero affected rows, never as an oversold deal or a double
redemption.

A lapsed claim returns its unit to the deal when the lapse is stored, so
expired claims never hold inventory.
"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from instantfork.config import settings
from instantfork.core.exceptions import (
    AlreadyClaimedError,
    ClaimAlreadyRedeemedError,
    ClaimCodeGenerationError,
    ClaimExpiredError,
    ClaimNotFoundError,
    DealSoldOutError,
    DealUnavailableError,
    NotFoundError,
    RestaurantMismatchError,
)
from instantfork.models.base import ensure_aware, utcnow
from instantfork.models.claimed_deal import (
    CLAIM_STATUS_ACTIVE,
    CLAIM_STATUS_EXPIRED,
    CLAIM_STATUS_REDEEMED,
    ClaimedDeal,
)
from instantfork.models.deal import Deal
from instantfork.models.deal_history import DealHistory
from instantfork.services.claim_lifecycle import (
    generate_claim_code,
    is_past_expiry,
    normalize_claim_code,
)
from instantfork.services.qr_service import parse_qr_payload

logger = structlog.get_logger(__name__)


class ClaimService:
    """Issues claims against deals and redeems them at the restaurant."""

    def __init__(self, db: AsyncSession):
        """Initialize claim service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="claim_service")

    # ------------------------------------------------------------------
    # Claiming
    # ------------------------------------------------------------------

    async def claim_deal(
        self,
        deal_id: UUID,
        user_id: UUID,
        now: Optional[datetime] = None,
    ) -> ClaimedDeal:
        """Reserve one unit of a deal for a user.

        Args:
            deal_id: Deal to claim
            user_id: Authenticated claimant
            now: Clock override (tests)

        Returns:
            The new ClaimedDeal, committed

        Raises:
            NotFoundError: deal does not exist
            DealUnavailableError: deal inactive, not started or ended
            AlreadyClaimedError: user holds an unexpired active claim
            DealSoldOutError: no quantity left
            ClaimCodeGenerationError: could not draw an unused code
        """
        now = ensure_aware(now) if now else utcnow()

        result = await self.db.execute(
            select(Deal).options(selectinload(Deal.restaurant)).where(Deal.id == deal_id)
        )
        deal = result.scalar_one_or_none()
        if deal is None:
            raise NotFoundError("Deal", str(deal_id))

        if not deal.is_active:
            raise DealUnavailableError("This deal is no longer active")
        if ensure_aware(deal.start_time) > now:
            raise DealUnavailableError("This deal has not started yet")
        if ensure_aware(deal.end_time) <= now:
            raise DealUnavailableError("This deal has ended")

        await self._retire_existing_claim(deal_id, user_id, now)

        claim_code = await self._draw_unused_code()

        reserved = await self.db.execute(
            update(Deal)
            .where(
                Deal.id == deal_id,
                or_(
                    Deal.quantity_available.is_(None),
                    Deal.quantity_claimed < Deal.quantity_available,
                ),
            )
            .values(quantity_claimed=Deal.quantity_claimed + 1)
            .execution_options(synchronize_session=False)
        )
        if reserved.rowcount == 0:
            self.logger.info("claim_rejected_sold_out", deal_id=str(deal_id))
            raise DealSoldOutError()

        claim = ClaimedDeal(
            user_id=user_id,
            deal_id=deal.id,
            restaurant_id=deal.restaurant_id,
            claim_code=claim_code,
            status=CLAIM_STATUS_ACTIVE,
            claimed_at=now,
            expires_at=now + timedelta(hours=settings.CLAIM_TTL_HOURS),
            deal_title=deal.title,
            restaurant_name=deal.restaurant.name,
            deal_price=deal.deal_price,
            original_price=deal.original_price,
        )
        self.db.add(claim)

        try:
            await self.db.flush()
        except IntegrityError:
            # Concurrent claim by the same user won the partial unique index
            await self.db.rollback()
            raise AlreadyClaimedError()

        await self.db.commit()
        await self.db.refresh(deal)

        self.logger.info(
            "deal_claimed",
            deal_id=str(deal_id),
            user_id=str(user_id),
            claim_code=claim_code,
            quantity_claimed=deal.quantity_claimed,
        )

        return claim

    async def _retire_existing_claim(self, deal_id: UUID, user_id: UUID, now: datetime) -> None:
        """Refuse a duplicate claim, or mark a lapsed one expired so a new one can be issued."""
        result = await self.db.execute(
            select(ClaimedDeal).where(
                ClaimedDeal.deal_id == deal_id,
                ClaimedDeal.user_id == user_id,
                ClaimedDeal.status == CLAIM_STATUS_ACTIVE,
            )
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            return

        if not is_past_expiry(existing, now):
            self.logger.info(
                "claim_rejected_duplicate",
                deal_id=str(deal_id),
                user_id=str(user_id),
            )
            raise AlreadyClaimedError()

        await self._expire_claim(existing)
        await self.db.flush()
        self.logger.info("claim_expired_on_reclaim", claim_code=existing.claim_code)

    async def _expire_claim(self, claim: ClaimedDeal) -> None:
        """Store a lapsed claim as expired and hand its unit back to the deal.

        The status flip is conditional so only one caller releases the unit
        when several notice the same lapse.
        """
        flipped = await self.db.execute(
            update(ClaimedDeal)
            .where(
                ClaimedDeal.id == claim.id,
                ClaimedDeal.status == CLAIM_STATUS_ACTIVE,
            )
            .values(status=CLAIM_STATUS_EXPIRED)
            .execution_options(synchronize_session=False)
        )
        claim.status = CLAIM_STATUS_EXPIRED
        if flipped.rowcount == 0:
            return

        await self.db.execute(
            update(Deal)
            .where(Deal.id == claim.deal_id, Deal.quantity_claimed > 0)
            .values(quantity_claimed=Deal.quantity_claimed - 1)
            .execution_options(synchronize_session=False)
        )

    async def _draw_unused_code(self) -> str:
        for attempt in range(1, settings.CLAIM_CODE_MAX_ATTEMPTS + 1):
            code = generate_claim_code()
            taken = await self.db.execute(
                select(ClaimedDeal.id).where(ClaimedDeal.claim_code == code)
            )
            if taken.scalar_one_or_none() is None:
                return code
            self.logger.warning("claim_code_collision", attempt=attempt)

        raise ClaimCodeGenerationError("Could not generate a unique claim code, please try again")

    # ------------------------------------------------------------------
    # Redemption
    # ------------------------------------------------------------------

    async def redeem(
        self,
        claim_code: str,
        restaurant_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> ClaimedDeal:
        """Consume a claim at the point of sale.

        Args:
            claim_code: Typed or scanned code, any case/spacing
            restaurant_id: When given, the claim must belong to this restaurant
            now: Clock override (tests)

        Returns:
            The redeemed ClaimedDeal, committed

        Raises:
            InvalidClaimCodeError: malformed code
            ClaimNotFoundError: no claim with that code
            RestaurantMismatchError: claim issued by another restaurant
            ClaimAlreadyRedeemedError: already consumed (including lost races)
            ClaimExpiredError: past expiry
        """
        now = ensure_aware(now) if now else utcnow()
        code = normalize_claim_code(claim_code)

        result = await self.db.execute(
            select(ClaimedDeal).where(ClaimedDeal.claim_code == code)
        )
        claim = result.scalar_one_or_none()

        if claim is None:
            self.logger.info("claim_redeem_rejected", claim_code=code, reason="not_found")
            raise ClaimNotFoundError(code)

        if restaurant_id is not None and claim.restaurant_id != restaurant_id:
            self.logger.info("claim_redeem_rejected", claim_code=code, reason="restaurant_mismatch")
            raise RestaurantMismatchError(code)

        if claim.status == CLAIM_STATUS_REDEEMED:
            self.logger.info("claim_redeem_rejected", claim_code=code, reason="already_redeemed")
            raise ClaimAlreadyRedeemedError(code)

        if claim.status == CLAIM_STATUS_EXPIRED or is_past_expiry(claim, now):
            if claim.status != CLAIM_STATUS_EXPIRED:
                await self._expire_claim(claim)
                await self.db.commit()
            self.logger.info("claim_redeem_rejected", claim_code=code, reason="expired")
            raise ClaimExpiredError(code)

        flipped = await self.db.execute(
            update(ClaimedDeal)
            .where(
                ClaimedDeal.id == claim.id,
                ClaimedDeal.status == CLAIM_STATUS_ACTIVE,
            )
            .values(status=CLAIM_STATUS_REDEEMED, redeemed_at=now)
            .execution_options(synchronize_session=False)
        )
        if flipped.rowcount == 0:
            self.logger.info("claim_redeem_rejected", claim_code=code, reason="lost_race")
            raise ClaimAlreadyRedeemedError(code)

        self.db.add(DealHistory(
            user_id=claim.user_id,
            deal_id=claim.deal_id,
            claimed_deal_id=claim.id,
            deal_title=claim.deal_title,
            restaurant_name=claim.restaurant_name,
            deal_price=claim.deal_price,
            original_price=claim.original_price,
            redeemed_at=now,
        ))

        await self.db.commit()
        await self.db.refresh(claim)

        self.logger.info(
            "claim_redeemed",
            claim_code=code,
            restaurant_id=str(claim.restaurant_id),
            deal_id=str(claim.deal_id),
        )

        return claim

    async def redeem_qr(
        self,
        qr_text: str,
        restaurant_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> ClaimedDeal:
        """Redeem from scanned QR text; same contract as :meth:`redeem`."""
        payload = parse_qr_payload(qr_text)
        return await self.redeem(payload.claim_code, restaurant_id=restaurant_id, now=now)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_user_claims(self, user_id: UUID) -> List[ClaimedDeal]:
        """All claims of a user, newest first."""
        result = await self.db.execute(
            select(ClaimedDeal)
            .where(ClaimedDeal.user_id == user_id)
            .order_by(ClaimedDeal.claimed_at.desc())
        )
        return list(result.scalars().all())

    async def get_restaurant_claims(self, restaurant_id: UUID) -> List[ClaimedDeal]:
        """All claims issued against a restaurant's deals, newest first."""
        result = await self.db.execute(
            select(ClaimedDeal)
            .options(selectinload(ClaimedDeal.user))
            .where(ClaimedDeal.restaurant_id == restaurant_id)
            .order_by(ClaimedDeal.claimed_at.desc())
        )
        return list(result.scalars().all())

    async def get_claim(self, claim_id: UUID, user_id: UUID) -> ClaimedDeal:
        """A single claim owned by ``user_id``.

        Raises:
            NotFoundError: missing, or owned by someone else
        """
        result = await self.db.execute(
            select(ClaimedDeal).where(
                ClaimedDeal.id == claim_id,
                ClaimedDeal.user_id == user_id,
            )
        )
        claim = result.scalar_one_or_none()
        if claim is None:
            raise NotFoundError("Claim", str(claim_id))
        return claim
