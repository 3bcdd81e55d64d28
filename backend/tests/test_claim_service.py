"""Tests for claiming and redeeming deals against a real (SQLite) database."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import make_deal, make_user
from instantfork.core.exceptions import (
    AlreadyClaimedError,
    ClaimAlreadyRedeemedError,
    ClaimCodeGenerationError,
    ClaimExpiredError,
    ClaimNotFoundError,
    DealSoldOutError,
    DealUnavailableError,
    InvalidClaimCodeError,
    InvalidQRCodeError,
    NotFoundError,
    RestaurantMismatchError,
)
from instantfork.models import ClaimedDeal, Deal, DealHistory, Restaurant
from instantfork.models.base import ensure_aware, utcnow
from instantfork.services import claim_service as claim_service_module
from instantfork.services.claim_service import ClaimService
from instantfork.services.qr_service import build_qr_payload, encode_qr_payload


async def reload_deal(db, deal_id) -> Deal:
    result = await db.execute(
        select(Deal).where(Deal.id == deal_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ============================================================================
# TESTS: CLAIMING
# ============================================================================

class TestClaimDeal:
    """Tests for ClaimService.claim_deal."""

    async def test_claim_issues_code_and_reserves_unit(self, test_db, sample_user, sample_deal):
        now = utcnow()
        service = ClaimService(test_db)

        claim = await service.claim_deal(sample_deal.id, sample_user.id, now=now)

        assert len(claim.claim_code) == 8
        assert claim.status == "active"
        assert ensure_aware(claim.expires_at) == now + timedelta(hours=24)
        assert claim.deal_title == "Half-price Margherita"
        assert claim.restaurant_name == "Dupont Pizzeria"
        assert claim.deal_price == Decimal("9.00")
        assert claim.restaurant_id == sample_deal.restaurant_id

        deal = await reload_deal(test_db, sample_deal.id)
        assert deal.quantity_claimed == 1
        assert deal.quantity_remaining == 9

    async def test_claim_unknown_deal(self, test_db, sample_user):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            await ClaimService(test_db).claim_deal(uuid4(), sample_user.id)

    async def test_duplicate_active_claim_rejected(self, test_db, sample_user, sample_deal):
        service = ClaimService(test_db)
        await service.claim_deal(sample_deal.id, sample_user.id)

        with pytest.raises(AlreadyClaimedError):
            await service.claim_deal(sample_deal.id, sample_user.id)

        deal = await reload_deal(test_db, sample_deal.id)
        assert deal.quantity_claimed == 1

    async def test_reclaim_after_lapse_expires_old_claim(self, test_db, sample_user, sample_restaurant):
        now = utcnow()
        deal = await make_deal(
            test_db,
            sample_restaurant,
            start_time=now - timedelta(hours=1),
            end_time=now + timedelta(days=3),
        )
        service = ClaimService(test_db)

        first = await service.claim_deal(deal.id, sample_user.id, now=now)
        second = await service.claim_deal(deal.id, sample_user.id, now=now + timedelta(hours=25))

        assert second.claim_code != first.claim_code
        await test_db.refresh(first)
        assert first.status == "expired"
        assert second.status == "active"

    async def test_lapsed_claim_releases_its_unit(self, test_db, sample_user, sample_restaurant):
        now = utcnow()
        deal = await make_deal(
            test_db,
            sample_restaurant,
            quantity_available=1,
            start_time=now - timedelta(hours=1),
            end_time=now + timedelta(hours=48),
        )
        service = ClaimService(test_db)

        await service.claim_deal(deal.id, sample_user.id, now=now)
        again = await service.claim_deal(deal.id, sample_user.id, now=now + timedelta(hours=25))

        assert again.status == "active"
        deal = await reload_deal(test_db, deal.id)
        assert deal.quantity_claimed == 1
        assert deal.quantity_remaining == 0

    async def test_lapsed_unit_can_go_to_another_diner(self, test_db, sample_user, sample_restaurant):
        now = utcnow()
        deal = await make_deal(
            test_db,
            sample_restaurant,
            quantity_available=1,
            start_time=now - timedelta(hours=1),
            end_time=now + timedelta(hours=48),
        )
        bob = await make_user(test_db, "bob@example.com")
        service = ClaimService(test_db)

        first = await service.claim_deal(deal.id, sample_user.id, now=now)
        with pytest.raises(ClaimExpiredError):
            await service.redeem(first.claim_code, now=now + timedelta(hours=25))

        claim = await service.claim_deal(deal.id, bob.id, now=now + timedelta(hours=26))

        assert claim.user_id == bob.id
        deal = await reload_deal(test_db, deal.id)
        assert deal.quantity_claimed == 1

    async def test_sold_out(self, test_db, sample_restaurant):
        deal = await make_deal(test_db, sample_restaurant, quantity_available=1)
        alice = await make_user(test_db, "alice@example.com")
        bob = await make_user(test_db, "bob@example.com")
        service = ClaimService(test_db)

        await service.claim_deal(deal.id, alice.id)
        with pytest.raises(DealSoldOutError) as exc_info:
            await service.claim_deal(deal.id, bob.id)

        assert exc_info.value.code == "SOLD_OUT"
        deal = await reload_deal(test_db, deal.id)
        assert deal.quantity_claimed == 1

    async def test_unlimited_quantity(self, test_db, sample_restaurant):
        deal = await make_deal(test_db, sample_restaurant, quantity_available=None)
        service = ClaimService(test_db)

        for i in range(3):
            user = await make_user(test_db, f"guest{i}@example.com")
            await service.claim_deal(deal.id, user.id)

        deal = await reload_deal(test_db, deal.id)
        assert deal.quantity_claimed == 3
        assert deal.quantity_remaining is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"is_active": False},
            {"start_time_offset": timedelta(hours=1)},
            {"end_time_offset": timedelta(minutes=-1)},
        ],
    )
    async def test_unavailable_deals(self, test_db, sample_user, sample_restaurant, overrides):
        now = utcnow()
        values = {}
        if "is_active" in overrides:
            values["is_active"] = overrides["is_active"]
        if "start_time_offset" in overrides:
            values["start_time"] = now + overrides["start_time_offset"]
        if "end_time_offset" in overrides:
            values["start_time"] = now - timedelta(hours=3)
            values["end_time"] = now + overrides["end_time_offset"]
        deal = await make_deal(test_db, sample_restaurant, **values)

        with pytest.raises(DealUnavailableError):
            await ClaimService(test_db).claim_deal(deal.id, sample_user.id, now=now)

    async def test_code_collisions_exhaust_attempts(self, test_db, sample_user, sample_deal, monkeypatch):
        service = ClaimService(test_db)
        other = await make_user(test_db, "first@example.com")
        first = await service.claim_deal(sample_deal.id, other.id)

        # Every draw collides with the existing code
        monkeypatch.setattr(claim_service_module, "generate_claim_code", lambda: first.claim_code)

        with pytest.raises(ClaimCodeGenerationError):
            await service.claim_deal(sample_deal.id, sample_user.id)


# ============================================================================
# TESTS: REDEEMING
# ============================================================================

class TestRedeem:
    """Tests for ClaimService.redeem / redeem_qr."""

    async def test_redeem_marks_claim_and_writes_history(self, test_db, sample_user, sample_deal):
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)

        redeemed = await service.redeem(claim.claim_code.lower(), restaurant_id=sample_deal.restaurant_id)

        assert redeemed.status == "redeemed"
        assert redeemed.redeemed_at is not None

        history = (await test_db.execute(
            select(DealHistory).where(DealHistory.claimed_deal_id == claim.id)
        )).scalar_one()
        assert history.user_id == sample_user.id
        assert history.deal_title == "Half-price Margherita"
        assert history.deal_price == Decimal("9.00")

    async def test_double_redeem_fails(self, test_db, sample_user, sample_deal):
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)
        await service.redeem(claim.claim_code)

        with pytest.raises(ClaimAlreadyRedeemedError):
            await service.redeem(claim.claim_code)

    async def test_unknown_code(self, test_db):
        with pytest.raises(ClaimNotFoundError):
            await ClaimService(test_db).redeem("ZZZZ9999")

    async def test_malformed_code(self, test_db):
        with pytest.raises(InvalidClaimCodeError):
            await ClaimService(test_db).redeem("abc")

    async def test_expired_claim_is_rejected_and_persisted(self, test_db, sample_user, sample_deal):
        now = utcnow()
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id, now=now)

        with pytest.raises(ClaimExpiredError):
            await service.redeem(claim.claim_code, now=now + timedelta(hours=25))

        stored = (await test_db.execute(
            select(ClaimedDeal)
            .where(ClaimedDeal.id == claim.id)
            .execution_options(populate_existing=True)
        )).scalar_one()
        assert stored.status == "expired"

        deal = await reload_deal(test_db, sample_deal.id)
        assert deal.quantity_claimed == 0

    async def test_expired_claim_releases_unit_once(self, test_db, sample_user, sample_deal):
        now = utcnow()
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id, now=now)

        for _ in range(2):
            with pytest.raises(ClaimExpiredError):
                await service.redeem(claim.claim_code, now=now + timedelta(hours=25))

        deal = await reload_deal(test_db, sample_deal.id)
        assert deal.quantity_claimed == 0

    async def test_redeem_at_other_restaurant(self, test_db, sample_user, sample_deal):
        other_owner = await make_user(test_db, "rival@example.com")
        rival = Restaurant(
            owner_id=other_owner.id,
            name="Rival Tacos",
            category="Mexican",
            address="Georgetown",
            latitude=38.9097,
            longitude=-77.0654,
        )
        test_db.add(rival)
        await test_db.commit()

        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)

        with pytest.raises(RestaurantMismatchError):
            await service.redeem(claim.claim_code, restaurant_id=rival.id)

    async def test_mismatch_checked_before_redeemed(self, test_db, sample_user, sample_deal):
        from uuid import uuid4

        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)
        await service.redeem(claim.claim_code)

        with pytest.raises(RestaurantMismatchError):
            await service.redeem(claim.claim_code, restaurant_id=uuid4())

    async def test_redeem_from_qr_text(self, test_db, sample_user, sample_deal):
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)
        qr_text = encode_qr_payload(build_qr_payload(claim))

        redeemed = await service.redeem_qr(qr_text, restaurant_id=sample_deal.restaurant_id)

        assert redeemed.id == claim.id
        assert redeemed.status == "redeemed"

    async def test_redeem_from_foreign_qr(self, test_db):
        with pytest.raises(InvalidQRCodeError):
            await ClaimService(test_db).redeem_qr('{"type": "boarding_pass"}')


# ============================================================================
# TESTS: QUERIES
# ============================================================================

class TestClaimQueries:
    """Tests for claim listing."""

    async def test_user_and_restaurant_listings(self, test_db, sample_user, sample_deal, sample_restaurant):
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)

        mine = await service.get_user_claims(sample_user.id)
        theirs = await service.get_restaurant_claims(sample_restaurant.id)

        assert [c.id for c in mine] == [claim.id]
        assert [c.id for c in theirs] == [claim.id]
        assert theirs[0].user.email == "diner@example.com"

    async def test_get_claim_is_owner_scoped(self, test_db, sample_user, sample_deal):
        service = ClaimService(test_db)
        claim = await service.claim_deal(sample_deal.id, sample_user.id)
        stranger = await make_user(test_db, "stranger@example.com")

        assert (await service.get_claim(claim.id, sample_user.id)).id == claim.id
        with pytest.raises(NotFoundError):
            await service.get_claim(claim.id, stranger.id)
