"""Tests for the pure helpers: formatting, geo, claim codes and QR payloads."""

import base64
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from instantfork.core.exceptions import InvalidClaimCodeError, InvalidQRCodeError, ServiceAreaError
from instantfork.models import Deal
from instantfork.services.claim_lifecycle import (
    CLAIM_CODE_ALPHABET,
    effective_status,
    generate_claim_code,
    is_claim_valid,
    normalize_claim_code,
)
from instantfork.services.formatting import (
    calculate_savings,
    format_price,
    format_time_remaining,
    get_claim_time_remaining,
    get_time_of_day,
    hours_remaining,
)
from instantfork.services.geo import (
    DMV_LOCATIONS,
    calculate_distance,
    check_service_area,
    find_location,
    get_nearest_location,
    is_within_service_area,
    resolve_user_location,
    search_locations,
)
from instantfork.services.qr_service import (
    QR_PAYLOAD_TYPE,
    build_qr_payload,
    encode_qr_payload,
    parse_qr_payload,
    render_qr_data_url,
)

T0 = datetime(2026, 6, 1, 16, 0, tzinfo=timezone.utc)


def make_claim(**overrides):
    values = dict(
        claim_code="ABCD1234",
        status="active",
        deal_title="Half-price Margherita",
        restaurant_name="Dupont Pizzeria",
        deal_price=Decimal("9.00"),
        original_price=Decimal("18.00"),
        claimed_at=T0,
        expires_at=T0 + timedelta(hours=24),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


# ============================================================================
# TESTS: FORMATTING
# ============================================================================

class TestFormatting:
    """Tests for price and countdown helpers."""

    def test_calculate_savings_rounds_half_up(self):
        assert calculate_savings(45, "22.50") == 50
        assert calculate_savings(Decimal("8.00"), Decimal("7.00")) == 13  # 12.5 -> 13

    def test_calculate_savings_zero_original(self):
        assert calculate_savings(0, 0) == 0

    @pytest.mark.parametrize(
        "original, price", [("8.00", "7.00"), ("45.00", "22.50"), ("18.00", "9.00"), ("0", "0")]
    )
    def test_deal_discount_matches_savings(self, original, price):
        deal = Deal(original_price=Decimal(original), deal_price=Decimal(price))
        assert deal.discount_percentage == calculate_savings(original, price)

    def test_format_price(self):
        assert format_price(Decimal("9")) == "$9.00"
        assert format_price("12.345") == "$12.35"

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(hours=50), "2d left"),
            (timedelta(hours=24, minutes=30), "24h 30m left"),
            (timedelta(hours=3, minutes=15), "3h 15m left"),
            (timedelta(minutes=40), "40m left"),
            (timedelta(seconds=30), "Expired"),
            (timedelta(hours=-1), "Expired"),
        ],
    )
    def test_format_time_remaining(self, delta, expected):
        assert format_time_remaining(T0 + delta, now=T0) == expected

    def test_claim_time_remaining_half_hour_left(self):
        expires = T0 + timedelta(hours=24)
        assert get_claim_time_remaining(expires, now=T0 + timedelta(hours=23, minutes=30)) == "30m left"

    def test_claim_time_remaining_expired(self):
        expires = T0 + timedelta(hours=24)
        assert get_claim_time_remaining(expires, now=T0 + timedelta(hours=25)) == "Expired"
        assert get_claim_time_remaining(expires, now=expires) == "Expired"

    def test_claim_time_remaining_never_rolls_into_days(self):
        assert get_claim_time_remaining(T0 + timedelta(hours=30), now=T0) == "30h 0m left"

    def test_hours_remaining_truncates(self):
        assert hours_remaining(T0 + timedelta(hours=4, minutes=59), now=T0) == 4
        assert hours_remaining(T0 - timedelta(minutes=30), now=T0) == 0

    def test_naive_datetimes_are_treated_as_utc(self):
        naive_end = (T0 + timedelta(hours=2)).replace(tzinfo=None)
        assert format_time_remaining(naive_end, now=T0) == "2h 0m left"

    def test_time_of_day_uses_eastern_time(self):
        # 16:00 UTC in June is 12:00 in Washington
        assert get_time_of_day(T0) == "afternoon"
        assert get_time_of_day(T0.replace(hour=12)) == "morning"
        assert get_time_of_day(T0.replace(hour=23)) == "evening"
        assert get_time_of_day(T0.replace(hour=3)) == "night"


# ============================================================================
# TESTS: GEO
# ============================================================================

class TestGeo:
    """Tests for the service-region geometry."""

    def test_distance_dc_to_bethesda(self):
        miles = calculate_distance(38.9072, -77.0369, 38.9807, -77.0947)
        assert 5.5 < miles < 6.5

    def test_distance_to_self_is_zero(self):
        assert calculate_distance(38.9, -77.0, 38.9, -77.0) == pytest.approx(0.0)

    def test_inside_and_outside(self):
        assert is_within_service_area(38.90, -77.03) is True
        assert is_within_service_area(40.71, -74.00) is False

    def test_bounds_are_inclusive(self):
        assert is_within_service_area(38.5, -77.7) is True
        assert is_within_service_area(39.5, -76.3) is True

    def test_check_service_area_outside_suggests_nearest(self):
        with pytest.raises(ServiceAreaError) as exc_info:
            check_service_area(40.71, -74.00)

        err = exc_info.value
        assert err.code == "SERVICE_UNAVAILABLE"
        assert err.extra()["nearest_location"]["name"] == "Baltimore"

    def test_check_service_area_inside_passes(self):
        check_service_area(38.90, -77.03)

    def test_nearest_location(self):
        assert get_nearest_location(38.98, -77.09).name == "Bethesda"

    def test_find_location(self):
        assert find_location("bethesda").name == "Bethesda"
        assert find_location("Arlington, VA").name == "Arlington"
        assert find_location("I live in Reston").name == "Reston"
        assert find_location("Boston") is None
        assert find_location("   ") is None

    def test_search_locations(self):
        assert [loc.name for loc in search_locations(", md")][:2] == ["Bethesda", "Silver Spring"]
        assert len(search_locations("")) == len(DMV_LOCATIONS) == 21

    def test_resolve_user_location_fallback(self):
        location = resolve_user_location(None, -77.0)
        assert location.is_fallback is True
        assert (location.latitude, location.longitude) == (38.9072, -77.0369)

        explicit = resolve_user_location(38.95, -77.1)
        assert explicit.is_fallback is False


# ============================================================================
# TESTS: CLAIM CODES
# ============================================================================

class TestClaimCodes:
    """Tests for claim code generation and normalization."""

    def test_generated_code_shape(self):
        code = generate_claim_code()
        assert len(code) == 8
        assert all(c in CLAIM_CODE_ALPHABET for c in code)

    def test_generated_codes_vary(self):
        assert len({generate_claim_code() for _ in range(50)}) > 45

    @pytest.mark.parametrize("raw", ["abcd1234", " ABCD-1234 ", "abcd 1234", "AB-CD-12-34"])
    def test_normalize_accepts_typed_variants(self, raw):
        assert normalize_claim_code(raw) == "ABCD1234"

    def test_normalize_is_idempotent(self):
        once = normalize_claim_code("x7k2-m9p4")
        assert normalize_claim_code(once) == once

    @pytest.mark.parametrize("raw", ["", "ABC123", "ABCD12345", "ABCD123!", "ÄBCD1234"])
    def test_normalize_rejects_malformed(self, raw):
        with pytest.raises(InvalidClaimCodeError):
            normalize_claim_code(raw)


class TestClaimStatus:
    """Tests for the claim status state machine."""

    def test_active_before_expiry(self):
        claim = make_claim()
        assert effective_status(claim, now=T0 + timedelta(hours=1)) == "active"
        assert is_claim_valid(claim, now=T0 + timedelta(hours=1)) is True

    def test_active_past_expiry_reads_expired(self):
        claim = make_claim()
        later = T0 + timedelta(hours=25)
        assert effective_status(claim, now=later) == "expired"
        assert is_claim_valid(claim, now=later) is False

    def test_redeemed_stays_redeemed(self):
        claim = make_claim(status="redeemed")
        assert effective_status(claim, now=T0 + timedelta(days=3)) == "redeemed"


# ============================================================================
# TESTS: QR PAYLOADS
# ============================================================================

class TestQRPayload:
    """Tests for the QR document encoder/decoder."""

    def test_payload_shape(self):
        payload = build_qr_payload(make_claim())

        assert payload == {
            "type": QR_PAYLOAD_TYPE,
            "claim_code": "ABCD1234",
            "deal_title": "Half-price Margherita",
            "restaurant_name": "Dupont Pizzeria",
            "deal_price": 9.0,
            "original_price": 18.0,
            "expires_at": "2026-06-02T16:00:00+00:00",
            "claimed_at": "2026-06-01T16:00:00+00:00",
        }

    def test_parse_encoded_payload(self):
        text = encode_qr_payload(build_qr_payload(make_claim()))
        parsed = parse_qr_payload(text)

        assert parsed.claim_code == "ABCD1234"
        assert parsed.restaurant_name == "Dupont Pizzeria"

    def test_parse_normalizes_code(self):
        text = json.dumps({"type": QR_PAYLOAD_TYPE, "claim_code": "abcd-1234"})
        assert parse_qr_payload(text).claim_code == "ABCD1234"

    @pytest.mark.parametrize(
        "text",
        [
            "ABCD1234",
            "not json at all",
            json.dumps(["claim_code", "ABCD1234"]),
            json.dumps({"type": "other_app", "claim_code": "ABCD1234"}),
            json.dumps({"type": QR_PAYLOAD_TYPE}),
            json.dumps({"type": QR_PAYLOAD_TYPE, "claim_code": "   "}),
            json.dumps({"type": QR_PAYLOAD_TYPE, "claim_code": "TOOSHORT1"}),
        ],
    )
    def test_parse_rejects_foreign_text(self, text):
        with pytest.raises(InvalidQRCodeError) as exc_info:
            parse_qr_payload(text)
        assert exc_info.value.message == "Invalid QR code"

    def test_render_png_data_url(self):
        url = render_qr_data_url('{"claim_code":"ABCD1234"}')

        assert url.startswith("data:image/png;base64,")
        png = base64.b64decode(url.split(",", 1)[1])
        assert png[:8] == b"\x89PNG\r\n\x1a\n"
