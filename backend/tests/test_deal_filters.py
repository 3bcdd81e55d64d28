"""Tests for catalog filtering, featured ranking and the suggestion pick."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from instantfork.models import Deal, Restaurant
from instantfork.services.deal_filters import (
    DealFilters,
    featured_deals,
    filter_deals,
    matches_filters,
    suggest_best_deal,
)
from instantfork.services.geo import UserLocation

# 18:00 UTC in June is 14:00 ("afternoon") in Washington
NOW = datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc)
DUPONT = UserLocation(latitude=38.9097, longitude=-77.0434)


def build_deal(
    title="Taco Tuesday",
    category="Mexican",
    restaurant_name="Casa Dupont",
    deal_price="8.00",
    original_price="16.00",
    hours_left=5.0,
    tags=("tacos",),
    latitude=38.9097,
    longitude=-77.0434,
    description=None,
) -> Deal:
    restaurant = Restaurant(
        name=restaurant_name,
        category=category,
        address="Somewhere in DC",
        latitude=38.9097,
        longitude=-77.0434,
    )
    return Deal(
        title=title,
        description=description,
        tags=list(tags),
        deal_price=Decimal(deal_price),
        original_price=Decimal(original_price),
        latitude=latitude,
        longitude=longitude,
        start_time=NOW - timedelta(hours=1),
        end_time=NOW + timedelta(hours=hours_left),
        is_active=True,
        quantity_claimed=0,
        restaurant=restaurant,
    )


# ============================================================================
# TESTS: PREDICATES
# ============================================================================

class TestMatchesFilters:
    """Tests for the single-deal predicate."""

    def test_no_filters_matches_live_deal(self):
        assert matches_filters(build_deal(), DealFilters(), now=NOW) is True

    def test_price_ceiling_is_inclusive(self):
        deal = build_deal(deal_price="12.00")
        assert matches_filters(deal, DealFilters(max_price=12), now=NOW) is True
        assert matches_filters(deal, DealFilters(max_price=11.99), now=NOW) is False

    def test_price_ceiling_with_float_input(self):
        deal = build_deal(deal_price="10.10")
        assert matches_filters(deal, DealFilters(max_price=10.1), now=NOW) is True

    def test_distance_needs_location_and_ceiling(self):
        far = build_deal(latitude=39.2904, longitude=-76.6122)  # Baltimore

        assert matches_filters(far, DealFilters(max_distance_miles=5), now=NOW) is True
        assert matches_filters(far, DealFilters(), user_location=DUPONT, now=NOW) is True
        assert matches_filters(
            far, DealFilters(max_distance_miles=5), user_location=DUPONT, now=NOW
        ) is False

    def test_missing_coordinates_excluded_when_distance_active(self):
        deal = build_deal(latitude=None, longitude=None)

        assert matches_filters(
            deal, DealFilters(max_distance_miles=50), user_location=DUPONT, now=NOW
        ) is False
        assert matches_filters(deal, DealFilters(), user_location=DUPONT, now=NOW) is True

    def test_ended_deal_always_excluded(self):
        ended = build_deal(hours_left=-0.5)
        assert matches_filters(ended, DealFilters(), now=NOW) is False
        assert matches_filters(ended, DealFilters(max_hours_left=24), now=NOW) is False

    def test_hours_left_ceiling(self):
        deal = build_deal(hours_left=5.5)
        assert matches_filters(deal, DealFilters(max_hours_left=5), now=NOW) is True
        assert matches_filters(deal, DealFilters(max_hours_left=4), now=NOW) is False

    def test_cuisine_allow_list(self):
        deal = build_deal(category="Mexican")
        assert matches_filters(deal, DealFilters(cuisines=["Mexican", "Thai"]), now=NOW) is True
        assert matches_filters(deal, DealFilters(cuisines=["Italian"]), now=NOW) is False

    def test_dietary_substring_on_tags(self):
        deal = build_deal(tags=("Vegetarian-friendly", "tacos"))
        assert matches_filters(deal, DealFilters(dietary_needs=["vegetarian"]), now=NOW) is True
        assert matches_filters(deal, DealFilters(dietary_needs=["vegan", "gluten"]), now=NOW) is False

    @pytest.mark.parametrize("query", ["taco", "CASA", "mexican", "TACOS", "fresh salsa", "  "])
    def test_query_matches_any_text_field(self, query):
        deal = build_deal(description="Three tacos with fresh salsa")
        assert matches_filters(deal, DealFilters(), query=query, now=NOW) is True

    def test_query_without_match(self):
        assert matches_filters(build_deal(), DealFilters(), query="sushi", now=NOW) is False


class TestFilterDeals:
    """Tests for filtering whole catalogs."""

    def test_keeps_catalog_order(self):
        deals = [
            build_deal(title="A", deal_price="5.00"),
            build_deal(title="B", deal_price="50.00", original_price="60.00"),
            build_deal(title="C", deal_price="7.00"),
        ]
        result = filter_deals(deals, DealFilters(max_price=10), now=NOW)
        assert [d.title for d in result] == ["A", "C"]

    def test_empty_catalog(self):
        assert filter_deals([], DealFilters(max_price=10), now=NOW) == []


# ============================================================================
# TESTS: FEATURED AND SUGGESTION
# ============================================================================

class TestFeaturedDeals:
    """Tests for featured ranking."""

    def test_sorted_by_discount_and_truncated(self):
        deals = [
            build_deal(title="20%", deal_price="8.00", original_price="10.00"),
            build_deal(title="50%", deal_price="5.00", original_price="10.00"),
            build_deal(title="30%", deal_price="7.00", original_price="10.00"),
        ]
        assert [d.title for d in featured_deals(deals, limit=2)] == ["50%", "30%"]

    def test_ties_keep_catalog_order(self):
        deals = [build_deal(title=f"D{i}", deal_price="5.00", original_price="10.00") for i in range(3)]
        assert [d.title for d in featured_deals(deals)] == ["D0", "D1", "D2"]


class TestSuggestBestDeal:
    """Tests for the "Hungry now" pick."""

    def test_none_without_deals_or_location(self):
        assert suggest_best_deal([], DUPONT, now=NOW) is None
        assert suggest_best_deal([build_deal()], None, now=NOW) is None

    def test_prefers_close_lunch_deal_ending_soon(self):
        nearby_lunch = build_deal(title="Nearby lunch", tags=("lunch",), hours_left=1.5)
        far_dinner = build_deal(
            title="Far dinner",
            tags=("dinner",),
            hours_left=8,
            latitude=39.2904,
            longitude=-76.6122,
        )
        assert suggest_best_deal([far_dinner, nearby_lunch], DUPONT, now=NOW).title == "Nearby lunch"

    def test_bigger_savings_wins_when_otherwise_equal(self):
        small = build_deal(title="Small", deal_price="9.00", original_price="10.00")
        big = build_deal(title="Big", deal_price="2.00", original_price="10.00")
        assert suggest_best_deal([small, big], DUPONT, now=NOW).title == "Big"

    def test_ended_deals_are_skipped(self):
        ended = build_deal(title="Ended", deal_price="1.00", original_price="10.00", hours_left=-1)
        live = build_deal(title="Live")
        assert suggest_best_deal([ended, live], DUPONT, now=NOW).title == "Live"

    def test_first_wins_on_equal_score(self):
        first = build_deal(title="First")
        second = build_deal(title="Second")
        assert suggest_best_deal([first, second], DUPONT, now=NOW).title == "First"
