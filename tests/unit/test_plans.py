"""
Unit Tests for Plan Resolution

Tests mapping Stripe price ids onto plan keys.
"""

import pytest

from billhook.core.models import KnownPriceIds, PlanKey
from billhook.webhooks import plan_table, resolve_plan_key


class TestResolvePlanKey:
    """Test resolve_plan_key."""

    def test_growth(self, price_ids):
        assert resolve_plan_key("price_growth", price_ids) == PlanKey.GROWTH

    def test_cheap(self, price_ids):
        assert resolve_plan_key("price_cheap", price_ids) == PlanKey.RIDICULOUS

    def test_free(self, price_ids):
        assert resolve_plan_key("price_free", price_ids) == PlanKey.FREE

    @pytest.mark.parametrize("price_id", [None, "", "price_other", "PRICE_GROWTH", "price_growth "])
    def test_unmatched_is_unknown(self, price_ids, price_id):
        """Test anything but an exact match is sub::unknown."""
        assert resolve_plan_key(price_id, price_ids) == PlanKey.UNKNOWN

    def test_first_match_wins(self):
        """Test growth takes precedence when ids collide."""
        known = KnownPriceIds(growth="price_same", cheap="price_same", free="price_same")

        assert resolve_plan_key("price_same", known) == PlanKey.GROWTH

    def test_cheap_before_free(self):
        """Test cheap takes precedence over free."""
        known = KnownPriceIds(growth="price_g", cheap="price_same", free="price_same")

        assert resolve_plan_key("price_same", known) == PlanKey.RIDICULOUS

    def test_unconfigured_ids_never_match(self):
        """Test empty configured ids do not match empty input."""
        assert resolve_plan_key("", KnownPriceIds()) == PlanKey.UNKNOWN

    def test_result_is_always_plan_key(self, price_ids):
        for price_id in ["price_growth", "price_cheap", "price_free", "x", None]:
            assert resolve_plan_key(price_id, price_ids) in set(PlanKey)


class TestPlanTable:
    """Test plan_table ordering."""

    def test_order(self, price_ids):
        assert [key for _, key in plan_table(price_ids)] == [
            PlanKey.GROWTH,
            PlanKey.RIDICULOUS,
            PlanKey.FREE,
        ]
