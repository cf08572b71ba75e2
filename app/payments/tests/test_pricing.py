"""
Tests for credit pack and commission rules.
"""

from decimal import Decimal

import pytest

from payments.pricing import (
    PACK_PRICES_CENTS,
    commission_cents,
    commission_rate,
    credits_for_pack,
)


class TestCreditsForPack:
    @pytest.mark.parametrize(
        "pack, credits", [("starter", 25), ("pro", 120), ("studio", 400)]
    )
    def test_known_packs(self, pack, credits):
        assert credits_for_pack(pack) == credits

    @pytest.mark.parametrize("pack", ["mega", "", "PRO"])
    def test_unknown_pack_grants_nothing(self, pack):
        assert credits_for_pack(pack) == 0

    def test_every_pack_has_a_price(self):
        assert PACK_PRICES_CENTS == {"starter": 2500, "pro": 9900, "studio": 29900}


class TestCommission:
    def test_rates(self):
        assert commission_rate("starter") == Decimal("0.10")
        assert commission_rate("pro") == Decimal("0.20")
        assert commission_rate("power") == Decimal("0.25")

    @pytest.mark.parametrize("tier", [None, "", "platinum"])
    def test_unknown_tier_uses_starter_rate(self, tier):
        assert commission_rate(tier) == Decimal("0.10")

    @pytest.mark.parametrize(
        "amount, tier, expected",
        [
            (10000, "starter", 1000),
            (10000, "pro", 2000),
            (10000, "power", 2500),
            (9900, "pro", 1980),
            (5, "starter", 1),
            (4, "starter", 0),
            (2, "power", 1),
            (0, "power", 0),
        ],
    )
    def test_commission_cents_rounds_half_up(self, amount, tier, expected):
        assert commission_cents(amount, tier) == expected
