"""
Credit pack and affiliate commission rules.

Usage:
    from payments.pricing import commission_cents, credits_for_pack

    credits = credits_for_pack("pro")            # 120
    commission = commission_cents(10000, "pro")  # 2000
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payments.state_machines import AffiliateTier, CreditPack

# Credits granted per pack
CREDITS_PER_PACK: dict[str, int] = {
    CreditPack.STARTER.value: 25,
    CreditPack.PRO.value: 120,
    CreditPack.STUDIO.value: 400,
}

CHECKOUT_CURRENCY = "usd"

# Checkout price per pack, in cents
PACK_PRICES_CENTS: dict[str, int] = {
    CreditPack.STARTER.value: 2500,
    CreditPack.PRO.value: 9900,
    CreditPack.STUDIO.value: 29900,
}

# Affiliate commission rate per tier
COMMISSION_RATES: dict[str, Decimal] = {
    AffiliateTier.STARTER.value: Decimal("0.10"),
    AffiliateTier.PRO.value: Decimal("0.20"),
    AffiliateTier.POWER.value: Decimal("0.25"),
}


def credits_for_pack(pack: str) -> int:
    """Credits for a pack; 0 for packs we do not sell."""
    return CREDITS_PER_PACK.get(pack, 0)


def commission_rate(tier: str | None) -> Decimal:
    """Rate for a tier; unknown or missing tiers earn the starter rate."""
    return COMMISSION_RATES.get(tier or "", COMMISSION_RATES[AffiliateTier.STARTER.value])


def commission_cents(amount_total_cents: int, tier: str | None) -> int:
    """
    Commission on a purchase, rounded half up to whole cents.

    Decimal arithmetic keeps e.g. 0.10 * 5 = 0.5 -> 1 exact.
    """
    amount = Decimal(amount_total_cents) * commission_rate(tier)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
