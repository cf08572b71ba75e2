"""
Affiliate models: affiliates, referral attributions and earned commissions.

Usage:
    from payments.models import AffiliateAttribution, AffiliateCommission

    # Most recent attribution wins
    attribution = (
        AffiliateAttribution.objects.filter(referred_user_id=user_id)
        .order_by("-created_at")
        .first()
    )
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import AffiliateTier, CommissionStatus


class Affiliate(UUIDPrimaryKeyMixin, BaseModel):
    """
    An affiliate partner identified by a referral code.

    Fields:
        code: Referral code shared with referred users, unique
        tier: Commission tier (starter, pro, power)
    """

    code = models.CharField(
        max_length=64,
        unique=True,
        help_text="Referral code",
    )

    tier = models.CharField(
        max_length=20,
        choices=AffiliateTier.choices,
        default=AffiliateTier.STARTER,
        help_text="Commission tier",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Affiliate"
        verbose_name_plural = "Affiliates"

    def __str__(self) -> str:
        return f"Affiliate({self.code}, {self.tier})"


class AffiliateAttribution(UUIDPrimaryKeyMixin, BaseModel):
    """
    Link between a referred user and an affiliate code, recorded at signup.

    Reconciliation reads these and never writes them. When a user has
    several attributions the most recent one wins.
    """

    referred_user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="User who signed up through the referral",
    )

    affiliate_code = models.CharField(
        max_length=64,
        help_text="Referral code the user signed up with",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Affiliate Attribution"
        verbose_name_plural = "Affiliate Attributions"
        indexes = [
            models.Index(
                fields=["referred_user_id", "created_at"],
                name="attribution_user_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"AffiliateAttribution({self.referred_user_id} -> {self.affiliate_code})"


class AffiliateCommission(UUIDPrimaryKeyMixin, BaseModel):
    """
    Commission earned by an affiliate on one purchase.

    At most one commission exists per checkout session; the unique
    constraint on ``session_id`` backs the existence check done during
    reconciliation.

    Fields:
        affiliate_code: Code the commission is credited to
        referred_user_id: Purchasing user
        amount_cents: Commission amount (rounded half up)
        status: Always EARNED when recorded
        session_id: Stripe Checkout Session ID, unique
    """

    affiliate_code = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Affiliate code credited with the commission",
    )

    referred_user_id = models.CharField(
        max_length=255,
        help_text="User whose purchase produced the commission",
    )

    amount_cents = models.PositiveBigIntegerField(
        help_text="Commission amount in smallest currency unit",
    )

    status = models.CharField(
        max_length=20,
        choices=CommissionStatus.choices,
        default=CommissionStatus.EARNED,
        help_text="Commission status",
    )

    session_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Checkout Session ID the commission was earned on",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Affiliate Commission"
        verbose_name_plural = "Affiliate Commissions"

    def __str__(self) -> str:
        return (
            f"AffiliateCommission({self.affiliate_code}, {self.session_id}, "
            f"{self.amount_cents})"
        )
