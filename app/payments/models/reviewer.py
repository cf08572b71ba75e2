"""
Reviewer payout models: Stripe Connect account link and earned balance.

Usage:
    from payments.models import ReviewerBalance, ReviewerPayoutAccount

    account = ReviewerPayoutAccount.objects.filter(reviewer_id=reviewer_id).first()
    if account is None or not account.is_connected:
        ...
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin

from payments.state_machines import OnboardingStatus


class ReviewerPayoutAccount(UUIDPrimaryKeyMixin, BaseModel):
    """
    Stripe Connect account that receives a reviewer's payouts.

    Fields:
        reviewer_id: Reviewer (opaque id from the auth provider), unique
        connect_account_id: Stripe Account ID (acct_xxx); blank until created
        onboarding_status: Current state of Stripe Connect onboarding
        payouts_enabled: Whether Stripe has enabled payouts
        charges_enabled: Whether Stripe has enabled charges

    Lifecycle:
        1. Account created when the reviewer starts onboarding (PENDING)
        2. Reviewer submits details through the account link (IN_PROGRESS)
        3. Stripe verifies information (COMPLETE or REJECTED)
    """

    reviewer_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Reviewer this payout account belongs to",
    )

    connect_account_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Stripe Account ID (acct_xxx)",
    )

    onboarding_status = models.CharField(
        max_length=20,
        choices=OnboardingStatus.choices,
        default=OnboardingStatus.PENDING,
        db_index=True,
        help_text="Current Stripe Connect onboarding status",
    )

    payouts_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled payouts for this account",
    )

    charges_enabled = models.BooleanField(
        default=False,
        help_text="Whether Stripe has enabled charges for this account",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Reviewer Payout Account"
        verbose_name_plural = "Reviewer Payout Accounts"

    def __str__(self) -> str:
        return f"ReviewerPayoutAccount({self.reviewer_id}, {self.connect_account_id}, {self.onboarding_status})"

    @property
    def is_connected(self) -> bool:
        """True if a Stripe connect account id has been recorded."""
        return bool(self.connect_account_id)


class ReviewerBalance(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Earned balance of a reviewer.

    ``available_cents`` decreases and ``paid_cents`` increases by the same
    amount on each payout, so their sum is conserved.

    Fields:
        reviewer_id: Reviewer, unique
        available_cents: Earned and not yet paid out
        paid_cents: Total paid out
        version: Optimistic locking counter (VersionedMixin)

    Note:
        Payout reservation updates this row with a version compare-and-swap
        (see payments.locks.compare_and_swap), never with save().
    """

    reviewer_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Reviewer this balance belongs to",
    )

    available_cents = models.PositiveBigIntegerField(
        default=0,
        help_text="Earned balance available for payout",
    )

    paid_cents = models.PositiveBigIntegerField(
        default=0,
        help_text="Total amount paid out",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Reviewer Balance"
        verbose_name_plural = "Reviewer Balances"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_cents__gte=0),
                name="reviewer_balance_available_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(paid_cents__gte=0),
                name="reviewer_balance_paid_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"ReviewerBalance({self.reviewer_id}, available={self.available_cents}, "
            f"paid={self.paid_cents}, v{self.version})"
        )
