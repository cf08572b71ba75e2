"""
State enums for ledger models.

These are Django TextChoices for database storage and admin integration.

State Machines Overview:

PayoutRequest States:
    requested → paid       (transfer executed)
    requested → rejected   (operator cancel)
    paid and rejected are terminal.

ReviewerPayoutAccount onboarding:
    pending → in_progress → complete
    pending/in_progress → rejected
    Driven by the provider's account.updated notifications.
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    Status of a PaymentRecord.

    Only completed checkout sessions are recorded, so every record is PAID.
    """

    PAID = "paid", "Paid"


class CommissionStatus(models.TextChoices):
    """Status of an AffiliateCommission. Commissions are recorded as earned."""

    EARNED = "earned", "Earned"


class AffiliateTier(models.TextChoices):
    """
    Affiliate tier, selecting the commission rate.

    Rates live in payments.pricing.COMMISSION_RATES.
    """

    STARTER = "starter", "Starter"
    PRO = "pro", "Pro"
    POWER = "power", "Power"


class CreditPack(models.TextChoices):
    """Credit packs sold through checkout."""

    STARTER = "starter", "Starter"
    PRO = "pro", "Pro"
    STUDIO = "studio", "Studio"


class OnboardingStatus(models.TextChoices):
    """
    Stripe Connect onboarding status for ReviewerPayoutAccount.

    Reflects the state of the reviewer's Stripe Connect onboarding process.
    Payout authorization only requires a connect account id; the status is
    informational for operators.
    """

    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETE = "complete", "Complete"
    REJECTED = "rejected", "Rejected"


class PayoutRequestStatus(models.TextChoices):
    """
    States for the PayoutRequest lifecycle.

    Terminal states: PAID, REJECTED

    State Flow:
        REQUESTED → PAID
        REQUESTED → REJECTED
    """

    REQUESTED = "requested", "Requested"
    PAID = "paid", "Paid"
    REJECTED = "rejected", "Rejected"
