"""
Ledger models.

This module contains all payment-related models:
- PaymentRecord: One row per paid checkout session
- Wallet: Per-user credit balance
- Affiliate: Affiliate partner and commission tier
- AffiliateAttribution: Referred user -> affiliate code link
- AffiliateCommission: Commission earned on one purchase
- ReviewerPayoutAccount: Stripe Connect account for a reviewer
- ReviewerBalance: Reviewer earned/paid balance with optimistic locking
- PayoutRequest: Reviewer payout request and its status
"""

from payments.models.affiliate import (
    Affiliate,
    AffiliateAttribution,
    AffiliateCommission,
)
from payments.models.payment_record import PaymentRecord
from payments.models.payout_request import PayoutRequest
from payments.models.reviewer import ReviewerBalance, ReviewerPayoutAccount
from payments.models.wallet import Wallet

__all__ = [
    "Affiliate",
    "AffiliateAttribution",
    "AffiliateCommission",
    "PaymentRecord",
    "PayoutRequest",
    "ReviewerBalance",
    "ReviewerPayoutAccount",
    "Wallet",
]
