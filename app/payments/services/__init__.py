"""
Payment services for the ledger.

This module provides:
- PurchaseReconciler: Applies completed purchases to wallets and commissions
- PayoutAuthorizer: Validates and pays reviewer payout requests
- CheckoutService: Creates Checkout Sessions for credit packs
- ConnectOnboardingService: Starts Stripe Connect onboarding for reviewers

Usage:
    from payments.services import PayoutAuthorizer

    result = PayoutAuthorizer(config).authorize_payout(request_id)
"""

from payments.services.checkout import CheckoutService
from payments.services.onboarding import ConnectOnboardingService, OnboardingLink
from payments.services.payout_authorizer import PayoutAuthorization, PayoutAuthorizer
from payments.services.purchase_reconciler import PurchaseReconciler, ReconcileOutcome

__all__ = [
    "CheckoutService",
    "ConnectOnboardingService",
    "OnboardingLink",
    "PayoutAuthorization",
    "PayoutAuthorizer",
    "PurchaseReconciler",
    "ReconcileOutcome",
]
