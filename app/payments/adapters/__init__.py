"""
Payment adapters for external services.

All Stripe API calls go through StripeAdapter to ensure consistent error
handling, timeouts, idempotency, and observability.

Usage:
    from payments.adapters import StripeAdapter

    StripeAdapter.verify_webhook_signature(raw_body, signature, secret)
"""

from payments.adapters.stripe_adapter import (
    AccountLinkResult,
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    IdempotencyKeyGenerator,
    StripeAdapter,
    TransferResult,
    WEBHOOK_TOLERANCE_SECONDS,
)

__all__ = [
    "AccountLinkResult",
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "IdempotencyKeyGenerator",
    "StripeAdapter",
    "TransferResult",
    "WEBHOOK_TOLERANCE_SECONDS",
]
