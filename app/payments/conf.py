"""
Runtime configuration for the payments app.

Components receive a PaymentsConfig at construction instead of reading
django.conf.settings deep inside business logic, so tests can pass an
explicit config.

Usage:
    from payments.conf import PaymentsConfig

    config = PaymentsConfig.from_settings()
    authorizer = PayoutAuthorizer(config)
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings


@dataclass(frozen=True)
class PaymentsConfig:
    """
    Payment settings snapshot.

    Attributes:
        webhook_secret: Stripe webhook signing secret (whsec_xxx)
        payout_currency: Currency for reviewer transfers
        payout_balance_max_attempts: Balance compare-and-swap attempts
        payout_lock_ttl_seconds: Per-reviewer payout lock expiry
        payout_lock_timeout_seconds: Max wait to acquire the payout lock
        payout_transfer_retry_window_seconds: How long after reserving a
            payout the transfer may be re-sent under the same idempotency key
        checkout_success_url: Default redirect after checkout
        checkout_cancel_url: Default redirect when checkout is abandoned
    """

    webhook_secret: str = ""
    payout_currency: str = "usd"
    payout_balance_max_attempts: int = 3
    payout_lock_ttl_seconds: int = 120
    payout_lock_timeout_seconds: float = 10.0
    payout_transfer_retry_window_seconds: int = 86400
    checkout_success_url: str = ""
    checkout_cancel_url: str = ""

    @classmethod
    def from_settings(cls) -> PaymentsConfig:
        """Build from Django settings, falling back to the defaults above."""
        return cls(
            webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
            payout_currency=getattr(settings, "PAYOUT_CURRENCY", "usd"),
            payout_balance_max_attempts=getattr(
                settings, "PAYOUT_BALANCE_MAX_ATTEMPTS", 3
            ),
            payout_lock_ttl_seconds=getattr(settings, "PAYOUT_LOCK_TTL_SECONDS", 120),
            payout_lock_timeout_seconds=getattr(
                settings, "PAYOUT_LOCK_TIMEOUT_SECONDS", 10.0
            ),
            payout_transfer_retry_window_seconds=getattr(
                settings, "PAYOUT_TRANSFER_RETRY_WINDOW_SECONDS", 86400
            ),
            checkout_success_url=getattr(settings, "CHECKOUT_SUCCESS_URL", ""),
            checkout_cancel_url=getattr(settings, "CHECKOUT_CANCEL_URL", ""),
        )
