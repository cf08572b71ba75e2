"""
Payments app configuration.

This app provides the payment event to ledger reconciliation engine:
- Stripe webhook verification and dispatch
- Purchase reconciliation (payment records, wallets, affiliate commissions)
- Reviewer payout authorization
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        # Register webhook event handlers with the dispatcher
        from payments.webhooks import handlers  # noqa: F401
