"""
Pytest fixtures for service tests.

Service tests share the ledger, Redis and Stripe fixtures defined for the
whole payments app.
"""

from payments.tests.conftest import (  # noqa: F401
    mock_redis,
    mock_stripe_adapter,
    payable_request,
    payments_config,
    purchase_event,
    reviewer_account,
    reviewer_balance,
)
