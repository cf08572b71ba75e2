"""
Pytest fixtures for webhook tests.

Webhook tests share the payload signing and ledger fixtures defined for
the whole payments app.
"""

from payments.tests.conftest import (  # noqa: F401
    checkout_event,
    payments_config,
    purchase_event,
    reviewer_account,
    signed,
    webhook_settings,
)
