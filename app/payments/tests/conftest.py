"""
Pytest fixtures for payment tests.

This module provides fixtures for creating ledger test data, signing
webhook payloads with a test secret, and mocking Redis and Stripe.

Usage:
    def test_pays_request(payable_request, mock_redis, mock_stripe_adapter):
        result = PayoutAuthorizer(config, mock_stripe_adapter).authorize_payout(
            payable_request.pk
        )
        assert result.success
"""

import json
import time

import pytest
import stripe
from rest_framework.test import APIClient

from payments.adapters import TransferResult
from payments.conf import PaymentsConfig
from payments.tests.factories import (
    PayoutRequestFactory,
    ReviewerBalanceFactory,
    ReviewerPayoutAccountFactory,
    UserFactory,
)
from payments.webhooks.events import VerifiedEvent

TEST_WEBHOOK_SECRET = "whsec_test_secret"


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def payments_config():
    """Explicit config with the test webhook secret."""
    return PaymentsConfig(
        webhook_secret=TEST_WEBHOOK_SECRET,
        payout_currency="usd",
        payout_balance_max_attempts=3,
        payout_lock_ttl_seconds=120,
        payout_lock_timeout_seconds=0.1,
        payout_transfer_retry_window_seconds=86400,
        checkout_success_url="https://example.com/success",
        checkout_cancel_url="https://example.com/cancel",
    )


@pytest.fixture
def webhook_settings(settings):
    """Point Django settings at the test webhook secret."""
    settings.STRIPE_WEBHOOK_SECRET = TEST_WEBHOOK_SECRET
    return settings


# =============================================================================
# Webhook payloads
# =============================================================================


def build_checkout_event(
    session_id="cs_test_1",
    amount_total=9900,
    metadata=None,
    event_id="evt_test_1",
    event_type="checkout.session.completed",
):
    """A checkout.session.completed event body as Stripe sends it."""
    if metadata is None:
        metadata = {"user_id": "u1", "pack": "pro"}
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "livemode": False,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "amount_total": amount_total,
                "metadata": metadata,
            }
        },
    }


def sign_payload(payload, secret=TEST_WEBHOOK_SECRET, timestamp=None):
    """Serialize and sign a payload; returns (raw_body, signature_header)."""
    body = payload if isinstance(payload, str) else json.dumps(payload)
    header = stripe.WebhookSignature.generate_signature_header(
        body,
        secret,
        timestamp=timestamp or int(time.time()),
    )
    return body.encode("utf-8"), header


@pytest.fixture
def checkout_event():
    """Factory for checkout.session.completed bodies."""
    return build_checkout_event


@pytest.fixture
def signed():
    """Factory that signs a payload with the test secret."""
    return sign_payload


@pytest.fixture
def purchase_event():
    """Factory for verified purchase_completed events."""

    def _make(**kwargs):
        return VerifiedEvent.from_payload(build_checkout_event(**kwargs))

    return _make


# =============================================================================
# Reviewer / payout fixtures
# =============================================================================


@pytest.fixture
def reviewer_account(db):
    """A reviewer with a connected Stripe account."""
    return ReviewerPayoutAccountFactory(reviewer_id="r1", connect_account_id="acct_r1")


@pytest.fixture
def reviewer_balance(db):
    """$100 available for reviewer r1."""
    return ReviewerBalanceFactory(reviewer_id="r1", available_cents=10000)


@pytest.fixture
def payable_request(db, reviewer_account, reviewer_balance):
    """A $50 REQUESTED payout for r1 that passes every validation."""
    return PayoutRequestFactory(reviewer_id="r1", amount_cents=5000)


# =============================================================================
# Mocks
# =============================================================================


@pytest.fixture
def mock_redis(mocker):
    """
    Mock Redis connection for distributed lock tests.

    Returns a MagicMock configured so locks are always available.
    """
    redis_instance = mocker.MagicMock()
    redis_instance.set.return_value = True
    redis_instance.eval.return_value = 1
    mocker.patch("payments.locks.get_redis_connection", return_value=redis_instance)
    return redis_instance


@pytest.fixture
def mock_stripe_adapter(mocker):
    """
    Mock StripeAdapter class whose transfers succeed.

    Pass as ``stripe_adapter=`` to services.
    """
    adapter = mocker.MagicMock()

    def _transfer(amount_cents, destination_account, idempotency_key, **kwargs):
        return TransferResult(
            id="tr_test_123",
            amount_cents=amount_cents,
            currency=kwargs.get("currency", "usd"),
            destination_account=destination_account,
            metadata=kwargs.get("metadata") or {},
        )

    adapter.create_transfer.side_effect = _transfer
    return adapter


# =============================================================================
# API clients
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def operator_client(db):
    """APIClient authenticated as a staff user."""
    client = APIClient()
    client.force_authenticate(user=UserFactory(is_staff=True))
    return client


@pytest.fixture
def user_client(db):
    """APIClient authenticated as a regular user."""
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    return client
