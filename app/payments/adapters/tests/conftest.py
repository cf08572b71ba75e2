"""
Pytest fixtures for Stripe adapter tests.

This module provides fixtures for testing the Stripe adapter, including
mock Stripe API responses and error conditions.

Sections:
    - Mock Stripe Response Fixtures
    - Mock Stripe Error Fixtures
    - Mock Stripe Client Fixtures
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import stripe


# =============================================================================
# Mock Stripe Response Fixtures
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_transfer():
    """Create a mock Transfer response."""

    def _create(
        id: str = "tr_test123456",
        amount: int = 4500,
        currency: str = "usd",
        destination: str = "acct_dest123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "transfer",
                "amount": amount,
                "currency": currency,
                "destination": destination,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_checkout_session():
    """Create a mock Checkout Session response."""

    def _create(
        id: str = "cs_test123456",
        url: str = "https://checkout.stripe.com/c/pay/cs_test123456",
        amount_total: int = 9900,
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "checkout.session",
                "url": url,
                "amount_total": amount_total,
                "metadata": metadata or {},
            }
        )

    return _create


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def invalid_request_error():
    """Create a Stripe InvalidRequestError."""

    def _create(
        message: str = "Invalid transfer amount",
        param: str | None = "amount",
        code: str = "parameter_invalid_integer",
    ) -> stripe.error.InvalidRequestError:
        return stripe.error.InvalidRequestError(
            message=message,
            param=param,
            code=code,
        )

    return _create


@pytest.fixture
def rate_limit_error():
    """Create a Stripe RateLimitError."""
    return stripe.error.RateLimitError(
        message="Too many requests hit the API too quickly.",
    )


@pytest.fixture
def api_connection_error():
    """Create a Stripe APIConnectionError."""
    return stripe.error.APIConnectionError(
        message="Could not connect to Stripe.",
    )


@pytest.fixture
def api_error():
    """Create a Stripe APIError."""
    return stripe.error.APIError(
        message="Something went wrong on Stripe's end.",
    )


@pytest.fixture
def authentication_error():
    """Create a Stripe AuthenticationError."""
    return stripe.error.AuthenticationError(
        message="Invalid API Key provided.",
    )


# =============================================================================
# Mock Stripe Client Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_transfer(mock_transfer):
    """Mock stripe.Transfer API."""
    with patch("stripe.Transfer") as mock:
        mock.create.return_value = mock_transfer()
        yield mock


@pytest.fixture
def mock_stripe_checkout_session(mock_checkout_session):
    """Mock stripe.checkout.Session API."""
    with patch("stripe.checkout.Session") as mock:
        mock.create.return_value = mock_checkout_session()
        yield mock


@pytest.fixture
def mock_stripe_account():
    """Mock stripe.Account API."""
    with patch("stripe.Account") as mock:
        mock.create.return_value = MockStripeObject(
            {"id": "acct_new123", "object": "account", "type": "express"}
        )
        yield mock


@pytest.fixture
def mock_stripe_account_link():
    """Mock stripe.AccountLink API."""
    with patch("stripe.AccountLink") as mock:
        mock.create.return_value = MockStripeObject(
            {
                "object": "account_link",
                "url": "https://connect.stripe.com/setup/e/acct_new123/abc",
                "expires_at": 1760000000,
            }
        )
        yield mock


@pytest.fixture
def mock_stripe_http_client():
    """Mock stripe.RequestsClient."""
    with patch("stripe.RequestsClient") as mock:
        yield mock
