"""
Tests for CheckoutService.
"""

import pytest

from payments.adapters import CheckoutSessionResult
from payments.conf import PaymentsConfig
from payments.exceptions import StripeAPIUnavailableError
from payments.services import CheckoutService


@pytest.fixture
def checkout_adapter(mock_stripe_adapter):
    mock_stripe_adapter.create_checkout_session.return_value = CheckoutSessionResult(
        id="cs_test_new",
        url="https://checkout.stripe.com/c/pay/cs_test_new",
        amount_total=9900,
    )
    return mock_stripe_adapter


@pytest.fixture
def service(payments_config, checkout_adapter):
    return CheckoutService(payments_config, stripe_adapter=checkout_adapter)


class TestCreateSession:
    """Tests for CheckoutService.create_session."""

    def test_creates_session_for_pack(self, service, checkout_adapter):
        result = service.create_session(pack="pro", user_id="u1")

        assert result.success
        assert result.data.url == "https://checkout.stripe.com/c/pay/cs_test_new"

        (params,) = checkout_adapter.create_checkout_session.call_args.args
        assert params.amount_cents == 9900
        assert params.currency == "usd"
        assert params.product_name == "pro credits"
        assert params.metadata == {"user_id": "u1", "pack": "pro"}
        assert params.client_reference_id == "u1"
        assert params.success_url == "https://example.com/success"
        assert params.cancel_url == "https://example.com/cancel"

    def test_affiliate_code_in_metadata(self, service, checkout_adapter):
        service.create_session(pack="starter", user_id="u1", affiliate_code="AFF1")

        (params,) = checkout_adapter.create_checkout_session.call_args.args
        assert params.amount_cents == 2500
        assert params.metadata == {
            "user_id": "u1",
            "pack": "starter",
            "affiliate_code": "AFF1",
        }

    def test_explicit_redirect_urls(self, service, checkout_adapter):
        service.create_session(
            pack="pro",
            user_id="u1",
            success_url="https://app.example.com/ok",
            cancel_url="https://app.example.com/back",
        )

        (params,) = checkout_adapter.create_checkout_session.call_args.args
        assert params.success_url == "https://app.example.com/ok"
        assert params.cancel_url == "https://app.example.com/back"

    def test_unknown_pack(self, service, checkout_adapter):
        result = service.create_session(pack="mega", user_id="u1")

        assert not result.success
        assert result.error == "Unknown pack: mega"
        assert result.error_code == "UNKNOWN_PACK"
        checkout_adapter.create_checkout_session.assert_not_called()

    def test_missing_redirect_urls(self, checkout_adapter):
        service = CheckoutService(PaymentsConfig(), stripe_adapter=checkout_adapter)

        result = service.create_session(pack="pro", user_id="u1")

        assert result.error_code == "MISSING_REDIRECT_URL"
        checkout_adapter.create_checkout_session.assert_not_called()

    def test_stripe_error_propagates(self, service, checkout_adapter):
        checkout_adapter.create_checkout_session.side_effect = (
            StripeAPIUnavailableError("Stripe service error. Please retry.")
        )

        with pytest.raises(StripeAPIUnavailableError):
            service.create_session(pack="pro", user_id="u1")
