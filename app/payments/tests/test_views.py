"""
Tests for payments API views.

Covers the operator payout endpoints, checkout session creation and
Connect onboarding. Stripe is replaced with the mock adapter; the
webhook endpoint has its own tests in payments.webhooks.tests.
"""

import uuid

import pytest
from django.urls import reverse
from rest_framework import status

from payments.adapters import AccountLinkResult, CheckoutSessionResult
from payments.exceptions import (
    LockAcquisitionError,
    StripeAPIUnavailableError,
    StripeInvalidAccountError,
)
from payments.models import PayoutRequest, ReviewerBalance, ReviewerPayoutAccount
from payments.state_machines import PayoutRequestStatus
from payments.tests.factories import PayoutRequestFactory

PAY_URL = reverse("payments:payout_pay")
REJECT_URL = reverse("payments:payout_reject")
CHECKOUT_URL = reverse("payments:checkout")
ONBOARDING_URL = reverse("payments:connect_onboarding")


@pytest.fixture
def payout_stripe(mocker, mock_stripe_adapter, mock_redis):
    """Route PayoutAuthorizer's default adapter to the mock."""
    mocker.patch(
        "payments.services.payout_authorizer.StripeAdapter", mock_stripe_adapter
    )
    return mock_stripe_adapter


# =============================================================================
# Payout endpoints
# =============================================================================


@pytest.mark.django_db
class TestPayoutPayView:
    """Tests for POST /payouts/pay/."""

    def test_pays_request(self, operator_client, payable_request, payout_stripe):
        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ok": True, "transfer_id": "tr_test_123"}

        payable_request = PayoutRequest.objects.get(pk=payable_request.pk)
        assert payable_request.status == PayoutRequestStatus.PAID
        balance = ReviewerBalance.objects.get(reviewer_id="r1")
        assert (balance.available_cents, balance.paid_cents) == (5000, 5000)

    def test_requires_staff(self, user_client, payable_request, payout_stripe):
        response = user_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        payout_stripe.create_transfer.assert_not_called()

    def test_requires_authentication(self, api_client, payable_request):
        response = api_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code in (
            status.HTTP_401_UNAUTHORIZED,
            status.HTTP_403_FORBIDDEN,
        )

    def test_missing_id(self, operator_client):
        response = operator_client.post(PAY_URL, {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Missing payout_request_id"

    def test_unknown_request(self, operator_client, payout_stripe):
        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(uuid.uuid4())}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Payout request not found"
        assert response.json()["error_code"] == "PAYOUT_REQUEST_NOT_FOUND"

    def test_malformed_id_is_not_found(self, operator_client, payout_stripe):
        response = operator_client.post(
            PAY_URL, {"payout_request_id": "not-a-uuid"}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_already_paid(self, operator_client, payable_request, payout_stripe):
        payable_request.mark_paid(transfer_id="tr_earlier")
        payable_request.save()

        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Payout not in requested state"
        payout_stripe.create_transfer.assert_not_called()

    def test_reviewer_not_onboarded(
        self, operator_client, reviewer_balance, payout_stripe
    ):
        request = PayoutRequestFactory(reviewer_id="r1", amount_cents=5000)

        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Reviewer not connected"

    def test_insufficient_balance(
        self, operator_client, reviewer_account, reviewer_balance, payout_stripe
    ):
        request = PayoutRequestFactory(reviewer_id="r1", amount_cents=20000)

        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Insufficient available balance"
        assert response.json()["error_code"] == "INSUFFICIENT_BALANCE"

    def test_lock_held_is_conflict(
        self, operator_client, payable_request, payout_stripe, mocker
    ):
        mocker.patch(
            "payments.locks.DistributedLock.acquire",
            side_effect=LockAcquisitionError(
                "Lock 'lock:payout:reviewer:r1' is already held"
            ),
        )

        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error_code"] == "LOCK_ACQUISITION_FAILED"

    def test_transfer_failure_is_bad_gateway(
        self, operator_client, payable_request, payout_stripe
    ):
        payout_stripe.create_transfer.side_effect = StripeAPIUnavailableError(
            "Stripe service error. Please retry."
        )

        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json() == {
            "success": False,
            "error": "Stripe service error. Please retry.",
            "error_code": "STRIPE_UNAVAILABLE",
        }
        # Outcome unknown: the reservation is kept for the retry
        balance = ReviewerBalance.objects.get(reviewer_id="r1")
        assert (balance.available_cents, balance.paid_cents) == (5000, 5000)

    def test_refused_transfer_releases_reservation(
        self, operator_client, payable_request, payout_stripe
    ):
        payout_stripe.create_transfer.side_effect = StripeInvalidAccountError(
            "No such destination"
        )

        response = operator_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["error_code"] == "INVALID_STRIPE_ACCOUNT"
        balance = ReviewerBalance.objects.get(reviewer_id="r1")
        assert (balance.available_cents, balance.paid_cents) == (10000, 0)


@pytest.mark.django_db
class TestPayoutRejectView:
    """Tests for POST /payouts/reject/."""

    def test_rejects_request(self, operator_client, payable_request):
        response = operator_client.post(
            REJECT_URL,
            {"payout_request_id": str(payable_request.pk), "reason": "duplicate"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ok": True, "status": "rejected"}
        payable_request = PayoutRequest.objects.get(pk=payable_request.pk)
        assert payable_request.rejection_reason == "duplicate"

    def test_reject_paid_request(self, operator_client, payable_request):
        payable_request.mark_paid(transfer_id="tr_1")
        payable_request.save()

        response = operator_client.post(
            REJECT_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert (
            PayoutRequest.objects.get(pk=payable_request.pk).status
            == PayoutRequestStatus.PAID
        )

    def test_reject_reserved_request(
        self, operator_client, payable_request, payout_stripe
    ):
        payout_stripe.create_transfer.side_effect = StripeAPIUnavailableError(
            "Stripe service error. Please retry."
        )
        operator_client.post(
            PAY_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        response = operator_client.post(
            REJECT_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {
            "success": False,
            "error": "Payout amount is reserved for a transfer",
            "error_code": "PAYOUT_TRANSFER_PENDING",
        }

    def test_reject_unknown_request(self, operator_client):
        response = operator_client.post(
            REJECT_URL, {"payout_request_id": str(uuid.uuid4())}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_requires_staff(self, user_client, payable_request):
        response = user_client.post(
            REJECT_URL, {"payout_request_id": str(payable_request.pk)}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        payable_request = PayoutRequest.objects.get(pk=payable_request.pk)
        assert payable_request.status == PayoutRequestStatus.REQUESTED


# =============================================================================
# Checkout
# =============================================================================


@pytest.fixture
def checkout_stripe(mocker, mock_stripe_adapter, settings):
    settings.CHECKOUT_SUCCESS_URL = "https://example.com/success"
    settings.CHECKOUT_CANCEL_URL = "https://example.com/cancel"
    mock_stripe_adapter.create_checkout_session.return_value = CheckoutSessionResult(
        id="cs_test_new",
        url="https://checkout.stripe.com/c/pay/cs_test_new",
        amount_total=9900,
    )
    mocker.patch("payments.services.checkout.StripeAdapter", mock_stripe_adapter)
    return mock_stripe_adapter


@pytest.mark.django_db
class TestCheckoutSessionView:
    """Tests for POST /checkout/."""

    def test_creates_session(self, user_client, checkout_stripe):
        response = user_client.post(
            CHECKOUT_URL, {"pack": "pro", "user_id": "u1"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "url": "https://checkout.stripe.com/c/pay/cs_test_new"
        }
        (params,) = checkout_stripe.create_checkout_session.call_args.args
        assert params.metadata == {"user_id": "u1", "pack": "pro"}

    def test_blank_affiliate_code_is_dropped(self, user_client, checkout_stripe):
        user_client.post(
            CHECKOUT_URL,
            {"pack": "pro", "user_id": "u1", "affiliate_code": "  "},
            format="json",
        )

        (params,) = checkout_stripe.create_checkout_session.call_args.args
        assert "affiliate_code" not in params.metadata

    def test_unknown_pack(self, user_client, checkout_stripe):
        response = user_client.post(
            CHECKOUT_URL, {"pack": "mega", "user_id": "u1"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Unknown pack: mega"
        checkout_stripe.create_checkout_session.assert_not_called()

    def test_missing_user_id(self, user_client, checkout_stripe):
        response = user_client.post(CHECKOUT_URL, {"pack": "pro"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "user_id" in response.json()["errors"]

    def test_stripe_failure_is_bad_gateway(self, user_client, checkout_stripe):
        checkout_stripe.create_checkout_session.side_effect = (
            StripeAPIUnavailableError("Stripe service error. Please retry.")
        )

        response = user_client.post(
            CHECKOUT_URL, {"pack": "pro", "user_id": "u1"}, format="json"
        )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_requires_authentication(self, api_client):
        response = api_client.post(
            CHECKOUT_URL, {"pack": "pro", "user_id": "u1"}, format="json"
        )

        assert response.status_code in (
            status.HTTP_401_UNAUTHORIZED,
            status.HTTP_403_FORBIDDEN,
        )


# =============================================================================
# Connect onboarding
# =============================================================================


@pytest.fixture
def onboarding_stripe(mocker, mock_stripe_adapter):
    mock_stripe_adapter.create_connect_account.return_value = "acct_new123"
    mock_stripe_adapter.create_account_link.return_value = AccountLinkResult(
        url="https://connect.stripe.com/setup/e/acct_new123/abc",
        expires_at=1760000000,
    )
    mocker.patch("payments.services.onboarding.StripeAdapter", mock_stripe_adapter)
    return mock_stripe_adapter


@pytest.mark.django_db
class TestConnectOnboardingView:
    """Tests for POST /connect/onboarding/."""

    def test_returns_link(self, user_client, onboarding_stripe):
        response = user_client.post(
            ONBOARDING_URL,
            {"reviewer_id": "r1", "return_url": "https://example.com/payouts"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "url": "https://connect.stripe.com/setup/e/acct_new123/abc",
            "connect_account_id": "acct_new123",
        }
        assert ReviewerPayoutAccount.objects.get(reviewer_id="r1").is_connected

    def test_missing_reviewer_id(self, user_client, onboarding_stripe):
        response = user_client.post(
            ONBOARDING_URL,
            {"return_url": "https://example.com/payouts"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Missing reviewer_id"
        onboarding_stripe.create_connect_account.assert_not_called()

    def test_invalid_return_url(self, user_client, onboarding_stripe):
        response = user_client.post(
            ONBOARDING_URL,
            {"reviewer_id": "r1", "return_url": "not a url"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "return_url" in response.json()["errors"]
