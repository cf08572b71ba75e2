"""
DRF views for payments app.

This module provides API views for:
- Payout authorization and rejection (operators)
- Checkout session creation
- Stripe Connect onboarding

The Stripe webhook is a plain Django view, see payments.webhooks.views.

Related files:
    - services/: PayoutAuthorizer, CheckoutService, ConnectOnboardingService
    - serializers.py: Request serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/payouts/pay/ - Authorize and pay a payout request
    POST /api/v1/payments/payouts/reject/ - Reject a payout request
    POST /api/v1/payments/checkout/ - Create checkout session
    POST /api/v1/payments/connect/onboarding/ - Start Connect onboarding

Security:
    - Payout endpoints require a staff user
    - Other endpoints require authentication

Error bodies:
    Failures use the envelope {"success": false, "error": <message>,
    "error_code": <code>}. For payout endpoints "error" is exactly the
    message string of the failure, e.g. "Insufficient available balance",
    "Reviewer not connected" or "Payout not in requested state"; callers
    match on that string or on error_code.
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError
from core.services import ServiceResult

from payments.conf import PaymentsConfig
from payments.exceptions import PaymentProcessingError, PostTransferInconsistencyError
from payments.serializers import (
    ConnectOnboardingSerializer,
    CreateCheckoutSessionSerializer,
    PayoutPaySerializer,
    PayoutRejectSerializer,
)
from payments.services import (
    CheckoutService,
    ConnectOnboardingService,
    PayoutAuthorizer,
)

logger = logging.getLogger(__name__)


# error_code -> HTTP status for expected failures
ERROR_STATUS_CODES: dict[str, int] = {
    "PAYOUT_REQUEST_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_PAYOUT_STATE": status.HTTP_400_BAD_REQUEST,
    "REVIEWER_NOT_ONBOARDED": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_BALANCE": status.HTTP_400_BAD_REQUEST,
    "CONCURRENT_MODIFICATION": status.HTTP_409_CONFLICT,
    "PAYOUT_TRANSFER_PENDING": status.HTTP_409_CONFLICT,
    "LOCK_ACQUISITION_FAILED": status.HTTP_409_CONFLICT,
    "POST_TRANSFER_INCONSISTENCY": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for_error(exc: BaseApplicationError) -> int:
    """Map an application error to an HTTP status."""
    if exc.error_code in ERROR_STATUS_CODES:
        return ERROR_STATUS_CODES[exc.error_code]
    if isinstance(exc, PostTransferInconsistencyError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, PaymentProcessingError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def failure_response(result: ServiceResult) -> Response:
    """Response for a failed ServiceResult."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS_CODES.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


def error_response(exc: BaseApplicationError) -> Response:
    """Response for a raised application error."""
    return Response(
        {"success": False, "error": exc.message, "error_code": exc.error_code},
        status=status_for_error(exc),
    )


def validation_response(serializer) -> Response:
    """400 response whose error is the first field message."""
    first_errors = next(iter(serializer.errors.values()))
    return Response(
        {
            "success": False,
            "error": str(first_errors[0]),
            "error_code": "VALIDATION_ERROR",
            "errors": serializer.errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class PayoutPayView(APIView):
    """
    Authorize and pay a reviewer payout request.

    POST /api/v1/payments/payouts/pay/

    Request:
        {"payout_request_id": "<uuid>"}

    Response:
        200 OK: {"ok": true, "transfer_id": "tr_xxx"}
        400 Bad Request: Missing id, wrong state, not onboarded, insufficient balance
        404 Not Found: Payout request not found
        409 Conflict: Another payout for the reviewer is in progress, or a
            reserved payout is past its transfer retry window
        500 Internal Server Error: Transfer made but request not marked paid
        502 Bad Gateway: Transfer failed

    Every non-200 body is {"success": false, "error": "<message>",
    "error_code": "<CODE>"}.
    """

    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = PayoutPaySerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer)

        payout_request_id = serializer.validated_data["payout_request_id"]
        authorizer = PayoutAuthorizer(PaymentsConfig.from_settings())

        try:
            result = authorizer.authorize_payout(payout_request_id)
        except BaseApplicationError as e:
            logger.warning(
                f"Payout authorization failed: {e.error_code}",
                extra={
                    "payout_request_id": payout_request_id,
                    "operator_id": request.user.pk,
                },
            )
            return error_response(e)

        if not result.success:
            return failure_response(result)

        return Response({"ok": True, "transfer_id": result.data.transfer_id})


class PayoutRejectView(APIView):
    """
    Reject a reviewer payout request.

    POST /api/v1/payments/payouts/reject/

    Request:
        {"payout_request_id": "<uuid>", "reason": "duplicate request"}

    Response:
        200 OK: {"ok": true, "status": "rejected"}
        400 Bad Request: Missing id or request already paid/rejected
        404 Not Found: Payout request not found
        409 Conflict: Payout amount is reserved for a transfer

    Every non-200 body is {"success": false, "error": "<message>",
    "error_code": "<CODE>"}.
    """

    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = PayoutRejectSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer)

        result = PayoutAuthorizer(PaymentsConfig.from_settings()).reject_payout(
            serializer.validated_data["payout_request_id"],
            reason=serializer.validated_data["reason"],
        )
        if not result.success:
            return failure_response(result)

        return Response({"ok": True, "status": result.data.status})


class CheckoutSessionView(APIView):
    """
    Create a Stripe Checkout session for a credit pack.

    POST /api/v1/payments/checkout/

    Request:
        {"pack": "pro", "user_id": "u1", "affiliate_code": "SPRING"}

    Response:
        200 OK: {"url": "https://checkout.stripe.com/..."}
        400 Bad Request: Unknown pack or missing fields
        502 Bad Gateway: Stripe rejected the request
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreateCheckoutSessionSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer)

        try:
            result = CheckoutService(PaymentsConfig.from_settings()).create_session(
                **serializer.validated_data
            )
        except BaseApplicationError as e:
            return error_response(e)

        if not result.success:
            return failure_response(result)

        return Response({"url": result.data.url})


class ConnectOnboardingView(APIView):
    """
    Start Stripe Connect onboarding for a reviewer.

    POST /api/v1/payments/connect/onboarding/

    Request:
        {"reviewer_id": "r1", "return_url": "https://...", "refresh_url": "https://..."}

    Response:
        200 OK: {"url": "https://connect.stripe.com/...", "connect_account_id": "acct_xxx"}
        400 Bad Request: Missing reviewer_id or return_url
        502 Bad Gateway: Stripe rejected the request
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ConnectOnboardingSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer)

        try:
            result = ConnectOnboardingService().start_onboarding(
                reviewer_id=serializer.validated_data["reviewer_id"],
                return_url=serializer.validated_data["return_url"],
                refresh_url=serializer.validated_data.get("refresh_url") or None,
            )
        except BaseApplicationError as e:
            return error_response(e)

        if not result.success:
            return failure_response(result)

        return Response(
            {
                "url": result.data.url,
                "connect_account_id": result.data.connect_account_id,
            }
        )
