"""
Payment-specific exceptions for ledger operations.

This module provides a hierarchy of exceptions for webhook verification,
purchase reconciliation, payout authorization, concurrency control and
Stripe API calls.

Exception Hierarchy:
    VerificationError (inbound event authentication)
    ├── MissingCredentialError - No signature header or no configured secret
    └── SignatureMismatchError - Signature does not match the body

    PaymentError (base for payment domain)
    ├── PayoutRequestNotFoundError - No payout request with that id
    ├── PaymentValidationError - Validation failures
    │   ├── InvalidMetadataError - Malformed event payload or session metadata
    │   │   └── InvalidEventPayloadError - Body is not a provider event
    │   ├── ReviewerNotOnboardedError - No connect account for reviewer
    │   └── InsufficientBalanceError - available_cents < payout amount
    ├── LedgerWriteFailedError - Store write failed (provider redelivers)
    ├── PostTransferInconsistencyError - Money moved, ledger not updated
    └── PaymentProcessingError - Payment processing failures
        └── StripeError - Base for all Stripe errors
            ├── StripeInsufficientFundsError - Insufficient funds (permanent)
            ├── StripeInvalidAccountError - Invalid Stripe account (permanent)
            ├── StripeInvalidRequestError - Invalid request params (permanent)
            ├── StripeRateLimitError - Rate limited (transient, retry)
            ├── StripeAPIUnavailableError - API unavailable (transient, retry)
            └── StripeTimeoutError - Request timeout (transient, retry)

    ConcurrentModificationError - Balance CAS retries exhausted (inherits ConflictError)
    PayoutTransferPendingError - Reserved payout with an unresolved transfer
    LockAcquisitionError - Distributed lock timeout (inherits ConflictError)
    InvalidStateTransitionError - Transition not allowed (inherits ConflictError)
    └── InvalidPayoutStateError - Payout request is not "requested"

Usage:
    from payments.exceptions import (
        InsufficientBalanceError,
        LockAcquisitionError,
        SignatureMismatchError,
    )

    if balance.available_cents < request.amount_cents:
        raise InsufficientBalanceError(
            details={"available_cents": balance.available_cents}
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Verification Exceptions
# =============================================================================


class VerificationError(BaseApplicationError):
    """
    Base exception for inbound event authentication failures.

    Raised before any JSON parsing or ledger access. The webhook view
    answers 400 and the provider does not treat it as retryable.
    """

    default_error_code: str = "VERIFICATION_FAILED"


class MissingCredentialError(VerificationError):
    """Signature header absent or webhook secret not configured."""

    default_error_code: str = "MISSING_CREDENTIAL"

    def __init__(self, message: str = "Missing webhook signature/secret", **kwargs):
        super().__init__(message, **kwargs)


class SignatureMismatchError(VerificationError):
    """
    Signature does not authenticate the raw body.

    Covers a wrong secret, a tampered body, a malformed header and a
    timestamp outside the tolerance window.
    """

    default_error_code: str = "SIGNATURE_MISMATCH"

    def __init__(
        self, message: str = "Webhook signature verification failed", **kwargs
    ):
        super().__init__(message, **kwargs)


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent API error responses.

    Example:
        try:
            authorizer.authorize_payout(payout_request_id)
        except PaymentError as e:
            logger.error(f"Payout failed: {e}")
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "PAYMENT_ERROR"


class PayoutRequestNotFoundError(PaymentError, NotFoundError):
    """No PayoutRequest with the given id."""

    default_error_code: str = "PAYOUT_REQUEST_NOT_FOUND"

    def __init__(self, message: str = "Payout request not found", **kwargs):
        super().__init__(message, **kwargs)


class PaymentValidationError(PaymentError):
    """
    Raised when payment validation fails.

    Use for:
    - Malformed provider payloads
    - Missing required fields
    - Business rule violations (balance, onboarding)
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class InvalidMetadataError(PaymentValidationError):
    """
    Raised when a verified event carries unusable data.

    Examples: missing ``metadata.user_id`` or ``metadata.pack``, a
    non-integer ``amount_total``, a missing session id.

    Example:
        if not user_id or not pack:
            raise InvalidMetadataError(
                "Missing metadata user_id/pack",
                details={"session_id": session_id},
            )
    """

    default_error_code: str = "INVALID_METADATA"


class InvalidEventPayloadError(InvalidMetadataError):
    """Verified body is not a JSON object with id, type and data.object."""


class ReviewerNotOnboardedError(PaymentValidationError):
    """Reviewer has no payout account or an empty connect account id."""

    default_error_code: str = "REVIEWER_NOT_ONBOARDED"

    def __init__(self, message: str = "Reviewer not connected", **kwargs):
        super().__init__(message, **kwargs)


class InsufficientBalanceError(PaymentValidationError):
    """Reviewer available balance is below the requested payout amount."""

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, message: str = "Insufficient available balance", **kwargs):
        super().__init__(message, **kwargs)


class LedgerWriteFailedError(PaymentError):
    """
    Raised when a ledger store write fails during reconciliation.

    The transaction is rolled back. The webhook view answers 500 so the
    provider redelivers the event; reconciliation is idempotent, so the
    redelivery completes the work.
    """

    default_error_code: str = "LEDGER_WRITE_FAILED"
    is_retryable: bool = True


class PostTransferInconsistencyError(PaymentError):
    """
    The transfer succeeded but the payout request could not be marked paid.

    Money has left the platform. This is never retried automatically: a
    retry reuses the same idempotency key and would report success without
    repairing the record. Operators reconcile by hand using the transfer id
    in ``details``.
    """

    default_error_code: str = "POST_TRANSFER_INCONSISTENCY"
    is_retryable: bool = False


class PaymentProcessingError(PaymentError):
    """
    Raised when payment processing fails.

    Use for:
    - Stripe API errors
    - Payment gateway failures
    - Processing timeouts
    """

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PaymentProcessingError):
    """
    Base exception for all Stripe-related errors.

    Provides common attributes for Stripe error handling:
    - stripe_code: Stripe's internal error code
    - is_retryable: Whether the operation can be retried

    Use is_retryable to determine retry behavior:
    - True: Transient error, safe to retry with the same idempotency key
    - False: Permanent error, do not retry
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeInsufficientFundsError(StripeError):
    """
    Insufficient funds.

    For transfers this means the platform balance cannot cover the payout.
    User or operator action is required before retry can succeed.
    """

    default_error_code: str = "INSUFFICIENT_FUNDS"
    is_retryable: bool = False


class StripeInvalidAccountError(StripeError):
    """
    Invalid Stripe Connect account.

    Raised when the destination account for a transfer is:
    - Not found
    - Disabled or restricted
    - Unable to receive transfers
    """

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Note:
        This usually indicates a bug in our code, not a user error.
        Log these errors for developer investigation.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """Rate limited by Stripe API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    This covers network connectivity issues, Stripe server errors (5xx)
    and authentication misconfiguration surfaced at call time.
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    IMPORTANT: The operation may have succeeded on Stripe's side.
    Retrying with the same idempotency key returns the original response
    instead of repeating the operation.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class ConcurrentModificationError(ConflictError):
    """
    Balance compare-and-swap failed on every attempt.

    No money has moved and the payout request is still ``requested``;
    the operator may simply retry.
    """

    default_error_code: str = "CONCURRENT_MODIFICATION"


class PayoutTransferPendingError(ConflictError):
    """
    Payout request holds a reservation whose transfer outcome is unknown.

    Raised when the transfer can no longer be retried under the original
    idempotency key, and when rejecting a request whose funds are already
    reserved. The reservation stays in place until an operator checks the
    transfer in the Stripe dashboard.
    """

    default_error_code: str = "PAYOUT_TRANSFER_PENDING"

    def __init__(
        self, message: str = "Payout transfer pending manual reconciliation", **kwargs
    ):
        super().__init__(message, **kwargs)


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another process holds the lock and it couldn't be acquired within
    the timeout period.

    Example:
        lock = DistributedLock("payout:reviewer:r1", ttl=120, timeout=10)
        if not lock.acquire():
            raise LockAcquisitionError(
                "Failed to acquire lock 'payout:reviewer:r1' within 10s",
                details={"key": "payout:reviewer:r1", "timeout": 10}
            )
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a status transition is not allowed.

    Attributes:
        details: Contains current_state, target_state, and transition name
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class InvalidPayoutStateError(InvalidStateTransitionError):
    """Payout request has already been paid or rejected."""

    default_error_code: str = "INVALID_PAYOUT_STATE"

    def __init__(self, message: str = "Payout not in requested state", **kwargs):
        super().__init__(message, **kwargs)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Verification
    "VerificationError",
    "MissingCredentialError",
    "SignatureMismatchError",
    # Payment domain
    "PaymentError",
    "PayoutRequestNotFoundError",
    "PaymentValidationError",
    "InvalidMetadataError",
    "InvalidEventPayloadError",
    "ReviewerNotOnboardedError",
    "InsufficientBalanceError",
    "LedgerWriteFailedError",
    "PostTransferInconsistencyError",
    "PaymentProcessingError",
    # Stripe-specific
    "StripeError",
    "StripeInsufficientFundsError",
    "StripeInvalidAccountError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeTimeoutError",
    # Concurrency control
    "ConcurrentModificationError",
    "PayoutTransferPendingError",
    "LockAcquisitionError",
    "InvalidStateTransitionError",
    "InvalidPayoutStateError",
]
