"""
Stripe API adapter for ledger operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, timeouts, idempotency,
and observability.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Idempotency support for safe retries

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Max network retry attempts (default: 3)

Usage:
    from payments.adapters import IdempotencyKeyGenerator, StripeAdapter

    result = StripeAdapter.create_transfer(
        amount_cents=5000,
        destination_account="acct_xxx",
        idempotency_key=IdempotencyKeyGenerator.generate("payout_request", request.id),
        description=f"Payout #{request.id}",
    )
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.exceptions import (
    SignatureMismatchError,
    StripeAPIUnavailableError,
    StripeError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
)

# Stripe's own default for webhook timestamp tolerance (seconds)
WEBHOOK_TOLERANCE_SECONDS = stripe.Webhook.DEFAULT_TOLERANCE


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class TransferResult:
    """
    Result from Stripe Transfer operations.

    Attributes:
        id: Transfer ID (tr_xxx)
        amount_cents: Amount transferred in cents
        currency: Currency code
        destination_account: Destination Stripe account ID
        metadata: Attached metadata
        raw_response: Full Stripe response dict
    """

    id: str
    amount_cents: int
    currency: str
    destination_account: str
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a one-off Stripe Checkout Session.

    Attributes:
        amount_cents: Price of the single line item
        currency: ISO 4217 currency code
        product_name: Line item name shown on the checkout page
        success_url: Redirect after payment
        cancel_url: Redirect when the customer abandons checkout
        metadata: Copied onto the session; read back by reconciliation
        client_reference_id: Our user id, for dashboard lookups
    """

    amount_cents: int
    currency: str
    product_name: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str] = field(default_factory=dict)
    client_reference_id: str | None = None

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.success_url or not self.cancel_url:
            raise ValueError("success_url and cancel_url are required")


@dataclass
class CheckoutSessionResult:
    """
    Result from Checkout Session creation.

    Attributes:
        id: Checkout Session ID (cs_xxx)
        url: Hosted checkout page URL
        amount_total: Session total in cents
        metadata: Attached metadata
    """

    id: str
    url: str
    amount_total: int | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class AccountLinkResult:
    """
    Result from Account Link creation.

    Attributes:
        url: Single-use onboarding URL
        expires_at: Unix timestamp after which the link is invalid
    """

    url: str
    expires_at: int | None = None


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}" or "{operation}:{entity_id}:{attempt}"

    Keys are deterministic: the same operation on the same entity always
    yields the same key, so a retried call returns Stripe's original
    response instead of repeating the side effect.

    Example:
        key = IdempotencyKeyGenerator.generate("payout_request", request.id)
        # Result: "payout_request:550e8400-e29b-41d4-a716-446655440000"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int | None = None,
    ) -> str:
        """
        Generate an idempotency key.

        Args:
            operation: The logical operation (payout_request, connect_account, ...)
            entity_id: The domain entity ID
            attempt: Optional attempt number, only for operations that are
                meant to be repeatable

        Returns:
            Formatted idempotency key string
        """
        key = f"{operation}:{entity_id}"
        if attempt is not None:
            key = f"{key}:{attempt}"
        return key


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are classmethods - no instance state is maintained.

    Features:
    - Configurable timeouts on all API calls
    - Automatic error translation to domain exceptions
    - Structured logging with timing metrics
    - Idempotency support for safe retries

    Usage:
        StripeAdapter.verify_webhook_signature(body, header, secret)
        result = StripeAdapter.create_transfer(...)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 3)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def verify_webhook_signature(
        cls,
        payload: bytes,
        signature: str,
        secret: str,
        tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    ) -> None:
        """
        Verify a Stripe-Signature header against the raw webhook body.

        Only authenticates; parsing is left to the caller so that nothing
        in the body is interpreted before it is trusted.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value
            secret: Endpoint signing secret (whsec_xxx)
            tolerance: Maximum age of the signed timestamp in seconds

        Raises:
            SignatureMismatchError: Signature, header format or timestamp
                rejected
        """
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, secret, tolerance=tolerance
            )
        except stripe.error.SignatureVerificationError as e:
            cls.get_logger().warning(
                "Webhook signature rejected",
                extra={"operation": "verify_webhook_signature", "reason": str(e)},
            )
            raise SignatureMismatchError(details={"reason": str(e)}) from e
        except UnicodeDecodeError as e:
            raise SignatureMismatchError(
                details={"reason": "payload is not valid UTF-8"}
            ) from e

    # =========================================================================
    # Transfers
    # =========================================================================

    @classmethod
    def create_transfer(
        cls,
        amount_cents: int,
        destination_account: str,
        idempotency_key: str,
        currency: str = "usd",
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> TransferResult:
        """
        Create a transfer to a connected Stripe account.

        Args:
            amount_cents: Amount to transfer in cents
            destination_account: Stripe Connect account ID (acct_xxx)
            idempotency_key: Unique key for idempotent transfer
            currency: Currency code (default: 'usd')
            description: Optional description shown in the dashboard
            metadata: Optional metadata dict

        Returns:
            TransferResult with transfer details

        Raises:
            StripeInvalidAccountError: Invalid destination account
            StripeInsufficientFundsError: Insufficient platform balance
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_transfer",
            "amount_cents": amount_cents,
            "destination_account": destination_account,
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            transfer_params: dict[str, Any] = {
                "amount": amount_cents,
                "currency": currency,
                "destination": destination_account,
                "metadata": metadata or {},
            }
            if description:
                transfer_params["description"] = description

            transfer = stripe.Transfer.create(
                idempotency_key=idempotency_key,
                **transfer_params,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "transfer_id": transfer.id,
                    "duration_ms": duration_ms,
                },
            )

            return TransferResult(
                id=transfer.id,
                amount_cents=transfer.amount,
                currency=transfer.currency,
                destination_account=transfer.destination,
                metadata=dict(transfer.metadata or {}),
                raw_response=transfer.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Checkout
    # =========================================================================

    @classmethod
    def create_checkout_session(
        cls,
        params: CreateCheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a hosted Checkout Session for a single line item.

        Args:
            params: Session parameters

        Returns:
            CheckoutSessionResult with the hosted page URL
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_checkout_session",
            "amount_cents": params.amount_cents,
            "client_reference_id": params.client_reference_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session_params: dict[str, Any] = {
                "mode": "payment",
                "payment_method_types": ["card"],
                "line_items": [
                    {
                        "price_data": {
                            "currency": params.currency,
                            "product_data": {"name": params.product_name},
                            "unit_amount": params.amount_cents,
                        },
                        "quantity": 1,
                    }
                ],
                "success_url": params.success_url,
                "cancel_url": params.cancel_url,
                "metadata": params.metadata,
            }
            if params.client_reference_id:
                session_params["client_reference_id"] = params.client_reference_id

            session = stripe.checkout.Session.create(**session_params)

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "session_id": session.id,
                    "duration_ms": duration_ms,
                },
            )

            return CheckoutSessionResult(
                id=session.id,
                url=session.url,
                amount_total=session.amount_total,
                metadata=dict(session.metadata or {}),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Connect
    # =========================================================================

    @classmethod
    def create_connect_account(
        cls,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """
        Create an Express connected account.

        Args:
            idempotency_key: Unique key so a retry cannot create a second account
            metadata: Optional metadata dict (e.g. reviewer_id)

        Returns:
            The new Stripe Account ID (acct_xxx)
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_connect_account",
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            account = stripe.Account.create(
                type="express",
                metadata=metadata or {},
                idempotency_key=idempotency_key,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "account_id": account.id,
                    "duration_ms": duration_ms,
                },
            )
            return account.id

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def create_account_link(
        cls,
        account_id: str,
        return_url: str,
        refresh_url: str | None = None,
    ) -> AccountLinkResult:
        """
        Create an onboarding link for a connected account.

        Args:
            account_id: Stripe Account ID (acct_xxx)
            return_url: Where Stripe sends the reviewer after onboarding
            refresh_url: Where Stripe sends the reviewer if the link expired
                (defaults to return_url)

        Returns:
            AccountLinkResult with the single-use URL
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_account_link",
            "account_id": account_id,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            link = stripe.AccountLink.create(
                account=account_id,
                refresh_url=refresh_url or return_url,
                return_url=return_url,
                type="account_onboarding",
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={**log_context, "duration_ms": duration_ms},
            )
            return AccountLinkResult(url=link.url, expires_at=link.expires_at)

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Maps Stripe SDK errors to appropriate domain exceptions
        with proper error categorization for retry decisions.

        Args:
            error: The Stripe exception
            log_context: Logging context dict
            duration_ms: Operation duration for logging

        Raises:
            StripeInsufficientFundsError: Insufficient funds
            StripeInvalidAccountError: Invalid Connect account
            StripeInvalidRequestError: Invalid request parameters
            StripeRateLimitError: Rate limited
            StripeTimeoutError: Request timed out
            StripeAPIUnavailableError: API unavailable or unexpected failure
        """
        logger = cls.get_logger()

        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, StripeError):
            # Already translated
            raise error

        if isinstance(error, stripe.error.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )

            # Platform balance too low to fund a transfer
            if error.code in ("balance_insufficient", "insufficient_funds"):
                raise StripeInsufficientFundsError(
                    str(error.user_message or error),
                    stripe_code=error.code,
                ) from error

            if "account" in str(error).lower():
                raise StripeInvalidAccountError(
                    str(error.user_message or error),
                    stripe_code=error.code,
                ) from error

            raise StripeInvalidRequestError(
                str(error.user_message or error),
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.error.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.error.APIConnectionError):
            # Includes read timeouts; the request may have reached Stripe
            if "timeout" in str(error).lower() or "timed out" in str(error).lower():
                logger.error("Stripe request timed out", extra=log_context)
                raise StripeTimeoutError(
                    "Stripe request timed out. Please retry.",
                    stripe_code="timeout",
                ) from error
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.error.AuthenticationError):
            # Invalid API key - permanent, operational issue
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        elif isinstance(error, stripe.error.StripeError):
            # Stripe server error - retry with backoff
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            ) from error
