"""
Payout authorizer: validates and executes reviewer payout requests.

This module provides the PayoutAuthorizer which handles the critical path
for money leaving the platform and reaching a reviewer's Stripe Connect
account.

The authorization runs in three phases under a per-reviewer lock:
1. Reserve: move the amount from available_cents to paid_cents with a
   version compare-and-swap on ReviewerBalance, and stamp
   PayoutRequest.reserved_at in the same transaction
2. Transfer: call Stripe create_transfer (outside any transaction) with an
   idempotency key derived from the request id
3. Commit: mark the PayoutRequest paid with the transfer id

The reservation is released only when Stripe definitely refused the
transfer (invalid request, invalid account, insufficient platform funds,
rate limited). Timeouts, connection failures and server errors leave the
reservation in place and are logged at CRITICAL with the idempotency key,
because the transfer may have gone through.

A request that is already reserved skips phase 1 on the next
authorization and re-sends the transfer under the same idempotency key,
so Stripe answers with the original transfer and the balance is debited
once. Past the retry window the request is refused with
PayoutTransferPendingError and must be reconciled by hand.

Usage:
    from payments.services import PayoutAuthorizer

    result = PayoutAuthorizer(config).authorize_payout(request_id)

    if result.success:
        print(f"Transfer created: {result.data.transfer_id}")
    else:
        # Validation failure, nothing changed
        print(result.error_code, result.error)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from django_fsm import TransitionNotAllowed

from core.services import BaseService, ServiceResult

from payments.adapters import IdempotencyKeyGenerator, StripeAdapter
from payments.conf import PaymentsConfig
from payments.exceptions import (
    ConcurrentModificationError,
    InsufficientBalanceError,
    InvalidPayoutStateError,
    PaymentValidationError,
    PayoutRequestNotFoundError,
    PayoutTransferPendingError,
    PostTransferInconsistencyError,
    ReviewerNotOnboardedError,
    StripeError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)
from payments.locks import compare_and_swap, payout_lock
from payments.models import PayoutRequest, ReviewerBalance, ReviewerPayoutAccount
from payments.state_machines import PayoutRequestStatus

if TYPE_CHECKING:
    from payments.adapters import TransferResult


# Stripe refused these outright; no transfer was created
DEFINITE_TRANSFER_FAILURES = (
    StripeInvalidRequestError,
    StripeInvalidAccountError,
    StripeInsufficientFundsError,
    StripeRateLimitError,
)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class PayoutAuthorization:
    """
    Result of a successful payout authorization.

    Attributes:
        payout_request: The PayoutRequest, now paid
        transfer_id: The Stripe transfer ID
    """

    payout_request: PayoutRequest
    transfer_id: str


# =============================================================================
# Payout Authorizer
# =============================================================================


class PayoutAuthorizer(BaseService):
    """
    Service for authorizing reviewer payout requests.

    Validation (short-circuits, leaves every record untouched):
        1. The request exists                      -> PAYOUT_REQUEST_NOT_FOUND
        2. The request is REQUESTED                -> INVALID_PAYOUT_STATE
        3. The reviewer has a connect account id   -> REVIEWER_NOT_ONBOARDED
        4. available_cents >= amount_cents         -> INSUFFICIENT_BALANCE
           (skipped when the amount is already reserved)
        5. A reserved request is still inside the
           transfer retry window                   -> PAYOUT_TRANSFER_PENDING

    Validation failures are returned as ServiceResult failures. Conflicts
    and money-movement errors are raised:
        - LockAcquisitionError: Another payout for the reviewer is running
        - ConcurrentModificationError: Balance kept changing under us
        - StripeError: Transfer failed (reservation released only when
          Stripe definitely refused it)
        - PostTransferInconsistencyError: Transfer made, request not marked

    Usage:
        authorizer = PayoutAuthorizer(PaymentsConfig.from_settings())
        result = authorizer.authorize_payout(request_id)

        # With a fake Stripe adapter in tests
        authorizer = PayoutAuthorizer(config, stripe_adapter=mock_adapter)
    """

    def __init__(
        self,
        config: PaymentsConfig | None = None,
        stripe_adapter: type | None = None,
    ) -> None:
        self.config = config or PaymentsConfig.from_settings()
        self.stripe_adapter = stripe_adapter or StripeAdapter

    # =========================================================================
    # Authorization
    # =========================================================================

    def authorize_payout(
        self,
        payout_request_id: uuid.UUID | str,
    ) -> ServiceResult[PayoutAuthorization]:
        """
        Validate and pay a payout request.

        Args:
            payout_request_id: ID of the PayoutRequest

        Returns:
            ServiceResult containing PayoutAuthorization on success, or a
            failure with the validation error_code

        Raises:
            LockAcquisitionError: If unable to acquire the reviewer lock
            ConcurrentModificationError: If every reservation attempt lost
            StripeError: If the transfer failed
            PostTransferInconsistencyError: If the request could not be
                marked paid after the transfer
        """
        logger = self.get_logger()
        logger.info(
            "Starting payout authorization",
            extra={"payout_request_id": str(payout_request_id)},
        )

        try:
            payout_request = self._get_request(payout_request_id)
        except PayoutRequestNotFoundError as e:
            return ServiceResult.from_exception(e)

        with payout_lock(payout_request.reviewer_id, self.config):
            try:
                # Re-read under the lock; a concurrent run may have paid it
                payout_request = self._get_request(payout_request.pk)
                account = self._validate(payout_request)
                if payout_request.is_reserved:
                    self._resume(payout_request)
                else:
                    self._reserve(payout_request)
            except (
                PayoutRequestNotFoundError,
                InvalidPayoutStateError,
                PaymentValidationError,
                PayoutTransferPendingError,
            ) as e:
                logger.info(
                    f"Payout request rejected: {e.message}",
                    extra={
                        "payout_request_id": str(payout_request.pk),
                        "reviewer_id": payout_request.reviewer_id,
                        "error_code": e.error_code,
                    },
                )
                return ServiceResult.from_exception(e)

            transfer = self._transfer(payout_request, account)
            payout_request = self._commit(payout_request, transfer)

        logger.info(
            "Payout authorized",
            extra={
                "payout_request_id": str(payout_request.pk),
                "reviewer_id": payout_request.reviewer_id,
                "amount_cents": payout_request.amount_cents,
                "transfer_id": transfer.id,
            },
        )
        return ServiceResult.success(
            PayoutAuthorization(payout_request=payout_request, transfer_id=transfer.id)
        )

    def _get_request(self, payout_request_id: uuid.UUID | str) -> PayoutRequest:
        try:
            return PayoutRequest.objects.get(pk=payout_request_id)
        except (PayoutRequest.DoesNotExist, ValidationError, ValueError):
            raise PayoutRequestNotFoundError(
                details={"payout_request_id": str(payout_request_id)}
            )

    def _validate(self, payout_request: PayoutRequest) -> ReviewerPayoutAccount:
        """Run the status, onboarding and balance checks in order."""
        details = {
            "payout_request_id": str(payout_request.pk),
            "reviewer_id": payout_request.reviewer_id,
        }

        if not payout_request.is_requested:
            raise InvalidPayoutStateError(
                details={**details, "current_state": payout_request.status}
            )

        account = ReviewerPayoutAccount.objects.filter(
            reviewer_id=payout_request.reviewer_id
        ).first()
        if account is None or not account.is_connected:
            raise ReviewerNotOnboardedError(details=details)

        # A reserved amount has already left available_cents
        if not payout_request.is_reserved:
            self._check_balance(payout_request, self._get_balance(payout_request))
        return account

    def _get_balance(self, payout_request: PayoutRequest) -> ReviewerBalance | None:
        return ReviewerBalance.objects.filter(
            reviewer_id=payout_request.reviewer_id
        ).first()

    def _check_balance(
        self,
        payout_request: PayoutRequest,
        balance: ReviewerBalance | None,
    ) -> None:
        available = balance.available_cents if balance is not None else 0
        if available < payout_request.amount_cents:
            raise InsufficientBalanceError(
                details={
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                    "available_cents": available,
                    "amount_cents": payout_request.amount_cents,
                }
            )

    def _idempotency_key(self, payout_request: PayoutRequest) -> str:
        return IdempotencyKeyGenerator.generate("payout_request", payout_request.pk)

    # =========================================================================
    # Phase 1: Reserve
    # =========================================================================

    def _reserve(self, payout_request: PayoutRequest) -> None:
        """
        Move the amount from available_cents to paid_cents.

        Compare-and-swap on the balance version; on conflict re-read,
        re-check sufficiency and try again. The winning swap and the
        reserved_at stamp commit together.
        """
        amount = payout_request.amount_cents
        attempts = self.config.payout_balance_max_attempts

        for attempt in range(1, attempts + 1):
            balance = self._get_balance(payout_request)
            self._check_balance(payout_request, balance)

            with transaction.atomic():
                swapped = compare_and_swap(
                    ReviewerBalance,
                    balance.pk,
                    expected_version=balance.version,
                    available_cents=balance.available_cents - amount,
                    paid_cents=balance.paid_cents + amount,
                )
                if swapped:
                    self._mark_reserved(payout_request)

            if swapped:
                self.get_logger().info(
                    "Reserved reviewer balance",
                    extra={
                        "payout_request_id": str(payout_request.pk),
                        "reviewer_id": payout_request.reviewer_id,
                        "amount_cents": amount,
                        "attempt": attempt,
                    },
                )
                return

            self.get_logger().warning(
                "Reviewer balance changed concurrently, retrying",
                extra={
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                    "expected_version": balance.version,
                    "attempt": attempt,
                },
            )

        raise ConcurrentModificationError(
            f"Reviewer balance for {payout_request.reviewer_id} changed "
            f"concurrently {attempts} times",
            details={
                "payout_request_id": str(payout_request.pk),
                "reviewer_id": payout_request.reviewer_id,
                "attempts": attempts,
            },
        )

    def _mark_reserved(self, payout_request: PayoutRequest) -> None:
        """Stamp reserved_at; must run inside the reserving transaction."""
        now = timezone.now()
        marked = PayoutRequest.objects.filter(
            pk=payout_request.pk,
            status=PayoutRequestStatus.REQUESTED,
            reserved_at__isnull=True,
        ).update(reserved_at=now, updated_at=now)
        if marked != 1:
            # Rolls back the balance swap
            raise InvalidPayoutStateError(
                details={
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                }
            )
        payout_request.reserved_at = now

    def _resume(self, payout_request: PayoutRequest) -> None:
        """
        Continue a request whose amount is already reserved.

        The transfer is re-sent under the original idempotency key while
        Stripe still remembers it. After that the outcome of the earlier
        attempt cannot be recovered automatically.
        """
        window = timedelta(seconds=self.config.payout_transfer_retry_window_seconds)
        details = {
            "payout_request_id": str(payout_request.pk),
            "reviewer_id": payout_request.reviewer_id,
            "amount_cents": payout_request.amount_cents,
            "reserved_at": payout_request.reserved_at.isoformat(),
            "idempotency_key": self._idempotency_key(payout_request),
        }

        if timezone.now() - payout_request.reserved_at > window:
            self.get_logger().critical(
                "Reserved payout is past the transfer retry window",
                extra=details,
            )
            raise PayoutTransferPendingError(details=details)

        self.get_logger().warning(
            "Resuming reserved payout with the original idempotency key",
            extra=details,
        )

    def _release(self, payout_request: PayoutRequest) -> None:
        """
        Undo a reservation and clear reserved_at.

        The balance is only credited back if this call cleared the stamp,
        so a reservation is never given back twice.
        """
        amount = payout_request.amount_cents
        now = timezone.now()
        with transaction.atomic():
            cleared = PayoutRequest.objects.filter(
                pk=payout_request.pk,
                status=PayoutRequestStatus.REQUESTED,
                reserved_at__isnull=False,
            ).update(reserved_at=None, updated_at=now)
            if cleared != 1:
                return
            ReviewerBalance.objects.filter(
                reviewer_id=payout_request.reviewer_id
            ).update(
                available_cents=F("available_cents") + amount,
                paid_cents=F("paid_cents") - amount,
                version=F("version") + 1,
                updated_at=now,
            )
        payout_request.reserved_at = None

    # =========================================================================
    # Phase 2: Transfer
    # =========================================================================

    def _transfer(
        self,
        payout_request: PayoutRequest,
        account: ReviewerPayoutAccount,
    ) -> TransferResult:
        idempotency_key = self._idempotency_key(payout_request)
        log_context = {
            "payout_request_id": str(payout_request.pk),
            "reviewer_id": payout_request.reviewer_id,
            "connect_account_id": account.connect_account_id,
            "amount_cents": payout_request.amount_cents,
            "idempotency_key": idempotency_key,
        }

        try:
            return self.stripe_adapter.create_transfer(
                amount_cents=payout_request.amount_cents,
                destination_account=account.connect_account_id,
                idempotency_key=idempotency_key,
                currency=self.config.payout_currency,
                description=f"Payout #{payout_request.pk}",
                metadata={
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                },
            )
        except DEFINITE_TRANSFER_FAILURES as e:
            self.get_logger().error(
                f"Transfer refused, releasing reservation: {type(e).__name__}",
                extra={**log_context, "error": e.message},
            )
            try:
                self._release(payout_request)
            except DatabaseError:
                self.get_logger().critical(
                    "Failed to release balance reservation after transfer failure",
                    extra=log_context,
                    exc_info=True,
                )
            raise
        except StripeError as e:
            # The transfer may exist; keep the reservation for the retry
            self.get_logger().critical(
                f"Transfer outcome unknown, reservation kept: {type(e).__name__}",
                extra={**log_context, "error": e.message},
            )
            raise

    # =========================================================================
    # Phase 3: Commit
    # =========================================================================

    def _commit(
        self,
        payout_request: PayoutRequest,
        transfer: TransferResult,
    ) -> PayoutRequest:
        try:
            with transaction.atomic():
                locked = PayoutRequest.objects.select_for_update().get(
                    pk=payout_request.pk
                )
                locked.mark_paid(transfer_id=transfer.id)
                locked.save()
            return locked
        except Exception as e:
            self.get_logger().critical(
                "Transfer succeeded but payout request could not be marked paid",
                extra={
                    "transfer_id": transfer.id,
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                    "amount_cents": payout_request.amount_cents,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise PostTransferInconsistencyError(
                f"Transfer {transfer.id} succeeded but payout request "
                f"{payout_request.pk} was not marked paid",
                details={
                    "transfer_id": transfer.id,
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                    "amount_cents": payout_request.amount_cents,
                },
            ) from e

    # =========================================================================
    # Rejection
    # =========================================================================

    def reject_payout(
        self,
        payout_request_id: uuid.UUID | str,
        reason: str = "",
    ) -> ServiceResult[PayoutRequest]:
        """
        Reject a payout request without moving money.

        A request whose amount is reserved cannot be rejected: its transfer
        may already exist.

        Args:
            payout_request_id: ID of the PayoutRequest
            reason: Operator-supplied reason

        Returns:
            ServiceResult containing the rejected PayoutRequest, or a
            failure (PAYOUT_REQUEST_NOT_FOUND, INVALID_PAYOUT_STATE,
            PAYOUT_TRANSFER_PENDING)
        """
        try:
            with self.atomic():
                try:
                    payout_request = PayoutRequest.objects.select_for_update().get(
                        pk=payout_request_id
                    )
                except (PayoutRequest.DoesNotExist, ValidationError, ValueError):
                    raise PayoutRequestNotFoundError(
                        details={"payout_request_id": str(payout_request_id)}
                    )

                details = {
                    "payout_request_id": str(payout_request.pk),
                    "reviewer_id": payout_request.reviewer_id,
                }
                if payout_request.is_requested and payout_request.is_reserved:
                    raise PayoutTransferPendingError(
                        "Payout amount is reserved for a transfer",
                        details=details,
                    )

                try:
                    payout_request.reject(reason)
                except TransitionNotAllowed as e:
                    raise InvalidPayoutStateError(
                        details={**details, "current_state": payout_request.status}
                    ) from e
                payout_request.save()
        except (
            PayoutRequestNotFoundError,
            InvalidPayoutStateError,
            PayoutTransferPendingError,
        ) as e:
            return ServiceResult.from_exception(e)

        self.get_logger().info(
            "Payout request rejected by operator",
            extra={
                "payout_request_id": str(payout_request.pk),
                "reviewer_id": payout_request.reviewer_id,
                "reason": reason,
            },
        )
        return ServiceResult.success(payout_request)
