"""
Purchase reconciliation: completed checkout -> payment record, wallet credit,
affiliate commission.

Stripe delivers webhooks at least once, so every step here is idempotent on
the Checkout Session ID:

1. PaymentRecord is inserted once per session (pre-check + unique constraint).
   When it already exists the wallet is not touched again.
2. The wallet is credited inside the same transaction as the PaymentRecord
   insert, so a credit is never applied without its record (or vice versa).
3. AffiliateCommission is inserted once per session (pre-check + unique
   constraint). The commission guard runs on redelivery too, so a commission
   that failed to write the first time is recorded on the retry.

Usage:
    from payments.services import PurchaseReconciler

    result = PurchaseReconciler().reconcile(event)
    if result.success:
        print(result.data.credits_granted)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import DatabaseError, IntegrityError, transaction

from core.services import BaseService, ServiceResult

from payments.exceptions import LedgerWriteFailedError
from payments.models import (
    Affiliate,
    AffiliateAttribution,
    AffiliateCommission,
    PaymentRecord,
    Wallet,
)
from payments.pricing import commission_cents, credits_for_pack
from payments.state_machines import AffiliateTier, CommissionStatus, PaymentStatus
from payments.webhooks.events import PurchaseCompleted, VerifiedEvent

logger = logging.getLogger(__name__)


@dataclass
class ReconcileOutcome:
    """
    What a reconciliation pass did.

    Attributes:
        session_id: Checkout Session ID that was reconciled
        already_applied: True if the payment had been recorded before
        credits_granted: Credits added to the wallet by this pass
        affiliate_code: Code the commission was attributed to, if any
        commission_cents: Commission recorded by this pass (None if none)
    """

    session_id: str
    already_applied: bool = False
    credits_granted: int = 0
    affiliate_code: str | None = None
    commission_cents: int | None = None


class PurchaseReconciler(BaseService):
    """
    Applies a purchase_completed event to the ledger.

    Raises (from reconcile):
        InvalidMetadataError: Session is missing user_id/pack or has a bad
            amount. Nothing is written.
        LedgerWriteFailedError: A database write failed. The transaction is
            rolled back; redelivery completes the work.
    """

    def reconcile(self, event: VerifiedEvent) -> ServiceResult[ReconcileOutcome]:
        purchase = PurchaseCompleted.from_event(event)
        credits = credits_for_pack(purchase.pack)

        log_context = {
            "stripe_event_id": purchase.event_id,
            "session_id": purchase.session_id,
            "user_id": purchase.user_id,
            "pack": purchase.pack,
            "amount_cents": purchase.amount_total_cents,
        }

        if credits == 0:
            self.get_logger().warning(
                f"Unknown credit pack '{purchase.pack}', granting 0 credits",
                extra=log_context,
            )

        outcome = ReconcileOutcome(session_id=purchase.session_id)

        try:
            with self.atomic():
                applied = self._record_payment(purchase, credits)
                outcome.already_applied = not applied
                outcome.credits_granted = credits if applied else 0
                self._record_commission(purchase, outcome)
        except DatabaseError as e:
            self.get_logger().error(
                f"Ledger write failed for session {purchase.session_id}: {e}",
                extra=log_context,
                exc_info=True,
            )
            raise LedgerWriteFailedError(
                f"Ledger write failed for session {purchase.session_id}",
                details={"session_id": purchase.session_id},
            ) from e

        self.get_logger().info(
            "Purchase reconciled",
            extra={
                **log_context,
                "already_applied": outcome.already_applied,
                "credits_granted": outcome.credits_granted,
                "commission_cents": outcome.commission_cents,
            },
        )
        return ServiceResult.success(outcome)

    # -------------------------------------------------------------------------
    # Payment record + wallet
    # -------------------------------------------------------------------------

    def _record_payment(self, purchase: PurchaseCompleted, credits: int) -> bool:
        """
        Insert the PaymentRecord and credit the wallet.

        Returns:
            True if this call applied the payment, False on redelivery
        """
        if PaymentRecord.objects.filter(session_id=purchase.session_id).exists():
            self.get_logger().info(
                "Payment already recorded, skipping wallet credit",
                extra={"session_id": purchase.session_id},
            )
            return False

        try:
            with transaction.atomic():
                PaymentRecord.objects.create(
                    user_id=purchase.user_id,
                    session_id=purchase.session_id,
                    amount_cents=purchase.amount_total_cents,
                    credits_granted=credits,
                    status=PaymentStatus.PAID,
                )
        except IntegrityError:
            # A concurrent delivery of the same session won the insert
            self.get_logger().info(
                "Payment recorded concurrently, skipping wallet credit",
                extra={"session_id": purchase.session_id},
            )
            return False

        self._credit_wallet(purchase.user_id, credits)
        return True

    def _credit_wallet(self, user_id: str, credits: int) -> None:
        wallet = Wallet.objects.select_for_update().filter(user_id=user_id).first()

        if wallet is None:
            try:
                with transaction.atomic():
                    Wallet.objects.create(user_id=user_id, credits=credits)
                return
            except IntegrityError:
                wallet = Wallet.objects.select_for_update().get(user_id=user_id)

        wallet.credits = wallet.credits + credits
        wallet.save(update_fields=["credits", "updated_at"])

    # -------------------------------------------------------------------------
    # Affiliate commission
    # -------------------------------------------------------------------------

    def _resolve_affiliate_code(self, purchase: PurchaseCompleted) -> str | None:
        """Most recent attribution for the user wins over checkout metadata."""
        attribution = (
            AffiliateAttribution.objects.filter(referred_user_id=purchase.user_id)
            .order_by("-created_at")
            .first()
        )
        if attribution is not None and attribution.affiliate_code:
            return attribution.affiliate_code
        return purchase.affiliate_code

    def _record_commission(
        self, purchase: PurchaseCompleted, outcome: ReconcileOutcome
    ) -> None:
        code = self._resolve_affiliate_code(purchase)
        if not code:
            return
        outcome.affiliate_code = code

        if AffiliateCommission.objects.filter(session_id=purchase.session_id).exists():
            return

        affiliate = Affiliate.objects.filter(code=code).first()
        tier = affiliate.tier if affiliate is not None else AffiliateTier.STARTER
        amount = commission_cents(purchase.amount_total_cents, tier)

        try:
            with transaction.atomic():
                AffiliateCommission.objects.create(
                    affiliate_code=code,
                    referred_user_id=purchase.user_id,
                    amount_cents=amount,
                    status=CommissionStatus.EARNED,
                    session_id=purchase.session_id,
                )
        except IntegrityError:
            self.get_logger().info(
                "Commission recorded concurrently",
                extra={"session_id": purchase.session_id, "affiliate_code": code},
            )
            return

        outcome.commission_cents = amount
        self.get_logger().info(
            f"Recorded {amount} cents commission for affiliate {code}",
            extra={
                "session_id": purchase.session_id,
                "affiliate_code": code,
                "tier": str(tier),
                "commission_cents": amount,
            },
        )
