"""
PayoutRequest model for tracking reviewer payout requests.

A PayoutRequest is created by the reviewer-facing side of the marketplace
and authorized (or rejected) by an operator. Authorization moves money
through a Stripe Transfer to the reviewer's connect account.

Usage:
    from payments.models import PayoutRequest

    # State transitions using django-fsm
    request = PayoutRequest.objects.select_for_update().get(pk=request_id)
    request.mark_paid(transfer_id="tr_123")  # requested -> paid
    request.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PayoutRequestStatus


class PayoutRequest(UUIDPrimaryKeyMixin, BaseModel):
    """
    Request to pay out part of a reviewer's available balance.

    State Flow:
        REQUESTED -> PAID      (mark_paid, after the transfer succeeded)
        REQUESTED -> REJECTED  (reject, operator cancel)

    Fields:
        reviewer_id: Reviewer to pay
        amount_cents: Payout amount in smallest currency unit (> 0)
        currency: ISO 4217 currency code
        status: Current FSM state
        transfer_id: Stripe Transfer ID (tr_xxx), set when paid
        reserved_at: When the amount was moved out of the available balance
        paid_at: When the request was marked paid
        rejected_at: When the request was rejected
        rejection_reason: Operator-supplied reason for rejection

    Note:
        Status is protected and can only change through mark_paid() and
        reject(). Re-fetch with objects.get() instead of refresh_from_db().

        reserved_at is set in the same transaction that debits the balance
        and cleared only when that debit is given back. A set reserved_at
        on a requested row means a transfer may be in flight.
    """

    reviewer_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Reviewer to pay",
    )

    amount_cents = models.PositiveBigIntegerField(
        help_text="Payout amount in smallest currency unit (e.g., cents)",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    status = FSMField(
        default=PayoutRequestStatus.REQUESTED,
        choices=PayoutRequestStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current status of the payout request",
    )

    transfer_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Transfer ID (tr_xxx)",
    )

    reserved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payout amount was reserved from the available balance",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When payout was completed",
    )

    rejected_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When payout request was rejected",
    )

    rejection_reason = models.TextField(
        blank=True,
        default="",
        help_text="Reason given when the request was rejected",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payout Request"
        verbose_name_plural = "Payout Requests"
        indexes = [
            models.Index(
                fields=["reviewer_id", "status"],
                name="payout_req_reviewer_status_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="payout_request_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        """Return string representation with ID, status, and amount."""
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency.upper()}"
        return f"PayoutRequest({self.id}, {self.status}, {amount_display})"

    # ==========================================================================
    # State Transitions
    # ==========================================================================

    @transition(
        field=status,
        source=PayoutRequestStatus.REQUESTED,
        target=PayoutRequestStatus.PAID,
    )
    def mark_paid(self, transfer_id: str) -> None:
        """
        Mark the request paid after the transfer succeeded.

        Transition: REQUESTED -> PAID
        """
        self.transfer_id = transfer_id
        self.paid_at = timezone.now()

    @transition(
        field=status,
        source=PayoutRequestStatus.REQUESTED,
        target=PayoutRequestStatus.REJECTED,
    )
    def reject(self, reason: str = "") -> None:
        """
        Reject the request without moving money.

        Transition: REQUESTED -> REJECTED
        """
        self.rejected_at = timezone.now()
        self.rejection_reason = reason or ""

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_requested(self) -> bool:
        """Check if the request is awaiting authorization."""
        return self.status == PayoutRequestStatus.REQUESTED

    @property
    def is_terminal(self) -> bool:
        """Check if the request has been paid or rejected."""
        return self.status in (PayoutRequestStatus.PAID, PayoutRequestStatus.REJECTED)

    @property
    def is_reserved(self) -> bool:
        """Check if the amount has been taken out of the available balance."""
        return self.reserved_at is not None
