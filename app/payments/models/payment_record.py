"""
PaymentRecord model: one row per completed checkout session.

The unique constraint on ``session_id`` is the idempotency anchor for
purchase reconciliation. A redelivered ``checkout.session.completed``
event finds the existing row and leaves the wallet alone.

Usage:
    from payments.models import PaymentRecord

    already_applied = PaymentRecord.objects.filter(session_id=session_id).exists()
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentStatus


class PaymentRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    Record of a paid checkout session.

    Fields:
        user_id: Purchasing user (opaque id from the auth provider)
        session_id: Stripe Checkout Session ID (cs_xxx), unique
        amount_cents: Amount charged in smallest currency unit
        credits_granted: Credits added to the wallet for this session
        status: Always PAID
    """

    user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="User who completed the purchase",
    )

    session_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Checkout Session ID (cs_xxx)",
    )

    amount_cents = models.PositiveBigIntegerField(
        default=0,
        help_text="Amount charged in smallest currency unit (e.g., cents)",
    )

    credits_granted = models.PositiveIntegerField(
        default=0,
        help_text="Credits granted to the user's wallet for this session",
    )

    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PAID,
        help_text="Payment status",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Record"
        verbose_name_plural = "Payment Records"

    def __str__(self) -> str:
        return f"PaymentRecord({self.session_id}, {self.user_id}, {self.amount_cents})"
