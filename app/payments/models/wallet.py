"""
Wallet model: per-user credit balance.

Credits only ever grow here, by the ``credits_granted`` of exactly one
PaymentRecord per session. Spending credits belongs to the review-ordering
side of the marketplace.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class Wallet(UUIDPrimaryKeyMixin, BaseModel):
    """
    Credit wallet for a user.

    Fields:
        user_id: Wallet owner, unique
        credits: Current credit balance (never negative)

    Note:
        Writers lock the row with select_for_update() and write
        ``existing + delta`` inside the same transaction as the
        PaymentRecord insert.
    """

    user_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Wallet owner",
    )

    credits = models.PositiveIntegerField(
        default=0,
        help_text="Current credit balance",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Wallet"
        verbose_name_plural = "Wallets"

    def __str__(self) -> str:
        return f"Wallet({self.user_id}, {self.credits})"
