"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    VersionedMixin: Optimistic locking version counter

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin

    class ReviewerBalance(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
        available_cents = models.PositiveBigIntegerField(default=0)

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import F


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Identifiers are non-guessable and can be handed to operator tooling
    (e.g. payout request ids) without revealing record counts.

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class VersionedMixin(models.Model):
    """
    Optimistic locking support.

    Every save() of an existing row increments ``version`` atomically with
    an F() expression. Writers that need compare-and-swap semantics filter on
    the version they read:

        rows = ReviewerBalance.objects.filter(
            pk=balance.pk, version=balance.version
        ).update(available_cents=..., version=F("version") + 1)
        if rows == 0:
            # somebody else wrote first - re-read and retry

    Fields:
        version: Counter incremented on each update
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """Save with version auto-increment on update."""
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            # Refresh to get actual version value after F() expression
            self.refresh_from_db(fields=["version"])
