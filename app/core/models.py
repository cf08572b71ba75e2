"""
Core base model providing common functionality for all ledger models.

Base Classes:
    BaseModel: Abstract model with timestamps (created_at, updated_at)

For mixins (UUIDPrimaryKeyMixin, VersionedMixin), see core.model_mixins.

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Wallet(UUIDPrimaryKeyMixin, BaseModel):
        user_id = models.CharField(max_length=255, unique=True)
"""

from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Automatically set when the object is first created
        updated_at: Automatically updated whenever the object is saved

    Note:
        ``updated_at`` is only refreshed by save(). Queryset ``update()``
        calls must set it explicitly.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,  # Index for efficient time-based queries
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        # Default ordering by creation time (newest first)
        ordering = ["-created_at"]

    def __str__(self) -> str:
        """Default string representation using primary key."""
        return f"{self.__class__.__name__}(id={self.pk})"
