"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected outcomes (acknowledged, rejected, invalid)
    - Exceptions: Use for failures the caller must not ignore (ledger writes,
      post-transfer inconsistencies)

Usage:
    from core.services import BaseService, ServiceResult

    class WalletService(BaseService):
        @classmethod
        def grant(cls, user_id: str, credits: int) -> ServiceResult[Wallet]:
            if credits < 0:
                return ServiceResult.failure(
                    "Credits must be non-negative",
                    error_code="INVALID_CREDITS",
                )

            with cls.atomic():
                wallet, _ = Wallet.objects.get_or_create(user_id=user_id)
                wallet.credits += credits
                wallet.save()

            cls.get_logger().info(f"Granted {credits} credits to {user_id}")
            return ServiceResult.success(wallet)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(outcome)

        # Failure case
        return ServiceResult.failure("Missing metadata user_id/pack", "INVALID_METADATA")

        # Check result
        result = dispatch_event(event)
        if not result.success:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """Alias for success() - use whichever reads better in context."""
        return cls(success=True, data=data)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message and error_code; anything
        else falls back to str(exc) and the exception class name.

        Args:
            exc: The caught exception
            error_code: Optional error code override

        Returns:
            ServiceResult with error details from exception
        """
        message = getattr(exc, "message", None) or str(exc)
        code = error_code or getattr(exc, "error_code", None)
        return cls(
            success=False,
            error=message,
            error_code=code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with success status and data or error details
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Exception-to-result conversion

    Design Notes:
        - Services hold no state between calls; collaborators and
          configuration are passed in at construction
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() that makes
        transaction boundaries explicit in service code.

        Example:
            with cls.atomic():
                PaymentRecord.objects.create(...)
                wallet.save()
                # If the wallet save fails, the record is rolled back too
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Args:
            exc: The caught exception
            context: Additional context for logging
            log_level: Logging level (default ERROR)

        Returns:
            ServiceResult with error details
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(log_level, message, exc_info=log_level >= logging.ERROR)
        return ServiceResult.from_exception(exc)
