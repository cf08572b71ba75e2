"""
Base exception classes for application-wide error handling.

This module provides the exception hierarchy shared by every app:
- Consistent error payloads for HTTP responses
- Machine-readable error codes that views map to status codes
- Structured details (identifiers, amounts) for logs and operators

Exception Hierarchy:
    BaseApplicationError (base)
    ├── NotFoundError - Record not found
    └── ConflictError - State conflicts (concurrent modifications, locks)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    raise NotFoundError(
        f"Wallet for user {user_id} not found",
        error_code="WALLET_NOT_FOUND",
        details={"user_id": user_id},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (identifiers, amounts, states)

    Example:
        try:
            PayoutAuthorizer(config).authorize_payout(request_id)
        except BaseApplicationError as e:
            logger.warning(f"Payout rejected: {e.error_code}")
            return Response(e.to_dict(), status=400)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Payout request not found",
                "error_code": "PAYOUT_REQUEST_NOT_FOUND",
                "details": {"payout_request_id": "42"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested record is not found.

    Example:
        balance = ReviewerBalance.objects.filter(reviewer_id=reviewer_id).first()
        if not balance:
            raise NotFoundError(
                f"Balance for reviewer {reviewer_id} not found",
                error_code="BALANCE_NOT_FOUND",
                details={"reviewer_id": reviewer_id},
            )

    Note:
        HTTP 404 Not Found is the appropriate status.
    """

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current record state.

    Use for:
    - Concurrent modification conflicts
    - Invalid state transitions
    - Optimistic locking failures
    - Lock contention

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
