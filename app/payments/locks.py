"""
Concurrency control utilities for ledger operations.

This module provides two complementary concurrency mechanisms:

1. **Distributed Locks** (DistributedLock, payout_lock)
   - Redis-based mutual exclusion across processes/servers
   - TTL prevents deadlocks from crashed processes
   - Use for: the payout sequence (reserve, transfer, commit) of one reviewer

2. **Compare-and-swap** (compare_and_swap)
   - Conditional UPDATE on the version the caller observed
   - No blocking - conflicts are detected at write time
   - Use for: reviewer balance reservation

Usage:

    from payments.locks import compare_and_swap, payout_lock

    with payout_lock(reviewer_id, config):
        swapped = compare_and_swap(
            ReviewerBalance,
            balance.pk,
            expected_version=balance.version,
            available_cents=balance.available_cents - amount,
            paid_cents=balance.paid_cents + amount,
        )
"""

from __future__ import annotations

import logging
import time
import uuid as uuid_module
from typing import TYPE_CHECKING, TypeVar

from django.db import models
from django.db.models import F
from django.utils import timezone

from django_redis import get_redis_connection
from redis.exceptions import RedisError

from payments.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis

    from payments.conf import PaymentsConfig

logger = logging.getLogger(__name__)

# Type variable for model classes
T = TypeVar("T", bound=models.Model)


# =============================================================================
# Distributed Locks
# =============================================================================


class DistributedLock:
    """
    Redis-based distributed lock with TTL.

    Features:
        - Automatic TTL prevents deadlocks from crashed processes
        - Token-based ownership prevents accidental release by other processes
        - Blocking and non-blocking acquisition modes
        - Context manager support

    Example:
        with DistributedLock("payout:reviewer:r1", ttl=120, timeout=10.0):
            authorize()

    Args:
        key: Lock identifier (will be prefixed with "lock:")
        ttl: Lock TTL in seconds (auto-releases after this time)
        blocking: If True, acquire() waits until lock is available
        timeout: Maximum wait time in seconds (only if blocking=True)

    Note:
        The TTL should be longer than the locked operation, including the
        Stripe call timeout. A Redis outage is reported as
        LockAcquisitionError; the caller never proceeds unlocked.
    """

    # Lua script for atomic check-and-delete (release)
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        """Get Redis connection (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True if lock was acquired

        Raises:
            LockAcquisitionError: If lock couldn't be acquired or Redis
                is unreachable
        """
        self._token = str(uuid_module.uuid4())

        try:
            redis = self._get_redis()

            if self.blocking:
                end_time = time.time() + self.timeout
                while True:
                    if self._try_acquire(redis):
                        return True
                    if time.time() >= end_time:
                        break
                    time.sleep(0.05)  # 50ms between retries

                self._token = None
                raise LockAcquisitionError(
                    f"Failed to acquire lock '{self.key}' within {self.timeout}s",
                    details={"key": self.key, "timeout": self.timeout},
                )

            if not self._try_acquire(redis):
                self._token = None
                raise LockAcquisitionError(
                    f"Lock '{self.key}' is already held",
                    details={"key": self.key},
                )
            return True
        except RedisError as e:
            self._token = None
            logger.error(
                f"Redis unavailable while acquiring lock '{self.key}': {e}",
                extra={"lock_key": self.key},
            )
            raise LockAcquisitionError(
                f"Lock backend unavailable for '{self.key}'",
                details={"key": self.key},
            ) from e

    def _try_acquire(self, redis: Redis) -> bool:
        """Try once to acquire the lock."""
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def release(self) -> bool:
        """
        Release the lock if we hold it.

        Returns:
            True if lock was released, False if we didn't hold it

        Note:
            Safe to call multiple times. A failed release is logged and the
            lock expires on its TTL.
        """
        if self._token is None:
            return False

        token, self._token = self._token, None
        try:
            result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, token)
        except RedisError as e:
            logger.warning(
                f"Failed to release lock '{self.key}', leaving it to expire: {e}",
                extra={"lock_key": self.key, "ttl": self.ttl},
            )
            return False
        return bool(result)

    @property
    def is_held(self) -> bool:
        """Check if we currently hold the lock."""
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        """Context manager entry - acquire the lock."""
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        """Context manager exit - always release the lock."""
        self.release()
        return False  # Don't suppress exceptions


def payout_lock(reviewer_id: str, config: PaymentsConfig) -> DistributedLock:
    """Per-reviewer lock serializing payout authorization."""
    return DistributedLock(
        f"payout:reviewer:{reviewer_id}",
        ttl=config.payout_lock_ttl_seconds,
        blocking=True,
        timeout=config.payout_lock_timeout_seconds,
    )


# =============================================================================
# Optimistic Locking
# =============================================================================


def compare_and_swap(
    model_class: type[T],
    pk: Any,
    expected_version: int,
    **updates: Any,
) -> bool:
    """
    Update a versioned record only if it still has the expected version.

    Issues a single conditional UPDATE:

        UPDATE ... SET <updates>, version = version + 1, updated_at = now()
        WHERE pk = <pk> AND version = <expected_version>

    Args:
        model_class: Django model class (must have 'version' field)
        pk: Primary key of the record
        expected_version: Version the caller read
        **updates: Field values to write

    Returns:
        True if the row was updated, False if another writer got there first
        (or the row no longer exists)

    Example:
        if not compare_and_swap(ReviewerBalance, b.pk, b.version, available_cents=0):
            b.refresh_from_db()
            # re-check and retry
    """
    rows = model_class.objects.filter(pk=pk, version=expected_version).update(
        version=F("version") + 1,
        updated_at=timezone.now(),
        **updates,
    )
    return rows == 1


__all__ = [
    "DistributedLock",
    "compare_and_swap",
    "payout_lock",
]
