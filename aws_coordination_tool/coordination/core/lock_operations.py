"""
Distributed lock operations.

A lock is a ttl-bounded cache record created with set-if-absent and removed
with compare-and-delete against the owner token issued at acquisition.

Trade-offs callers must know about:

* Acquisition is a single attempt. There is no retry loop, no wait queue and
  no fairness; callers decide whether to retry, queue, or reject.
* A holder that outlives its ttl silently loses the lock and another process
  may acquire it. The token check on release keeps the slow holder from
  deleting the new holder's record.
* With ``fail_open`` (the default) an unreachable cache *allows* the
  operation: ``acquire`` returns a degraded lock instead of failing. This
  favours availability over mutual exclusion while the cache is down.
  Throttling and configuration errors are not outages and always propagate.
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..constants import DEFAULT_LOCK_TTL
from ..exceptions import CacheUnavailableError, LockUnavailableError
from ..keys import lock_key
from ..logging_config import get_logger
from ..models import ItemType, Lock
from .cache import CacheFacade

logger = get_logger(__name__)


def generate_token() -> str:
    """
    Generate a fresh owner token for one acquisition attempt.

    Returns:
        Token in format ``<epoch-ms>:<uuid4-hex>``
    """
    return f"{int(time.time() * 1000)}:{uuid.uuid4().hex}"


class LockManager:
    """Acquire and release named locks shared by every process using the table."""

    def __init__(self, cache: CacheFacade, fail_open: bool = True):
        """
        Args:
            cache: Cache facade backing the lock records
            fail_open: Grant a degraded lock when the cache is unreachable
        """
        self.cache = cache
        self.fail_open = fail_open

    def acquire(self, name: str, ttl: int = DEFAULT_LOCK_TTL) -> Lock | None:
        """
        Try once to acquire the lock guarding ``name``.

        Args:
            name: Resource name, e.g. ``booking:123``
            ttl: Seconds until the lock expires on its own

        Returns:
            Lock handle on success (``degraded=True`` when granted by the
            fail-open policy), None if another owner holds the lock

        Raises:
            CacheUnavailableError: Cache unreachable and fail_open disabled
            CoordinationError: Throttling or table errors, regardless of fail_open
        """
        if ttl <= 0:
            raise ValueError("Lock ttl must be a positive number of seconds")

        token = generate_token()
        now = self.cache.clock()

        try:
            acquired = self.cache.set_if_absent_with_ttl(
                lock_key(name), token, ttl, item_type=ItemType.LOCK
            )
        except CacheUnavailableError:
            if not self.fail_open:
                raise
            logger.warning(f"Cache unavailable, allowing lock '{name}' without mutual exclusion")
            return Lock(name, token, ttl, now, now + ttl, degraded=True)

        if not acquired:
            logger.debug(f"Lock '{name}' is held by another owner")
            return None

        logger.debug(f"Lock '{name}' acquired for {ttl}s")
        return Lock(name, token, ttl, now, now + ttl)

    def release(self, lock: Lock | str, token: str | None = None) -> bool:
        """
        Release a lock if ``token`` still owns it.

        Accepts either the Lock handle or a ``(name, token)`` pair.

        Returns:
            True if the lock was released (or was degraded), False if the
            token no longer owns it or the cache could not be reached
        """
        name, token, degraded = _unpack(lock, token)
        if degraded:
            return True

        try:
            released = self.cache.compare_and_delete(lock_key(name), token)
        except CacheUnavailableError:
            # The record, if any, still expires through its ttl.
            logger.warning(f"Cache unavailable, lock '{name}' left to expire")
            return False

        if not released:
            logger.debug(f"Lock '{name}' not owned by token, nothing released")
        return released

    def extend(self, lock: Lock, ttl: int) -> bool:
        """
        Reset the lock's ttl to ``ttl`` seconds from now if still owned.

        Returns:
            True if extended; the handle's ``expires_at`` is updated
        """
        if lock.degraded:
            return True
        if not self.cache.compare_and_touch(lock_key(lock.name), lock.token, ttl):
            return False
        lock.ttl = ttl
        lock.expires_at = self.cache.clock() + ttl
        return True

    def check(self, name: str) -> dict[str, Any] | None:
        """
        Report who holds ``name``.

        Returns:
            Lock information if held, None if free
        """
        entry = self.cache.get_entry(lock_key(name))
        if entry is None:
            return None
        return {
            "lock": name,
            "token": entry["value"],
            "expires_at": entry["ttl"],
            "acquired_at": entry["created_at"],
        }

    @contextmanager
    def hold(self, name: str, ttl: int = DEFAULT_LOCK_TTL) -> Iterator[Lock]:
        """
        Hold ``name`` for the duration of a ``with`` block.

        Raises:
            LockUnavailableError: If another owner holds the lock
        """
        lock = self.acquire(name, ttl)
        if lock is None:
            raise LockUnavailableError(
                f"Lock '{name}' is held by another owner. Retry later or wait for TTL expiration."
            )
        try:
            yield lock
        finally:
            self.release(lock)


def _unpack(lock: Lock | str, token: str | None) -> tuple[str, str, bool]:
    if isinstance(lock, Lock):
        return lock.name, lock.token, lock.degraded
    if token is None:
        raise ValueError("token is required when releasing by name")
    return lock, token, False
