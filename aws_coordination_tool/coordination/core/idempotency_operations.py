"""
Idempotency records for retried client calls.

The first successful result stored under a token is authoritative for the
record's ttl; later stores for the same token are rejected by the
set-if-absent condition. Failed operations are never recorded, so a retry
after a failure runs the operation again.

Known gap: ``run`` checks for a stored result before executing, and two
requests with the same fresh token that arrive together can both miss and
both execute the side effect. Only the first stored result wins and both
callers return it, but the side effect itself ran twice. Callers that
cannot tolerate this must hold a LockManager lock on the token around
``run``.
"""

import json
from collections.abc import Callable
from typing import Any

from ..constants import IDEMPOTENCY_TTL
from ..exceptions import CacheUnavailableError
from ..keys import idempotency_key
from ..logging_config import get_logger
from ..models import ItemType
from .cache import CacheFacade

logger = get_logger(__name__)


class IdempotencyStore:
    """Store and replay results keyed by a client-supplied idempotency token."""

    def __init__(self, cache: CacheFacade, ttl: int = IDEMPOTENCY_TTL):
        self.cache = cache
        self.ttl = ttl

    def store(self, token: str, result: Any) -> bool:
        """
        Record ``result`` for ``token`` unless a result is already stored.

        Args:
            token: Client-supplied idempotency token
            result: JSON-serializable result of the successful operation

        Returns:
            True if this call recorded the result, False if a result already
            existed or the cache was unavailable
        """
        payload = json.dumps(result, sort_keys=True)
        try:
            stored = self.cache.set_if_absent_with_ttl(
                idempotency_key(token), payload, self.ttl, item_type=ItemType.IDEMPOTENCY
            )
        except CacheUnavailableError:
            logger.warning(f"Idempotency result for '{token}' not recorded, cache unavailable")
            return False

        if not stored:
            logger.info(f"Idempotency token '{token}' already has a result, keeping the first")
        return stored

    def lookup(self, token: str) -> tuple[bool, Any]:
        """
        Look up the stored result for ``token``.

        A stored ``None`` result is distinct from no record at all.

        Returns:
            ``(found, result)``; ``(False, None)`` if absent, expired, or the
            cache was unavailable
        """
        try:
            payload = self.cache.get(idempotency_key(token))
        except CacheUnavailableError:
            logger.warning(f"Idempotency lookup for '{token}' skipped, cache unavailable")
            return False, None
        if payload is None:
            return False, None
        return True, json.loads(payload)

    def fetch(self, token: str) -> Any | None:
        """Return the stored result for ``token``, or None if there is none."""
        return self.lookup(token)[1]

    def run(self, token: str, operation: Callable[[], Any]) -> Any:
        """
        Run ``operation`` at most once per token within the ttl window.

        A replay returns the stored result without calling ``operation``.
        Exceptions from ``operation`` propagate and nothing is recorded.

        Returns:
            The authoritative result for ``token``
        """
        found, stored = self.lookup(token)
        if found:
            logger.debug(f"Replaying stored result for idempotency token '{token}'")
            return stored

        result = operation()
        if self.store(token, result):
            return result

        # Lost the race to a concurrent first execution; its result is authoritative.
        found, winner = self.lookup(token)
        return winner if found else result
