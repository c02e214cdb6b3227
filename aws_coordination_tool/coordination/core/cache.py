"""
Cache facade over the shared DynamoDB table.

An unreachable endpoint is logged and surfaced as CacheUnavailableError so
dependents can apply their own fallback policy. Other backend errors, such
as throttling or a missing table, propagate unchanged. A failed
condition is not a failure and comes back as ``False``.

DynamoDB removes expired items lazily (possibly hours after expiry), so
reads and conditional writes treat ``ttl <= now`` as absent.
"""

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from ..constants import (
    ATTR_CREATED_AT,
    ATTR_PK,
    ATTR_SK,
    ATTR_TTL,
    ATTR_TYPE,
    ATTR_UPDATED_AT,
    ATTR_VALUE,
)
from ..exceptions import BackendUnavailableError, CacheUnavailableError, ConditionFailedError
from ..logging_config import get_logger
from ..models import ItemType
from ..utils import epoch_now, from_dynamo
from .client import DynamoDBClient

logger = get_logger(__name__)

NAMES = {"#value": ATTR_VALUE, "#ttl": ATTR_TTL}


class CacheFacade:
    """get / set-with-ttl / delete plus the two atomic primitives locks need."""

    def __init__(self, client: DynamoDBClient, clock: Callable[[], int] | None = None):
        """
        Args:
            client: DynamoDB client
            clock: Returns current epoch seconds (defaults to wall clock)
        """
        self.client = client
        self.clock = clock or epoch_now

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""
        entry = self.get_entry(key)
        return None if entry is None else entry["value"]

    def get_entry(self, key: str) -> dict[str, Any] | None:
        """
        Return the live record for ``key``.

        Returns:
            Dict with key, value, type, ttl, created_at, updated_at; None if
            absent or expired
        """
        with self._unavailable("get", key):
            item = self.client.get_item(_key(key))

        if not item or self._expired(item):
            return None
        item = from_dynamo(item)
        return {
            "key": key,
            "value": item.get(ATTR_VALUE),
            "type": item.get(ATTR_TYPE),
            "ttl": item.get(ATTR_TTL),
            "created_at": item.get(ATTR_CREATED_AT),
            "updated_at": item.get(ATTR_UPDATED_AT),
        }

    def set_with_ttl(
        self, key: str, value: str, ttl: int, item_type: ItemType = ItemType.CACHE
    ) -> None:
        """Unconditionally store ``value`` for ``ttl`` seconds."""
        with self._unavailable("set", key):
            self.client.put_item(self._item(key, value, ttl, item_type))

    def delete(self, key: str) -> bool:
        """
        Delete ``key``.

        Returns:
            True if a record was removed
        """
        with self._unavailable("delete", key):
            response = self.client.delete_item(_key(key), return_values="ALL_OLD")
        return bool(response.get("Attributes"))

    def set_if_absent_with_ttl(
        self, key: str, value: str, ttl: int, item_type: ItemType = ItemType.CACHE
    ) -> bool:
        """
        Atomically create ``key`` only if no live record exists.

        Returns:
            True if this call created the record, False if one was present
        """
        now = self.clock()
        with self._unavailable("set-if-absent", key):
            try:
                self.client.put_item(
                    self._item(key, value, ttl, item_type, now),
                    condition_expression="attribute_not_exists(PK) OR #ttl <= :now",
                    expression_attribute_names={"#ttl": ATTR_TTL},
                    expression_attribute_values={":now": now},
                )
            except ConditionFailedError:
                return False
        return True

    def compare_and_delete(self, key: str, expected: str) -> bool:
        """
        Atomically delete ``key`` only if its live value equals ``expected``.

        Returns:
            True if the record matched and was deleted
        """
        with self._unavailable("compare-and-delete", key):
            try:
                self.client.delete_item(
                    _key(key),
                    condition_expression="#value = :expected AND #ttl > :now",
                    expression_attribute_names=NAMES,
                    expression_attribute_values={":expected": expected, ":now": self.clock()},
                )
            except ConditionFailedError:
                return False
        return True

    def compare_and_touch(self, key: str, expected: str, ttl: int) -> bool:
        """
        Atomically reset the ttl of ``key`` if its live value equals ``expected``.

        Returns:
            True if the record matched and its ttl was extended
        """
        now = self.clock()
        with self._unavailable("compare-and-touch", key):
            try:
                self.client.update_item(
                    _key(key),
                    update_expression="SET #ttl = :new_ttl, updated_at = :now",
                    expression_attribute_names=NAMES,
                    expression_attribute_values={
                        ":expected": expected,
                        ":now": now,
                        ":new_ttl": now + ttl,
                    },
                    condition_expression="#value = :expected AND #ttl > :now",
                )
            except ConditionFailedError:
                return False
        return True

    def get_json(self, key: str) -> Any:
        """Return the JSON-decoded value, or None if absent."""
        raw = self.get(key)
        return None if raw is None else json.loads(raw)

    def set_json(self, key: str, value: Any, ttl: int) -> None:
        """JSON-encode and store ``value`` for ``ttl`` seconds."""
        self.set_with_ttl(key, json.dumps(value), ttl)

    def _item(
        self, key: str, value: str, ttl: int, item_type: ItemType, now: int | None = None
    ) -> dict[str, Any]:
        if ttl <= 0:
            raise ValueError("ttl must be a positive number of seconds")
        now = self.clock() if now is None else now
        return {
            **_key(key),
            ATTR_VALUE: value,
            ATTR_TYPE: item_type.value,
            ATTR_TTL: now + ttl,
            ATTR_CREATED_AT: now,
            ATTR_UPDATED_AT: now,
        }

    def _expired(self, item: dict[str, Any]) -> bool:
        ttl = item.get(ATTR_TTL)
        return ttl is not None and int(ttl) <= self.clock()

    @contextmanager
    def _unavailable(self, operation: str, key: str) -> Iterator[None]:
        try:
            yield
        except CacheUnavailableError:
            raise
        except BackendUnavailableError as e:
            logger.warning(f"Cache {operation} failed for '{key}': {e}")
            raise CacheUnavailableError(f"Cache {operation} failed for '{key}': {e}") from e


def _key(key: str) -> dict[str, str]:
    return {ATTR_PK: key, ATTR_SK: key}
