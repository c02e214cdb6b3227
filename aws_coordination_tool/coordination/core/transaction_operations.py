"""
All-or-nothing document writes using DynamoDB TransactWriteItems.

A TransactionScope buffers writes; nothing reaches the table until the
scope commits, and aborting simply discards the buffer. TransactionExecutor
owns the scope's lifecycle: commit on normal return, abort on any
exception (re-raised unchanged), and close on every exit path.

DynamoDB limits: at most 100 items per transaction and no two operations on
the same item.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from boto3.dynamodb.types import TypeSerializer

from ..constants import ATTR_PK, ATTR_SK, MAX_TRANSACTION_ITEMS
from ..exceptions import CoordinationError
from ..keys import document_key
from ..logging_config import get_logger
from ..utils import epoch_now, to_dynamo
from .client import DynamoDBClient
from .document_operations import build_document, build_increment_update, build_set_update

logger = get_logger(__name__)

T = TypeVar("T")

_serializer = TypeSerializer()


def _serialize(values: dict[str, Any]) -> dict[str, Any]:
    return {k: _serializer.serialize(to_dynamo(v)) for k, v in values.items()}


class TransactionScope:
    """Handle through which every write of one unit of work must go."""

    def __init__(self, client: DynamoDBClient):
        self.client = client
        self.timestamp = epoch_now()
        self._items: list[dict[str, Any]] = []
        self._keys: set[tuple[str, str]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Create a document as part of this scope.

        The put is conditioned on the document not existing; if it does, the
        whole transaction is cancelled at commit.

        Returns:
            The document as it will be stored
        """
        item = build_document(collection, doc_id, data, self.timestamp)
        self._add(
            "Put",
            (item[ATTR_PK], item[ATTR_SK]),
            {"Item": _serialize(item), "ConditionExpression": "attribute_not_exists(PK)"},
        )
        return {"id": doc_id, **data}

    def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document as part of this scope."""
        item = build_document(collection, doc_id, data, self.timestamp)
        self._add("Put", (item[ATTR_PK], item[ATTR_SK]), {"Item": _serialize(item)})

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Set fields on an existing document as part of this scope."""
        expression, names, values = build_set_update(fields, self.timestamp)
        self._add_update(collection, doc_id, expression, names, values)

    def increment(self, collection: str, doc_id: str, field: str, by: int = 1) -> None:
        """Add ``by`` to a numeric field of an existing document as part of this scope."""
        expression, names, values = build_increment_update(field, by, self.timestamp)
        self._add_update(collection, doc_id, expression, names, values)

    def delete(self, collection: str, doc_id: str, must_exist: bool = False) -> None:
        """Delete a document as part of this scope."""
        pk, sk = document_key(collection, doc_id)
        request: dict[str, Any] = {"Key": _serialize({ATTR_PK: pk, ATTR_SK: sk})}
        if must_exist:
            request["ConditionExpression"] = "attribute_exists(PK)"
        self._add("Delete", (pk, sk), request)

    def condition_check(
        self,
        collection: str,
        doc_id: str,
        condition_expression: str,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> None:
        """Make the commit depend on a condition over a document not otherwise written."""
        pk, sk = document_key(collection, doc_id)
        request: dict[str, Any] = {
            "Key": _serialize({ATTR_PK: pk, ATTR_SK: sk}),
            "ConditionExpression": condition_expression,
        }
        if expression_attribute_names:
            request["ExpressionAttributeNames"] = expression_attribute_names
        if expression_attribute_values:
            request["ExpressionAttributeValues"] = _serialize(expression_attribute_values)
        self._add("ConditionCheck", (pk, sk), request)

    def commit(self) -> dict[str, Any]:
        """
        Apply every buffered write atomically.

        Returns:
            Dictionary with success flag, operation count and timestamp

        Raises:
            TransactionCanceledError: If DynamoDB rejected the transaction
            CoordinationError: For other DynamoDB errors
        """
        self._ensure_open()
        if self._items:
            self.client.transact_write_items(self._items)
        logger.debug(f"Committed transaction with {len(self._items)} operation(s)")
        return {
            "success": True,
            "operations_count": len(self._items),
            "timestamp": self.timestamp,
        }

    def abort(self) -> None:
        """Discard every buffered write."""
        if self._items:
            logger.info(f"Aborting transaction, discarding {len(self._items)} operation(s)")
        self._items.clear()
        self._keys.clear()

    def close(self) -> None:
        """Release the handle; any further use raises."""
        self._items.clear()
        self._keys.clear()
        self._closed = True

    def _add_update(
        self,
        collection: str,
        doc_id: str,
        expression: str,
        names: dict[str, str],
        values: dict[str, Any],
    ) -> None:
        pk, sk = document_key(collection, doc_id)
        self._add(
            "Update",
            (pk, sk),
            {
                "Key": _serialize({ATTR_PK: pk, ATTR_SK: sk}),
                "UpdateExpression": expression,
                "ExpressionAttributeNames": names,
                "ExpressionAttributeValues": _serialize(values),
                "ConditionExpression": "attribute_exists(PK)",
            },
        )

    def _add(self, action: str, key: tuple[str, str], request: dict[str, Any]) -> None:
        self._ensure_open()
        if len(self._items) >= MAX_TRANSACTION_ITEMS:
            raise CoordinationError(f"Transaction cannot exceed {MAX_TRANSACTION_ITEMS} operations")
        if key in self._keys:
            raise CoordinationError(f"Transaction already writes item {key[0]}/{key[1]}")
        self._keys.add(key)
        self._items.append({action: {"TableName": self.client.table_name, **request}})

    def _ensure_open(self) -> None:
        if self._closed:
            raise CoordinationError("Transaction scope is closed")


class TransactionExecutor:
    """Run units of work whose writes become visible together or not at all."""

    def __init__(self, client: DynamoDBClient):
        self.client = client

    @contextmanager
    def scope(self) -> Iterator[TransactionScope]:
        """
        Open a transaction scope.

        Commits when the block exits normally. Any exception, including a
        failed commit, aborts the scope and propagates unchanged.
        """
        scope = TransactionScope(self.client)
        try:
            yield scope
            scope.commit()
        except BaseException:
            scope.abort()
            raise
        finally:
            scope.close()

    def run(self, unit_of_work: Callable[[TransactionScope], T]) -> T:
        """
        Call ``unit_of_work`` with a fresh scope and commit its writes.

        Returns:
            Whatever ``unit_of_work`` returned
        """
        with self.scope() as scope:
            return unit_of_work(scope)


def create_with_scope(
    scope: TransactionScope, collection: str, doc_id: str, data: dict[str, Any]
) -> dict[str, Any]:
    """Create a document that commits or rolls back with ``scope``."""
    return scope.create(collection, doc_id, data)
