"""
Plain document operations outside the coordination primitives.

Documents are stored as ``PK=doc:<collection>``, ``SK=<id>`` with the caller's
fields in a ``data`` map. The atomic helpers rely on DynamoDB applying
single-item conditional updates atomically, which avoids read-check-write
races without any lock.
"""

from typing import Any

from boto3.dynamodb.conditions import Key

from ..constants import ATTR_CREATED_AT, ATTR_DATA, ATTR_PK, ATTR_SK, ATTR_TYPE, ATTR_UPDATED_AT
from ..exceptions import ConditionFailedError, DuplicateKeyError, KeyNotFoundError
from ..keys import collection_partition, document_key
from ..models import ItemType
from ..utils import epoch_now, from_dynamo, to_dynamo
from .client import DynamoDBClient

UpdateParts = tuple[str, dict[str, str], dict[str, Any]]


def build_document(collection: str, doc_id: str, data: dict[str, Any], now: int) -> dict[str, Any]:
    """Build the stored item for a new document."""
    pk, sk = document_key(collection, doc_id)
    return {
        ATTR_PK: pk,
        ATTR_SK: sk,
        ATTR_TYPE: ItemType.DOCUMENT.value,
        "collection": collection,
        "id": doc_id,
        ATTR_DATA: to_dynamo(data),
        ATTR_CREATED_AT: now,
        ATTR_UPDATED_AT: now,
    }


def build_set_update(fields: dict[str, Any], now: int) -> UpdateParts:
    """
    Build a SET expression writing ``fields`` into the document's data map.

    Field names are always aliased so reserved words are safe.
    """
    if not fields:
        raise ValueError("Update requires at least one field")
    names = {"#data": ATTR_DATA}
    values: dict[str, Any] = {":updated_at": now}
    assignments = []
    for idx, (field, value) in enumerate(fields.items()):
        names[f"#f{idx}"] = field
        values[f":v{idx}"] = to_dynamo(value)
        assignments.append(f"#data.#f{idx} = :v{idx}")
    assignments.append(f"{ATTR_UPDATED_AT} = :updated_at")
    return "SET " + ", ".join(assignments), names, values


def build_increment_update(field: str, by: int, now: int) -> UpdateParts:
    """Build an expression adding ``by`` to a numeric data field."""
    return (
        f"SET #data.#field = if_not_exists(#data.#field, :zero) + :by, {ATTR_UPDATED_AT} = :now",
        {"#data": ATTR_DATA, "#field": field},
        {":zero": 0, ":by": by, ":now": now},
    )


def to_document(item: dict[str, Any]) -> dict[str, Any]:
    """Flatten a stored item into ``{"id": ..., **data}``."""
    item = from_dynamo(item)
    return {
        "id": item["id"],
        **item.get(ATTR_DATA, {}),
        "created_at": item.get(ATTR_CREATED_AT),
        "updated_at": item.get(ATTR_UPDATED_AT),
    }


class DocumentStore:
    """Create/find/update/delete plus atomic single-document updates."""

    def __init__(self, client: DynamoDBClient):
        self.client = client

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Create a document.

        Raises:
            DuplicateKeyError: If the document already exists
        """
        item = build_document(collection, doc_id, data, epoch_now())
        try:
            self.client.put_item(item, condition_expression="attribute_not_exists(PK)")
        except ConditionFailedError:
            raise DuplicateKeyError(f"Document '{collection}/{doc_id}' already exists")
        return to_document(item)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        pk, sk = document_key(collection, doc_id)
        item = self.client.get_item({ATTR_PK: pk, ATTR_SK: sk})
        return None if item is None else to_document(item)

    def find(self, collection: str, limit: int | None = None) -> list[dict[str, Any]]:
        """List the documents of a collection in id order."""
        items = self.client.query(Key(ATTR_PK).eq(collection_partition(collection)), limit=limit)
        return [to_document(item) for item in items]

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Set fields on an existing document.

        Raises:
            KeyNotFoundError: If the document does not exist
        """
        try:
            return self.atomic_update(collection, doc_id, fields)
        except ConditionFailedError:
            raise KeyNotFoundError(f"Document '{collection}/{doc_id}' not found")

    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document; returns True if it existed."""
        pk, sk = document_key(collection, doc_id)
        response = self.client.delete_item({ATTR_PK: pk, ATTR_SK: sk}, return_values="ALL_OLD")
        return bool(response.get("Attributes"))

    def atomic_update(
        self,
        collection: str,
        doc_id: str,
        fields: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Find-and-update in one step.

        Args:
            collection: Collection name
            doc_id: Document id
            fields: Data fields to set
            expected: Data fields that must currently hold these values

        Returns:
            The updated document

        Raises:
            ConditionFailedError: If the document is missing or a value differs
        """
        pk, sk = document_key(collection, doc_id)
        expression, names, values = build_set_update(fields, epoch_now())
        conditions = ["attribute_exists(PK)"]
        for idx, (field, value) in enumerate((expected or {}).items()):
            names[f"#e{idx}"] = field
            values[f":e{idx}"] = to_dynamo(value)
            conditions.append(f"#data.#e{idx} = :e{idx}")
        response = self.client.update_item(
            key={ATTR_PK: pk, ATTR_SK: sk},
            update_expression=expression,
            expression_attribute_names=names,
            expression_attribute_values=values,
            condition_expression=" AND ".join(conditions),
            return_values="ALL_NEW",
        )
        return to_document(response["Attributes"])

    def atomic_increment(
        self, collection: str, doc_id: str, field: str, by: int = 1
    ) -> dict[str, Any]:
        """
        Add ``by`` to a numeric field of an existing document.

        Raises:
            KeyNotFoundError: If the document does not exist
        """
        pk, sk = document_key(collection, doc_id)
        expression, names, values = build_increment_update(field, by, epoch_now())
        try:
            response = self.client.update_item(
                key={ATTR_PK: pk, ATTR_SK: sk},
                update_expression=expression,
                expression_attribute_names=names,
                expression_attribute_values=values,
                condition_expression="attribute_exists(PK)",
                return_values="ALL_NEW",
            )
        except ConditionFailedError:
            raise KeyNotFoundError(f"Document '{collection}/{doc_id}' not found")
        return to_document(response["Attributes"])

    def ensure_unique(self, collection: str, doc_id: str, message: str | None = None) -> None:
        """
        Raise if the document already exists.

        This is a plain read; pair it with ``create`` (which is conditional)
        rather than relying on it alone under concurrency.

        Raises:
            DuplicateKeyError: If the document exists
        """
        if self.get(collection, doc_id) is not None:
            raise DuplicateKeyError(message or f"Document '{collection}/{doc_id}' already exists")
