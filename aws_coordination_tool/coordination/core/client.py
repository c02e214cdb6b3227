"""
DynamoDB client wrapper with error handling.
"""

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import (
    AWSPermissionError,
    AWSThrottlingError,
    BackendUnavailableError,
    ConditionFailedError,
    CoordinationError,
    TableNotFoundError,
    TransactionCanceledError,
)
from ..logging_config import get_logger

logger = get_logger(__name__)


class DynamoDBClient:
    """DynamoDB client wrapper with error handling."""

    def __init__(
        self,
        table_name: str,
        region: str | None = None,
        profile: str | None = None,
        endpoint_url: str | None = None,
    ):
        """
        Initialize DynamoDB client.

        Args:
            table_name: DynamoDB table name
            region: AWS region (optional, uses SDK default)
            profile: AWS profile (optional, uses SDK default)
            endpoint_url: Alternative endpoint, e.g. DynamoDB Local (optional)
        """
        session = boto3.Session(profile_name=profile, region_name=region)
        self.dynamodb = session.resource("dynamodb", endpoint_url=endpoint_url)
        self.client = session.client("dynamodb", endpoint_url=endpoint_url)
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name

    def put_item(
        self,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Put item with optional condition.

        Args:
            item: Item to put
            condition_expression: Optional condition expression
            expression_attribute_names: Optional expression attribute names
            expression_attribute_values: Optional expression attribute values

        Returns:
            Response from DynamoDB

        Raises:
            ConditionFailedError: If condition fails
            CoordinationError: For other DynamoDB errors
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        if expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = expression_attribute_names
        if expression_attribute_values:
            kwargs["ExpressionAttributeValues"] = expression_attribute_values
        return self._call(self.table.put_item, **kwargs)

    def get_item(self, key: dict[str, Any], consistent_read: bool = True) -> dict[str, Any] | None:
        """
        Get item by key.

        Coordination reads default to strongly consistent so a record written
        by another process is never missed.

        Args:
            key: Key to retrieve
            consistent_read: Use a strongly consistent read

        Returns:
            Item if found, None otherwise

        Raises:
            CoordinationError: For DynamoDB errors
        """
        response = self._call(self.table.get_item, Key=key, ConsistentRead=consistent_read)
        return response.get("Item")

    def delete_item(
        self,
        key: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
        return_values: str | None = None,
    ) -> dict[str, Any]:
        """
        Delete item with optional condition.

        Args:
            key: Key to delete
            condition_expression: Optional condition expression
            expression_attribute_names: Optional expression attribute names
            expression_attribute_values: Optional expression attribute values
            return_values: Optional ReturnValues setting (e.g. ALL_OLD)

        Returns:
            Response from DynamoDB

        Raises:
            ConditionFailedError: If condition fails
            CoordinationError: For other DynamoDB errors
        """
        kwargs: dict[str, Any] = {"Key": key}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        if expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = expression_attribute_names
        if expression_attribute_values:
            kwargs["ExpressionAttributeValues"] = expression_attribute_values
        if return_values:
            kwargs["ReturnValues"] = return_values
        return self._call(self.table.delete_item, **kwargs)

    def update_item(
        self,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
        condition_expression: str | None = None,
        return_values: str | None = None,
    ) -> dict[str, Any]:
        """
        Update item in a single atomic step.

        Args:
            key: Key to update
            update_expression: Update expression
            expression_attribute_names: Optional expression attribute names
            expression_attribute_values: Optional expression attribute values
            condition_expression: Optional condition expression
            return_values: Optional ReturnValues setting (e.g. ALL_NEW)

        Returns:
            Response from DynamoDB

        Raises:
            ConditionFailedError: If condition fails
            CoordinationError: For other DynamoDB errors
        """
        kwargs: dict[str, Any] = {"Key": key, "UpdateExpression": update_expression}
        if expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = expression_attribute_names
        if expression_attribute_values:
            kwargs["ExpressionAttributeValues"] = expression_attribute_values
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        if return_values:
            kwargs["ReturnValues"] = return_values
        return self._call(self.table.update_item, **kwargs)

    def query(
        self,
        key_condition_expression: Any,
        limit: int | None = None,
        scan_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """
        Query items by key condition.

        Args:
            key_condition_expression: Key condition expression
            limit: Maximum number of items to return
            scan_forward: Sort key order (False for descending)

        Returns:
            List of items

        Raises:
            CoordinationError: For DynamoDB errors
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition_expression,
            "ScanIndexForward": scan_forward,
            "ConsistentRead": True,
        }

        # Each page is capped at 1 MB; follow LastEvaluatedKey until done.
        items: list[dict[str, Any]] = []
        while True:
            if limit:
                kwargs["Limit"] = limit - len(items)
            response = self._call(self.table.query, **kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key or (limit and len(items) >= limit):
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def transact_write_items(self, transact_items: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Apply a list of low-level transact items all-or-nothing.

        Args:
            transact_items: Items in DynamoDB's low-level (typed) format

        Returns:
            Response from DynamoDB

        Raises:
            TransactionCanceledError: If DynamoDB cancelled the transaction
            CoordinationError: For other DynamoDB errors
        """
        return self._call(self.client.transact_write_items, TransactItems=transact_items)

    def _call(self, operation: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            return operation(**kwargs)  # type: ignore[no-any-return]
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker
        except BotoCoreError as e:
            logger.debug(f"DynamoDB endpoint unreachable: {e}")
            raise BackendUnavailableError(f"DynamoDB unavailable: {e}") from e

    def _handle_error(self, error: ClientError) -> None:
        """
        Convert boto3 errors to coordination exceptions.

        Args:
            error: ClientError from boto3

        Raises:
            ConditionFailedError: If condition check failed
            TransactionCanceledError: If a transaction was cancelled
            TableNotFoundError: If table not found
            AWSThrottlingError: If throttled
            AWSPermissionError: If permission denied
            CoordinationError: For other errors
        """
        code = error.response["Error"]["Code"]

        if code == "ConditionalCheckFailedException":
            raise ConditionFailedError(f"Condition failed: {error}")
        elif code == "TransactionCanceledException":
            reasons = error.response.get("CancellationReasons", [])
            raise TransactionCanceledError(f"Transaction cancelled: {error}", reasons)
        elif code == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{self.table_name}' not found")
        elif code in ("ProvisionedThroughputExceededException", "ThrottlingException"):
            raise AWSThrottlingError("DynamoDB throttling - retry with backoff")
        elif code == "AccessDeniedException":
            raise AWSPermissionError("AWS permission denied")
        else:
            raise CoordinationError(f"DynamoDB error: {error}")
