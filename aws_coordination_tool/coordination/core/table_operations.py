"""
Table management operations for the coordination table.
"""

from typing import Any, Literal

import boto3
from botocore.exceptions import ClientError

from ..constants import ATTR_PK, ATTR_SK, ATTR_TTL
from ..exceptions import TableAlreadyExistsError, TableNotFoundError


def _dynamodb(region: str | None, profile: str | None, endpoint_url: str | None) -> Any:
    session = boto3.Session(profile_name=profile, region_name=region)
    return session.client("dynamodb", endpoint_url=endpoint_url)


def create_table(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = "PAY_PER_REQUEST",
    endpoint_url: str | None = None,
) -> dict[str, Any]:
    """
    Create the DynamoDB table shared by locks, cache, idempotency records,
    usage counters and documents.

    Args:
        table_name: Table name
        region: AWS region (optional)
        profile: AWS profile (optional)
        billing_mode: Billing mode (PAY_PER_REQUEST or PROVISIONED)
        endpoint_url: Alternative endpoint, e.g. DynamoDB Local (optional)

    Returns:
        Table description

    Raises:
        TableAlreadyExistsError: If table already exists
    """
    dynamodb = _dynamodb(region, profile, endpoint_url)

    kwargs: dict[str, Any] = {}
    if billing_mode == "PROVISIONED":
        kwargs["ProvisionedThroughput"] = {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}

    try:
        response = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": ATTR_PK, "KeyType": "HASH"},  # Partition key
                {"AttributeName": ATTR_SK, "KeyType": "RANGE"},  # Sort key
            ],
            AttributeDefinitions=[
                {"AttributeName": ATTR_PK, "AttributeType": "S"},
                {"AttributeName": ATTR_SK, "AttributeType": "S"},
            ],
            BillingMode=billing_mode,
            Tags=[
                {"Key": "ManagedBy", "Value": "aws-coordination-tool"},
                {"Key": "Purpose", "Value": "coordination"},
            ],
            **kwargs,
        )

        dynamodb.get_waiter("table_exists").wait(TableName=table_name)

        # Expired locks and idempotency records are reaped by DynamoDB TTL
        dynamodb.update_time_to_live(
            TableName=table_name,
            TimeToLiveSpecification={"Enabled": True, "AttributeName": ATTR_TTL},
        )

        return response["TableDescription"]  # type: ignore[no-any-return]

    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            raise TableAlreadyExistsError(f"Table '{table_name}' already exists")
        raise


def drop_table(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
) -> dict[str, Any]:
    """
    Drop DynamoDB table.

    Raises:
        TableNotFoundError: If table does not exist
    """
    dynamodb = _dynamodb(region, profile, endpoint_url)

    try:
        response = dynamodb.delete_table(TableName=table_name)
        return response["TableDescription"]  # type: ignore[no-any-return]
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{table_name}' not found")
        raise


def check_table_exists(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    endpoint_url: str | None = None,
) -> bool:
    """Check if table exists."""
    dynamodb = _dynamodb(region, profile, endpoint_url)

    try:
        dynamodb.describe_table(TableName=table_name)
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            return False
        raise
