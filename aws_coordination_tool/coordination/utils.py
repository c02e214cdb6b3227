"""
Utility functions for coordination operations.
"""

import json
import time
from decimal import Decimal
from typing import Any


def format_key(prefix: str, key: str) -> str:
    """
    Format a key with namespace prefix.

    Args:
        prefix: Namespace prefix (e.g., 'lock', 'cache', 'usage')
        key: User-provided key

    Returns:
        Formatted key with prefix (e.g., 'lock:booking:123')
    """
    return f"{prefix}:{key}"


def epoch_now() -> int:
    """Current Unix time in whole seconds, the unit DynamoDB TTL works in."""
    return int(time.time())


def from_dynamo(value: Any) -> Any:
    """
    Convert values read through the boto3 resource layer back to plain Python.

    boto3 returns every number as ``Decimal``; integral ones become ``int``.
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def to_dynamo(value: Any) -> Any:
    """Convert floats to ``Decimal`` so boto3 accepts them."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def output_json(data: dict[str, Any], quiet: bool = False) -> None:
    """
    Output JSON to stdout.

    Args:
        data: Data to output as JSON
        quiet: If True, suppress output
    """
    if not quiet:
        print(json.dumps(data))


def output_text(message: str, quiet: bool = False) -> None:
    """
    Output text to stdout.

    Args:
        message: Message to output
        quiet: If True, suppress output
    """
    if not quiet:
        print(message)


def error_json(error: str, solution: str, exit_code: int) -> str:
    """
    Format error as JSON.

    Args:
        error: Error message
        solution: Solution suggestion
        exit_code: Exit code

    Returns:
        Serialized error object
    """
    return json.dumps({"error": error, "solution": solution, "exit_code": exit_code})


def error_text(error: str, solution: str) -> str:
    """
    Format error as human-readable text.

    Args:
        error: Error message
        solution: Solution suggestion

    Returns:
        Formatted error message
    """
    return f"❌ Error: {error}\n\n💡 Solution: {solution}"


def validate_table_name(table_name: str) -> bool:
    """
    Validate DynamoDB table name.

    Args:
        table_name: Table name to validate

    Returns:
        True if valid

    Raises:
        ValueError: If table name is invalid
    """
    if not table_name:
        raise ValueError("Table name cannot be empty")
    if len(table_name) < 3 or len(table_name) > 255:
        raise ValueError("Table name must be between 3 and 255 characters")
    if not all(c.isalnum() or c in "-_." for c in table_name):
        raise ValueError(
            "Table name can only contain alphanumeric characters, hyphens, underscores, and periods"
        )
    return True


def validate_key(key: str) -> bool:
    """
    Validate key name.

    Args:
        key: Key to validate

    Returns:
        True if valid

    Raises:
        ValueError: If key is invalid
    """
    if not key:
        raise ValueError("Key cannot be empty")
    if len(key) > 1024:
        raise ValueError("Key cannot exceed 1024 characters")
    return True
