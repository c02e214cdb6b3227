"""
Custom exceptions for coordination operations.
"""

from typing import Any


class CoordinationError(Exception):
    """Base exception for coordination operations."""

    pass


class KeyNotFoundError(CoordinationError):
    """Key does not exist."""

    pass


class ConditionFailedError(CoordinationError):
    """Conditional write failed."""

    pass


class DuplicateKeyError(CoordinationError):
    """Document already exists (create condition failed)."""

    pass


class LockUnavailableError(CoordinationError):
    """Lock is held by another process."""

    pass


class QuotaExceededError(CoordinationError):
    """Usage counter is already at its limit."""

    def __init__(self, message: str, subject_id: str, feature_id: str, limit: int):
        super().__init__(message)
        self.subject_id = subject_id
        self.feature_id = feature_id
        self.limit = limit


class BackendUnavailableError(CoordinationError):
    """DynamoDB endpoint could not be reached."""

    pass


class CacheUnavailableError(BackendUnavailableError):
    """Cache operation could not be completed; callers apply their own fallback."""

    pass


class TransactionCanceledError(CoordinationError):
    """DynamoDB cancelled a transaction; no write was applied."""

    def __init__(self, message: str, reasons: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.reasons = reasons or []

    @property
    def conditional_check_failed(self) -> bool:
        return any(r.get("Code") == "ConditionalCheckFailed" for r in self.reasons)


class AWSThrottlingError(CoordinationError):
    """DynamoDB throttling occurred."""

    pass


class AWSPermissionError(CoordinationError):
    """AWS permission denied."""

    pass


class TableNotFoundError(CoordinationError):
    """DynamoDB table does not exist."""

    pass


class TableAlreadyExistsError(CoordinationError):
    """DynamoDB table already exists."""

    pass
