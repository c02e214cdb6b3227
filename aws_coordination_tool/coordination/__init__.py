"""
Coordination primitives for stateless server instances sharing one table.

Request handlers wrap critical operations with a LockManager lock, then use
TransactionExecutor for multi-document atomicity or QuotaGuard for a single
counter, optionally gated by IdempotencyStore for retried requests.
"""

from .config import CoordinationConfig
from .coordinator import Coordinator
from .core.cache import CacheFacade
from .core.client import DynamoDBClient
from .core.document_operations import DocumentStore
from .core.idempotency_operations import IdempotencyStore
from .core.lock_operations import LockManager
from .core.quota_operations import QuotaGuard
from .core.transaction_operations import TransactionExecutor, TransactionScope, create_with_scope
from .exceptions import (
    BackendUnavailableError,
    CacheUnavailableError,
    DuplicateKeyError,
    CoordinationError,
    LockUnavailableError,
    QuotaExceededError,
    TransactionCanceledError,
)
from .models import Lock, QuotaDecision, UsageCounter

__all__ = [
    "BackendUnavailableError",
    "CacheFacade",
    "CacheUnavailableError",
    "CoordinationConfig",
    "Coordinator",
    "DocumentStore",
    "DuplicateKeyError",
    "DynamoDBClient",
    "IdempotencyStore",
    "CoordinationError",
    "Lock",
    "LockManager",
    "LockUnavailableError",
    "QuotaDecision",
    "QuotaExceededError",
    "QuotaGuard",
    "TransactionCanceledError",
    "TransactionExecutor",
    "TransactionScope",
    "UsageCounter",
    "create_with_scope",
]
