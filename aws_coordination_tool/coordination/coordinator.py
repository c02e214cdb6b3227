"""
Single entry point wiring every coordination component onto one client.
"""

from dataclasses import dataclass

from .config import CoordinationConfig
from .core.cache import CacheFacade
from .core.client import DynamoDBClient
from .core.document_operations import DocumentStore
from .core.idempotency_operations import IdempotencyStore
from .core.lock_operations import LockManager
from .core.quota_operations import QuotaGuard
from .core.transaction_operations import TransactionExecutor


@dataclass
class Coordinator:
    """The primitives request handlers call into."""

    config: CoordinationConfig
    client: DynamoDBClient
    cache: CacheFacade
    locks: LockManager
    idempotency: IdempotencyStore
    quotas: QuotaGuard
    transactions: TransactionExecutor
    documents: DocumentStore

    @classmethod
    def from_config(
        cls, config: CoordinationConfig | None = None, client: DynamoDBClient | None = None
    ) -> "Coordinator":
        """
        Build all components from ``config`` (default: the environment).

        Args:
            config: Settings to use
            client: Existing client to share (default: one built from config)
        """
        config = config or CoordinationConfig.from_env()
        client = client or DynamoDBClient(
            config.table_name, config.region, config.profile, config.endpoint_url
        )
        cache = CacheFacade(client)
        return cls(
            config=config,
            client=client,
            cache=cache,
            locks=LockManager(cache, fail_open=config.lock_fail_open),
            idempotency=IdempotencyStore(cache, ttl=config.idempotency_ttl),
            quotas=QuotaGuard(client, fail_open=config.quota_fail_open),
            transactions=TransactionExecutor(client),
            documents=DocumentStore(client),
        )
