"""
Type models for coordination operations.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ItemType(Enum):
    """Types of items stored in the coordination table."""

    CACHE = "cache"
    LOCK = "lock"
    IDEMPOTENCY = "idempotency"
    USAGE = "usage"
    DOCUMENT = "document"


@dataclass
class Lock:
    """Handle for a held (or degraded) distributed lock."""

    name: str
    token: str
    ttl: int
    acquired_at: int
    expires_at: int
    degraded: bool = False
    type: ItemType = ItemType.LOCK

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


@dataclass
class QuotaDecision:
    """Outcome of an atomic check-and-increment."""

    allowed: bool
    limit: int
    current_usage: int | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class UsageCounter:
    """Persisted usage counter for one subject and feature."""

    subject_id: str
    feature_id: str
    count: int
    last_used_at: int | None = None
    created_at: int = 0
    updated_at: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
