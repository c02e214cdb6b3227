"""
Key builders for coordination records.

Every entity kind gets its own namespace prefix so unrelated subsystems
sharing one table can never collide on a key.
"""

from .constants import (
    PREFIX_CACHE,
    PREFIX_DOCUMENT,
    PREFIX_FEATURE,
    PREFIX_IDEMPOTENCY,
    PREFIX_LOCK,
    PREFIX_USAGE,
)
from .utils import format_key, validate_key


def lock_key(name: str) -> str:
    """Key of the lock record guarding resource ``name``."""
    validate_key(name)
    return format_key(PREFIX_LOCK, name)


def idempotency_key(token: str) -> str:
    """Key of the idempotency record for a client-supplied token."""
    validate_key(token)
    return format_key(PREFIX_IDEMPOTENCY, token)


def cache_key(name: str) -> str:
    """Key of a general-purpose cache entry."""
    validate_key(name)
    return format_key(PREFIX_CACHE, name)


def usage_key(subject_id: str, feature_id: str) -> tuple[str, str]:
    """
    PK/SK pair of a usage counter.

    The subject is the partition so all counters of one subject can be
    queried together; the feature is the sort key.
    """
    validate_key(feature_id)
    return usage_partition(subject_id), format_key(PREFIX_FEATURE, feature_id)


def document_key(collection: str, doc_id: str) -> tuple[str, str]:
    """PK/SK pair of a plain document."""
    validate_key(doc_id)
    return collection_partition(collection), doc_id


def usage_partition(subject_id: str) -> str:
    """Partition key holding every usage counter of a subject."""
    validate_key(subject_id)
    return format_key(PREFIX_USAGE, subject_id)


def collection_partition(collection: str) -> str:
    """Partition key holding every document of a collection."""
    validate_key(collection)
    return format_key(PREFIX_DOCUMENT, collection)
