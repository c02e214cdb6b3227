"""
Constants for coordination operations.
"""

# Default table name
DEFAULT_TABLE_NAME = "aws-coordination-tool"

# Default TTLs (in seconds)
DEFAULT_LOCK_TTL = 30
DEFAULT_CACHE_TTL = 3600
IDEMPOTENCY_TTL = 3600  # 1 hour

# Namespace prefixes for DynamoDB keys
PREFIX_CACHE = "cache"
PREFIX_LOCK = "lock"
PREFIX_IDEMPOTENCY = "idempotency"
PREFIX_USAGE = "usage"
PREFIX_FEATURE = "feature"
PREFIX_DOCUMENT = "doc"

# DynamoDB attribute names
ATTR_PK = "PK"
ATTR_SK = "SK"
ATTR_VALUE = "value"
ATTR_TYPE = "type"
ATTR_TTL = "ttl"
ATTR_COUNT = "count"
ATTR_DATA = "data"
ATTR_METADATA = "metadata"
ATTR_CREATED_AT = "created_at"
ATTR_UPDATED_AT = "updated_at"

# DynamoDB TransactWriteItems limit
MAX_TRANSACTION_ITEMS = 100

# Environment variables
ENV_TABLE = "COORD_TABLE"
ENV_ENDPOINT_URL = "COORD_ENDPOINT_URL"
ENV_LOCK_TTL = "COORD_LOCK_TTL"
ENV_IDEMPOTENCY_TTL = "COORD_IDEMPOTENCY_TTL"
ENV_LOCK_FAIL_OPEN = "COORD_LOCK_FAIL_OPEN"
ENV_QUOTA_FAIL_OPEN = "COORD_QUOTA_FAIL_OPEN"
