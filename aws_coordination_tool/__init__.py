"""Cross-process coordination primitives backed by DynamoDB."""

__version__ = "0.1.0"
