"""Click commands for the coordination primitives."""
