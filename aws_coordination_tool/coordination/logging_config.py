"""
Logging setup shared by the coordination components and CLI commands.

Verbosity levels follow the CLI's repeatable -v flag:
    0 -> WARNING, 1 -> INFO, 2 -> DEBUG, 3+ -> DEBUG including boto3/botocore.
"""

import logging
import sys

LOGGER_NAME = "aws_coordination_tool"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbosity: int = 0) -> None:
    """
    Configure the package logger for the given verbosity.

    Logs go to stderr so JSON output on stdout stays machine-readable.

    Args:
        verbosity: Number of -v flags passed on the command line
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    sdk_level = logging.DEBUG if verbosity >= 3 else logging.WARNING
    for name in ("boto3", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(sdk_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Module name, usually ``__name__``

    Returns:
        Logger instance
    """
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
