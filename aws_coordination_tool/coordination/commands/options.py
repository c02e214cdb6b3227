"""
Shared click options and error reporting for coordination commands.
"""

from collections.abc import Callable
from typing import Any, NoReturn

import click

from ..config import CoordinationConfig
from ..constants import DEFAULT_TABLE_NAME, ENV_ENDPOINT_URL, ENV_TABLE
from ..coordinator import Coordinator
from ..utils import error_json, error_text

# Exit codes
EXIT_NOT_FOUND = 1
EXIT_NOT_OWNED = 2
EXIT_USAGE_ERROR = 2
EXIT_BACKEND_ERROR = 3
EXIT_BUSY = 4
EXIT_QUOTA_EXCEEDED = 5


def connection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add --table/--region/--profile/--endpoint-url/--text/--verbose."""
    decorators = [
        click.option(
            "--table",
            envvar=ENV_TABLE,
            default=DEFAULT_TABLE_NAME,
            help="DynamoDB table name",
        ),
        click.option("--region", envvar="AWS_REGION", help="AWS region"),
        click.option("--profile", envvar="AWS_PROFILE", help="AWS profile"),
        click.option(
            "--endpoint-url",
            envvar=ENV_ENDPOINT_URL,
            help="Alternative DynamoDB endpoint (e.g. DynamoDB Local)",
        ),
        click.option("--text", is_flag=True, help="Output as human-readable text"),
        click.option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v INFO, -vv DEBUG, -vvv TRACE)",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def build_coordinator(
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
) -> Coordinator:
    """Environment settings with the command line's connection options on top."""
    config = CoordinationConfig.from_env()
    config.table_name = table
    config.region = region
    config.profile = profile
    config.endpoint_url = endpoint_url
    return Coordinator.from_config(config)


def fail(ctx: click.Context, text: bool, error: str, solution: str, exit_code: int) -> NoReturn:
    """Report an error on stderr in the requested format and exit."""
    if text:
        click.echo(error_text(error, solution), err=True)
    else:
        click.echo(error_json(error, solution, exit_code), err=True)
    ctx.exit(exit_code)
