"""
Idempotency commands.
"""

import json

import click

from ..exceptions import CoordinationError
from ..logging_config import setup_logging
from ..utils import output_json, output_text
from .options import (
    EXIT_BACKEND_ERROR,
    EXIT_NOT_FOUND,
    EXIT_USAGE_ERROR,
    build_coordinator,
    connection_options,
    fail,
)


@click.command("idempotency-get")
@click.argument("token")
@connection_options
@click.pass_context
def idempotency_get_command(
    ctx: click.Context,
    token: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Show the result stored for an idempotency token.

    Exit code 1 if no result is stored (never completed, expired, or the
    table could not be reached).
    """
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        found, result = coordinator.idempotency.lookup(token)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if not found:
        fail(
            ctx,
            text,
            f"No result stored for token '{token}'",
            "The operation has not completed or the record expired",
            EXIT_NOT_FOUND,
        )

    if text:
        output_text(json.dumps(result, indent=2))
    else:
        output_json({"token": token, "result": result})
