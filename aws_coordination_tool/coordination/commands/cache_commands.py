"""
Cache commands.
"""

import click

from ..constants import DEFAULT_CACHE_TTL
from ..exceptions import CoordinationError
from ..keys import cache_key
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text
from .options import (
    EXIT_BACKEND_ERROR,
    EXIT_NOT_FOUND,
    EXIT_USAGE_ERROR,
    build_coordinator,
    connection_options,
    fail,
)

logger = get_logger(__name__)


@click.command("cache-set")
@click.argument("key")
@click.argument("value")
@click.option(
    "--ttl",
    type=click.IntRange(min=1),
    default=DEFAULT_CACHE_TTL,
    help=f"TTL in seconds (default: {DEFAULT_CACHE_TTL})",
)
@connection_options
@click.pass_context
def cache_set_command(
    ctx: click.Context,
    key: str,
    value: str,
    ttl: int,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Store a value in the shared cache.

    Examples:

    \b
        aws-coordination-tool coord cache-set score:42 '{"score": 7}' --ttl 600
    """
    setup_logging(verbose)

    try:
        logger.info(f"Caching '{key}' for {ttl}s")
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        coordinator.cache.set_with_ttl(cache_key(key), value, ttl)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if text:
        output_text(f"✅ Cached {key} for {ttl} seconds")
    else:
        output_json({"key": key, "value": value, "ttl": ttl})


@click.command("cache-get")
@click.argument("key")
@connection_options
@click.pass_context
def cache_get_command(
    ctx: click.Context,
    key: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Read a value from the shared cache. Exit code 1 if absent or expired."""
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        entry = coordinator.cache.get_entry(cache_key(key))
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if entry is None:
        fail(
            ctx,
            text,
            f"Key '{key}' not found",
            "The entry expired or was never set",
            EXIT_NOT_FOUND,
        )

    if text:
        output_text(str(entry["value"]))
    else:
        output_json({"key": key, "value": entry["value"], "ttl": entry["ttl"]})


@click.command("cache-delete")
@click.argument("key")
@connection_options
@click.pass_context
def cache_delete_command(
    ctx: click.Context,
    key: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Delete a value from the shared cache. Deleting a missing key succeeds."""
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        existed = coordinator.cache.delete(cache_key(key))
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if text:
        output_text(f"✅ Deleted {key}" if existed else f"Key '{key}' did not exist")
    else:
        output_json({"key": key, "deleted": existed})
