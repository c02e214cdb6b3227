"""
Lock commands.
"""

import click

from ..constants import DEFAULT_LOCK_TTL
from ..exceptions import CoordinationError
from ..logging_config import get_logger, setup_logging
from ..models import Lock
from ..utils import output_json, output_text
from .options import (
    EXIT_BACKEND_ERROR,
    EXIT_BUSY,
    EXIT_NOT_FOUND,
    EXIT_NOT_OWNED,
    EXIT_USAGE_ERROR,
    build_coordinator,
    connection_options,
    fail,
)

logger = get_logger(__name__)


@click.command("lock-acquire")
@click.argument("lock_name")
@click.option(
    "--ttl",
    type=click.IntRange(min=1),
    default=DEFAULT_LOCK_TTL,
    help=f"Lock TTL in seconds (default: {DEFAULT_LOCK_TTL})",
)
@click.option("--strict", is_flag=True, help="Fail instead of granting a degraded lock")
@connection_options
@click.pass_context
def lock_acquire_command(
    ctx: click.Context,
    lock_name: str,
    ttl: int,
    strict: bool,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Acquire a distributed lock (single attempt, no waiting).

    Prints the owner token needed by lock-release. When the table cannot be
    reached the lock is granted in degraded mode unless --strict is given.

    Examples:

    \b
        # Acquire a 30-second lock
        aws-coordination-tool coord lock-acquire booking:123 --ttl 30

    \b
        # Use in shell script
        if TOKEN=$(aws-coordination-tool coord lock-acquire deploy --text); then
            deploy.sh
            aws-coordination-tool coord lock-release deploy --token "$TOKEN"
        fi

    \b
    Output Format:
        Returns JSON:
        {"name": "booking:123", "token": "...", "ttl": 30, "expires_at": 1731696030, ...}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Acquiring lock '{lock_name}' for {ttl}s")
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        if strict:
            coordinator.locks.fail_open = False
        lock = coordinator.locks.acquire(lock_name, ttl)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if lock is None:
        fail(
            ctx,
            text,
            f"Lock '{lock_name}' is held by another owner",
            "Retry later or wait for TTL expiration",
            EXIT_BUSY,
        )

    if text:
        output_text(lock.token)
    else:
        output_json(lock.to_dict())


@click.command("lock-release")
@click.argument("lock_name")
@click.option("--token", required=True, help="Owner token printed by lock-acquire")
@connection_options
@click.pass_context
def lock_release_command(
    ctx: click.Context,
    lock_name: str,
    token: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Release a distributed lock.

    Only the holder of the current owner token can release the lock; a stale
    token (the lock expired and was re-acquired) releases nothing.

    Examples:

    \b
        aws-coordination-tool coord lock-release booking:123 --token "$TOKEN"

    \b
    Output Format:
        Returns JSON:
        {"lock": "booking:123", "released": true}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Releasing lock '{lock_name}'")
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        released = coordinator.locks.release(lock_name, token)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if not released:
        fail(
            ctx,
            text,
            f"Lock '{lock_name}' is not held by this token",
            "The lock expired or is held by another owner",
            EXIT_NOT_OWNED,
        )

    if text:
        output_text(f"✅ Lock '{lock_name}' released")
    else:
        output_json({"lock": lock_name, "released": True})


@click.command("lock-extend")
@click.argument("lock_name")
@click.option("--token", required=True, help="Owner token printed by lock-acquire")
@click.option(
    "--ttl", type=click.IntRange(min=1), required=True, help="New TTL in seconds from now"
)
@connection_options
@click.pass_context
def lock_extend_command(
    ctx: click.Context,
    lock_name: str,
    token: str,
    ttl: int,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Extend the TTL of a held lock.

    Examples:

    \b
        # Heartbeat pattern in shell script
        while true; do
            aws-coordination-tool coord lock-extend deploy --token "$TOKEN" --ttl 60
            sleep 20
        done
    """
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        lock = Lock(lock_name, token, ttl, 0, 0)
        extended = coordinator.locks.extend(lock, ttl)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if not extended:
        fail(
            ctx,
            text,
            f"Cannot extend lock '{lock_name}': not held by this token",
            "Verify the token or check if the lock expired",
            EXIT_NOT_OWNED,
        )

    if text:
        output_text(f"✅ Lock '{lock_name}' extended, expires at {lock.expires_at}")
    else:
        output_json({"lock": lock_name, "expires_at": lock.expires_at, "extended": True})


@click.command("lock-check")
@click.argument("lock_name")
@connection_options
@click.pass_context
def lock_check_command(
    ctx: click.Context,
    lock_name: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Check if a lock is held.

    Exit code 0 if locked, 1 if free.
    """
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        result = coordinator.locks.check(lock_name)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if result:
        if text:
            output_text(f"Lock '{lock_name}' is held until {result['expires_at']}")
        else:
            output_json(result)
        return

    if text:
        output_text(f"Lock '{lock_name}' is free")
    else:
        output_json({"lock": lock_name, "status": "free"})
    ctx.exit(EXIT_NOT_FOUND)
