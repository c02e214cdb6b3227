"""
Usage quota commands.
"""

import click

from ..exceptions import CoordinationError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text
from .options import (
    EXIT_BACKEND_ERROR,
    EXIT_NOT_FOUND,
    EXIT_QUOTA_EXCEEDED,
    EXIT_USAGE_ERROR,
    build_coordinator,
    connection_options,
    fail,
)

logger = get_logger(__name__)


@click.command("quota-check")
@click.argument("subject_id")
@click.argument("feature_id")
@click.option("--limit", type=int, required=True, help="Usage ceiling for this call")
@connection_options
@click.pass_context
def quota_check_command(
    ctx: click.Context,
    subject_id: str,
    feature_id: str,
    limit: int,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Atomically check a usage ceiling and consume one unit.

    Exit code 0 if allowed, 5 if the ceiling was already reached.

    Examples:

    \b
        aws-coordination-tool coord quota-check user-42 export --limit 3

    \b
    Output Format:
        Returns JSON:
        {"allowed": true, "limit": 3, "current_usage": 1, "reason": null}
    """
    setup_logging(verbose)

    try:
        logger.info(f"Checking quota {subject_id}/{feature_id} against {limit}")
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        decision = coordinator.quotas.check_and_increment(subject_id, feature_id, limit)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if text:
        if decision.allowed:
            output_text(f"✅ Allowed ({decision.current_usage}/{limit})")
        else:
            output_text(f"⛔ {decision.reason} (limit {limit})")
    else:
        output_json(decision.to_dict())

    if not decision.allowed:
        ctx.exit(EXIT_QUOTA_EXCEEDED)


@click.command("quota-usage")
@click.argument("subject_id")
@click.argument("feature_id", required=False)
@connection_options
@click.pass_context
def quota_usage_command(
    ctx: click.Context,
    subject_id: str,
    feature_id: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Show usage counters of a subject (one feature, or all, newest first)."""
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        if feature_id:
            counter = coordinator.quotas.get_usage(subject_id, feature_id)
            counters = [] if counter is None else [counter]
        else:
            counters = coordinator.quotas.usage_history(subject_id)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if not counters:
        fail(
            ctx,
            text,
            f"No usage recorded for '{subject_id}'",
            "Nothing has been consumed yet",
            EXIT_NOT_FOUND,
        )

    if text:
        for counter in counters:
            output_text(f"{counter.feature_id}: {counter.count}")
    else:
        output_json({"subject_id": subject_id, "usage": [c.to_dict() for c in counters]})


@click.command("quota-reset")
@click.argument("subject_id")
@click.argument("feature_id", required=False)
@connection_options
@click.pass_context
def quota_reset_command(
    ctx: click.Context,
    subject_id: str,
    feature_id: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Reset usage counters to zero (one feature, or every feature of the subject).

    Intended for scheduled billing-period resets.
    """
    setup_logging(verbose)

    try:
        coordinator = build_coordinator(table, region, profile, endpoint_url)
        reset = coordinator.quotas.reset_usage(subject_id, feature_id)
    except CoordinationError as e:
        fail(ctx, text, str(e), "Check table exists and AWS credentials", EXIT_BACKEND_ERROR)
    except ValueError as e:
        fail(ctx, text, str(e), "Check the arguments and COORD_* settings", EXIT_USAGE_ERROR)

    if text:
        output_text(f"✅ Reset {reset} counter(s) for {subject_id}")
    else:
        output_json({"subject_id": subject_id, "reset": reset})
