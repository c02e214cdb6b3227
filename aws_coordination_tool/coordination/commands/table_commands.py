"""
Table management commands.
"""

from typing import Literal

import click
from botocore.exceptions import BotoCoreError, ClientError

from ..core.table_operations import create_table, drop_table
from ..exceptions import TableAlreadyExistsError, TableNotFoundError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text, validate_table_name
from .options import (
    EXIT_BACKEND_ERROR,
    EXIT_NOT_FOUND,
    EXIT_USAGE_ERROR,
    connection_options,
    fail,
)

logger = get_logger(__name__)


@click.command("create-table")
@click.option(
    "--billing",
    type=click.Choice(["on-demand", "provisioned"]),
    default="on-demand",
    help="Billing mode (default: on-demand)",
)
@connection_options
@click.pass_context
def create_table_command(
    ctx: click.Context,
    billing: str,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Create the coordination table.

    Creates a table with partition key (PK), sort key (SK) and TTL enabled on
    the 'ttl' attribute so expired locks and idempotency records are reaped.

    Examples:

    \b
        # Create table with default name
        aws-coordination-tool coord create-table

    \b
        # Against DynamoDB Local
        aws-coordination-tool coord create-table --endpoint-url http://localhost:8000

    \b
    Output Format:
        Returns JSON with table details:
        {"table": "...", "status": "ACTIVE", "arn": "..."}
    """
    setup_logging(verbose)

    try:
        validate_table_name(table)
    except ValueError as e:
        fail(ctx, text, str(e), "Choose a valid DynamoDB table name", EXIT_USAGE_ERROR)

    try:
        logger.info(f"Creating table '{table}'")
        logger.debug(f"Region: {region}, Billing: {billing}")

        billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = (
            "PAY_PER_REQUEST" if billing == "on-demand" else "PROVISIONED"
        )
        table_desc = create_table(table, region, profile, billing_mode, endpoint_url)
    except TableAlreadyExistsError as e:
        fail(ctx, text, str(e), "Use a different table name or drop the existing table", 1)
    except (ClientError, BotoCoreError) as e:
        fail(ctx, text, str(e), "Check AWS credentials and permissions", EXIT_BACKEND_ERROR)

    if text:
        output_text(f"✅ Table '{table}' created successfully")
        output_text(f"Status: {table_desc['TableStatus']}")
    else:
        output_json(
            {
                "table": table,
                "status": table_desc["TableStatus"],
                "arn": table_desc.get("TableArn"),
            }
        )


@click.command("drop-table")
@click.option("--approve", is_flag=True, help="Required flag to confirm table deletion")
@connection_options
@click.pass_context
def drop_table_command(
    ctx: click.Context,
    approve: bool,
    table: str,
    region: str | None,
    profile: str | None,
    endpoint_url: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Drop the coordination table.

    WARNING: deletes every lock, cache entry, idempotency record, usage
    counter and document. Requires --approve.
    """
    setup_logging(verbose)

    if not approve:
        fail(
            ctx,
            text,
            "Table deletion requires --approve",
            f"Re-run with --approve to drop '{table}'",
            EXIT_USAGE_ERROR,
        )

    try:
        logger.info(f"Dropping table '{table}'")
        drop_table(table, region, profile, endpoint_url)
    except TableNotFoundError as e:
        fail(ctx, text, str(e), "Check the table name and region", EXIT_NOT_FOUND)
    except (ClientError, BotoCoreError) as e:
        fail(ctx, text, str(e), "Check AWS credentials and permissions", EXIT_BACKEND_ERROR)

    if text:
        output_text(f"✅ Table '{table}' dropped")
    else:
        output_json({"table": table, "status": "DELETING"})
