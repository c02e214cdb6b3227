"""CLI entry point for aws-coordination-tool."""

import click

from aws_coordination_tool import __version__
from aws_coordination_tool.coordination.commands.cache_commands import (
    cache_delete_command,
    cache_get_command,
    cache_set_command,
)
from aws_coordination_tool.coordination.commands.idempotency_commands import (
    idempotency_get_command,
)
from aws_coordination_tool.coordination.commands.lock_commands import (
    lock_acquire_command,
    lock_check_command,
    lock_extend_command,
    lock_release_command,
)
from aws_coordination_tool.coordination.commands.quota_commands import (
    quota_check_command,
    quota_reset_command,
    quota_usage_command,
)
from aws_coordination_tool.coordination.commands.table_commands import (
    create_table_command,
    drop_table_command,
)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Cross-process coordination primitives backed by DynamoDB"""
    pass


@main.group("coord")
def coord() -> None:
    """Locks, idempotency records, usage quotas and a shared cache"""
    pass


# Register table commands
coord.add_command(create_table_command)
coord.add_command(drop_table_command)

# Register lock commands
coord.add_command(lock_acquire_command)
coord.add_command(lock_release_command)
coord.add_command(lock_extend_command)
coord.add_command(lock_check_command)

# Register cache commands
coord.add_command(cache_set_command)
coord.add_command(cache_get_command)
coord.add_command(cache_delete_command)

# Register quota commands
coord.add_command(quota_check_command)
coord.add_command(quota_usage_command)
coord.add_command(quota_reset_command)

# Register idempotency commands
coord.add_command(idempotency_get_command)

if __name__ == "__main__":
    main()
