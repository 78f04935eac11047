"""EntityForge CLI entry point."""

import click


@click.group()
def cli():
    """EntityForge entity schema service CLI."""
    pass


# Register subcommands
from entityforge.cli.operations_cmd import operations  # noqa: E402
from entityforge.cli.server_cmd import serve, token  # noqa: E402

cli.add_command(operations)
cli.add_command(serve)
cli.add_command(token)
