"""Operation table command."""

import json

import click

from entityforge.entities import EntityResolver, InMemoryEntityService, InMemoryUserService


@click.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the table as JSON.")
def operations(as_json: bool):
    """List entity operations with their authorization declarations."""
    resolver = EntityResolver(InMemoryEntityService(), InMemoryUserService())
    descriptors = sorted(resolver.operations(), key=lambda op: op.name)

    if as_json:
        click.echo(json.dumps([op.to_dict() for op in descriptors], indent=2))
        return

    for op in descriptors:
        authorize = (
            f"{op.authorize.resource.value} at {op.authorize.path}" if op.authorize else "-"
        )
        line = f"{op.name:34} {op.kind.value:9} {op.action.value:7} {authorize}"
        for value in op.inject:
            line += f"  [inject {value.parameter.value} at {value.path}]"
        click.echo(line)

    click.echo(f"\n{len(descriptors)} operation(s)")
