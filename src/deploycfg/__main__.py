import click

from deploycfg.interfaces.cli.resolve import resolve
from deploycfg.interfaces.cli.validate import validate


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """deploycfg CLI"""
    # Show help when no subcommand is provided
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(validate)
cli.add_command(resolve)


if __name__ == "__main__":
    cli()
