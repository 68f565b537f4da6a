"""CLI command definitions for easyinstaller."""

import click

from easyinstaller import __version__
from easyinstaller.commands.install import install
from easyinstaller.commands.list import list_manifests as list_command
from easyinstaller.commands.show import show
from easyinstaller.commands.utils import EchoLogSink, filter_manifest_by_id
from easyinstaller.commands.watch import watch


@click.group()
@click.version_option(__version__, prog_name="easyinstaller")
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.pass_context
def cli(ctx, debug):
    """Install AI application stacks from declarative manifests."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


# Register all commands
cli.add_command(list_command, name="list")
cli.add_command(show)
cli.add_command(install)
cli.add_command(watch)

__all__ = [
    "cli",
    "EchoLogSink",
    "filter_manifest_by_id",
]


if __name__ == "__main__":
    cli()
