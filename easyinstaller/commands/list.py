"""List command implementation."""

import click

from easyinstaller import setup_logging

from .utils import format_manifest_line, open_provider


@click.command(name="list")
@click.option(
    "--manifests",
    "-m",
    "manifests_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Manifest directory (default: ~/.config/easyinstaller/manifests)",
)
@click.pass_context
def list_manifests(ctx, manifests_dir: str | None):
    """List all valid manifests."""
    setup_logging(ctx.obj.get("debug", False))

    with open_provider(manifests_dir) as provider:
        descriptors = provider.load()
        directory = provider.directory

    if not descriptors:
        click.echo(f"No manifests found in {directory}.")
        return

    for descriptor in descriptors:
        click.echo(format_manifest_line(descriptor))
