"""Watch command implementation."""

import click

from easyinstaller import setup_logging
from easyinstaller.manifests import POLL_INTERVAL_S, ManifestProvider, ManifestsChanged

from .utils import format_manifest_line, open_provider


def _print_manifests(provider: ManifestProvider) -> None:
    descriptors = provider.load()
    if not descriptors:
        click.echo(f"No manifests found in {provider.directory}.")
    for descriptor in descriptors:
        click.echo(format_manifest_line(descriptor))


def _describe_change(event: ManifestsChanged) -> str:
    parts = []
    if event.added:
        parts.append(f"added {', '.join(event.added)}")
    if event.removed:
        parts.append(f"removed {', '.join(event.removed)}")
    if event.modified:
        parts.append(f"modified {', '.join(event.modified)}")
    return "; ".join(parts)


@click.command()
@click.option(
    "--manifests",
    "-m",
    "manifests_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Manifest directory (default: ~/.config/easyinstaller/manifests)",
)
@click.option(
    "--interval",
    type=float,
    default=POLL_INTERVAL_S,
    help="Polling interval in seconds (default: 1.0)",
)
@click.pass_context
def watch(ctx, manifests_dir: str | None, interval: float):
    """Print the manifest list and reprint it whenever it changes."""
    setup_logging(ctx.obj.get("debug", False))

    with open_provider(manifests_dir, interval) as provider:
        click.echo(f"Watching {provider.directory} (Ctrl+C to stop)")
        _print_manifests(provider)

        subscription = provider.watch()
        try:
            for event in subscription:
                click.echo("")
                click.echo(f"Manifests changed: {_describe_change(event)}")
                _print_manifests(provider)
        except KeyboardInterrupt:
            click.echo("")
        finally:
            subscription.close()
