"""Show command implementation."""

import sys

import click

from easyinstaller import setup_logging
from easyinstaller.errors import format_error
from easyinstaller.installer import InstallRequest, plan_install, render_plan

from .utils import default_install_root, load_settings_or_default, require_manifest


@click.command()
@click.argument("manifest_id")
@click.option(
    "--manifests",
    "-m",
    "manifests_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Manifest directory (default: ~/.config/easyinstaller/manifests)",
)
@click.option(
    "--root",
    "-r",
    "install_root",
    type=click.Path(file_okay=False),
    default=None,
    help="Install root (default: last used directory)",
)
@click.option("--vram-profile", "-p", default=None, help="VRAM profile id")
@click.option(
    "--step",
    "-s",
    "step_ids",
    multiple=True,
    help="Optional step id to run (repeatable; default: manifest defaults)",
)
@click.pass_context
def show(ctx, manifest_id: str, manifests_dir, install_root, vram_profile, step_ids):
    """Show the install plan for a manifest."""
    setup_logging(ctx.obj.get("debug", False))

    descriptor = require_manifest(manifests_dir, manifest_id)
    root = install_root or default_install_root(descriptor, load_settings_or_default())

    try:
        request = InstallRequest.create(
            descriptor,
            root,
            selected_vram_profile_id=vram_profile,
            enabled_optional_step_ids=step_ids or None,
        )
    except ValueError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    if descriptor.manifest.description:
        click.echo(descriptor.manifest.description)
        click.echo("")
    click.echo(render_plan(plan_install(request)))
