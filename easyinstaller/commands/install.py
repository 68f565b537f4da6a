"""Install command implementation."""

import asyncio
import contextlib
import logging
import signal
import sys

import click

from easyinstaller import setup_logging
from easyinstaller.config import ConfigError
from easyinstaller.errors import format_error, format_suggestion
from easyinstaller.execution import STEP_TIMEOUT, ShellStepRunner
from easyinstaller.installer import (
    CancellationToken,
    InstallerEngine,
    InstallProgress,
    InstallRequest,
    Plan,
    plan_install,
    render_plan,
)
from easyinstaller.logsinks import CompositeLogSink, LoggingSink
from easyinstaller.settings import save_settings
from easyinstaller.tui import (
    select_optional_steps_interactive,
    select_vram_profile_interactive,
)

from .utils import (
    EchoLogSink,
    default_install_root,
    load_settings_or_default,
    require_manifest,
)

_logging = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_CANCELLED = 130


def confirm_installation(plan: Plan, skip_confirmation: bool = False) -> bool:
    if skip_confirmation:
        return True

    click.echo("")
    click.echo("=" * 60)
    click.echo(render_plan(plan))
    click.echo("=" * 60)

    return click.confirm("\nContinue with installation?", default=False)


class StageProgressPrinter:
    """Prints one line whenever the run enters a new stage."""

    def __init__(self):
        self._current_stage: str | None = None

    def __call__(self, update: InstallProgress) -> None:
        if update.stage_name == self._current_stage:
            return
        self._current_stage = update.stage_name
        click.echo(f"[{update.percent:5.1f}%] {update.stage_name}")


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
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Install log path (default: <root>/install-<timestamp>.log)",
)
@click.option(
    "--run-steps",
    is_flag=True,
    help="Execute selected optional steps instead of only logging them",
)
@click.option(
    "--timeout",
    "-t",
    default=STEP_TIMEOUT,
    help="Timeout per optional step in seconds (default: 600)",
)
@click.option(
    "--interactive", "-i", is_flag=True, help="Choose profile and steps interactively"
)
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def install(
    ctx,
    manifest_id: str,
    manifests_dir,
    install_root,
    vram_profile,
    step_ids,
    log_file,
    run_steps: bool,
    timeout: int,
    interactive: bool,
    yes: bool,
):
    """Install the application described by a manifest."""
    debug = ctx.obj.get("debug", False)
    try:
        exit_code = asyncio.run(
            run_install(
                manifest_id,
                manifests_dir=manifests_dir,
                install_root=install_root,
                vram_profile=vram_profile,
                step_ids=list(step_ids),
                log_file=log_file,
                run_steps=run_steps,
                timeout=timeout,
                interactive=interactive,
                yes=yes,
                debug=debug,
            )
        )
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_FAILED)

    if exit_code:
        sys.exit(exit_code)


async def run_install(
    manifest_id: str,
    manifests_dir: str | None = None,
    install_root: str | None = None,
    vram_profile: str | None = None,
    step_ids: list[str] | None = None,
    log_file: str | None = None,
    run_steps: bool = False,
    timeout: int = STEP_TIMEOUT,
    interactive: bool = False,
    yes: bool = False,
    debug: bool = False,
) -> int:
    setup_logging(debug)
    settings = load_settings_or_default()
    descriptor = require_manifest(manifests_dir, manifest_id)
    root = install_root or default_install_root(descriptor, settings)

    if interactive:
        try:
            vram_profile = select_vram_profile_interactive(
                descriptor.manifest, vram_profile
            )
            if descriptor.manifest.vram_profiles and vram_profile is None:
                click.echo("Installation cancelled.")
                return EXIT_CANCELLED

            selected_steps = select_optional_steps_interactive(
                descriptor.manifest, step_ids
            )
            if selected_steps is None:
                click.echo("Installation cancelled.")
                return EXIT_CANCELLED
            if descriptor.manifest.optional_steps and not selected_steps:
                manifest_steps = descriptor.manifest.optional_steps
                if run_steps and any(s.enabled_by_default for s in manifest_steps):
                    click.echo(
                        format_suggestion(
                            "no optional steps selected, but --run-steps would run the defaults",
                            "select the steps to run or drop --run-steps",
                        ),
                        err=True,
                    )
                    return EXIT_FAILED
                click.echo("No optional steps selected; manifest defaults apply.")
            step_ids = selected_steps
        except RuntimeError as e:
            click.echo(format_error(str(e)), err=True)
            return EXIT_FAILED

    try:
        request = InstallRequest.create(
            descriptor,
            root,
            selected_vram_profile_id=vram_profile,
            enabled_optional_step_ids=step_ids or None,
            log_file_path=log_file,
        )
    except ValueError as e:
        click.echo(format_error(str(e)), err=True)
        return EXIT_FAILED

    if not confirm_installation(plan_install(request), skip_confirmation=yes):
        click.echo("Installation cancelled.")
        return EXIT_CANCELLED

    step_runner = ShellStepRunner(timeout=timeout, debug=debug) if run_steps else None
    engine = InstallerEngine(step_runner=step_runner)

    sink = CompositeLogSink(EchoLogSink(show_verbose=debug))
    if debug:
        sink = sink.with_sink(LoggingSink())

    cancellation = CancellationToken()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, cancellation.cancel)
    try:
        # The engine runs on its own worker thread so Ctrl+C only flips the token.
        result = await asyncio.to_thread(
            engine.install, request, StageProgressPrinter(), sink, cancellation
        )
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    settings.last_install_directory = str(request.install_root)
    settings.last_manifest_id = descriptor.id
    try:
        save_settings(settings)
    except OSError as e:
        _logging.warning(f"Unable to save settings: {e}")

    seconds = result.duration.total_seconds()
    if result.success:
        click.echo(f"✅ {descriptor.manifest.title} installed in {seconds:.1f}s")
        if result.log_file_path:
            click.echo(f"Log file: {result.log_file_path}")
        return 0

    if result.cancelled:
        click.echo(f"⚠️  Installation cancelled after {seconds:.1f}s")
        return EXIT_CANCELLED

    click.echo(f"❌ Installation failed: {result.error}", err=True)
    if result.log_file_path:
        click.echo(f"Log file: {result.log_file_path}", err=True)
    return EXIT_FAILED
