"""Shared utility functions for commands."""

import logging
import sys
from pathlib import Path

import click

from easyinstaller.config import ConfigError
from easyinstaller.errors import format_suggestion
from easyinstaller.logsinks import LogLevel, LogSink
from easyinstaller.manifests import POLL_INTERVAL_S, ManifestDescriptor, ManifestProvider
from easyinstaller.paths import get_manifests_dir
from easyinstaller.settings import UserSettings, load_settings

_logging = logging.getLogger(__name__)

_LEVEL_COLORS = {
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}


def open_provider(
    manifests_dir: str | None, poll_interval: float = POLL_INTERVAL_S
) -> ManifestProvider:
    """Create a provider for ``--manifests`` or the configured default directory."""
    return ManifestProvider(manifests_dir or get_manifests_dir(), poll_interval)


def filter_manifest_by_id(
    descriptors: list[ManifestDescriptor], manifest_id: str
) -> list[ManifestDescriptor]:
    """Filter descriptors by id (case-insensitive), returning empty list if not found.

    Args:
        descriptors: Loaded manifest descriptors
        manifest_id: Manifest id to match

    Returns:
        List of matching descriptors, or empty list
    """
    wanted = manifest_id.casefold()
    return [d for d in descriptors if d.id.casefold() == wanted]


def format_manifest_line(descriptor: ManifestDescriptor) -> str:
    return f"{descriptor.id}: {descriptor.manifest.title} ({descriptor.file_path.name})"


class EchoLogSink(LogSink):
    """Writes install log lines to the terminal.

    Verbose lines are only shown when ``show_verbose`` is set; warnings and
    errors go to stderr.
    """

    def __init__(self, show_verbose: bool = False):
        self.show_verbose = show_verbose

    def log(self, level: LogLevel, text: str) -> None:
        if level is LogLevel.VERBOSE and not self.show_verbose:
            return
        color = _LEVEL_COLORS.get(level)
        err = level in _LEVEL_COLORS
        if color:
            click.secho(f"{level.name}: {text}", fg=color, err=err)
        else:
            click.echo(text)


def load_settings_or_default() -> UserSettings:
    try:
        return load_settings()
    except ConfigError as e:
        _logging.warning("Ignoring settings: %s", e)
        return UserSettings()


def require_manifest(manifests_dir: str | None, manifest_id: str) -> ManifestDescriptor:
    """Load the manifest with ``manifest_id`` or exit with an error."""
    with open_provider(manifests_dir) as provider:
        matches = filter_manifest_by_id(provider.load(), manifest_id)

    if not matches:
        click.echo(
            format_suggestion(
                f"manifest '{manifest_id}' not found",
                "run 'easyinstaller list' to see available manifests",
            ),
            err=True,
        )
        sys.exit(1)
    return matches[0]


def default_install_root(descriptor: ManifestDescriptor, settings: UserSettings) -> Path:
    if settings.last_install_directory:
        return Path(settings.last_install_directory)
    return Path.cwd() / descriptor.id
