"""Manifest-driven installer for AI application stacks."""

import logging

from easyinstaller.config import ConfigError, load_document
from easyinstaller.errors import (
    InstallCancelled,
    InstallerError,
    ManifestValidationError,
    PathEscapeError,
    StepExecutionError,
    format_error,
    format_field_error,
    format_suggestion,
)
from easyinstaller.execution import (
    DEFAULT_TIMEOUT,
    STEP_TIMEOUT,
    ShellStepRunner,
    run_command_async,
)
from easyinstaller.installer import (
    CancellationToken,
    InstallerEngine,
    InstallProgress,
    InstallRequest,
    InstallResult,
    InstallStatus,
)
from easyinstaller.logsinks import (
    BufferingLogSink,
    CompositeLogSink,
    FileLogSink,
    LoggingSink,
    LogLevel,
    LogMessage,
    LogSink,
)
from easyinstaller.manifests import (
    InstallManifest,
    ManifestDescriptor,
    ManifestProvider,
    ManifestsChanged,
    load_manifest_file,
)
from easyinstaller.paths import get_config_dir, get_manifests_dir, get_settings_path

__version__ = "0.1.0"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging once per process; DEBUG with ``--debug``."""
    level = logging.DEBUG if debug else logging.WARNING
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root.setLevel(level)


__all__ = [
    "__version__",
    "setup_logging",
    "ConfigError",
    "load_document",
    "ManifestValidationError",
    "InstallerError",
    "PathEscapeError",
    "InstallCancelled",
    "StepExecutionError",
    "format_error",
    "format_field_error",
    "format_suggestion",
    "DEFAULT_TIMEOUT",
    "STEP_TIMEOUT",
    "run_command_async",
    "ShellStepRunner",
    "CancellationToken",
    "InstallerEngine",
    "InstallProgress",
    "InstallRequest",
    "InstallResult",
    "InstallStatus",
    "LogLevel",
    "LogMessage",
    "LogSink",
    "BufferingLogSink",
    "FileLogSink",
    "CompositeLogSink",
    "LoggingSink",
    "InstallManifest",
    "ManifestDescriptor",
    "ManifestProvider",
    "ManifestsChanged",
    "load_manifest_file",
    "get_config_dir",
    "get_manifests_dir",
    "get_settings_path",
]
