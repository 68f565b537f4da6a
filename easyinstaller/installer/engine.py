"""Runs an install request through the stage pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

from easyinstaller.errors import InstallCancelled
from easyinstaller.logsinks import CompositeLogSink, FileLogSink, LogSink

from .cancellation import CancellationToken
from .context import InstallContext
from .models import InstallProgress, InstallRequest, InstallResult
from .stages import StageProgress, StepRunner, build_stages

_logging = logging.getLogger(__name__)

ProgressCallback = Callable[[InstallProgress], None]


def default_log_file_path(install_root: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return Path(install_root) / f"install-{stamp}.log"


class _ProgressReporter:
    """Forwards progress updates, never letting the percentage go backwards.

    A failing callback is logged and otherwise ignored.
    """

    def __init__(self, callback: ProgressCallback | None):
        self._callback = callback
        self._last_percent = 0.0

    def __call__(self, update: InstallProgress) -> None:
        if update.percent < self._last_percent:
            update = replace(update, percent=self._last_percent)
        self._last_percent = update.percent

        if self._callback is None:
            return
        try:
            self._callback(update)
        except Exception:
            _logging.warning("Progress callback raised an exception", exc_info=True)


class InstallerEngine:
    """Executes install requests.

    The engine prepares directories and records what each manifest section
    asks for. Optional steps are only carried out when a ``step_runner`` is
    supplied.
    """

    def __init__(self, step_runner: StepRunner | None = None):
        self.step_runner = step_runner

    async def install_async(
        self,
        request: InstallRequest,
        progress: ProgressCallback | None,
        log_sink: LogSink,
        cancellation: CancellationToken | None = None,
    ) -> InstallResult:
        """Run ``request`` to completion and return its terminal result.

        Cancellation and stage failures are reported through the result,
        never raised.
        """
        if request is None:
            raise ValueError("request is required")
        if log_sink is None:
            raise ValueError("log_sink is required")

        cancellation = cancellation or CancellationToken()
        started = time.monotonic()

        log_file_path: Path | None = request.log_file_path
        file_sink: FileLogSink | None = None
        sink: LogSink = CompositeLogSink(log_sink)
        try:
            if log_file_path is None:
                request.install_root.mkdir(parents=True, exist_ok=True)
                log_file_path = default_log_file_path(request.install_root)
            file_sink = FileLogSink(log_file_path)
            sink = CompositeLogSink(log_sink, file_sink)
        except (OSError, ValueError) as e:
            sink.warn("Unable to create log file at %s: %s", log_file_path, e)
            log_file_path = None

        reporter = _ProgressReporter(progress)
        try:
            context = InstallContext(request, sink)
            sink.info("Starting install for %s", request.manifest.title)
            sink.verbose("Install root: %s", context.root_directory)

            stages = build_stages(self.step_runner)
            for index, stage in enumerate(stages):
                cancellation.raise_if_cancelled()
                _logging.debug("Starting stage %s", stage.name)

                stage_progress = StageProgress(stage, index, len(stages), reporter)
                stage_progress.report(0, is_indeterminate=stage.is_indeterminate)
                await stage.run(context, stage_progress, cancellation)
                stage_progress.report(100)

            sink.info("Installation completed successfully.")
            return InstallResult.succeeded(_elapsed(started), log_file_path)
        except InstallCancelled:
            sink.warn("Installation cancelled.")
            return InstallResult.cancelled_result(_elapsed(started), log_file_path)
        except Exception as e:
            sink.error("Installation failed: %s", e)
            sink.verbose("%s", traceback.format_exc().rstrip())
            return InstallResult.failed_result(_elapsed(started), e, log_file_path)
        finally:
            if file_sink is not None:
                file_sink.close()

    def install(
        self,
        request: InstallRequest,
        progress: ProgressCallback | None,
        log_sink: LogSink,
        cancellation: CancellationToken | None = None,
    ) -> InstallResult:
        return asyncio.run(
            self.install_async(request, progress, log_sink, cancellation)
        )


def _elapsed(started: float) -> timedelta:
    return timedelta(seconds=time.monotonic() - started)


__all__ = [
    "ProgressCallback",
    "InstallerEngine",
    "default_log_file_path",
]
