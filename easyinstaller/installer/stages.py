"""The fixed install pipeline.

A run always walks the same six stages in order. Stages whose manifest
section is empty still run and finish immediately, so the overall progress
math never depends on manifest content.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Protocol

from easyinstaller.logsinks import LogSink
from easyinstaller.manifests import OptionalStep

from .cancellation import CancellationToken
from .context import InstallContext
from .models import InstallProgress
from .resolution import resolve_model_preference

INSTALLER_INFO_FILE = "INSTALLER_INFO.txt"


class StageKind(Enum):
    PREPARE = "Prepare"
    BASE_SOFTWARE = "Base software"
    DEPENDENCIES = "Dependencies"
    MODELS = "Models"
    EXTENSIONS = "Extensions"
    OPTIONAL_STEPS = "Optional steps"


class StepRunner(Protocol):
    """Collaborator that actually carries out an optional step."""

    async def run_step(
        self, step: OptionalStep, working_directory: Path, log: LogSink
    ) -> None:
        ...


StageFunc = Callable[
    [InstallContext, "StageProgress", CancellationToken], Awaitable[None]
]


@dataclass(frozen=True)
class Stage:
    kind: StageKind
    run: StageFunc
    is_indeterminate: bool = False

    @property
    def name(self) -> str:
        return self.kind.value


class StageProgress:
    """Maps a stage's local 0-100 progress onto the run-wide percentage.

    Each of ``total`` stages owns an equal ``100 / total`` slice; stage
    ``index`` starts at ``index / total * 100``.
    """

    def __init__(
        self,
        stage: Stage,
        index: int,
        total: int,
        reporter: Callable[[InstallProgress], None],
    ):
        self.stage = stage
        self.index = index
        self.total = total
        self._reporter = reporter

    def overall_percent(self, local_percent: float) -> float:
        local = min(max(local_percent, 0.0), 100.0)
        return self.index / self.total * 100 + local / 100 * (100 / self.total)

    def report(self, local_percent: float, is_indeterminate: bool = False) -> None:
        self._reporter(
            InstallProgress(
                stage_name=self.stage.name,
                percent=self.overall_percent(local_percent),
                is_indeterminate=is_indeterminate,
            )
        )

    def report_items(self, completed: int, total: int) -> None:
        self.report(completed / total * 100 if total else 100)


async def prepare(
    context: InstallContext, progress: StageProgress, cancellation: CancellationToken
) -> None:
    progress.report(5, is_indeterminate=True)
    context.log.info("Preparing installation directories...")

    target = context.combine_with_root(context.request.manifest.base_software.target)
    target.mkdir(parents=True, exist_ok=True)
    context.log.verbose("Ensured base software directory: %s", target)


async def install_base_software(
    context: InstallContext, progress: StageProgress, cancellation: CancellationToken
) -> None:
    base = context.request.manifest.base_software
    progress.report(5)

    display_name = base.name or base.repository_url
    if base.repository_url:
        context.log.info(
            "Fetching base software %s from %s", display_name, base.repository_url
        )
        if base.ref:
            context.log.verbose("Requested ref: %s", base.ref)
    else:
        context.log.info("Setting up base software %s", display_name)

    target = context.combine_with_root(base.target)
    target.mkdir(parents=True, exist_ok=True)
    context.log.verbose("Base software target directory prepared at %s", target)

    info_file = target / INSTALLER_INFO_FILE
    info_file.write_text(
        f"Source: {base.repository_url or base.name}\n"
        f"Reference: {base.ref or 'default'}\n"
        f"Generated: {datetime.now().astimezone().isoformat(timespec='seconds')}\n",
        encoding="utf-8",
    )


async def resolve_dependencies(
    context: InstallContext, progress: StageProgress, cancellation: CancellationToken
) -> None:
    dependencies = context.request.manifest.dependencies
    if dependencies.is_empty:
        return

    if dependencies.python:
        context.log.info("Ensuring Python %s is available", dependencies.python)
    if dependencies.cuda:
        context.log.info("Checking CUDA %s", dependencies.cuda)

    requirements = dependencies.pip_requirements
    for index, requirement in enumerate(requirements, start=1):
        cancellation.raise_if_cancelled()
        resolved = context.resolve_path(requirement.relative_to, requirement.path)
        context.log.info("Pip requirements: %s", resolved)
        progress.report_items(index, len(requirements))


async def prepare_models(
    context: InstallContext, progress: StageProgress, cancellation: CancellationToken
) -> None:
    models = context.request.manifest.models
    if not models:
        return

    profile = context.selected_vram_profile
    if profile is not None and any(model.prefer_expression for model in models):
        context.log.info("VRAM profile '%s' selected for models.", profile.label)

    for index, model in enumerate(models, start=1):
        cancellation.raise_if_cancelled()
        target = context.combine_with_root(model.target)
        target.mkdir(parents=True, exist_ok=True)

        context.log.info("Preparing model %s", model.name)
        context.log.verbose(
            "Source: %s (%s)",
            model.source or "n/a",
            model.repository or model.url or model.match or "n/a",
        )
        context.log.verbose("Target directory: %s", target)

        preference = resolve_model_preference(model, profile)
        if preference:
            context.log.verbose("Preference order: %s", ", ".join(preference))

        progress.report_items(index, len(models))


async def install_extensions(
    context: InstallContext, progress: StageProgress, cancellation: CancellationToken
) -> None:
    extensions = context.request.manifest.extensions
    for index, extension in enumerate(extensions, start=1):
        cancellation.raise_if_cancelled()
        target = context.combine_with_root(extension.target)
        target.mkdir(parents=True, exist_ok=True)

        context.log.info("Installing extension %s", extension.name)
        context.log.verbose("Source repository: %s", extension.repository)
        context.log.verbose("Target directory: %s", target)
        progress.report_items(index, len(extensions))


async def run_optional_steps(
    context: InstallContext,
    progress: StageProgress,
    cancellation: CancellationToken,
    step_runner: StepRunner | None = None,
) -> None:
    """Log each selected optional step and hand it to ``step_runner``, if any."""
    if not context.request.manifest.optional_steps:
        return

    steps = context.selected_optional_steps
    if not steps:
        context.log.info("No optional steps selected.")
        return

    for index, step in enumerate(steps, start=1):
        cancellation.raise_if_cancelled()
        working_directory = context.combine_with_root(step.working_directory)

        context.log.info("Queued optional step: %s", step.description)
        context.log.verbose("Working directory: %s", working_directory)
        context.log.verbose("Shell command: %s", step.shell)

        if step_runner is not None:
            await step_runner.run_step(step, working_directory, context.log)

        progress.report_items(index, len(steps))


def build_stages(step_runner: StepRunner | None = None) -> list[Stage]:
    return [
        Stage(StageKind.PREPARE, prepare, is_indeterminate=True),
        Stage(StageKind.BASE_SOFTWARE, install_base_software),
        Stage(StageKind.DEPENDENCIES, resolve_dependencies),
        Stage(StageKind.MODELS, prepare_models),
        Stage(StageKind.EXTENSIONS, install_extensions),
        Stage(
            StageKind.OPTIONAL_STEPS,
            partial(run_optional_steps, step_runner=step_runner),
        ),
    ]


__all__ = [
    "INSTALLER_INFO_FILE",
    "StageKind",
    "StepRunner",
    "Stage",
    "StageProgress",
    "build_stages",
]
