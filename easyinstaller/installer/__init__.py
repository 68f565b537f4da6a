"""Installer engine: request models, context, stages and planning."""

from .cancellation import CancellationToken
from .context import BASE_SOFTWARE_ALIAS, ROOT_ALIASES, InstallContext
from .engine import InstallerEngine, ProgressCallback, default_log_file_path
from .models import InstallProgress, InstallRequest, InstallResult, InstallStatus
from .planning import Plan, PlanStage, plan_install, render_plan
from .resolution import (
    rank_by_preference,
    resolve_model_preference,
    select_optional_steps,
    select_vram_profile,
)
from .stages import (
    INSTALLER_INFO_FILE,
    Stage,
    StageKind,
    StageProgress,
    StepRunner,
    build_stages,
)

__all__ = [
    "CancellationToken",
    "InstallContext",
    "ROOT_ALIASES",
    "BASE_SOFTWARE_ALIAS",
    "InstallerEngine",
    "ProgressCallback",
    "default_log_file_path",
    "InstallStatus",
    "InstallRequest",
    "InstallResult",
    "InstallProgress",
    "Plan",
    "PlanStage",
    "plan_install",
    "render_plan",
    "select_vram_profile",
    "select_optional_steps",
    "resolve_model_preference",
    "rank_by_preference",
    "INSTALLER_INFO_FILE",
    "StageKind",
    "Stage",
    "StageProgress",
    "StepRunner",
    "build_stages",
]
