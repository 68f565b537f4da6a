"""Install planning and rendering."""

from dataclasses import dataclass, field

from easyinstaller.manifests import VramProfile

from .models import InstallRequest
from .resolution import (
    resolve_model_preference,
    select_optional_steps,
    select_vram_profile,
)
from .stages import StageKind


@dataclass
class PlanStage:
    name: str
    items: list[str] = field(default_factory=list)


@dataclass
class Plan:
    manifest_title: str
    install_root: str
    vram_profile: VramProfile | None
    stages: list[PlanStage]
    selected_step_ids: list[str]

    @property
    def item_count(self) -> int:
        return sum(len(stage.items) for stage in self.stages)


def plan_install(request: InstallRequest) -> Plan:
    """Describe what a run of ``request`` would do, without touching disk."""
    manifest = request.manifest
    profile = select_vram_profile(manifest.vram_profiles, request.selected_vram_profile_id)
    steps = select_optional_steps(manifest.optional_steps, request.enabled_optional_step_ids)
    base = manifest.base_software

    source = base.repository_url or base.name
    if base.ref:
        source = f"{source} @ {base.ref}"

    dependency_items = []
    if manifest.dependencies.python:
        dependency_items.append(f"Python {manifest.dependencies.python}")
    if manifest.dependencies.cuda:
        dependency_items.append(f"CUDA {manifest.dependencies.cuda}")
    for requirement in manifest.dependencies.pip_requirements:
        anchor = requirement.relative_to or "<installRoot>"
        dependency_items.append(f"pip -r {requirement.path} (relative to {anchor})")

    model_items = []
    for model in manifest.models:
        line = f"{model.name} -> {model.target}"
        preference = resolve_model_preference(model, profile)
        if preference:
            line += f" [prefer {', '.join(preference)}]"
        model_items.append(line)

    return Plan(
        manifest_title=manifest.title,
        install_root=str(request.install_root),
        vram_profile=profile,
        stages=[
            PlanStage(StageKind.PREPARE.value, [f"Create {base.target}"]),
            PlanStage(StageKind.BASE_SOFTWARE.value, [f"{source} -> {base.target}"]),
            PlanStage(StageKind.DEPENDENCIES.value, dependency_items),
            PlanStage(StageKind.MODELS.value, model_items),
            PlanStage(
                StageKind.EXTENSIONS.value,
                [f"{ext.name} -> {ext.target}" for ext in manifest.extensions],
            ),
            PlanStage(
                StageKind.OPTIONAL_STEPS.value,
                [f"{step.id}: {step.description}" for step in steps],
            ),
        ],
        selected_step_ids=[step.id for step in steps],
    )


def render_plan(plan: Plan) -> str:
    lines = [f"Installation Plan: {plan.manifest_title}", ""]
    lines.append(f"Install root: {plan.install_root}")
    if plan.vram_profile is not None:
        lines.append(
            f"VRAM profile: {plan.vram_profile.label} ({plan.vram_profile.id})"
        )
    lines.append("")

    lines.append("Stages:")
    for i, stage in enumerate(plan.stages, 1):
        lines.append(f"  {i}. {stage.name}")
        if not stage.items:
            lines.append("     (nothing to do)")
        for item in stage.items:
            lines.append(f"     • {item}")

    return "\n".join(lines)


__all__ = [
    "PlanStage",
    "Plan",
    "plan_install",
    "render_plan",
]
