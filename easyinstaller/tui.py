"""Interactive prompts for choosing a VRAM profile and optional steps.

All prompts use questionary and require a TTY; callers fall back to the
command-line options when stdin is not interactive.
"""

import sys

import questionary

from easyinstaller.installer import select_optional_steps, select_vram_profile
from easyinstaller.manifests import InstallManifest, OptionalStep, VramProfile


def format_vram_profile_choice(profile: VramProfile) -> str:
    """Format a VRAM profile label for select display.

    Examples:
        >>> format_vram_profile_choice(VramProfile(id="8gb", label="8 GB"))
        '8 GB  (8gb)'
    """
    label = f"{profile.label}  ({profile.id})"
    if profile.gguf_preference:
        label += f"  prefers {', '.join(profile.gguf_preference)}"
    return label


def format_step_choice(step: OptionalStep) -> str:
    return f"{step.description}  ({step.id})"


def _require_tty(what: str) -> None:
    if not sys.stdin.isatty():
        raise RuntimeError(f"Interactive {what} requires a TTY")


def select_vram_profile_interactive(
    manifest: InstallManifest, default_id: str | None = None
) -> str | None:
    """Ask which VRAM profile to use.

    Returns:
        The chosen profile id, or None if the manifest has no profiles or
        the user cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("VRAM profile selector")

    if not manifest.vram_profiles:
        return None

    default = select_vram_profile(manifest.vram_profiles, default_id)
    choices = [
        questionary.Choice(title=format_vram_profile_choice(p), value=p.id)
        for p in manifest.vram_profiles
    ]

    try:
        selected = questionary.select(
            "Select a VRAM profile:",
            choices=choices,
            default=default.id if default else None,
        ).ask()
    except KeyboardInterrupt:
        return None

    return selected


def select_optional_steps_interactive(
    manifest: InstallManifest, preselected_ids: list[str] | None = None
) -> list[str] | None:
    """Checkbox of optional steps, pre-checked from defaults or ``preselected_ids``.

    Returns an empty list when the manifest has no optional steps and None
    when the user cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("optional step selector")

    if not manifest.optional_steps:
        return []

    checked = {s.id for s in select_optional_steps(manifest.optional_steps, preselected_ids)}
    choices = [
        questionary.Choice(
            title=format_step_choice(step), value=step.id, checked=step.id in checked
        )
        for step in manifest.optional_steps
    ]

    try:
        selected = questionary.checkbox(
            "Select optional steps to run:",
            choices=choices,
            instruction="Space to toggle, Enter to confirm",
        ).ask()
    except KeyboardInterrupt:
        return None

    return selected


__all__ = [
    "format_vram_profile_choice",
    "format_step_choice",
    "select_vram_profile_interactive",
    "select_optional_steps_interactive",
]
