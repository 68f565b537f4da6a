"""Selection of VRAM profiles, optional steps and model preferences."""

from typing import Iterable

from easyinstaller.manifests import ModelEntry, OptionalStep, VramProfile

# Preference expressions that defer to the selected VRAM profile
PROFILE_PREFERENCE_REFERENCES = frozenset({"vramprofile.ggufpreference", "profile"})


def select_vram_profile(
    profiles: Iterable[VramProfile], requested_id: str | None = None
) -> VramProfile | None:
    """Pick the VRAM profile for a run.

    The requested id is matched case-insensitively. When nothing is requested
    or the id is unknown, the first listed profile wins. Returns None only
    when the manifest lists no profiles.
    """
    profiles = tuple(profiles)
    if not profiles:
        return None

    if requested_id and requested_id.strip():
        wanted = requested_id.strip().casefold()
        for profile in profiles:
            if profile.id.casefold() == wanted:
                return profile

    return profiles[0]


def select_optional_steps(
    steps: Iterable[OptionalStep], enabled_ids: Iterable[str] | None = None
) -> list[OptionalStep]:
    """Return the optional steps that should run, in manifest order.

    An explicit, non-empty ``enabled_ids`` selects exactly those steps
    (case-insensitive; unknown ids are ignored). Otherwise every step
    flagged ``enabled_by_default`` is selected.
    """
    steps = list(steps)
    wanted = {step_id.casefold() for step_id in (enabled_ids or ()) if step_id.strip()}

    if not wanted:
        return [step for step in steps if step.enabled_by_default]

    return [step for step in steps if step.id.casefold() in wanted]


def resolve_model_preference(
    model: ModelEntry, profile: VramProfile | None
) -> list[str]:
    """Resolve a model's preference expression into an ordered token list.

    ``vramProfile.ggufPreference`` (or ``profile``) refers to the selected
    profile's GGUF preference; anything else is read as a literal
    comma-separated list.
    """
    expression = (model.prefer_expression or "").strip()
    if not expression:
        return []

    if expression.casefold() in PROFILE_PREFERENCE_REFERENCES:
        return list(profile.gguf_preference) if profile else []

    return [token.strip() for token in expression.split(",") if token.strip()]


def rank_by_preference(candidates: Iterable[str], preference: Iterable[str]) -> list[str]:
    """Order candidate file names by the first preference token they contain.

    Matching is case-insensitive. Candidates that match no token keep their
    original relative order after all matched ones.

    Examples:
        >>> rank_by_preference(["m-Q8_0.gguf", "m-Q4_K_M.gguf"], ["Q4_K_M", "Q8_0"])
        ['m-Q4_K_M.gguf', 'm-Q8_0.gguf']
    """
    tokens = [token.casefold() for token in preference]
    candidates = list(candidates)

    def rank(indexed: tuple[int, str]) -> tuple[int, int]:
        index, name = indexed
        folded = name.casefold()
        for position, token in enumerate(tokens):
            if token in folded:
                return position, index
        return len(tokens), index

    return [name for _, name in sorted(enumerate(candidates), key=rank)]


__all__ = [
    "PROFILE_PREFERENCE_REFERENCES",
    "select_vram_profile",
    "select_optional_steps",
    "resolve_model_preference",
    "rank_by_preference",
]
