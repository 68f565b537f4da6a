"""Data models for install manifests."""

from dataclasses import dataclass, field
from pathlib import Path


def _require_text(value: object, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")


@dataclass(frozen=True)
class BaseSoftware:
    name: str
    target: str
    repository_url: str | None = None
    ref: str | None = None

    def __post_init__(self):
        _require_text(self.target, "baseSoftware.target")
        has_name = isinstance(self.name, str) and bool(self.name.strip())
        has_url = isinstance(self.repository_url, str) and bool(self.repository_url.strip())
        if not (has_name or has_url):
            raise ValueError("baseSoftware needs a name or a repositoryUrl")


@dataclass(frozen=True)
class PipRequirement:
    path: str
    relative_to: str | None = None

    def __post_init__(self):
        _require_text(self.path, "pipRequirements.path")


@dataclass(frozen=True)
class DependencySection:
    python: str | None = None
    cuda: str | None = None
    pip_requirements: tuple[PipRequirement, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.python or self.cuda or self.pip_requirements)


@dataclass(frozen=True)
class VramProfile:
    """A named preset of model preferences for a GPU memory size."""

    id: str
    label: str
    gguf_preference: tuple[str, ...] = ()
    mixed_basic_resolution: str | None = None

    def __post_init__(self):
        _require_text(self.id, "vramProfiles.id")
        _require_text(self.label, "vramProfiles.label")


@dataclass(frozen=True)
class ModelEntry:
    name: str
    target: str
    source: str = ""
    repository: str | None = None
    url: str | None = None
    match: str | None = None
    prefer_expression: str | None = None

    def __post_init__(self):
        _require_text(self.name, "models.name")
        _require_text(self.target, "models.target")


@dataclass(frozen=True)
class ExtensionEntry:
    name: str
    repository: str
    target: str

    def __post_init__(self):
        _require_text(self.name, "extensions.name")
        _require_text(self.repository, "extensions.repository")
        _require_text(self.target, "extensions.target")


@dataclass(frozen=True)
class OptionalStep:
    id: str
    description: str
    shell: str
    working_directory: str | None = None
    enabled_by_default: bool = True

    def __post_init__(self):
        _require_text(self.id, "optionalSteps.id")
        _require_text(self.description, "optionalSteps.description")
        _require_text(self.shell, "optionalSteps.shell")


@dataclass(frozen=True)
class InstallManifest:
    """Declarative description of one installable application.

    Collection fields are always tuples (never None) so callers can iterate
    without checking.
    """

    schema_version: str
    id: str
    title: str
    base_software: BaseSoftware
    description: str | None = None
    dependencies: DependencySection = field(default_factory=DependencySection)
    vram_profiles: tuple[VramProfile, ...] = ()
    models: tuple[ModelEntry, ...] = ()
    extensions: tuple[ExtensionEntry, ...] = ()
    optional_steps: tuple[OptionalStep, ...] = ()

    def __post_init__(self):
        _require_text(self.schema_version, "schemaVersion")
        _require_text(self.id, "id")
        _require_text(self.title, "title")
        if not isinstance(self.base_software, BaseSoftware):
            raise ValueError("baseSoftware must be a BaseSoftware instance")


@dataclass(frozen=True)
class ManifestDescriptor:
    """A validated manifest together with the file it was read from."""

    file_path: Path
    manifest: InstallManifest

    @property
    def id(self) -> str:
        return self.manifest.id

    @property
    def display_name(self) -> str:
        return self.manifest.title

    def __str__(self) -> str:
        return self.display_name


__all__ = [
    "BaseSoftware",
    "PipRequirement",
    "DependencySection",
    "VramProfile",
    "ModelEntry",
    "ExtensionEntry",
    "OptionalStep",
    "InstallManifest",
    "ManifestDescriptor",
]
