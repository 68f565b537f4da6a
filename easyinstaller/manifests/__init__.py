"""Install manifests: data model, loading and directory watching."""

from .loader import (
    load_manifest_file,
    normalize_manifest_data,
    parse_manifest,
    validate_manifest_schema,
)
from .models import (
    BaseSoftware,
    DependencySection,
    ExtensionEntry,
    InstallManifest,
    ManifestDescriptor,
    ModelEntry,
    OptionalStep,
    PipRequirement,
    VramProfile,
)
from .provider import (
    POLL_INTERVAL_S,
    ManifestProvider,
    ManifestsChanged,
    ManifestSubscription,
)

__all__ = [
    "BaseSoftware",
    "DependencySection",
    "ExtensionEntry",
    "InstallManifest",
    "ManifestDescriptor",
    "ModelEntry",
    "OptionalStep",
    "PipRequirement",
    "VramProfile",
    "load_manifest_file",
    "normalize_manifest_data",
    "parse_manifest",
    "validate_manifest_schema",
    "POLL_INTERVAL_S",
    "ManifestProvider",
    "ManifestsChanged",
    "ManifestSubscription",
]
