"""Parsing, normalization and validation of manifest documents.

Loading a manifest happens in three passes:

1. Normalize: rename legacy keys (``repo``, ``prefer``, ``workingDir``) to
   their canonical spelling, fill ``id``/``title`` from the file name, and
   replace missing collections with empty ones.
2. Validate the normalized document against the bundled JSON Schema.
3. Build the frozen dataclasses from :mod:`easyinstaller.manifests.models`.

Any failure raises :class:`ManifestValidationError` with a message naming
the file and the offending fields.
"""

import copy
import json
from pathlib import Path

from jsonschema import Draft202012Validator

from easyinstaller.config import load_document
from easyinstaller.errors import ManifestValidationError, format_field_error

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


# Legacy key -> canonical key, per section
_COMPAT_KEYS: dict[str, dict[str, str]] = {
    "baseSoftware": {"repo": "repositoryUrl"},
    "models": {"repo": "repository", "prefer": "preferExpression"},
    "extensions": {"repo": "repository"},
    "optionalSteps": {"workingDir": "workingDirectory"},
}

_COLLECTIONS = ("vramProfiles", "models", "extensions", "optionalSteps")

_validator_cache: Draft202012Validator | None = None


def _get_schema_path() -> Path:
    """Get path to the bundled manifest schema."""
    return Path(__file__).parent / "manifest.schema.json"


def _get_validator() -> Draft202012Validator:
    global _validator_cache

    if _validator_cache is None:
        schema = json.loads(_get_schema_path().read_text(encoding="utf-8"))
        Draft202012Validator.check_schema(schema)
        _validator_cache = Draft202012Validator(schema)
    return _validator_cache


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _flatten_preference(value: object) -> object:
    """Collapse the legacy preference selector forms into one expression."""
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        reference = value.get("reference")
        if isinstance(reference, str) and reference.strip():
            return reference
        values = value.get("values") or []
        return ", ".join(str(item) for item in values) or None
    return value


def _rename_keys(entry: dict, renames: dict[str, str]) -> None:
    for legacy, canonical in renames.items():
        if legacy not in entry:
            continue
        legacy_value = entry.pop(legacy)
        if canonical not in entry:
            entry[canonical] = legacy_value


def normalize_manifest_data(data: dict, file_stem: str = "") -> dict:
    """Return a normalized copy of a raw manifest document.

    Args:
        data: Raw dict as parsed from the manifest file
        file_stem: File name without extension, used as the fallback ``id``

    Returns:
        A new dict; ``data`` is left untouched
    """
    normalized = copy.deepcopy(data)

    base = normalized.get("baseSoftware")
    if isinstance(base, dict):
        _rename_keys(base, _COMPAT_KEYS["baseSoftware"])

    if normalized.get("dependencies") is None:
        normalized["dependencies"] = {}
    dependencies = normalized["dependencies"]
    if isinstance(dependencies, dict) and dependencies.get("pipRequirements") is None:
        dependencies["pipRequirements"] = []

    for section in _COLLECTIONS:
        if normalized.get(section) is None:
            normalized[section] = []
        entries = normalized[section]
        renames = _COMPAT_KEYS.get(section)
        if not renames or not isinstance(entries, list):
            continue
        for entry in entries:
            if isinstance(entry, dict):
                _rename_keys(entry, renames)
                if "preferExpression" in entry:
                    entry["preferExpression"] = _flatten_preference(
                        entry["preferExpression"]
                    )

    if _is_blank(normalized.get("id")) and file_stem:
        normalized["id"] = file_stem
    if _is_blank(normalized.get("title")) and not _is_blank(normalized.get("id")):
        normalized["title"] = normalized["id"]

    return normalized


def validate_manifest_schema(data: dict, source: str = "manifest") -> None:
    """Validate a normalized document against the bundled JSON Schema.

    Raises:
        ManifestValidationError: Listing every schema violation found
    """
    errors = sorted(_get_validator().iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if not errors:
        return

    problems = []
    for error in errors:
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        problems.append(format_field_error("Manifest", location, error.message))
    raise ManifestValidationError(
        f"Manifest '{source}' is invalid: {'; '.join(problems)}"
    )


def _text(entry: dict, key: str) -> str | None:
    value = entry.get(key)
    return value if isinstance(value, str) and value.strip() else None


def _build_manifest(data: dict) -> InstallManifest:
    base = data["baseSoftware"]
    deps = data["dependencies"]

    return InstallManifest(
        schema_version=data["schemaVersion"],
        id=data["id"],
        title=data["title"],
        description=_text(data, "description"),
        base_software=BaseSoftware(
            name=base.get("name") or "",
            target=base["target"],
            repository_url=_text(base, "repositoryUrl"),
            ref=_text(base, "ref"),
        ),
        dependencies=DependencySection(
            python=_text(deps, "python"),
            cuda=_text(deps, "cuda"),
            pip_requirements=tuple(
                PipRequirement(path=item["path"], relative_to=_text(item, "relativeTo"))
                for item in deps["pipRequirements"]
            ),
        ),
        vram_profiles=tuple(
            VramProfile(
                id=item["id"],
                label=item["label"],
                gguf_preference=tuple(item.get("ggufPreference") or ()),
                mixed_basic_resolution=_text(item, "mixedBasicResolution"),
            )
            for item in data["vramProfiles"]
        ),
        models=tuple(
            ModelEntry(
                name=item["name"],
                target=item["target"],
                source=item.get("source") or "",
                repository=_text(item, "repository"),
                url=_text(item, "url"),
                match=_text(item, "match"),
                prefer_expression=_text(item, "preferExpression"),
            )
            for item in data["models"]
        ),
        extensions=tuple(
            ExtensionEntry(
                name=item["name"],
                repository=item["repository"],
                target=item["target"],
            )
            for item in data["extensions"]
        ),
        optional_steps=tuple(
            OptionalStep(
                id=item["id"],
                description=item["description"],
                shell=item["shell"],
                working_directory=_text(item, "workingDirectory"),
                enabled_by_default=item.get("enabledByDefault") is not False,
            )
            for item in data["optionalSteps"]
        ),
    )


def parse_manifest(data: dict, source: Path | str | None = None) -> InstallManifest:
    """Normalize, validate and build a manifest from a raw document.

    Args:
        data: Raw dict as parsed from JSON
        source: File the document came from; its stem is the fallback ``id``

    Raises:
        ManifestValidationError: If the document is not a usable manifest
    """
    source_name = str(source) if source is not None else "manifest"
    if not isinstance(data, dict):
        raise ManifestValidationError(
            f"Manifest '{source_name}' must be an object, got {type(data).__name__}"
        )

    file_stem = Path(source).stem if source is not None else ""
    normalized = normalize_manifest_data(data, file_stem)
    validate_manifest_schema(normalized, source_name)

    try:
        return _build_manifest(normalized)
    except ValueError as e:
        raise ManifestValidationError(
            f"Manifest '{source_name}' is invalid: {e}"
        ) from e


def load_manifest_file(path: Path) -> ManifestDescriptor:
    """Read one manifest file into a descriptor.

    Raises:
        ConfigError: If the file cannot be read or parsed
        ManifestValidationError: If the content is not a valid manifest
    """
    data = load_document(path)
    return ManifestDescriptor(file_path=path, manifest=parse_manifest(data, path))


__all__ = [
    "normalize_manifest_data",
    "validate_manifest_schema",
    "parse_manifest",
    "load_manifest_file",
]
