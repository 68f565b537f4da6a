"""Per-run install state and sandboxed path resolution."""

from __future__ import annotations

from functools import cached_property
from pathlib import Path

from easyinstaller.errors import PathEscapeError
from easyinstaller.logsinks import LogSink
from easyinstaller.manifests import OptionalStep, VramProfile

from .models import InstallRequest
from .resolution import select_optional_steps, select_vram_profile

ROOT_ALIASES = ("<installRoot>", "installRoot")
BASE_SOFTWARE_ALIAS = "baseSoftware.target"


def _normalize_separators(path: str) -> str:
    return path.strip().replace("\\", "/")


class InstallContext:
    """State owned by a single install run.

    Every manifest-relative path goes through :meth:`combine_with_root` or
    :meth:`resolve_path`; both canonicalize the result and raise
    :class:`PathEscapeError` if it is not inside the install root.
    """

    def __init__(self, request: InstallRequest, log: LogSink):
        self.request = request
        self.log = log
        self.root_directory = Path(request.install_root).resolve()
        self.root_directory.mkdir(parents=True, exist_ok=True)

        self._aliases: dict[str, Path] = {
            alias.casefold(): self.root_directory for alias in ROOT_ALIASES
        }
        base_target = request.manifest.base_software.target
        if base_target and base_target.strip():
            self._aliases[BASE_SOFTWARE_ALIAS.casefold()] = self.combine_with_root(
                base_target
            )

    @property
    def path_aliases(self) -> dict[str, Path]:
        return dict(self._aliases)

    @cached_property
    def selected_vram_profile(self) -> VramProfile | None:
        return select_vram_profile(
            self.request.manifest.vram_profiles,
            self.request.selected_vram_profile_id,
        )

    @cached_property
    def selected_optional_steps(self) -> list[OptionalStep]:
        return select_optional_steps(
            self.request.manifest.optional_steps,
            self.request.enabled_optional_step_ids,
        )

    def combine_with_root(self, relative_path: str | None) -> Path:
        """Resolve ``relative_path`` against the install root.

        Raises:
            PathEscapeError: If the canonical result lies outside the root
        """
        if relative_path is None or not relative_path.strip():
            return self.root_directory
        return self._confine(self.root_directory, relative_path)

    def resolve_path(self, relative_to: str | None, path: str | None) -> Path:
        """Resolve ``path`` against a named anchor such as ``baseSoftware.target``.

        Unknown or empty anchors fall back to the install root.
        """
        if path is None or not path.strip():
            return self.root_directory

        if relative_to and relative_to.strip():
            anchor = self._aliases.get(relative_to.strip().casefold())
            if anchor is not None:
                return self._confine(anchor, path)
            self.log.verbose(
                "Unknown path anchor '%s', resolving against install root", relative_to
            )

        return self.combine_with_root(path)

    def _confine(self, anchor: Path, path: str) -> Path:
        candidate = (anchor / _normalize_separators(path)).resolve()
        if not candidate.is_relative_to(self.root_directory):
            raise PathEscapeError(path, self.root_directory)
        return candidate


__all__ = [
    "ROOT_ALIASES",
    "BASE_SOFTWARE_ALIAS",
    "InstallContext",
]
