"""Data models for install runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Iterable

from easyinstaller.manifests import InstallManifest, ManifestDescriptor


class InstallStatus(Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallRequest:
    """Everything one install run needs; immutable once built.

    ``enabled_optional_step_ids`` of None (or empty) means "use each step's
    ``enabledByDefault`` flag".
    """

    descriptor: ManifestDescriptor
    install_root: Path
    selected_vram_profile_id: str | None = None
    enabled_optional_step_ids: frozenset[str] | None = None
    log_file_path: Path | None = None

    def __post_init__(self):
        if not isinstance(self.descriptor, ManifestDescriptor):
            raise ValueError("descriptor must be a ManifestDescriptor")
        if self.install_root is None or not str(self.install_root).strip():
            raise ValueError("Install root must be provided")

        object.__setattr__(
            self, "install_root", Path(self.install_root).expanduser().absolute()
        )
        if self.log_file_path is not None:
            object.__setattr__(self, "log_file_path", Path(self.log_file_path))
        if self.enabled_optional_step_ids is not None:
            object.__setattr__(
                self,
                "enabled_optional_step_ids",
                frozenset(self.enabled_optional_step_ids),
            )

    @classmethod
    def create(
        cls,
        descriptor: ManifestDescriptor,
        install_root: Path | str,
        selected_vram_profile_id: str | None = None,
        enabled_optional_step_ids: Iterable[str] | None = None,
        log_file_path: Path | str | None = None,
    ) -> InstallRequest:
        return cls(
            descriptor=descriptor,
            install_root=install_root,
            selected_vram_profile_id=selected_vram_profile_id,
            enabled_optional_step_ids=(
                frozenset(enabled_optional_step_ids)
                if enabled_optional_step_ids is not None
                else None
            ),
            log_file_path=Path(log_file_path) if log_file_path else None,
        )

    @property
    def manifest(self) -> InstallManifest:
        return self.descriptor.manifest


@dataclass(frozen=True)
class InstallResult:
    status: InstallStatus
    duration: timedelta
    log_file_path: Path | None = None
    error: BaseException | None = None

    @property
    def success(self) -> bool:
        return self.status is InstallStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.status is InstallStatus.CANCELLED

    @property
    def failed(self) -> bool:
        return self.status is InstallStatus.FAILED

    @classmethod
    def succeeded(cls, duration: timedelta, log_file_path: Path | None) -> InstallResult:
        return cls(InstallStatus.SUCCEEDED, duration, log_file_path)

    @classmethod
    def cancelled_result(
        cls, duration: timedelta, log_file_path: Path | None
    ) -> InstallResult:
        return cls(InstallStatus.CANCELLED, duration, log_file_path)

    @classmethod
    def failed_result(
        cls, duration: timedelta, error: BaseException, log_file_path: Path | None
    ) -> InstallResult:
        return cls(InstallStatus.FAILED, duration, log_file_path, error)


@dataclass(frozen=True)
class InstallProgress:
    stage_name: str
    percent: float
    is_indeterminate: bool = False


__all__ = [
    "InstallStatus",
    "InstallRequest",
    "InstallResult",
    "InstallProgress",
]
