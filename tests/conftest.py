"""Pytest fixtures and utilities for easyinstaller tests."""

import copy
import json
import tempfile
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import patch

import pytest

from easyinstaller.logsinks import LogLevel, LogSink


SAMPLE_MANIFEST = {
    "schemaVersion": "1.0",
    "id": "comfyui",
    "title": "ComfyUI",
    "description": "Node based Stable Diffusion UI",
    "baseSoftware": {
        "name": "ComfyUI",
        "repositoryUrl": "https://github.com/comfyanonymous/ComfyUI.git",
        "ref": "master",
        "target": "ComfyUI",
    },
    "dependencies": {
        "python": "3.11",
        "cuda": "12.1",
        "pipRequirements": [
            {"relativeTo": "baseSoftware.target", "path": "requirements.txt"},
        ],
    },
    "vramProfiles": [
        {"id": "8gb", "label": "8 GB", "ggufPreference": ["Q4_K_M", "Q5_K_M"]},
        {"id": "16gb", "label": "16 GB", "ggufPreference": ["Q8_0", "Q6_K"]},
    ],
    "models": [
        {
            "name": "flux-dev",
            "source": "huggingface",
            "repository": "city96/FLUX.1-dev-gguf",
            "match": "*.gguf",
            "preferExpression": "vramProfile.ggufPreference",
            "target": "ComfyUI/models/unet",
        },
    ],
    "extensions": [
        {
            "name": "ComfyUI-GGUF",
            "repository": "https://github.com/city96/ComfyUI-GGUF.git",
            "target": "ComfyUI/custom_nodes/ComfyUI-GGUF",
        },
    ],
    "optionalSteps": [
        {
            "id": "venv",
            "description": "Create virtual environment",
            "shell": "python -m venv venv",
            "workingDirectory": "ComfyUI",
            "enabledByDefault": True,
        },
        {
            "id": "shortcut",
            "description": "Create desktop shortcut",
            "shell": "echo shortcut",
            "enabledByDefault": False,
        },
    ],
}


class FailingLogSink(LogSink):
    """Sink that raises on every call."""

    def __init__(self):
        self.calls = 0

    def log(self, level: LogLevel, text: str) -> None:
        self.calls += 1
        raise RuntimeError("sink is broken")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def manifest_data() -> dict:
    """A fresh, fully populated manifest document."""
    return copy.deepcopy(SAMPLE_MANIFEST)


@pytest.fixture
def manifests_dir(temp_dir: Path) -> Path:
    directory = temp_dir / "manifests"
    directory.mkdir()
    return directory


@pytest.fixture
def write_manifest(manifests_dir: Path) -> Callable[..., Path]:
    """Write a manifest document (dict or raw text) into ``manifests_dir``."""

    def _write(name: str, content: dict | str) -> Path:
        path = manifests_dir / name
        text = content if isinstance(content, str) else json.dumps(content, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def descriptor(write_manifest, manifest_data):
    """Descriptor loaded from the sample manifest file."""
    from easyinstaller.manifests import load_manifest_file

    return load_manifest_file(write_manifest("comfyui.json", manifest_data))


@pytest.fixture
def install_root(temp_dir: Path) -> Path:
    return temp_dir / "install"


@pytest.fixture
def config_home(temp_dir: Path, monkeypatch) -> Path:
    """Point EASYINSTALLER_HOME at a temporary directory."""
    home = temp_dir / "config"
    monkeypatch.setenv("EASYINSTALLER_HOME", str(home))
    monkeypatch.delenv("EASYINSTALLER_MANIFESTS", raising=False)
    return home


@pytest.fixture
def mock_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return True."""
    with patch("sys.stdin.isatty", return_value=True):
        yield


@pytest.fixture
def mock_no_tty() -> Generator[None, None, None]:
    """Mock sys.stdin.isatty to return False."""
    with patch("sys.stdin.isatty", return_value=False):
        yield
