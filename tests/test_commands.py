"""Tests for the click command-line interface."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from easyinstaller import __version__
from easyinstaller.commands import EchoLogSink, cli, filter_manifest_by_id
from easyinstaller.commands.watch import _describe_change
from easyinstaller.manifests import ManifestsChanged
from easyinstaller.settings import UserSettings, load_settings, save_settings


@pytest.fixture
def runner():
    """Create a CliRunner for testing."""
    return CliRunner()


@pytest.fixture
def sample_manifest(write_manifest, manifest_data, config_home):
    """Sample manifest in the manifests directory, with config isolated."""
    return write_manifest("comfyui.json", manifest_data)


class TestCli:
    """Tests for the command group."""

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("list", "show", "install", "watch"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestListCommand:
    """Tests for `easyinstaller list`."""

    def test_lists_manifests(self, runner, sample_manifest, manifests_dir):
        result = runner.invoke(cli, ["list", "--manifests", str(manifests_dir)])

        assert result.exit_code == 0
        assert "comfyui: ComfyUI (comfyui.json)" in result.output

    def test_skips_invalid(self, runner, sample_manifest, write_manifest, manifests_dir):
        write_manifest("broken.json", '{"schemaVersion": "1"}')

        result = runner.invoke(cli, ["list", "--manifests", str(manifests_dir)])

        assert result.exit_code == 0
        assert "comfyui: ComfyUI" in result.output
        assert "broken: " not in result.output

    def test_empty(self, runner, manifests_dir, config_home):
        result = runner.invoke(cli, ["list", "--manifests", str(manifests_dir)])

        assert result.exit_code == 0
        assert "No manifests found" in result.output

    def test_uses_environment_directory(self, runner, sample_manifest, manifests_dir, monkeypatch):
        monkeypatch.setenv("EASYINSTALLER_MANIFESTS", str(manifests_dir))

        result = runner.invoke(cli, ["list"])

        assert result.exit_code == 0
        assert "comfyui: ComfyUI" in result.output


class TestShowCommand:
    """Tests for `easyinstaller show`."""

    def test_renders_plan(self, runner, sample_manifest, manifests_dir, install_root):
        result = runner.invoke(
            cli,
            [
                "show",
                "ComfyUI",
                "--manifests",
                str(manifests_dir),
                "--root",
                str(install_root),
                "--vram-profile",
                "16gb",
            ],
        )

        assert result.exit_code == 0
        assert "Node based Stable Diffusion UI" in result.output
        assert "Installation Plan: ComfyUI" in result.output
        assert "VRAM profile: 16 GB (16gb)" in result.output
        assert not install_root.exists()

    def test_selected_steps(self, runner, sample_manifest, manifests_dir, install_root):
        result = runner.invoke(
            cli,
            ["show", "comfyui", "-m", str(manifests_dir), "-r", str(install_root), "-s", "shortcut"],
        )

        assert result.exit_code == 0
        assert "shortcut: Create desktop shortcut" in result.output
        assert "venv: Create virtual environment" not in result.output

    def test_unknown_manifest(self, runner, sample_manifest, manifests_dir):
        result = runner.invoke(cli, ["show", "missing", "--manifests", str(manifests_dir)])

        assert result.exit_code == 1
        assert "Error: manifest 'missing' not found" in result.output


class TestInstallCommand:
    """Tests for `easyinstaller install`."""

    def _invoke(self, runner, manifests_dir, *args, input=None):
        return runner.invoke(
            cli,
            ["install", "comfyui", "--manifests", str(manifests_dir), *args],
            input=input,
        )

    def test_install_with_yes(self, runner, sample_manifest, manifests_dir, install_root):
        result = self._invoke(runner, manifests_dir, "--root", str(install_root), "--yes")

        assert result.exit_code == 0, result.output
        assert "ComfyUI installed in" in result.output
        assert "[  0.0%] Prepare" in result.output
        assert "Preparing model flux-dev" in result.output
        assert "Log file: " in result.output
        assert (install_root / "ComfyUI" / "models" / "unet").is_dir()

    def test_remembers_root_and_manifest(
        self, runner, sample_manifest, manifests_dir, install_root
    ):
        self._invoke(runner, manifests_dir, "--root", str(install_root), "--yes")

        settings = load_settings()
        assert settings.last_install_directory == str(install_root)
        assert settings.last_manifest_id == "comfyui"

    def test_root_defaults_to_last_directory(
        self, runner, sample_manifest, manifests_dir, temp_dir
    ):
        remembered = temp_dir / "remembered"
        save_settings(UserSettings(last_install_directory=str(remembered)))

        result = self._invoke(runner, manifests_dir, "--yes")

        assert result.exit_code == 0, result.output
        assert (remembered / "ComfyUI").is_dir()

    def test_confirmation_declined(self, runner, sample_manifest, manifests_dir, install_root):
        result = self._invoke(runner, manifests_dir, "--root", str(install_root), input="n\n")

        assert result.exit_code == 130
        assert "Installation Plan: ComfyUI" in result.output
        assert not install_root.exists()

    def test_confirmation_accepted(self, runner, sample_manifest, manifests_dir, install_root):
        result = self._invoke(runner, manifests_dir, "--root", str(install_root), input="y\n")

        assert result.exit_code == 0, result.output

    def test_explicit_log_file(self, runner, sample_manifest, manifests_dir, install_root, temp_dir):
        log_file = temp_dir / "run.log"
        result = self._invoke(
            runner,
            manifests_dir,
            "--root",
            str(install_root),
            "--log-file",
            str(log_file),
            "--yes",
        )

        assert result.exit_code == 0, result.output
        assert "Installation completed successfully." in log_file.read_text(encoding="utf-8")

    def test_path_escape_fails(
        self, runner, write_manifest, manifest_data, manifests_dir, install_root, config_home
    ):
        manifest_data["models"][0]["target"] = "../../outside"
        write_manifest("comfyui.json", manifest_data)

        result = self._invoke(runner, manifests_dir, "--root", str(install_root), "--yes")

        assert result.exit_code == 1
        assert "Installation failed" in result.output

    def test_run_steps(
        self, runner, write_manifest, manifest_data, manifests_dir, install_root, config_home
    ):
        manifest_data["optionalSteps"] = [
            {
                "id": "marker",
                "description": "Write marker",
                "shell": "echo done > marker.txt",
                "workingDirectory": "ComfyUI",
            }
        ]
        write_manifest("comfyui.json", manifest_data)

        result = self._invoke(
            runner, manifests_dir, "--root", str(install_root), "--run-steps", "--yes"
        )

        assert result.exit_code == 0, result.output
        assert (install_root / "ComfyUI" / "marker.txt").read_text().strip() == "done"

    def test_steps_only_logged_by_default(
        self, runner, write_manifest, manifest_data, manifests_dir, install_root, config_home
    ):
        manifest_data["optionalSteps"] = [
            {"id": "marker", "description": "Write marker", "shell": "echo done > marker.txt"}
        ]
        write_manifest("comfyui.json", manifest_data)

        result = self._invoke(runner, manifests_dir, "--root", str(install_root), "--yes")

        assert result.exit_code == 0, result.output
        assert "Queued optional step: Write marker" in result.output
        assert not (install_root / "marker.txt").exists()

    def test_interactive_requires_tty(
        self, runner, sample_manifest, manifests_dir, install_root, mock_no_tty
    ):
        result = self._invoke(
            runner, manifests_dir, "--root", str(install_root), "--interactive", "--yes"
        )

        assert result.exit_code == 1
        assert "requires a TTY" in result.output

    def test_verbose_hidden_by_default(self, runner, sample_manifest, manifests_dir, install_root):
        result = self._invoke(runner, manifests_dir, "--root", str(install_root), "--yes")

        assert result.exit_code == 0, result.output
        assert "Install root: " not in result.output

    def test_debug_shows_verbose(self, runner, sample_manifest, manifests_dir, install_root):
        result = runner.invoke(
            cli,
            [
                "--debug",
                "install",
                "comfyui",
                "--manifests",
                str(manifests_dir),
                "--root",
                str(install_root),
                "--yes",
            ],
        )

        assert result.exit_code == 0, result.output
        assert f"Install root: {install_root.resolve()}" in result.output

    def _invoke_deselecting_all(self, runner, manifests_dir, install_root, *args):
        with patch("easyinstaller.tui._require_tty"), patch(
            "questionary.select"
        ) as mock_select, patch("questionary.checkbox") as mock_cb:
            mock_select.return_value.ask.return_value = "8gb"
            mock_cb.return_value.ask.return_value = []
            return self._invoke(
                runner, manifests_dir, "--root", str(install_root), "--interactive", "--yes", *args
            )

    def test_deselecting_all_steps_refused_with_run_steps(
        self, runner, sample_manifest, manifests_dir, install_root
    ):
        result = self._invoke_deselecting_all(runner, manifests_dir, install_root, "--run-steps")

        assert result.exit_code == 1
        assert "--run-steps would run the defaults" in result.output
        assert not install_root.exists()

    def test_deselecting_all_steps_without_run_steps(
        self, runner, sample_manifest, manifests_dir, install_root
    ):
        result = self._invoke_deselecting_all(runner, manifests_dir, install_root)

        assert result.exit_code == 0, result.output
        assert "manifest defaults apply" in result.output

    def test_unknown_manifest(self, runner, sample_manifest, manifests_dir):
        result = runner.invoke(cli, ["install", "missing", "--manifests", str(manifests_dir), "--yes"])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestHelpers:
    """Tests for command helpers."""

    def test_filter_manifest_by_id(self, descriptor):
        assert filter_manifest_by_id([descriptor], "COMFYUI") == [descriptor]
        assert filter_manifest_by_id([descriptor], "other") == []

    def test_echo_sink_hides_verbose(self, capsys):
        sink = EchoLogSink()
        sink.verbose("hidden")
        sink.info("shown")

        assert capsys.readouterr().out == "shown\n"

    def test_echo_sink_warnings_to_stderr(self, capsys):
        EchoLogSink().warn("careful")
        assert "WARNING: careful" in capsys.readouterr().err

    def test_describe_change(self, temp_dir):
        event = ManifestsChanged(
            directory=temp_dir, added=("a.json",), removed=("b.json",), modified=("c.json",)
        )
        assert _describe_change(event) == "added a.json; removed b.json; modified c.json"
