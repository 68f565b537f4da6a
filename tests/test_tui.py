"""Tests for the interactive selectors."""

from unittest.mock import patch

import pytest

from easyinstaller.manifests import OptionalStep, VramProfile
from easyinstaller.tui import (
    format_step_choice,
    format_vram_profile_choice,
    select_optional_steps_interactive,
    select_vram_profile_interactive,
)


class TestFormatting:
    """Tests for choice labels."""

    def test_profile_label(self):
        assert format_vram_profile_choice(VramProfile(id="8gb", label="8 GB")) == "8 GB  (8gb)"

    def test_profile_label_with_preference(self):
        profile = VramProfile(id="8gb", label="8 GB", gguf_preference=("Q4_K_M", "Q5_K_M"))
        assert format_vram_profile_choice(profile) == "8 GB  (8gb)  prefers Q4_K_M, Q5_K_M"

    def test_step_label(self):
        step = OptionalStep(id="venv", description="Create venv", shell="python -m venv venv")
        assert format_step_choice(step) == "Create venv  (venv)"


class TestSelectVramProfileInteractive:
    """Tests for select_vram_profile_interactive()."""

    def test_requires_tty(self, descriptor, mock_no_tty):
        with pytest.raises(RuntimeError, match="requires a TTY"):
            select_vram_profile_interactive(descriptor.manifest)

    def test_returns_selection(self, descriptor, mock_tty):
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.return_value = "16gb"
            assert select_vram_profile_interactive(descriptor.manifest) == "16gb"

        kwargs = mock_select.call_args.kwargs
        assert kwargs["default"] == "8gb"
        assert [c.value for c in kwargs["choices"]] == ["8gb", "16gb"]

    def test_default_follows_request(self, descriptor, mock_tty):
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.return_value = "16gb"
            select_vram_profile_interactive(descriptor.manifest, "16GB")

        assert mock_select.call_args.kwargs["default"] == "16gb"

    def test_cancel(self, descriptor, mock_tty):
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.return_value = None
            assert select_vram_profile_interactive(descriptor.manifest) is None

    def test_keyboard_interrupt(self, descriptor, mock_tty):
        with patch("questionary.select") as mock_select:
            mock_select.return_value.ask.side_effect = KeyboardInterrupt
            assert select_vram_profile_interactive(descriptor.manifest) is None

    def test_no_profiles(self, descriptor, mock_tty):
        from dataclasses import replace

        manifest = replace(descriptor.manifest, vram_profiles=())
        with patch("questionary.select") as mock_select:
            assert select_vram_profile_interactive(manifest) is None
        mock_select.assert_not_called()


class TestSelectOptionalStepsInteractive:
    """Tests for select_optional_steps_interactive()."""

    def test_requires_tty(self, descriptor, mock_no_tty):
        with pytest.raises(RuntimeError, match="requires a TTY"):
            select_optional_steps_interactive(descriptor.manifest)

    def test_defaults_prechecked(self, descriptor, mock_tty):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = ["venv", "shortcut"]
            assert select_optional_steps_interactive(descriptor.manifest) == [
                "venv",
                "shortcut",
            ]

        choices = mock_cb.call_args.kwargs["choices"]
        assert [(c.value, c.checked) for c in choices] == [
            ("venv", True),
            ("shortcut", False),
        ]

    def test_preselected_ids(self, descriptor, mock_tty):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = ["shortcut"]
            select_optional_steps_interactive(descriptor.manifest, ["shortcut"])

        choices = mock_cb.call_args.kwargs["choices"]
        assert [(c.value, c.checked) for c in choices] == [
            ("venv", False),
            ("shortcut", True),
        ]

    def test_cancel(self, descriptor, mock_tty):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = None
            assert select_optional_steps_interactive(descriptor.manifest) is None

    def test_no_steps(self, descriptor, mock_tty):
        from dataclasses import replace

        manifest = replace(descriptor.manifest, optional_steps=())
        assert select_optional_steps_interactive(manifest) == []
