"""Tests for install planning and rendering."""

from easyinstaller.installer import InstallRequest, plan_install, render_plan


class TestPlanInstall:
    """Tests for plan_install()."""

    def test_plan_has_all_stages(self, descriptor, install_root):
        plan = plan_install(InstallRequest.create(descriptor, install_root))

        assert [s.name for s in plan.stages] == [
            "Prepare",
            "Base software",
            "Dependencies",
            "Models",
            "Extensions",
            "Optional steps",
        ]
        assert plan.vram_profile.id == "8gb"
        assert plan.selected_step_ids == ["venv"]

    def test_plan_does_not_touch_disk(self, descriptor, install_root):
        plan_install(InstallRequest.create(descriptor, install_root))
        assert not install_root.exists()

    def test_model_preference_in_plan(self, descriptor, install_root):
        request = InstallRequest.create(descriptor, install_root, selected_vram_profile_id="16gb")
        models = plan_install(request).stages[3]
        assert models.items == ["flux-dev -> ComfyUI/models/unet [prefer Q8_0, Q6_K]"]

    def test_explicit_steps(self, descriptor, install_root):
        request = InstallRequest.create(
            descriptor, install_root, enabled_optional_step_ids=["shortcut"]
        )
        plan = plan_install(request)
        assert plan.selected_step_ids == ["shortcut"]
        assert plan.stages[-1].items == ["shortcut: Create desktop shortcut"]


class TestRenderPlan:
    """Tests for render_plan()."""

    def test_render(self, descriptor, install_root):
        output = render_plan(plan_install(InstallRequest.create(descriptor, install_root)))

        assert output.startswith("Installation Plan: ComfyUI")
        assert "VRAM profile: 8 GB (8gb)" in output
        assert "  4. Models" in output
        assert "https://github.com/comfyanonymous/ComfyUI.git @ master -> ComfyUI" in output
        assert "pip -r requirements.txt (relative to baseSoftware.target)" in output

    def test_empty_stage_rendered(self, descriptor, install_root):
        from dataclasses import replace

        descriptor = replace(descriptor, manifest=replace(descriptor.manifest, extensions=()))
        output = render_plan(plan_install(InstallRequest.create(descriptor, install_root)))
        assert "(nothing to do)" in output
