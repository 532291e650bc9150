"""Tests for the artifact overwrite guard."""

import itertools
from pathlib import Path

import pytest

from conftest import ScriptedPromptProvider
from harbor_cli.core.exceptions import MissingPrerequisiteError, OverwriteDeclinedError
from harbor_cli.models.enums import ArtifactKind
from harbor_cli.services.guard import ArtifactGuard, is_overwrite_authorized, scan_artifacts


@pytest.mark.parametrize(
    "recipe_exists,manifest_exists,force,confirmed",
    list(itertools.product([False, True], repeat=4)),
)
def test_overwrite_policy_truth_table(recipe_exists, manifest_exists, force, confirmed):
    """Existing files are only replaced with force or confirmation."""
    authorized = is_overwrite_authorized(recipe_exists, manifest_exists, force, confirmed)

    if recipe_exists or manifest_exists:
        assert authorized == (force or confirmed)
    else:
        assert authorized is True


def test_scan_artifacts_reports_existence(project_dir: Path):
    (project_dir / "Dockerfile").write_text("FROM scratch\n")

    artifacts = scan_artifacts(project_dir)

    assert artifacts[ArtifactKind.BUILD_RECIPE].exists is True
    assert artifacts[ArtifactKind.RUN_MANIFEST].exists is False
    assert artifacts[ArtifactKind.RUN_MANIFEST].path == project_dir / "docker-compose.yml"


class TestArtifactGuard:
    """Prompting and raising behaviour."""

    def test_empty_directory_never_prompts(self, project_dir: Path):
        prompts = ScriptedPromptProvider()

        decision = ArtifactGuard(prompts).authorize(project_dir, force=False)

        assert decision.authorized
        assert decision.existing == ()
        assert prompts.asked == []

    def test_force_skips_prompt(self, project_with_artifacts: Path):
        prompts = ScriptedPromptProvider()

        decision = ArtifactGuard(prompts).authorize(project_with_artifacts, force=True)

        assert decision.authorized
        assert decision.forced
        assert len(decision.existing) == 2
        assert prompts.asked == []

    def test_confirmation_authorizes(self, project_with_artifacts: Path):
        prompts = ScriptedPromptProvider(confirms=[True])

        decision = ArtifactGuard(prompts).authorize(project_with_artifacts, force=False)

        assert decision.confirmed
        assert "Overwrite?" in prompts.asked[0]

    def test_decline_raises(self, project_dir: Path):
        (project_dir / "docker-compose.yml").write_text("services: {}\n")
        prompts = ScriptedPromptProvider(confirms=[False])

        with pytest.raises(OverwriteDeclinedError) as exc_info:
            ArtifactGuard(prompts).authorize(project_dir, force=False)

        assert exc_info.value.exit_code == 4
        assert "--force" in exc_info.value.hint

    def test_prompt_defaults_to_keeping_files(self, project_with_artifacts: Path):
        """Unanswered prompt falls back to its default, which is no."""
        prompts = ScriptedPromptProvider()

        with pytest.raises(OverwriteDeclinedError):
            ArtifactGuard(prompts).authorize(project_with_artifacts, force=False)

    def test_require_artifacts_lists_missing(self, project_dir: Path):
        (project_dir / "Dockerfile").write_text("FROM scratch\n")

        with pytest.raises(MissingPrerequisiteError) as exc_info:
            ArtifactGuard.require_artifacts(project_dir)

        assert "docker-compose.yml" in exc_info.value.message
        assert "Dockerfile" not in exc_info.value.message
        assert "harbor-cli generate" in exc_info.value.hint

    def test_require_artifacts_passes(self, project_with_artifacts: Path):
        artifacts = ArtifactGuard.require_artifacts(project_with_artifacts)

        assert all(a.exists for a in artifacts.values())
