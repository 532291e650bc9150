"""Artifact overwrite guard."""

from dataclasses import dataclass
from pathlib import Path

import structlog

from ..constants import BUILD_RECIPE_FILE, RUN_MANIFEST_FILE
from ..core.exceptions import MissingPrerequisiteError, OverwriteDeclinedError
from ..core.prompts import PromptProvider
from ..models.enums import ArtifactKind
from ..models.stack import Artifact

logger = structlog.get_logger()


def is_overwrite_authorized(
    recipe_exists: bool, manifest_exists: bool, force: bool, confirmed: bool
) -> bool:
    """Generation may proceed iff nothing exists, force is set, or the operator confirmed."""
    return (not recipe_exists and not manifest_exists) or force or confirmed


def artifact_paths(output_dir: Path | str) -> dict[ArtifactKind, Path]:
    """Fixed artifact locations inside ``output_dir``."""
    root = Path(output_dir)
    return {
        ArtifactKind.BUILD_RECIPE: root / BUILD_RECIPE_FILE,
        ArtifactKind.RUN_MANIFEST: root / RUN_MANIFEST_FILE,
    }


def scan_artifacts(output_dir: Path | str) -> dict[ArtifactKind, Artifact]:
    """Read existence flags for both artifacts from disk."""
    return {
        kind: Artifact(kind=kind, path=path, exists=path.is_file())
        for kind, path in artifact_paths(output_dir).items()
    }


@dataclass(frozen=True)
class GuardDecision:
    """Result of an overwrite check."""

    authorized: bool
    existing: tuple[Path, ...]
    forced: bool = False
    confirmed: bool = False


class ArtifactGuard:
    """Decides whether artifacts may be (over)written."""

    def __init__(self, prompts: PromptProvider):
        self.prompts = prompts

    def check(self, output_dir: Path | str, force: bool) -> GuardDecision:
        """Evaluate the overwrite policy, prompting only when it matters."""
        artifacts = scan_artifacts(output_dir)
        recipe_exists = artifacts[ArtifactKind.BUILD_RECIPE].exists
        manifest_exists = artifacts[ArtifactKind.RUN_MANIFEST].exists
        existing = tuple(a.path for a in artifacts.values() if a.exists)

        confirmed = False
        if existing and not force:
            names = ", ".join(p.name for p in existing)
            confirmed = self.prompts.confirm(f"{names} already exist. Overwrite?", default=False)

        authorized = is_overwrite_authorized(recipe_exists, manifest_exists, force, confirmed)
        logger.info(
            "Overwrite guard evaluated",
            output_dir=str(output_dir),
            existing=[str(p) for p in existing],
            force=force,
            confirmed=confirmed,
            authorized=authorized,
        )
        return GuardDecision(
            authorized=authorized, existing=existing, forced=force, confirmed=confirmed
        )

    def authorize(self, output_dir: Path | str, force: bool) -> GuardDecision:
        """Like ``check`` but raises when generation must not proceed.

        Raises:
            OverwriteDeclinedError: If artifacts exist and overwrite was not approved
        """
        decision = self.check(output_dir, force)
        if not decision.authorized:
            raise OverwriteDeclinedError(
                "Existing artifacts kept, generation skipped",
                hint="Re-run `harbor-cli generate --force` to overwrite them.",
            )
        return decision

    @staticmethod
    def require_artifacts(project_dir: Path | str) -> dict[ArtifactKind, Artifact]:
        """Existence precheck for migrate: both artifacts must be present.

        Raises:
            MissingPrerequisiteError: If either artifact is missing
        """
        artifacts = scan_artifacts(project_dir)
        missing = [a.path.name for a in artifacts.values() if not a.exists]
        if missing:
            raise MissingPrerequisiteError(
                f"Missing container artifacts: {', '.join(missing)}",
                hint="Run `harbor-cli generate` first.",
            )
        return artifacts
