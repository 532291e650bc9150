"""
Generation Service

Detect → guard → render → write flow behind the ``generate`` command.
"""

from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..constants import DEFAULT_PORT
from ..core.exceptions import ConfigurationError
from ..core.prompts import PromptProvider
from ..models.enums import StackKind
from ..models.stack import Artifact, StackProfile
from .detector import StackDetector
from .guard import ArtifactGuard
from .templates import DEFAULT_ENTRYPOINTS, TemplateGenerator


class GenerationResult(BaseModel):
    """Outcome of a generate run."""

    profile: StackProfile
    detected: bool
    artifacts: list[Artifact] = Field(default_factory=list)
    overwritten: list[Path] = Field(default_factory=list)


class GenerationService:
    """Service producing the build recipe and run manifest for a project."""

    def __init__(
        self,
        prompts: PromptProvider,
        detector: StackDetector | None = None,
        generator: TemplateGenerator | None = None,
    ):
        self.prompts = prompts
        self.detector = detector or StackDetector()
        self.guard = ArtifactGuard(prompts)
        self.generator = generator or TemplateGenerator()
        self.logger = structlog.get_logger().bind(component="generation")

    def resolve_stack(self, project_dir: Path, stack: StackKind | None) -> tuple[StackKind, bool]:
        """Explicit stack, else detection, else ask the operator (default generic).

        Returns:
            (stack kind, whether it was auto-detected)
        """
        if stack is not None:
            return stack, False

        detected = self.detector.detect(project_dir)
        if detected is not None:
            return detected, True

        choices = [(kind.value, kind.value) for kind in StackKind]
        picked = self.prompts.select(
            "Could not detect your stack. Which one is it?", choices
        )
        return (StackKind(picked) if picked else StackKind.GENERIC), False

    def generate(
        self,
        output_dir: Path | str,
        *,
        stack: StackKind | None = None,
        force: bool = False,
        port: str | None = None,
        entrypoint: str | None = None,
        project_dir: Path | str | None = None,
    ) -> GenerationResult:
        """Generate both artifacts into ``output_dir``.

        Raises:
            OverwriteDeclinedError: If artifacts exist and overwrite was not approved
            ConfigurationError: If port or entrypoint are invalid
        """
        output_dir = Path(output_dir)
        project_dir = Path(project_dir) if project_dir is not None else output_dir

        kind, detected = self.resolve_stack(project_dir, stack)
        self.logger.info("Stack resolved", stack=kind.value, detected=detected)

        # Nothing is asked or written past this point when the guard refuses
        decision = self.guard.authorize(output_dir, force)

        if port is None:
            port = self.prompts.text("What port does your app run on?", default=DEFAULT_PORT)
        if entrypoint is None:
            entrypoint = self.prompts.text(
                "What is your app entrypoint?", default=DEFAULT_ENTRYPOINTS[kind]
            )

        try:
            profile = StackProfile(kind=kind, port=port, entrypoint=entrypoint)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid stack parameters: {e.errors()[0]['msg']}",
                hint="Use a numeric port between 1 and 65535 and a non-empty entrypoint.",
            ) from e

        artifacts = self.generator.build_artifacts(profile, output_dir)
        self.generator.write(artifacts)

        self.logger.info(
            "Artifacts generated",
            stack=kind.value,
            port=profile.port,
            entrypoint=profile.entrypoint,
            output_dir=str(output_dir),
        )
        return GenerationResult(
            profile=profile,
            detected=detected,
            artifacts=artifacts,
            overwritten=list(decision.existing),
        )
