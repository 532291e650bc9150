"""Staging deployment target selection."""

import asyncio

import structlog

from ..constants import RUN_MANIFEST_FILE
from ..core.config_loader import HarborConfig
from ..core.exceptions import CommandError, DeploymentFailureError
from ..core.runtime import ContainerRuntime
from ..core.subprocess_manager import ProcessRunner
from ..models.enums import DeploymentMode
from ..models.pipeline import DeploymentOutcome


class DeploymentSelector:
    """Deploys locally with compose, or hands remote deployment to the operator.

    Remote hosts get manual-mode instructions only; nothing runs over SSH.
    """

    def __init__(self, config: HarborConfig, runner: ProcessRunner, runtime: ContainerRuntime):
        self.config = config
        self.runner = runner
        self.runtime = runtime
        self.logger = structlog.get_logger().bind(component="deployment")

    def up_command(self) -> list[str]:
        return [*self.config.deploy.compose_command, "up", "-d"]

    def manual_instructions(self, vps_target: str, image_ref: str) -> list[str]:
        compose = " ".join(self.up_command())
        return [
            f"Copy {RUN_MANIFEST_FILE} to the remote host: scp {RUN_MANIFEST_FILE} {vps_target}:~/",
            f"Connect to the remote host: ssh {vps_target}",
            f"Pull the published image: docker pull {image_ref}",
            f"Bring the staging stack up: {compose}",
        ]

    async def deploy(self, image_ref: str, vps_target: str | None) -> DeploymentOutcome:
        """Pick exactly one of the local or manual paths.

        Raises:
            RuntimeUnavailableError: If the local runtime is down (local path only)
            DeploymentFailureError: If compose up fails
        """
        if vps_target:
            self.logger.info("Remote deployment in manual mode", target=vps_target, image_ref=image_ref)
            return DeploymentOutcome(
                mode=DeploymentMode.MANUAL,
                image_ref=image_ref,
                target=vps_target,
                instructions=self.manual_instructions(vps_target, image_ref),
            )

        return await self._deploy_local(image_ref)

    async def _deploy_local(self, image_ref: str) -> DeploymentOutcome:
        await self.runtime.version()

        cmd = self.up_command()
        hint = f"Inspect the output above, fix the manifest, then re-run `{' '.join(cmd)}`."
        self.logger.info("Starting local staging deployment", command=cmd)

        try:
            result = await self.runner.run_command(
                cmd,
                timeout=self.config.timeouts.compose_timeout,
                check=False,
                stream=True,
                cwd=self.config.project_dir,
            )
        except CommandError as e:
            raise DeploymentFailureError(
                f"Staging deployment could not start: {e.message}",
                hint="Install Docker Compose (`docker compose version`) or set deploy.compose_command.",
                output=e.output,
            ) from e
        except asyncio.TimeoutError as e:
            raise DeploymentFailureError(
                f"Staging deployment timed out after {self.config.timeouts.compose_timeout} seconds",
                hint=hint,
            ) from e

        if not result.success:
            self.logger.error("Staging deployment failed", returncode=result.returncode)
            raise DeploymentFailureError(
                f"Staging deployment failed with exit code {result.returncode}",
                hint=hint,
                output=result.error_text,
            )

        self.logger.info("Staging deployment running", image_ref=image_ref)
        return DeploymentOutcome(
            mode=DeploymentMode.LOCAL,
            image_ref=image_ref,
            command=cmd,
        )
