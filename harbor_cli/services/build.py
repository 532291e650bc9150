"""Multi-platform image build and publish."""

import asyncio

import structlog

from ..core.config_loader import HarborConfig
from ..core.exceptions import BuildFailureError, CommandError
from ..core.subprocess_manager import ProcessRunner, SubprocessResult


class BuildPublisher:
    """Builds the project image for several platforms and pushes it."""

    def __init__(self, config: HarborConfig, runner: ProcessRunner):
        self.config = config
        self.runner = runner
        self.logger = structlog.get_logger().bind(component="build")

    def build_command(self, image_ref: str) -> list[str]:
        """Argument vector for ``docker buildx build``; no shell is involved."""
        return [
            self.config.build.docker_bin,
            "buildx",
            "build",
            "--platform",
            ",".join(self.config.build.platforms),
            "-t",
            image_ref,
            "--push",
            ".",
        ]

    def _hint(self, image_ref: str) -> str:
        return (
            "Check the build output above, make sure `docker buildx` is installed "
            f"(`docker buildx version`) and that you are logged in to the registry for {image_ref} "
            "(`docker login`)."
        )

    async def build_and_publish(self, image_ref: str) -> SubprocessResult:
        """Run the build, streaming its output.

        Raises:
            BuildFailureError: On a nonzero exit, a missing binary, or a timeout
        """
        cmd = self.build_command(image_ref)
        self.logger.info("Starting image build", image_ref=image_ref, platforms=self.config.build.platforms)

        try:
            result = await self.runner.run_command(
                cmd,
                timeout=self.config.timeouts.build_timeout,
                check=False,
                stream=True,
                cwd=self.config.project_dir,
            )
        except CommandError as e:
            self.logger.error("Build tool unavailable", image_ref=image_ref, error=e.message)
            raise BuildFailureError(
                f"Image build could not start: {e.message}",
                hint=self._hint(image_ref),
                output=e.output,
            ) from e
        except asyncio.TimeoutError as e:
            self.logger.error("Build timed out", image_ref=image_ref, timeout=self.config.timeouts.build_timeout)
            raise BuildFailureError(
                f"Image build timed out after {self.config.timeouts.build_timeout} seconds",
                hint=self._hint(image_ref),
            ) from e

        if not result.success:
            self.logger.error("Build failed", image_ref=image_ref, returncode=result.returncode)
            raise BuildFailureError(
                f"Image build failed with exit code {result.returncode}",
                hint=self._hint(image_ref),
                output=result.error_text,
            )

        self.logger.info("Image built and pushed", image_ref=image_ref)
        return result
