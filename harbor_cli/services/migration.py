"""Migration pipeline orchestrator.

Runs precheck → build/publish → data sync → deployment strictly in order.
Every external failure is caught at its step boundary and recorded on the
``PipelineRun``; a build failure stops everything after it, a dump failure
is only a warning.
"""

import structlog
from pydantic import ValidationError
from structlog.contextvars import bound_contextvars
from structlog.stdlib import BoundLogger

from ..core.config_loader import HarborConfig
from ..core.exceptions import (
    BuildFailureError,
    ConfigurationError,
    DeploymentFailureError,
    DumpFailureError,
    MissingPrerequisiteError,
    RuntimeUnavailableError,
)
from ..core.prompts import PromptProvider
from ..core.runtime import ContainerRuntime
from ..core.subprocess_manager import ProcessRunner
from ..models.enums import DatabaseType, DeploymentMode, StepName, StepStatus
from ..models.pipeline import PipelineRun
from .build import BuildPublisher
from .data_sync import DataSyncExecutor
from .deployment import DeploymentSelector
from .guard import ArtifactGuard


class MigrationPipeline:
    """Orchestrates one migrate invocation."""

    def __init__(
        self,
        config: HarborConfig,
        prompts: PromptProvider,
        runner: ProcessRunner,
        runtime: ContainerRuntime,
    ):
        self.config = config
        self.prompts = prompts
        self.builder = BuildPublisher(config, runner)
        self.data_sync = DataSyncExecutor(config, runner)
        self.deployer = DeploymentSelector(config, runner, runtime)
        self.logger: BoundLogger = structlog.get_logger().bind(component="migration_pipeline")

    async def run(
        self,
        image_ref: str,
        *,
        db_type: DatabaseType = DatabaseType.NONE,
        vps_target: str | None = None,
        force: bool = False,
        db_name: str | None = None,
    ) -> PipelineRun:
        """Execute the pipeline and return the finished run.

        Args:
            image_ref: Image reference to build and publish
            db_type: Database to snapshot, or none
            vps_target: ``user@host`` for manual remote deployment
            force: Skip confirmations
            db_name: Database name (prompted when missing)

        Returns:
            PipelineRun in a terminal state

        Raises:
            ConfigurationError: If the image reference is invalid
        """
        try:
            run = PipelineRun(
                image_ref=image_ref, db_type=db_type, vps_target=vps_target, force=force
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid migration parameters: {e.errors()[0]['msg']}",
                hint="Pass an image reference such as `username/app:latest` with --image.",
            ) from e
        run.start()

        with bound_contextvars(image_ref=run.image_ref):
            self.logger.info(
                "Migration started",
                db_type=db_type.value,
                vps_target=run.vps_target,
                force=force,
            )

            # Step 1: Artifacts must already exist
            try:
                ArtifactGuard.require_artifacts(self.config.project_dir)
            except MissingPrerequisiteError as e:
                self.logger.warning("Migration aborted", reason=e.message)
                run.abort(StepName.PRECHECK, e)
                return run
            run.record(StepName.PRECHECK, StepStatus.SUCCEEDED, "Dockerfile and docker-compose.yml found")

            # Step 2: Build and publish
            if not await self._build(run):
                return run

            # Step 3: Data sync (warn and continue on failure)
            await self._sync_data(run, db_name)

            # Step 4: Deploy
            if not await self._deploy(run):
                return run

            run.succeed()
            self.logger.info("Migration finished", state=run.state.value, warnings=len(run.warnings))
            return run

    async def _build(self, run: PipelineRun) -> bool:
        """Returns False when the run failed and must stop."""
        if not run.force and not self.prompts.confirm("Build and push the image?", default=True):
            run.record(StepName.BUILD, StepStatus.SKIPPED, "Build and push skipped by operator")
            return True

        try:
            await self.builder.build_and_publish(run.image_ref)
        except BuildFailureError as e:
            run.fail(StepName.BUILD, e)
            return False

        run.record(StepName.BUILD, StepStatus.SUCCEEDED, f"Image {run.image_ref} built and pushed")
        return True

    async def _sync_data(self, run: PipelineRun, db_name: str | None) -> None:
        if run.db_type is DatabaseType.NONE:
            run.record(StepName.DATA_SYNC, StepStatus.SKIPPED, "No database selected (use --db-type)")
            return

        if not db_name:
            db_name = self.prompts.text("Database name?", default=self.config.sync.default_db_name)

        try:
            result = await self.data_sync.sync(run.db_type, db_name)
        except DumpFailureError as e:
            # Deployment still proceeds; the operator accepts the risk
            self.logger.warning("Data sync failed, continuing", error=e.message)
            message = f"{e.message}. {e.hint}" if e.hint else e.message
            run.record(StepName.DATA_SYNC, StepStatus.WARNING, message)
            return

        if result is not None:
            run.record(
                StepName.DATA_SYNC,
                StepStatus.SUCCEEDED,
                f"Data dumped to {result.dump_path}; import with `{result.import_hint}`",
            )

    async def _deploy(self, run: PipelineRun) -> bool:
        try:
            outcome = await self.deployer.deploy(run.image_ref, run.vps_target)
        except (RuntimeUnavailableError, DeploymentFailureError) as e:
            run.fail(StepName.DEPLOY, e)
            return False

        run.deployment = outcome
        if outcome.mode is DeploymentMode.MANUAL:
            message = f"Manual mode: run the listed steps on {outcome.target}"
        else:
            message = "Staging deployment running locally"
        run.record(StepName.DEPLOY, StepStatus.SUCCEEDED, message)
        return True
