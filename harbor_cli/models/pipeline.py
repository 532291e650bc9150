"""Migration run models.

A ``PipelineRun`` lives for one invocation only; nothing is persisted.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from ..constants import EXIT_OK
from ..core.exceptions import HarborError
from .enums import DatabaseType, DeploymentMode, RunState, StepName, StepStatus


class StepRecord(BaseModel):
    """Outcome of one pipeline step."""

    step: StepName
    status: StepStatus
    message: str = ""


class RunError(BaseModel):
    """Terminal error carried by a failed or aborted run."""

    kind: str
    message: str
    hint: str | None = None
    exit_code: int
    output: str = ""

    @classmethod
    def from_exception(cls, error: HarborError) -> "RunError":
        return cls(
            kind=error.kind,
            message=error.message,
            hint=error.hint,
            exit_code=error.exit_code,
            output=error.output,
        )


class DeploymentOutcome(BaseModel):
    """Result of the deployment selector."""

    mode: DeploymentMode
    image_ref: str
    target: str | None = None
    command: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)


class PipelineRun(BaseModel):
    """State of one migrate invocation."""

    image_ref: str
    db_type: DatabaseType = DatabaseType.NONE
    vps_target: str | None = None
    force: bool = False
    state: RunState = RunState.PENDING
    steps: list[StepRecord] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    deployment: DeploymentOutcome | None = None
    error: RunError | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @field_validator("image_ref")
    @classmethod
    def validate_image_ref(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Image reference cannot be empty")
        if any(c.isspace() for c in v):
            raise ValueError(f"Image reference cannot contain whitespace: '{v}'")
        return v

    @field_validator("vps_target")
    @classmethod
    def blank_target_is_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    def start(self) -> None:
        self.state = RunState.RUNNING
        self.started_at = datetime.now(UTC)

    def record(self, step: StepName, status: StepStatus, message: str = "") -> None:
        self.steps.append(StepRecord(step=step, status=status, message=message))
        if status is StepStatus.WARNING and message:
            self.warnings.append(message)

    def succeed(self) -> None:
        self._finish(RunState.SUCCEEDED)

    def fail(self, step: StepName, error: HarborError) -> None:
        """Terminal failure; later steps never run."""
        self.record(step, StepStatus.FAILED, error.message)
        self.error = RunError.from_exception(error)
        self._finish(RunState.FAILED)

    def abort(self, step: StepName, error: HarborError) -> None:
        """Early informational stop before any side effect."""
        self.record(step, StepStatus.FAILED, error.message)
        self.error = RunError.from_exception(error)
        self._finish(RunState.ABORTED)

    def _finish(self, state: RunState) -> None:
        self.state = state
        self.finished_at = datetime.now(UTC)

    def step_status(self, step: StepName) -> StepStatus | None:
        """Status of ``step`` or None if it never ran."""
        for record in self.steps:
            if record.step is step:
                return record.status
        return None

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error else EXIT_OK
