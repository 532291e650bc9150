"""Core exceptions for harbor-cli operations.

Every failure that crosses a pipeline step boundary is converted into one of
these kinds. Each kind carries the process exit code the CLI uses for it and
an optional hint naming the next command to run.
"""

from ..constants import (
    EXIT_BUILD_FAILURE,
    EXIT_CONFIGURATION_ERROR,
    EXIT_CONTAINER_NOT_FOUND,
    EXIT_DEPLOYMENT_FAILURE,
    EXIT_DUMP_FAILURE,
    EXIT_MISSING_PREREQUISITE,
    EXIT_NO_SELECTION,
    EXIT_NOTIFICATION_FAILURE,
    EXIT_OVERWRITE_DECLINED,
    EXIT_RUNTIME_UNAVAILABLE,
    EXIT_UNEXPECTED,
)


class HarborError(Exception):
    """Base exception for harbor-cli operations."""

    kind = "error"
    exit_code = EXIT_UNEXPECTED

    def __init__(self, message: str, *, hint: str | None = None, output: str = ""):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.output = output


class CommandError(HarborError):
    """External command execution failed."""

    kind = "command-error"

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        cmd: list[str] | None = None,
        hint: str | None = None,
        output: str = "",
    ):
        super().__init__(message, hint=hint, output=output)
        self.returncode = returncode
        self.cmd = cmd or []


class MissingPrerequisiteError(HarborError):
    """Required artifacts or containers are absent."""

    kind = "missing-prerequisite"
    exit_code = EXIT_MISSING_PREREQUISITE


class OverwriteDeclinedError(HarborError):
    """The operator declined to overwrite existing artifacts."""

    kind = "overwrite-declined"
    exit_code = EXIT_OVERWRITE_DECLINED


class BuildFailureError(HarborError):
    """Image build or publish failed."""

    kind = "build-failure"
    exit_code = EXIT_BUILD_FAILURE


class DumpFailureError(HarborError):
    """Database dump failed."""

    kind = "dump-failure"
    exit_code = EXIT_DUMP_FAILURE


class DeploymentFailureError(HarborError):
    """Local staging deployment failed."""

    kind = "deployment-failure"
    exit_code = EXIT_DEPLOYMENT_FAILURE


class RuntimeUnavailableError(HarborError):
    """Container runtime is not reachable."""

    kind = "runtime-unavailable"
    exit_code = EXIT_RUNTIME_UNAVAILABLE


class ContainerNotFoundError(HarborError):
    """Requested container does not exist."""

    kind = "container-not-found"
    exit_code = EXIT_CONTAINER_NOT_FOUND


class NoSelectionError(HarborError):
    """No container was selected."""

    kind = "no-selection"
    exit_code = EXIT_NO_SELECTION


class NotificationError(HarborError):
    """Notification delivery failed."""

    kind = "notification-failure"
    exit_code = EXIT_NOTIFICATION_FAILURE


class ConfigurationError(HarborError):
    """Configuration validation or loading failed."""

    kind = "configuration-error"
    exit_code = EXIT_CONFIGURATION_ERROR
