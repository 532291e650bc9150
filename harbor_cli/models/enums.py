"""Enum definitions for harbor-cli."""

from enum import Enum


class StackKind(Enum):
    """Technology stack classification driving template choice."""

    NODE_PRISMA = "node-prisma"
    PYTHON = "python"
    REACT = "react"
    GENERIC = "generic"


class DatabaseType(Enum):
    """Database engines the data sync step can snapshot."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    NONE = "none"


class ArtifactKind(Enum):
    """Generated container artifacts."""

    BUILD_RECIPE = "build-recipe"
    RUN_MANIFEST = "run-manifest"


class RunState(Enum):
    """Lifecycle of a migration run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"  # Early stop on a missing prerequisite


class StepName(Enum):
    """Migration pipeline steps, in execution order."""

    PRECHECK = "precheck"
    BUILD = "build"
    DATA_SYNC = "data_sync"
    DEPLOY = "deploy"


class StepStatus(Enum):
    """Outcome of a single pipeline step."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    WARNING = "warning"
    FAILED = "failed"


class DeploymentMode(Enum):
    """Where the staging deployment went."""

    LOCAL = "local"
    MANUAL = "manual"  # Remote host, instructions only


class Severity(Enum):
    """Diagnosis severity."""

    WARNING = "warning"
    ERROR = "error"
