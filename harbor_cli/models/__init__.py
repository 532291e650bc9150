"""Data models for harbor-cli."""

from .container import ContainerSnapshot, ContainerSummary, Diagnosis  # noqa: F401
from .enums import (  # noqa: F401
    ArtifactKind,
    DatabaseType,
    DeploymentMode,
    RunState,
    Severity,
    StackKind,
    StepName,
    StepStatus,
)
from .pipeline import DeploymentOutcome, PipelineRun, RunError, StepRecord  # noqa: F401
from .stack import Artifact, StackProfile  # noqa: F401

__all__ = [
    # Stack models
    "Artifact",
    "StackProfile",
    # Pipeline models
    "DeploymentOutcome",
    "PipelineRun",
    "RunError",
    "StepRecord",
    # Container models
    "ContainerSnapshot",
    "ContainerSummary",
    "Diagnosis",
    # Enums
    "ArtifactKind",
    "DatabaseType",
    "DeploymentMode",
    "RunState",
    "Severity",
    "StackKind",
    "StepName",
    "StepStatus",
]
