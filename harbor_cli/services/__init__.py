"""
Harbor CLI Services

Service layer for stack detection, artifact generation, migration and diagnostics.
"""

from .build import BuildPublisher  # noqa: F401
from .data_sync import DataSyncExecutor  # noqa: F401
from .deployment import DeploymentSelector  # noqa: F401
from .detector import StackDetector  # noqa: F401
from .diagnostics import DiagnosticInspector  # noqa: F401
from .generation import GenerationService  # noqa: F401
from .guard import ArtifactGuard  # noqa: F401
from .migration import MigrationPipeline  # noqa: F401
from .notify import SmtpNotifier  # noqa: F401
from .templates import TemplateGenerator  # noqa: F401

__all__ = [
    "StackDetector",
    "ArtifactGuard",
    "TemplateGenerator",
    "GenerationService",
    "BuildPublisher",
    "DataSyncExecutor",
    "DeploymentSelector",
    "MigrationPipeline",
    "DiagnosticInspector",
    "SmtpNotifier",
]
