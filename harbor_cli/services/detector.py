"""Stack detection from project marker files."""

from collections.abc import Callable
from pathlib import Path

import structlog

from ..constants import FRONTEND_ENTRY_PATHS, NODE_MANIFEST, PYTHON_REQUIREMENTS
from ..models.enums import StackKind

logger = structlog.get_logger()


def _has_react_markers(root: Path) -> bool:
    return (root / NODE_MANIFEST).is_file() and any(
        (root / entry).is_file() for entry in FRONTEND_ENTRY_PATHS
    )


def _has_node_manifest(root: Path) -> bool:
    return (root / NODE_MANIFEST).is_file()


def _has_python_requirements(root: Path) -> bool:
    return (root / PYTHON_REQUIREMENTS).is_file()


# Compound markers come first; otherwise the plain manifest would shadow them.
DETECTION_RULES: tuple[tuple[StackKind, Callable[[Path], bool]], ...] = (
    (StackKind.REACT, _has_react_markers),
    (StackKind.NODE_PRISMA, _has_node_manifest),
    (StackKind.PYTHON, _has_python_requirements),
)


class StackDetector:
    """Classifies a project directory by its marker files."""

    def __init__(self, rules: tuple[tuple[StackKind, Callable[[Path], bool]], ...] = DETECTION_RULES):
        self.rules = rules

    def detect(self, project_dir: Path | str) -> StackKind | None:
        """Return the first matching stack, or None when nothing matches."""
        root = Path(project_dir)
        if not root.is_dir():
            logger.debug("Detection skipped, not a directory", path=str(root))
            return None

        for kind, matches in self.rules:
            if matches(root):
                logger.info("Stack detected", path=str(root), stack=kind.value)
                return kind

        logger.info("Stack not detected", path=str(root))
        return None
