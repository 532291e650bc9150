"""Tests for stack detection."""

from pathlib import Path

import pytest

from harbor_cli.models.enums import StackKind
from harbor_cli.services.detector import StackDetector


@pytest.fixture
def detector() -> StackDetector:
    return StackDetector()


class TestStackDetector:
    """Marker-file classification."""

    def test_node_manifest_detects_node_prisma(self, detector, project_dir: Path):
        (project_dir / "package.json").write_text("{}")

        assert detector.detect(project_dir) is StackKind.NODE_PRISMA

    def test_requirements_detects_python(self, detector, project_dir: Path):
        (project_dir / "requirements.txt").write_text("flask\n")

        assert detector.detect(project_dir) is StackKind.PYTHON

    @pytest.mark.parametrize("entry", ["src/App.jsx", "src/App.tsx", "public/index.html"])
    def test_frontend_entry_detects_react(self, detector, project_dir: Path, entry: str):
        (project_dir / "package.json").write_text("{}")
        (project_dir / entry).parent.mkdir(parents=True)
        (project_dir / entry).write_text("")

        assert detector.detect(project_dir) is StackKind.REACT

    def test_frontend_entry_without_manifest_is_not_react(self, detector, project_dir: Path):
        (project_dir / "src").mkdir()
        (project_dir / "src" / "App.jsx").write_text("")

        assert detector.detect(project_dir) is None

    def test_node_wins_over_python(self, detector, project_dir: Path):
        (project_dir / "package.json").write_text("{}")
        (project_dir / "requirements.txt").write_text("")

        assert detector.detect(project_dir) is StackKind.NODE_PRISMA

    def test_no_markers(self, detector, project_dir: Path):
        assert detector.detect(project_dir) is None

    def test_missing_directory(self, detector, tmp_path: Path):
        assert detector.detect(tmp_path / "nope") is None

    def test_marker_directory_does_not_count(self, detector, project_dir: Path):
        (project_dir / "package.json").mkdir()

        assert detector.detect(project_dir) is None
