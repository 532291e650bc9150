"""Tests for build recipe and run manifest rendering."""

from pathlib import Path

import pytest
import yaml

from harbor_cli.models.enums import ArtifactKind, StackKind
from harbor_cli.models.stack import StackProfile
from harbor_cli.services.templates import (
    DEFAULT_ENTRYPOINTS,
    RECIPE_RENDERERS,
    TemplateGenerator,
)


@pytest.fixture
def generator() -> TemplateGenerator:
    return TemplateGenerator()


def test_every_stack_has_a_renderer():
    assert set(RECIPE_RENDERERS) == set(StackKind)


@pytest.mark.parametrize("kind", list(StackKind))
def test_rendering_is_deterministic(generator, kind):
    profile = StackProfile(kind=kind, port="8080", entrypoint=DEFAULT_ENTRYPOINTS[kind])

    assert generator.render(profile) == generator.render(profile)


@pytest.mark.parametrize("kind", list(StackKind))
def test_recipe_exposes_port(generator, kind):
    profile = StackProfile(kind=kind, port="8080", entrypoint=DEFAULT_ENTRYPOINTS[kind])

    rendered = generator.render(profile)

    assert "EXPOSE 8080" in rendered.recipe
    assert rendered.recipe.endswith("\n")
    assert not rendered.recipe.endswith("\n\n")


def test_node_prisma_recipe(generator):
    profile = StackProfile(kind=StackKind.NODE_PRISMA, port="3000", entrypoint="dist/server.js")

    recipe = generator.render(profile).recipe

    assert recipe.startswith("FROM node:20 AS builder\n")
    assert "RUN npx prisma generate" in recipe
    assert "ENV NODE_ENV=production" in recipe
    assert recipe.rstrip().endswith('CMD ["node", "dist/server.js"]')


def test_python_recipe(generator):
    profile = StackProfile(kind=StackKind.PYTHON, port="5000", entrypoint="main.py")

    recipe = generator.render(profile).recipe

    assert "pip install" in recipe
    assert recipe.rstrip().endswith('CMD ["python", "main.py"]')


def test_react_recipe_serves_build_dir(generator):
    profile = StackProfile(kind=StackKind.REACT, port="3000", entrypoint="build")

    recipe = generator.render(profile).recipe

    assert "RUN npm run build" in recipe
    assert 'CMD ["serve", "-s", "build", "-l", "3000"]' in recipe


def test_generic_recipe_is_marked_placeholder(generator):
    profile = StackProfile(kind=StackKind.GENERIC, port="3000", entrypoint="start.sh")

    recipe = generator.render(profile).recipe

    assert recipe.startswith("# Placeholder")
    assert 'CMD ["./start.sh"]' in recipe


def test_manifest_publishes_port_and_production_flag(generator):
    profile = StackProfile(kind=StackKind.NODE_PRISMA, port="3000", entrypoint="dist/server.js")

    manifest = generator.render(profile).manifest
    parsed = yaml.safe_load(manifest)

    assert '"3000:3000"' in manifest
    assert parsed == {
        "services": {
            "app": {
                "build": ".",
                "ports": ["3000:3000"],
                "environment": ["NODE_ENV=production"],
            }
        }
    }


def test_manifest_for_python_stack(generator):
    profile = StackProfile(kind=StackKind.PYTHON, port="22", entrypoint="app.py")

    parsed = yaml.safe_load(generator.render(profile).manifest)

    # Quoting keeps YAML from reading 22:22 as a base-60 integer
    assert parsed["services"]["app"]["ports"] == ["22:22"]
    assert parsed["services"]["app"]["environment"] == ["APP_ENV=production"]


def test_build_and_write_artifacts(generator, tmp_path: Path):
    profile = StackProfile(kind=StackKind.PYTHON, port="8000", entrypoint="app.py")
    output_dir = tmp_path / "out" / "nested"

    artifacts = generator.build_artifacts(profile, output_dir)
    written = generator.write(artifacts)

    assert [a.kind for a in artifacts] == [ArtifactKind.BUILD_RECIPE, ArtifactKind.RUN_MANIFEST]
    assert written == [output_dir / "Dockerfile", output_dir / "docker-compose.yml"]
    assert (output_dir / "Dockerfile").read_text() == generator.render(profile).recipe
    assert (output_dir / "docker-compose.yml").read_text() == generator.render(profile).manifest
