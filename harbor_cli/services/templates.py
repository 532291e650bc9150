"""Build recipe and run manifest templates.

Each stack kind has exactly one renderer. Rendering is a pure function of the
profile, so identical inputs always produce byte-identical files.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

import structlog

from ..constants import COMPOSE_SERVICE_NAME
from ..models.enums import ArtifactKind, StackKind
from ..models.stack import Artifact, StackProfile
from .guard import artifact_paths

logger = structlog.get_logger()

DEFAULT_ENTRYPOINTS: dict[StackKind, str] = {
    StackKind.NODE_PRISMA: "dist/server.js",
    StackKind.PYTHON: "app.py",
    StackKind.REACT: "build",
    StackKind.GENERIC: "start.sh",
}

PRODUCTION_FLAGS: dict[StackKind, str] = {
    StackKind.NODE_PRISMA: "NODE_ENV=production",
    StackKind.PYTHON: "APP_ENV=production",
    StackKind.REACT: "NODE_ENV=production",
    StackKind.GENERIC: "APP_ENV=production",
}


class RenderedTemplates(NamedTuple):
    recipe: str
    manifest: str


def _cmd(*args: str) -> str:
    """Exec-form CMD instruction."""
    return f"CMD {json.dumps(list(args))}"


def render_node_prisma(profile: StackProfile) -> str:
    return "\n".join(
        [
            "FROM node:20 AS builder",
            "WORKDIR /app",
            "COPY package*.json ./",
            "RUN npm ci",
            "COPY . .",
            "RUN npx prisma generate",
            "RUN npm run build",
            "",
            "FROM node:20-slim",
            "WORKDIR /app",
            "COPY --from=builder /app/dist ./dist",
            "COPY --from=builder /app/node_modules ./node_modules",
            "COPY --from=builder /app/prisma ./prisma",
            f"ENV {PRODUCTION_FLAGS[StackKind.NODE_PRISMA]}",
            f"EXPOSE {profile.port}",
            _cmd("node", profile.entrypoint),
        ]
    )


def render_python(profile: StackProfile) -> str:
    return "\n".join(
        [
            "FROM python:3.12 AS builder",
            "WORKDIR /app",
            "COPY requirements.txt ./",
            "RUN pip install --no-cache-dir --prefix=/install -r requirements.txt",
            "",
            "FROM python:3.12-slim",
            "WORKDIR /app",
            "COPY --from=builder /install /usr/local",
            "COPY . .",
            f"ENV {PRODUCTION_FLAGS[StackKind.PYTHON]}",
            "ENV PYTHONUNBUFFERED=1",
            f"EXPOSE {profile.port}",
            _cmd("python", profile.entrypoint),
        ]
    )


def render_react(profile: StackProfile) -> str:
    # entrypoint is the static build directory
    return "\n".join(
        [
            "FROM node:20 AS builder",
            "WORKDIR /app",
            "COPY package*.json ./",
            "RUN npm ci",
            "COPY . .",
            "RUN npm run build",
            "",
            "FROM node:20-slim",
            "WORKDIR /app",
            "RUN npm install -g serve",
            f"COPY --from=builder /app/{profile.entrypoint} ./{profile.entrypoint}",
            f"ENV {PRODUCTION_FLAGS[StackKind.REACT]}",
            f"EXPOSE {profile.port}",
            _cmd("serve", "-s", profile.entrypoint, "-l", profile.port),
        ]
    )


def render_generic(profile: StackProfile) -> str:
    return "\n".join(
        [
            "# Placeholder build recipe: no stack-specific template matched.",
            "# Replace the base image and commands to fit your application.",
            "FROM debian:bookworm-slim",
            "WORKDIR /app",
            "COPY . .",
            f"ENV {PRODUCTION_FLAGS[StackKind.GENERIC]}",
            f"EXPOSE {profile.port}",
            _cmd(f"./{profile.entrypoint}"),
        ]
    )


RECIPE_RENDERERS: dict[StackKind, Callable[[StackProfile], str]] = {
    StackKind.NODE_PRISMA: render_node_prisma,
    StackKind.PYTHON: render_python,
    StackKind.REACT: render_react,
    StackKind.GENERIC: render_generic,
}

_unrendered = set(StackKind) - set(RECIPE_RENDERERS)
if _unrendered:
    raise RuntimeError(f"No recipe renderer for: {sorted(k.value for k in _unrendered)}")


def render_manifest(profile: StackProfile) -> str:
    """Single-service compose file publishing ``port:port``."""
    return "\n".join(
        [
            "services:",
            f"  {COMPOSE_SERVICE_NAME}:",
            "    build: .",
            "    ports:",
            f'      - "{profile.port}:{profile.port}"',
            "    environment:",
            f"      - {PRODUCTION_FLAGS[profile.kind]}",
        ]
    )


class TemplateGenerator:
    """Renders and writes the two container artifacts for a stack profile."""

    def __init__(
        self, renderers: dict[StackKind, Callable[[StackProfile], str]] | None = None
    ):
        self.renderers = renderers or RECIPE_RENDERERS

    def render(self, profile: StackProfile) -> RenderedTemplates:
        renderer = self.renderers.get(profile.kind, render_generic)
        recipe = renderer(profile).rstrip() + "\n"
        manifest = render_manifest(profile).rstrip() + "\n"
        return RenderedTemplates(recipe=recipe, manifest=manifest)

    def build_artifacts(self, profile: StackProfile, output_dir: Path | str) -> list[Artifact]:
        """Render both artifacts bound to their paths under ``output_dir``."""
        rendered = self.render(profile)
        paths = artifact_paths(output_dir)
        return [
            Artifact(
                kind=ArtifactKind.BUILD_RECIPE,
                path=paths[ArtifactKind.BUILD_RECIPE],
                content=rendered.recipe,
                exists=paths[ArtifactKind.BUILD_RECIPE].is_file(),
            ),
            Artifact(
                kind=ArtifactKind.RUN_MANIFEST,
                path=paths[ArtifactKind.RUN_MANIFEST],
                content=rendered.manifest,
                exists=paths[ArtifactKind.RUN_MANIFEST].is_file(),
            ),
        ]

    def write(self, artifacts: list[Artifact]) -> list[Path]:
        """Write artifacts to disk. Callers must have passed the overwrite guard."""
        written = []
        for artifact in artifacts:
            artifact.path.parent.mkdir(parents=True, exist_ok=True)
            artifact.path.write_text(artifact.content, encoding="utf-8")
            logger.info(
                "Artifact written",
                kind=artifact.kind.value,
                path=str(artifact.path),
                overwritten=artifact.exists,
            )
            written.append(artifact.path)
        return written
