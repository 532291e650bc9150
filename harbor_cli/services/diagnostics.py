"""
Diagnostic Inspector

Inspects a container and flags common misconfigurations. Every heuristic is a
predicate over a ``ContainerSnapshot`` plus the remediation it suggests, so a
new check is one more ``DiagnosticRule`` in ``default_rules``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, Field

from ..core.config_loader import DiagnosticSettings, HarborConfig
from ..core.exceptions import MissingPrerequisiteError, NoSelectionError
from ..core.prompts import PromptProvider
from ..core.runtime import ContainerRuntime
from ..models.container import ContainerSnapshot, ContainerSummary, Diagnosis
from ..models.enums import Severity


@dataclass(frozen=True)
class DiagnosticRule:
    """One heuristic check."""

    code: str
    severity: Severity
    applies: Callable[[ContainerSnapshot], bool]
    message: Callable[[ContainerSnapshot], str]
    remedies: Callable[[ContainerSnapshot], list[str]]

    def evaluate(self, snapshot: ContainerSnapshot) -> Diagnosis | None:
        if not self.applies(snapshot):
            return None
        return Diagnosis(
            code=self.code,
            severity=self.severity,
            message=self.message(snapshot),
            remedies=self.remedies(snapshot),
        )


def default_rules(settings: DiagnosticSettings) -> list[DiagnosticRule]:
    """Built-in heuristics, most severe first."""
    return [
        DiagnosticRule(
            code="not-running",
            severity=Severity.ERROR,
            applies=lambda s: not s.running,
            message=lambda s: f"Container is not running ({s.status}). It may have crashed or be misconfigured.",
            remedies=lambda s: [
                f"Check logs: docker logs {s.short_id}",
                f"Restart it: docker restart {s.short_id}",
            ],
        ),
        DiagnosticRule(
            code="oom-killed",
            severity=Severity.ERROR,
            applies=lambda s: s.oom_killed,
            message=lambda s: "Container was killed for running out of memory.",
            remedies=lambda s: [
                "Raise the memory limit (deploy.resources.limits.memory in docker-compose.yml)",
                f"Watch usage with: docker stats {s.short_id}",
            ],
        ),
        DiagnosticRule(
            code="nonzero-exit",
            severity=Severity.ERROR,
            applies=lambda s: not s.running and s.exit_code not in (None, 0),
            message=lambda s: f"Container exited with code {s.exit_code}.",
            remedies=lambda s: [
                f"Look for the failing command in: docker logs --tail 50 {s.short_id}",
                "Verify the CMD entrypoint path in the Dockerfile",
            ],
        ),
        DiagnosticRule(
            code="restart-loop",
            severity=Severity.WARNING,
            applies=lambda s: s.restart_count >= settings.restart_loop_threshold,
            message=lambda s: f"Container restarted {s.restart_count} times; it may be crash-looping.",
            remedies=lambda s: [
                f"Inspect the last crash: docker logs {s.short_id}",
                "Check that required services (e.g. the database) are reachable",
            ],
        ),
        DiagnosticRule(
            code="unhealthy",
            severity=Severity.WARNING,
            applies=lambda s: s.health == "unhealthy",
            message=lambda s: "Health check is failing.",
            remedies=lambda s: [
                f"Show health check output: docker inspect --format '{{{{json .State.Health}}}}' {s.short_id}",
            ],
        ),
        DiagnosticRule(
            code="no-ports",
            severity=Severity.WARNING,
            applies=lambda s: not s.ports,
            message=lambda s: "No ports exposed.",
            remedies=lambda s: [
                "Add EXPOSE <port> to the Dockerfile",
                'Map ports in docker-compose.yml, e.g. ports: ["3000:3000"]',
            ],
        ),
        DiagnosticRule(
            code="ports-unpublished",
            severity=Severity.WARNING,
            applies=lambda s: bool(s.ports) and not s.published_ports,
            message=lambda s: f"Ports exposed but not published to the host: {', '.join(sorted(s.ports))}.",
            remedies=lambda s: [
                'Publish them in docker-compose.yml, e.g. ports: ["3000:3000"]',
            ],
        ),
    ]


class DiagnosticReport(BaseModel):
    """Everything one troubleshooting pass found."""

    snapshot: ContainerSnapshot
    diagnoses: list[Diagnosis] = Field(default_factory=list)
    logs_fetched: bool = False

    @property
    def codes(self) -> list[str]:
        return [d.code for d in self.diagnoses]

    @property
    def healthy(self) -> bool:
        return not self.diagnoses


class DiagnosticInspector:
    """Troubleshoots containers on the local runtime."""

    def __init__(
        self,
        config: HarborConfig,
        runtime: ContainerRuntime,
        prompts: PromptProvider,
        rules: list[DiagnosticRule] | None = None,
    ):
        self.config = config
        self.runtime = runtime
        self.prompts = prompts
        self.rules = rules if rules is not None else default_rules(config.diagnostics)
        self.logger = structlog.get_logger().bind(component="diagnostics")

    @staticmethod
    def _summarize(container: Any) -> ContainerSummary:
        attrs = container.attrs or {}
        return ContainerSummary(
            id=container.id,
            name=container.name or (attrs.get("Name") or "").lstrip("/"),
            status=container.status,
            image=(attrs.get("Config") or {}).get("Image", ""),
        )

    async def list_containers(self) -> list[ContainerSummary]:
        """All containers including stopped ones.

        Raises:
            MissingPrerequisiteError: If there are no containers at all
        """
        containers = [self._summarize(c) for c in await self.runtime.list_containers()]
        self.logger.info("Listed containers", total=len(containers))
        if not containers:
            raise MissingPrerequisiteError(
                "No containers found",
                hint="Start your app with `docker compose up -d`.",
            )
        return containers

    def select_target(self, containers: list[ContainerSummary], container_ref: str | None) -> str:
        """Explicit reference wins; otherwise ask the operator.

        Raises:
            NoSelectionError: If the operator picks nothing
        """
        if container_ref:
            return container_ref

        choices = [(c.label, c.id) for c in containers]
        picked = self.prompts.select("Select a container to troubleshoot:", choices)
        if not picked:
            raise NoSelectionError("No container selected", hint="Pass --container <name-or-id>.")
        return picked

    async def inspect(self, container_ref: str) -> tuple[Any, ContainerSnapshot]:
        """Inspect one container.

        Raises:
            ContainerNotFoundError: If the reference matches nothing
        """
        container = await self.runtime.get_container(container_ref)
        snapshot = ContainerSnapshot.from_attrs(container.attrs or {})
        snapshot.captured_at = datetime.now(UTC)
        self.logger.info(
            "Container inspected",
            container_id=snapshot.short_id,
            name=snapshot.name,
            status=snapshot.status,
        )
        return container, snapshot

    def diagnose(self, snapshot: ContainerSnapshot) -> list[Diagnosis]:
        """Run every rule against the snapshot."""
        diagnoses = [d for rule in self.rules if (d := rule.evaluate(snapshot)) is not None]
        for diagnosis in diagnoses:
            self.logger.info(
                "Issue detected",
                container_id=snapshot.short_id,
                code=diagnosis.code,
                severity=diagnosis.severity.value,
            )
        return diagnoses

    async def troubleshoot(
        self, container_ref: str | None = None, include_logs: bool | None = None
    ) -> DiagnosticReport:
        """Full diagnose flow: list, resolve, inspect, logs, heuristics.

        Args:
            container_ref: Container name or id; prompted for when missing
            include_logs: Fetch the log tail; prompted for when None
        """
        containers = await self.list_containers()
        target = self.select_target(containers, container_ref)
        container, snapshot = await self.inspect(target)

        if include_logs is None:
            include_logs = self.prompts.confirm("View recent logs?", default=True)

        if include_logs:
            snapshot.log_tail = await self.runtime.get_logs(
                container, tail=self.config.diagnostics.log_tail_lines
            )

        return DiagnosticReport(
            snapshot=snapshot,
            diagnoses=self.diagnose(snapshot),
            logs_fetched=include_logs,
        )
