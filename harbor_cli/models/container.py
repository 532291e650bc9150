"""Container-related data models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..constants import SHORT_ID_LENGTH
from .enums import Severity


class ContainerSummary(BaseModel):
    """One row of the container listing."""

    id: str
    name: str
    status: str
    image: str = ""

    @property
    def short_id(self) -> str:
        return self.id[:SHORT_ID_LENGTH]

    @property
    def label(self) -> str:
        return f"{self.name} ({self.status})"


class ContainerSnapshot(BaseModel):
    """Point-in-time inspection of a container; stale as soon as it is taken."""

    id: str
    name: str
    status: str
    image: str = ""
    ports: dict[str, list[str]] = Field(default_factory=dict)  # "80/tcp" -> ["0.0.0.0:8080"]
    exit_code: int | None = None
    restart_count: int = 0
    oom_killed: bool = False
    health: str | None = None
    log_tail: list[str] = Field(default_factory=list)
    captured_at: datetime | None = None

    @property
    def short_id(self) -> str:
        return self.id[:SHORT_ID_LENGTH]

    @property
    def running(self) -> bool:
        return self.status == "running"

    @property
    def published_ports(self) -> dict[str, list[str]]:
        """Only container ports that have at least one host binding."""
        return {port: bindings for port, bindings in self.ports.items() if bindings}

    @classmethod
    def from_attrs(cls, attrs: dict[str, Any]) -> "ContainerSnapshot":
        """Build a snapshot from Docker inspect data."""
        state = attrs.get("State") or {}
        config = attrs.get("Config") or {}
        network_settings = attrs.get("NetworkSettings") or {}

        ports: dict[str, list[str]] = {}
        for container_port, host_bindings in (network_settings.get("Ports") or {}).items():
            ports[container_port] = [
                f"{binding.get('HostIp') or '0.0.0.0'}:{binding.get('HostPort', '')}"  # noqa: S104 # Reading existing binding
                for binding in (host_bindings or [])
            ]

        health = (state.get("Health") or {}).get("Status")

        return cls(
            id=attrs.get("Id", ""),
            name=(attrs.get("Name") or "").lstrip("/"),
            status=state.get("Status", "unknown"),
            image=config.get("Image", ""),
            ports=ports,
            exit_code=state.get("ExitCode"),
            restart_count=attrs.get("RestartCount") or 0,
            oom_killed=bool(state.get("OOMKilled")),
            health=health,
        )


class Diagnosis(BaseModel):
    """A detected issue plus how to fix it."""

    code: str
    severity: Severity
    message: str
    remedies: list[str] = Field(default_factory=list)
