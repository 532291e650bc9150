"""Shared pytest fixtures for harbor-cli tests."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from harbor_cli.core.config_loader import HarborConfig
from harbor_cli.core.runtime import ContainerRuntime
from harbor_cli.core.subprocess_manager import SubprocessResult


class ScriptedPromptProvider:
    """Answers prompts from queues; falls back to the prompt default."""

    def __init__(
        self,
        confirms: Sequence[bool] = (),
        texts: Sequence[str] = (),
        selections: Sequence[str | None] = (),
    ):
        self.confirms = list(confirms)
        self.texts = list(texts)
        self.selections = list(selections)
        self.asked: list[str] = []

    def confirm(self, message: str, default: bool = True) -> bool:
        self.asked.append(message)
        return self.confirms.pop(0) if self.confirms else default

    def text(self, message: str, default: str | None = None) -> str:
        self.asked.append(message)
        if self.texts:
            return self.texts.pop(0)
        return default or ""

    def select(self, message: str, choices: Sequence[tuple[str, str]]) -> str | None:
        self.asked.append(message)
        self.last_choices = list(choices)
        return self.selections.pop(0) if self.selections else None


class FakeProcessRunner:
    """Records commands and replays scripted results in order.

    A scripted entry is either a ``SubprocessResult`` or an exception to raise.
    Unscripted calls succeed with empty output.
    """

    def __init__(self, responses: Sequence[SubprocessResult | BaseException] = ()):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    @property
    def commands(self) -> list[list[str]]:
        return [call["cmd"] for call in self.calls]

    async def run_command(self, cmd: list[str], **kwargs: Any) -> SubprocessResult:
        self.calls.append({"cmd": cmd, **kwargs})
        response = self.responses.pop(0) if self.responses else ok_result(cmd)
        if isinstance(response, BaseException):
            raise response

        stdout_path = kwargs.get("stdout_path")
        if stdout_path is not None:
            Path(stdout_path).write_text(response.stdout)
        return response


def ok_result(cmd: list[str] | None = None, stdout: str = "") -> SubprocessResult:
    return SubprocessResult(returncode=0, stdout=stdout, stderr="", cmd=cmd or [])


def failed_result(
    returncode: int = 1, stderr: str = "boom", cmd: list[str] | None = None, stdout: str = ""
) -> SubprocessResult:
    return SubprocessResult(returncode=returncode, stdout=stdout, stderr=stderr, cmd=cmd or [])


def make_container_attrs(
    container_id: str = "abcdef1234567890abcdef",
    name: str = "web",
    status: str = "running",
    image: str = "user/app:latest",
    ports: dict[str, list[dict[str, str]] | None] | None = None,
    exit_code: int = 0,
    restart_count: int = 0,
    oom_killed: bool = False,
    health: str | None = None,
) -> dict[str, Any]:
    """Docker inspect payload with just the keys harbor-cli reads."""
    state: dict[str, Any] = {"Status": status, "ExitCode": exit_code, "OOMKilled": oom_killed}
    if health is not None:
        state["Health"] = {"Status": health}
    return {
        "Id": container_id,
        "Name": f"/{name}",
        "State": state,
        "Config": {"Image": image},
        "NetworkSettings": {"Ports": ports or {}},
        "RestartCount": restart_count,
    }


def make_container(logs: bytes = b"", **attrs_kwargs: Any) -> MagicMock:
    attrs = make_container_attrs(**attrs_kwargs)
    container = MagicMock()
    container.id = attrs["Id"]
    container.name = attrs["Name"].lstrip("/")
    container.status = attrs["State"]["Status"]
    container.attrs = attrs
    container.logs.return_value = logs
    return container


@pytest.fixture
def prompts() -> ScriptedPromptProvider:
    return ScriptedPromptProvider()


@pytest.fixture
def runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def config(project_dir: Path) -> HarborConfig:
    """Configuration rooted at an empty temp project."""
    return HarborConfig(project_dir=str(project_dir))


@pytest.fixture
def project_with_artifacts(project_dir: Path) -> Path:
    (project_dir / "Dockerfile").write_text("FROM scratch\n")
    (project_dir / "docker-compose.yml").write_text("services: {}\n")
    return project_dir


@pytest.fixture
def docker_client() -> MagicMock:
    """Docker SDK client double with no containers."""
    client = MagicMock()
    client.containers.list.return_value = []
    client.version.return_value = {"Version": "27.0.0"}
    return client


@pytest.fixture
def runtime(config: HarborConfig, docker_client: MagicMock) -> ContainerRuntime:
    return ContainerRuntime(config, client_factory=lambda: docker_client)
