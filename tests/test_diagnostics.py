"""Tests for the diagnostic inspector."""

import pytest
from docker.errors import NotFound

from conftest import ScriptedPromptProvider, make_container
from harbor_cli.core.config_loader import DiagnosticSettings
from harbor_cli.core.exceptions import (
    ContainerNotFoundError,
    MissingPrerequisiteError,
    NoSelectionError,
)
from harbor_cli.models.container import ContainerSnapshot
from harbor_cli.models.enums import Severity
from harbor_cli.services.diagnostics import DiagnosticInspector, default_rules

PUBLISHED = {"3000/tcp": [{"HostIp": "0.0.0.0", "HostPort": "3000"}]}


def snapshot(**overrides) -> ContainerSnapshot:
    fields = {
        "id": "abcdef1234567890",
        "name": "web",
        "status": "running",
        "ports": {"3000/tcp": ["0.0.0.0:3000"]},
    }
    fields.update(overrides)
    return ContainerSnapshot(**fields)


def codes_for(snap: ContainerSnapshot, threshold: int = 3) -> list[str]:
    rules = default_rules(DiagnosticSettings(restart_loop_threshold=threshold))
    return [d.code for rule in rules if (d := rule.evaluate(snap)) is not None]


class TestDiagnosticRules:
    """Each heuristic in isolation."""

    def test_healthy_container(self):
        assert codes_for(snapshot()) == []

    def test_exited_without_ports(self):
        codes = codes_for(snapshot(status="exited", ports={}))

        assert "not-running" in codes
        assert "no-ports" in codes

    def test_not_running_remedies_use_short_id(self):
        rule = default_rules(DiagnosticSettings())[0]

        diagnosis = rule.evaluate(snapshot(status="exited"))

        assert diagnosis.severity is Severity.ERROR
        assert diagnosis.remedies == [
            "Check logs: docker logs abcdef123456",
            "Restart it: docker restart abcdef123456",
        ]

    def test_nonzero_exit_only_when_stopped(self):
        assert "nonzero-exit" in codes_for(snapshot(status="exited", exit_code=137))
        assert "nonzero-exit" not in codes_for(snapshot(status="exited", exit_code=0))
        assert "nonzero-exit" not in codes_for(snapshot(exit_code=1))

    def test_oom_killed(self):
        assert "oom-killed" in codes_for(snapshot(status="exited", oom_killed=True))

    @pytest.mark.parametrize("restarts,flagged", [(2, False), (3, True), (10, True)])
    def test_restart_loop_threshold(self, restarts, flagged):
        assert ("restart-loop" in codes_for(snapshot(restart_count=restarts))) is flagged

    def test_unhealthy(self):
        assert "unhealthy" in codes_for(snapshot(health="unhealthy"))
        assert "unhealthy" not in codes_for(snapshot(health="healthy"))

    def test_exposed_but_unpublished(self):
        codes = codes_for(snapshot(ports={"80/tcp": []}))

        assert codes == ["ports-unpublished"]


@pytest.mark.asyncio
class TestDiagnosticInspector:
    """Listing, selection, inspection and log tail."""

    async def test_no_containers(self, config, runtime):
        inspector = DiagnosticInspector(config, runtime, ScriptedPromptProvider())

        with pytest.raises(MissingPrerequisiteError) as exc_info:
            await inspector.troubleshoot()

        assert exc_info.value.message == "No containers found"
        assert exc_info.value.exit_code == 3

    async def test_exited_container_without_ports(self, config, runtime, docker_client):
        container = make_container(status="exited", exit_code=1, logs=b"Error: Cannot find module\n")
        docker_client.containers.list.return_value = [container]
        docker_client.containers.get.return_value = container
        prompts = ScriptedPromptProvider(selections=[container.id], confirms=[True])

        report = await DiagnosticInspector(config, runtime, prompts).troubleshoot()

        assert report.snapshot.name == "web"
        assert report.snapshot.captured_at is not None
        assert "not-running" in report.codes
        assert "no-ports" in report.codes
        assert "nonzero-exit" in report.codes
        assert report.logs_fetched
        assert report.snapshot.log_tail == ["Error: Cannot find module"]
        container.logs.assert_called_once_with(stdout=True, stderr=True, tail=20)
        assert prompts.last_choices == [("web (exited)", container.id)]

    async def test_explicit_container_skips_selection(self, config, runtime, docker_client):
        container = make_container(ports=PUBLISHED)
        docker_client.containers.list.return_value = [container]
        docker_client.containers.get.return_value = container
        prompts = ScriptedPromptProvider()

        report = await DiagnosticInspector(config, runtime, prompts).troubleshoot(
            "web", include_logs=False
        )

        assert report.healthy
        assert not report.logs_fetched
        assert prompts.asked == []
        docker_client.containers.get.assert_called_once_with("web")
        container.logs.assert_not_called()

    async def test_unknown_container(self, config, runtime, docker_client):
        docker_client.containers.list.return_value = [make_container()]
        docker_client.containers.get.side_effect = NotFound("No such container: ghost")

        with pytest.raises(ContainerNotFoundError) as exc_info:
            await DiagnosticInspector(config, runtime, ScriptedPromptProvider()).troubleshoot("ghost")

        assert exc_info.value.exit_code == 8
        assert "docker ps -a" in exc_info.value.hint

    async def test_nothing_selected(self, config, runtime, docker_client):
        docker_client.containers.list.return_value = [make_container()]
        prompts = ScriptedPromptProvider(selections=[None])

        with pytest.raises(NoSelectionError):
            await DiagnosticInspector(config, runtime, prompts).troubleshoot()

        docker_client.containers.get.assert_not_called()

    async def test_log_tail_follows_settings(self, config, runtime, docker_client):
        config.diagnostics = DiagnosticSettings(log_tail_lines=5)
        container = make_container(ports=PUBLISHED, logs=b"a\nb\n")
        docker_client.containers.list.return_value = [container]
        docker_client.containers.get.return_value = container

        report = await DiagnosticInspector(config, runtime, ScriptedPromptProvider()).troubleshoot(
            container.id
        )

        # Unanswered log prompt defaults to yes
        assert report.snapshot.log_tail == ["a", "b"]
        container.logs.assert_called_once_with(stdout=True, stderr=True, tail=5)
