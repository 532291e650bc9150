"""Tests for multi-platform build and publish."""

import asyncio

import pytest

from conftest import FakeProcessRunner, failed_result
from harbor_cli.core.config_loader import BuildSettings
from harbor_cli.core.exceptions import BuildFailureError, CommandError
from harbor_cli.services.build import BuildPublisher


def test_build_command_targets_every_platform(config, runner):
    cmd = BuildPublisher(config, runner).build_command("user/app:latest")

    assert cmd == [
        "docker",
        "buildx",
        "build",
        "--platform",
        "linux/amd64,linux/arm64",
        "-t",
        "user/app:latest",
        "--push",
        ".",
    ]


def test_build_command_uses_configured_platforms(config, runner):
    config.build = BuildSettings(docker_bin="/usr/local/bin/docker", platforms=["linux/amd64", "linux/arm/v7"])

    cmd = BuildPublisher(config, runner).build_command("registry.example.com/team/app:1.2")

    assert cmd[0] == "/usr/local/bin/docker"
    assert cmd[cmd.index("--platform") + 1] == "linux/amd64,linux/arm/v7"
    assert cmd[cmd.index("-t") + 1] == "registry.example.com/team/app:1.2"


@pytest.mark.asyncio
class TestBuildPublisher:
    """Execution and failure conversion."""

    async def test_success_streams_in_project_dir(self, config, runner):
        await BuildPublisher(config, runner).build_and_publish("user/app:latest")

        call = runner.calls[0]
        assert call["stream"] is True
        assert call["check"] is False
        assert call["cwd"] == config.project_dir
        assert call["timeout"] == config.timeouts.build_timeout

    async def test_nonzero_exit_carries_tool_output(self, config):
        runner = FakeProcessRunner([failed_result(1, stderr="ERROR: failed to solve: denied")])

        with pytest.raises(BuildFailureError) as exc_info:
            await BuildPublisher(config, runner).build_and_publish("user/app:latest")

        error = exc_info.value
        assert error.exit_code == 5
        assert "exit code 1" in error.message
        assert "failed to solve" in error.output
        assert "docker login" in error.hint

    async def test_missing_binary(self, config):
        runner = FakeProcessRunner([CommandError("Command not found: docker", returncode=127)])

        with pytest.raises(BuildFailureError) as exc_info:
            await BuildPublisher(config, runner).build_and_publish("user/app:latest")

        assert "could not start" in exc_info.value.message

    async def test_timeout(self, config):
        runner = FakeProcessRunner([asyncio.TimeoutError("Command timed out")])

        with pytest.raises(BuildFailureError) as exc_info:
            await BuildPublisher(config, runner).build_and_publish("user/app:latest")

        assert "timed out" in exc_info.value.message
