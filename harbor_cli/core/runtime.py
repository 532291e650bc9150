"""Container runtime access for harbor-cli.

Wraps the Docker SDK client used for one invocation. SDK calls are blocking,
so each one runs in a worker thread and is awaited before the next is issued.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import docker
import structlog
from docker.errors import DockerException, NotFound

from .config_loader import HarborConfig
from .exceptions import ContainerNotFoundError, RuntimeUnavailableError

logger = structlog.get_logger()

START_RUNTIME_HINT = (
    "Start the Docker daemon (e.g. `sudo systemctl start docker` or open Docker Desktop) "
    "and check `docker info`."
)

ClientFactory = Callable[[], docker.DockerClient]


class ContainerRuntime:
    """Single Docker SDK connection per invocation."""

    def __init__(self, config: HarborConfig, client_factory: ClientFactory | None = None):
        self.config = config
        self._client_factory = client_factory or self._default_factory
        self._client: docker.DockerClient | None = None

    def _default_factory(self) -> docker.DockerClient:
        return docker.from_env(timeout=self.config.timeouts.docker_client_timeout)

    async def get_client(self) -> docker.DockerClient:
        """Get a connected Docker SDK client.

        Raises:
            RuntimeUnavailableError: If the daemon cannot be reached
        """
        if self._client is not None:
            return self._client

        try:
            client = await asyncio.to_thread(self._client_factory)
            await asyncio.to_thread(client.ping)
        except (DockerException, OSError) as e:
            logger.error("Container runtime unreachable", error=str(e))
            raise RuntimeUnavailableError(
                f"Cannot connect to the container runtime: {e}", hint=START_RUNTIME_HINT
            ) from e

        logger.debug("Connected to container runtime")
        self._client = client
        return client

    async def version(self) -> dict[str, Any]:
        """Return daemon version info, verifying the runtime is up."""
        client = await self.get_client()
        try:
            return await asyncio.to_thread(client.version)
        except (DockerException, OSError) as e:
            raise RuntimeUnavailableError(
                f"Container runtime did not answer a version query: {e}", hint=START_RUNTIME_HINT
            ) from e

    async def list_containers(self) -> list[Any]:
        """List all containers, stopped ones included."""
        client = await self.get_client()
        try:
            return await asyncio.to_thread(client.containers.list, all=True)
        except (DockerException, OSError) as e:
            raise RuntimeUnavailableError(
                f"Failed to list containers: {e}", hint=START_RUNTIME_HINT
            ) from e

    async def get_container(self, container_ref: str) -> Any:
        """Resolve a container by name, full id or id prefix.

        Raises:
            ContainerNotFoundError: If no container matches
        """
        client = await self.get_client()
        try:
            return await asyncio.to_thread(client.containers.get, container_ref)
        except NotFound as e:
            raise ContainerNotFoundError(
                f"Container '{container_ref}' not found",
                hint="List containers with `docker ps -a` and pass a valid --container.",
            ) from e
        except (DockerException, OSError) as e:
            raise RuntimeUnavailableError(
                f"Failed to inspect container '{container_ref}': {e}", hint=START_RUNTIME_HINT
            ) from e

    async def get_logs(self, container: Any, tail: int) -> list[str]:
        """Fetch the last ``tail`` lines of combined stdout/stderr."""
        try:
            raw = await asyncio.to_thread(container.logs, stdout=True, stderr=True, tail=tail)
        except (DockerException, OSError) as e:
            raise RuntimeUnavailableError(
                f"Failed to read container logs: {e}", hint=START_RUNTIME_HINT
            ) from e

        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)
        return text.splitlines()

    def close(self) -> None:
        """Release the SDK connection."""
        if self._client is not None:
            try:
                self._client.close()
            except (DockerException, OSError) as e:
                logger.debug("Error closing Docker client", error=str(e))
            self._client = None
