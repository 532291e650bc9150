"""Timeout settings configuration for harbor-cli operations.

Provides centralized timeout configuration using Pydantic BaseSettings
with environment variable support for operational tuning.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimeoutSettings(BaseSettings):
    """External command and runtime timeout configuration."""

    docker_client_timeout: int = Field(
        30, alias="HARBOR_DOCKER_CLIENT_TIMEOUT", description="Docker SDK client timeout in seconds"
    )

    build_timeout: int = Field(
        3600, alias="HARBOR_BUILD_TIMEOUT", description="Multi-platform build timeout in seconds"
    )

    dump_timeout: int = Field(
        1800, alias="HARBOR_DUMP_TIMEOUT", description="Database dump timeout in seconds"
    )

    compose_timeout: int = Field(
        600, alias="HARBOR_COMPOSE_TIMEOUT", description="Compose up timeout in seconds"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)
