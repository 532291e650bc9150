"""Configuration management for harbor-cli.

The loaded ``HarborConfig`` is an explicit value object handed to every
service. Nothing below the CLI reads the process environment directly.
"""

import asyncio
import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings

from ..constants import (
    DB_DUMP_FILE,
    DEFAULT_BUILD_CONTEXT,
    DEFAULT_BUILD_PLATFORMS,
    DEFAULT_DB_NAME,
    LOG_TAIL_LINES,
    RESTART_LOOP_THRESHOLD,
)
from .exceptions import ConfigurationError
from .settings import TimeoutSettings

logger = structlog.get_logger()

PROJECT_CONFIG_FILE = "harbor.yml"


class BuildSettings(BaseModel):
    """Multi-platform image build configuration."""

    docker_bin: str = "docker"
    platforms: list[str] = Field(default_factory=lambda: list(DEFAULT_BUILD_PLATFORMS))

    @field_validator("platforms")
    @classmethod
    def require_multiple_platforms(cls, v: list[str]) -> list[str]:
        """A published image must cover at least two architectures."""
        platforms = [p.strip() for p in v if p and p.strip()]
        if len(platforms) < 2:
            raise ValueError("At least two build platforms are required (e.g. linux/amd64, linux/arm64)")
        return platforms


class DeploySettings(BaseModel):
    """Staging deployment configuration."""

    compose_command: list[str] = Field(default_factory=lambda: ["docker", "compose"])

    @field_validator("compose_command", mode="before")
    @classmethod
    def split_compose_command(cls, v: str | list[str]) -> list[str]:
        """Accept ``docker-compose`` style strings as well as argument lists."""
        if isinstance(v, str):
            v = v.split()
        if not v:
            raise ValueError("Compose command cannot be empty")
        return v


class SyncSettings(BaseModel):
    """Database snapshot configuration."""

    dump_file: str = DB_DUMP_FILE
    postgres_tool: str = "pg_dump"
    mysql_tool: str = "mysqldump"
    default_db_name: str = DEFAULT_DB_NAME


class DiagnosticSettings(BaseModel):
    """Troubleshooting configuration."""

    log_tail_lines: int = Field(default=LOG_TAIL_LINES, ge=1)
    restart_loop_threshold: int = Field(default=RESTART_LOOP_THRESHOLD, ge=1)


class NotificationSettings(BaseModel):
    """SMTP delivery settings for migration notifications."""

    host: str | None = None
    port: int = 587
    username: str | None = None
    password: SecretStr | None = None
    use_tls: bool = True
    sender: str | None = None  # Defaults to username

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username and self.password)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    log_level: str = "INFO"
    console_log_level: str = "WARNING"
    log_dir: str | None = None
    max_file_size_mb: int = Field(default=10, ge=1, le=100)


class HarborConfig(BaseSettings):
    """Main configuration for harbor-cli."""

    project_dir: str = DEFAULT_BUILD_CONTEXT
    build: BuildSettings = Field(default_factory=BuildSettings)
    deploy: DeploySettings = Field(default_factory=DeploySettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    diagnostics: DiagnosticSettings = Field(default_factory=DiagnosticSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    config_file: str | None = None

    model_config = {
        "env_prefix": "HARBOR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def load_config(config_path: str | None = None) -> HarborConfig:
    """Load configuration from multiple sources (synchronous interface).

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If a config file is unreadable or invalid
    """
    try:
        asyncio.get_running_loop()
        raise RuntimeError(
            "load_config() cannot be called from within an async context. "
            "Use 'await load_config_async()' instead."
        )
    except RuntimeError as e:
        if "no running event loop" in str(e).lower():
            return asyncio.run(load_config_async(config_path))
        raise


async def load_config_async(config_path: str | None = None) -> HarborConfig:
    """Load configuration from multiple sources (async interface).

    Priority, lowest first: defaults, user config, project config,
    environment variables.
    """
    load_dotenv()

    merged: dict[str, Any] = {}

    user_config_path = _user_config_dir() / "config.yml"
    await _load_config_file(merged, user_config_path)

    project_config_path = Path(
        config_path or os.getenv("HARBOR_CONFIG", PROJECT_CONFIG_FILE)
    )
    if config_path and not project_config_path.exists():
        raise ConfigurationError(
            f"Config file not found: {project_config_path}",
            hint="Pass an existing file with --config or drop the flag to use defaults.",
        )
    await _load_config_file(merged, project_config_path)

    try:
        config = HarborConfig(**merged)
        _apply_env_overrides(config)
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if project_config_path.exists():
        config.config_file = str(project_config_path)

    logger.debug(
        "Configuration loaded",
        config_file=config.config_file,
        project_dir=config.project_dir,
        platforms=config.build.platforms,
    )
    return config


def _user_config_dir() -> Path:
    """Return the per-user configuration directory."""
    if xdg := os.getenv("XDG_CONFIG_HOME"):
        return Path(xdg) / "harbor-cli"
    return Path.home() / ".config" / "harbor-cli"


async def _load_config_file(merged: dict[str, Any], config_path: Path) -> None:
    """Load a YAML file and deep-merge it into the accumulated data."""
    if not config_path.exists():
        return

    yaml_config = await _load_yaml_config(config_path)
    _merge_config(merged, yaml_config)


async def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load YAML configuration file."""
    try:
        content = await asyncio.to_thread(config_path.read_text)

        content = _expand_yaml_config(content)

        loaded = yaml.safe_load(content)
        # yaml.safe_load can return None, str, list, etc.
        if not isinstance(loaded, dict):
            return {}
        return loaded
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e


def _expand_yaml_config(content: str) -> str:
    """Securely expand environment variables with allowlist."""

    allowed_env_vars = {
        "HOME",
        "USER",
        "XDG_CONFIG_HOME",
        "XDG_DATA_HOME",
        "HARBOR_CONFIG",
        "HARBOR_LOG_DIR",
        "SMTP_HOST",
        "SMTP_PORT",
        "SMTP_USER",
        "SMTP_PASS",
    }

    def replace_if_allowed(match: re.Match[str]) -> str:
        var_name = match.group(1)
        original_pattern = match.group(0)

        if var_name in allowed_env_vars:
            return os.getenv(var_name, original_pattern)  # Keep original if not found
        logger.warning(
            "Environment variable not in allowlist, skipping expansion",
            variable=var_name,
            pattern=original_pattern,
        )
        return original_pattern

    content = re.sub(r"\$\{([^}]+)\}", replace_if_allowed, content)
    content = re.sub(r"\$([A-Za-z_][A-Za-z0-9_]*)", replace_if_allowed, content)

    return content


def _apply_env_overrides(config: HarborConfig) -> None:
    """Apply environment variable overrides."""
    if project_dir := os.getenv("HARBOR_PROJECT_DIR"):
        config.project_dir = project_dir
    if docker_bin := os.getenv("HARBOR_DOCKER_BIN"):
        config.build.docker_bin = docker_bin
    if platforms := os.getenv("HARBOR_BUILD_PLATFORMS"):
        config.build = BuildSettings(
            docker_bin=config.build.docker_bin, platforms=platforms.split(",")
        )
    if compose_command := os.getenv("HARBOR_COMPOSE_COMMAND"):
        config.deploy = DeploySettings(compose_command=compose_command)
    if log_level := os.getenv("HARBOR_LOG_LEVEL"):
        config.logging.log_level = log_level
    if log_dir := os.getenv("HARBOR_LOG_DIR"):
        config.logging.log_dir = log_dir

    # SMTP credentials keep the names operators already export
    notifications = config.notifications
    if smtp_host := os.getenv("SMTP_HOST"):
        notifications.host = smtp_host
    if smtp_port := os.getenv("SMTP_PORT"):
        notifications.port = int(smtp_port)
    if smtp_user := os.getenv("SMTP_USER"):
        notifications.username = smtp_user
    if smtp_pass := os.getenv("SMTP_PASS"):
        notifications.password = SecretStr(smtp_pass)


def _merge_config(base: dict[str, Any], update: dict[str, Any]) -> None:
    """Merge configuration dictionaries with deep merging."""
    for key, value in update.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value
