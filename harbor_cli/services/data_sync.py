"""Database snapshot before migration."""

import asyncio
from pathlib import Path

import structlog
from pydantic import BaseModel

from ..core.config_loader import HarborConfig
from ..core.exceptions import CommandError, DumpFailureError
from ..core.subprocess_manager import ProcessRunner
from ..models.enums import DatabaseType


class DataSyncResult(BaseModel):
    """Outcome of a dump that ran."""

    db_type: DatabaseType
    db_name: str
    dump_path: Path
    import_hint: str


PARTIAL_SUFFIX = ".partial"

IMPORT_HINTS: dict[DatabaseType, str] = {
    DatabaseType.POSTGRES: "psql -d <db> -f {path}",
    DatabaseType.MYSQL: "mysql <db> < {path}",
}


class DataSyncExecutor:
    """Dumps a database into a fixed snapshot file with the matching tool."""

    def __init__(self, config: HarborConfig, runner: ProcessRunner):
        self.config = config
        self.runner = runner
        self.logger = structlog.get_logger().bind(component="data_sync")

    @property
    def dump_path(self) -> Path:
        return Path(self.config.project_dir) / self.config.sync.dump_file

    @property
    def partial_path(self) -> Path:
        """Scratch file the tool writes to; promoted only on success."""
        dump_path = self.dump_path
        return dump_path.with_name(dump_path.name + PARTIAL_SUFFIX)

    def dump_command(self, db_type: DatabaseType, db_name: str) -> list[str]:
        tools = {
            DatabaseType.POSTGRES: self.config.sync.postgres_tool,
            DatabaseType.MYSQL: self.config.sync.mysql_tool,
        }
        if db_type not in tools:
            raise ValueError(f"No dump tool for database type '{db_type.value}'")
        return [tools[db_type], db_name]

    async def sync(self, db_type: DatabaseType, db_name: str) -> DataSyncResult | None:
        """Dump ``db_name``; returns None when ``db_type`` is none.

        Raises:
            DumpFailureError: If the tool is missing, fails, or times out
        """
        if db_type is DatabaseType.NONE:
            self.logger.info("Data sync skipped", db_type=db_type.value)
            return None

        cmd = self.dump_command(db_type, db_name)
        dump_path = self.dump_path
        partial_path = self.partial_path
        hint = f"Ensure `{cmd[0]}` is installed, on PATH, and can reach database '{db_name}'."
        self.logger.info("Dumping database", db_type=db_type.value, db_name=db_name, path=str(dump_path))

        try:
            result = await self.runner.run_command(
                cmd,
                timeout=self.config.timeouts.dump_timeout,
                check=False,
                stream=True,
                stdout_path=partial_path,
            )
        except CommandError as e:
            partial_path.unlink(missing_ok=True)
            self.logger.warning("Dump tool unavailable", tool=cmd[0], error=e.message)
            raise DumpFailureError(
                f"Database dump could not start: {e.message}", hint=hint, output=e.output
            ) from e
        except asyncio.TimeoutError as e:
            partial_path.unlink(missing_ok=True)
            raise DumpFailureError(
                f"Database dump timed out after {self.config.timeouts.dump_timeout} seconds",
                hint=hint,
            ) from e

        if not result.success:
            partial_path.unlink(missing_ok=True)
            self.logger.warning("Dump failed", tool=cmd[0], returncode=result.returncode)
            raise DumpFailureError(
                f"Database dump failed with exit code {result.returncode}",
                hint=hint,
                output=result.error_text,
            )

        partial_path.replace(dump_path)
        self.logger.info("Database dumped", path=str(dump_path))
        return DataSyncResult(
            db_type=db_type,
            db_name=db_name,
            dump_path=dump_path,
            import_hint=IMPORT_HINTS[db_type].format(path=dump_path.name),
        )
