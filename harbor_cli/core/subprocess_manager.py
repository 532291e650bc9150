"""Centralized subprocess management with proper resource handling.

External tools (buildx, dump tools, compose) run through a ``ProcessRunner``.
The default ``SubprocessManager`` either captures output or streams it live
to the terminal while still capturing it, so failures can be reported with
the tool's own error text.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import IO, Any, Optional, Protocol

import structlog

from .exceptions import CommandError

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30  # Default timeout in seconds
KILL_TIMEOUT = 5  # Time to wait after SIGTERM before SIGKILL
COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126


class SubprocessResult:
    """Result of a subprocess execution."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        cmd: list[str],
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.cmd = cmd

    @property
    def success(self) -> bool:
        """Check if the command succeeded."""
        return self.returncode == 0

    @property
    def error_text(self) -> str:
        """Best available failure output, stderr first."""
        return self.stderr.strip() or self.stdout.strip() or "Command failed"

    def check_returncode(self) -> None:
        """Raise an exception if the command failed."""
        if self.returncode != 0:
            raise CommandError(
                f"Command failed with exit code {self.returncode}: {self.error_text}",
                returncode=self.returncode,
                cmd=self.cmd,
                output=self.error_text,
            )


class ProcessRunner(Protocol):
    """Process-execution capability consumed by the pipeline services."""

    async def run_command(
        self,
        cmd: list[str],
        *,
        timeout: Optional[float] = None,
        check: bool = True,
        stream: bool = False,
        cwd: Optional[str] = None,
        env: Optional[dict[str, str]] = None,
        stdout_path: Optional[Path] = None,
    ) -> SubprocessResult: ...


class SubprocessManager:
    """Runs external commands with cleanup on timeout or cancellation."""

    def __init__(self, echo_stdout: IO[str] | None = None, echo_stderr: IO[str] | None = None):
        self._echo_stdout = echo_stdout
        self._echo_stderr = echo_stderr

    async def run_command(
        self,
        cmd: list[str],
        *,
        timeout: Optional[float] = None,
        check: bool = True,
        stream: bool = False,
        cwd: Optional[str] = None,
        env: Optional[dict[str, str]] = None,
        stdout_path: Optional[Path] = None,
    ) -> SubprocessResult:
        """
        Run a command asynchronously with proper resource management.

        Args:
            cmd: Command and arguments as a list
            timeout: Timeout in seconds (default: DEFAULT_TIMEOUT)
            check: Raise exception if command fails
            stream: Echo output to the terminal while capturing it
            cwd: Working directory for the command
            env: Environment variables
            stdout_path: Redirect stdout into this file instead of capturing it

        Returns:
            SubprocessResult with returncode, stdout, and stderr

        Raises:
            CommandError: If the binary is missing or not executable, the output
                file cannot be opened, or check=True and the command fails
            asyncio.TimeoutError: If command times out
        """
        if timeout is None:
            timeout = DEFAULT_TIMEOUT

        logger.debug(
            "Executing command",
            command=" ".join(cmd),
            timeout=timeout,
            cwd=cwd,
            stream=stream,
            stdout_path=str(stdout_path) if stdout_path else None,
        )

        stdout_file = None
        process = None
        try:
            if stdout_path is not None:
                try:
                    stdout_file = open(stdout_path, "wb")  # noqa: SIM115
                except OSError as e:
                    raise CommandError(
                        f"Cannot write output file {stdout_path}: {e.strerror or e}",
                        returncode=COMMAND_NOT_EXECUTABLE,
                        cmd=cmd,
                        output=str(e),
                    ) from e

            kwargs: dict[str, Any] = {
                "cwd": cwd,
                "env": env or os.environ.copy(),
                "stdout": stdout_file if stdout_file is not None else asyncio.subprocess.PIPE,
                "stderr": asyncio.subprocess.PIPE,
            }

            try:
                process = await asyncio.create_subprocess_exec(*cmd, **kwargs)
            except FileNotFoundError as e:
                raise CommandError(
                    f"Command not found: {cmd[0]}",
                    returncode=COMMAND_NOT_FOUND,
                    cmd=cmd,
                    output=str(e),
                ) from e
            except OSError as e:
                raise CommandError(
                    f"Command could not be started: {cmd[0]}: {e.strerror or e}",
                    returncode=COMMAND_NOT_EXECUTABLE,
                    cmd=cmd,
                    output=str(e),
                ) from e

            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    self._collect(process, stream), timeout=timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Command timed out, terminating process",
                    command=" ".join(cmd),
                    timeout=timeout,
                    pid=process.pid,
                )
                await self._terminate(process)
                raise asyncio.TimeoutError(
                    f"Command timed out after {timeout} seconds: {' '.join(cmd)}"
                )

            result = SubprocessResult(
                returncode=process.returncode or 0,
                stdout=stdout_bytes.decode(errors="replace"),
                stderr=stderr_bytes.decode(errors="replace"),
                cmd=cmd,
            )

            logger.debug("Command finished", command=cmd[0], returncode=result.returncode)

            if check:
                result.check_returncode()

            return result

        finally:
            if stdout_file is not None:
                stdout_file.close()
            # Ensure process is fully terminated
            if process is not None and process.returncode is None:
                await self._terminate(process)

    async def _collect(
        self, process: asyncio.subprocess.Process, stream: bool
    ) -> tuple[bytes, bytes]:
        """Wait for the process, reading both pipes until EOF."""
        if not stream:
            stdout_bytes, stderr_bytes = await process.communicate()
            return stdout_bytes or b"", stderr_bytes or b""

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        await asyncio.gather(
            self._pump(process.stdout, self._echo_stdout or sys.stdout, stdout_chunks),
            self._pump(process.stderr, self._echo_stderr or sys.stderr, stderr_chunks),
        )
        await process.wait()
        return b"".join(stdout_chunks), b"".join(stderr_chunks)

    @staticmethod
    async def _pump(
        reader: asyncio.StreamReader | None, sink: IO[str], chunks: list[bytes]
    ) -> None:
        """Tee a pipe line by line into ``sink`` and ``chunks``."""
        if reader is None:
            return
        while True:
            line = await reader.readline()
            if not line:
                break
            chunks.append(line)
            sink.write(line.decode(errors="replace"))
            sink.flush()

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Terminate gracefully, then kill."""
        try:
            process.terminate()
            await asyncio.wait_for(process.wait(), timeout=KILL_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Process did not terminate gracefully, sending SIGKILL", pid=process.pid)
            process.kill()
            await process.wait()
        except ProcessLookupError:
            # Process already terminated
            pass
