"""Logging configuration for harbor-cli with dual output (console + file)."""

import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.stdlib import BoundLogger, LoggerFactory, ProcessorFormatter

LOG_FILE_NAME = "harbor.log"


def setup_logging(
    log_dir: Path | str | None = None,
    log_level: str = "INFO",
    console_log_level: str = "WARNING",
    max_file_size_mb: int = 10,
) -> None:
    """Setup dual logging system: console + rotating file.

    The console handler writes to stderr so log events never interleave with
    the operator-facing output on stdout.

    Args:
        log_dir: Directory for the log file (console-only when None)
        log_level: Level for the file log
        console_log_level: Level for the console handler
        max_file_size_mb: Max file size before truncation (no backup files kept)
    """
    log_level_num = getattr(logging, log_level.upper(), logging.INFO)
    console_level_num = getattr(logging, console_log_level.upper(), logging.WARNING)
    max_bytes = max_file_size_mb * 1024 * 1024

    # Clear any existing handlers to prevent duplicates
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(min(log_level_num, console_level_num))

    renderer = (
        structlog.dev.ConsoleRenderer()
        if sys.stderr.isatty()
        else structlog.processors.JSONRenderer()
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level_num)
    console_handler.setFormatter(ProcessorFormatter(processor=renderer))
    root_logger.addHandler(console_handler)

    log_file: Path | None = None
    if log_dir is not None:
        log_file = Path(log_dir) / LOG_FILE_NAME
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=0,  # Don't keep old files, just truncate
            encoding="utf-8",
        )
        file_handler.setLevel(log_level_num)
        file_handler.setFormatter(
            ProcessorFormatter(processor=structlog.processors.JSONRenderer())
        )
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=True,
    )

    get_logger().debug(
        "Logging system initialized",
        log_file=str(log_file) if log_file else None,
        log_level=log_level,
        console_log_level=console_log_level,
        max_file_size_mb=max_file_size_mb,
    )


def resolve_log_dir(configured: str | None = None) -> Path | None:
    """Pick the first writable log directory, or None for console-only logging."""
    candidates = [
        configured,
        str(Path(xdg) / "harbor-cli" / "logs") if (xdg := os.getenv("XDG_DATA_HOME")) else None,
        str(Path.home() / ".local" / "share" / "harbor-cli" / "logs"),
        str(Path(tempfile.gettempdir()) / "harbor-cli-logs"),
    ]

    for candidate in candidates:
        if not candidate:
            continue
        try:
            candidate_path = Path(candidate)
            candidate_path.mkdir(parents=True, exist_ok=True)
            if candidate_path.is_dir() and os.access(candidate_path, os.W_OK):
                return candidate_path
        except OSError:
            continue

    return None


def get_logger(name: str = "harbor") -> Any:
    """Get the application logger."""
    return structlog.get_logger(name)
