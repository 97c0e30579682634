"""
Logging module - console logging setup and a JSON Lines command audit trail.

Every leaf command that runs through the dispatcher produces two audit
entries: one when it starts and one when it completes or fails.

Log files are stored in: workspace/logs/commands_{YYYYMMDD}.jsonl
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = [
    "LogStatus",
    "LogEntry",
    "CommandLogger",
    "CommandContextLog",
    "CommandLoggerHandler",
    "read_command_logs",
    "setup_logging",
    "setup_logging_bridge",
    "teardown_logging_bridge",
]

DEFAULT_FORMAT = "%(levelname)s %(name)s: %(message)s"


class LogStatus(str, Enum):
    """Status values for log entries."""

    STARTED = "started"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class LogEntry:
    """A single audit entry."""

    command: str
    status: str
    timestamp: str
    user: str | None = None
    arguments: list[str] | None = None
    sequence: int | None = None
    duration_ms: int | None = None
    message: str | None = None
    error: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


class _StderrHandler(logging.StreamHandler):
    """Console handler bound to whatever sys.stderr is at emit time."""

    @property  # type: ignore[override]
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def setup_logging(level: str | int = "WARNING", logger_name: str = "powertools") -> logging.Logger:
    """Configure console output on stderr for the package logger.

    Calling it again only changes the level.

    Args:
        level: Level name or number; unknown names fall back to WARNING.
        logger_name: Logger to configure.

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    if not any(isinstance(h, _StderrHandler) for h in logger.handlers):
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
    return logger


class CommandLogger:
    """
    Audit logger for command invocations.

    Appends to one JSONL file per day in the logs directory.
    """

    def __init__(self, logs_dir: str | Path = "workspace/logs"):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.logs_dir / f"commands_{datetime.now().strftime('%Y%m%d')}.jsonl"
        self._sequence = 0

    def _write_entry(self, entry: LogEntry) -> None:
        """Write a log entry to the JSONL file."""
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(entry.to_json() + "\n")

    def _now(self) -> str:
        return datetime.now().isoformat()

    def command_start(
        self, command: str, user: str | None = None, arguments: list[str] | None = None
    ) -> CommandContextLog:
        """
        Log the start of a command.

        Args:
            command: Full command path, e.g. "gitblit repositories new"
            user: Caller username
            arguments: Tokens handed to the leaf command

        Returns:
            CommandContextLog for recording the outcome
        """
        self._sequence += 1
        self._write_entry(
            LogEntry(
                command=command,
                status=LogStatus.STARTED,
                timestamp=self._now(),
                user=user,
                arguments=arguments,
                sequence=self._sequence,
            )
        )
        return CommandContextLog(self, command, user, self._sequence)

    def command_complete(
        self,
        command: str,
        sequence: int,
        user: str | None = None,
        duration_ms: int | None = None,
        message: str | None = None,
    ) -> None:
        """Log successful completion of a command."""
        self._write_entry(
            LogEntry(
                command=command,
                status=LogStatus.COMPLETED,
                timestamp=self._now(),
                user=user,
                sequence=sequence,
                duration_ms=duration_ms,
                message=message,
            )
        )

    def command_error(
        self,
        command: str,
        sequence: int,
        error: str,
        user: str | None = None,
        duration_ms: int | None = None,
    ) -> None:
        """Log a failed command."""
        self._write_entry(
            LogEntry(
                command=command,
                status=LogStatus.ERROR,
                timestamp=self._now(),
                user=user,
                sequence=sequence,
                duration_ms=duration_ms,
                error=error,
            )
        )

    def log_record(self, record: logging.LogRecord, message: str) -> None:
        """Write a bridged standard logging record."""
        self._write_entry(
            LogEntry(
                command=record.name,
                status=LogStatus.ERROR if record.levelno >= logging.ERROR else LogStatus.COMPLETED,
                timestamp=self._now(),
                message=message,
                details={
                    "level": record.levelname,
                    "module": record.module,
                    "funcName": record.funcName,
                    "lineno": record.lineno,
                },
            )
        )


class CommandContextLog:
    """
    Tracks one running command for its completion entry.

    Usage:
        ctx = command_logger.command_start("gitblit repositories new", "admin")
        try:
            ...
            ctx.complete("'foo.git' created.")
        except PowertoolsError as e:
            ctx.error(str(e))
            raise
    """

    def __init__(self, logger: CommandLogger, command: str, user: str | None, sequence: int):
        self.logger = logger
        self.command = command
        self.user = user
        self.sequence = sequence
        self.start_time = datetime.now()
        self._finished = False

    def _elapsed_ms(self) -> int:
        return int((datetime.now() - self.start_time).total_seconds() * 1000)

    def complete(self, message: str | None = None) -> None:
        if self._finished:
            return
        self._finished = True
        self.logger.command_complete(
            self.command,
            self.sequence,
            user=self.user,
            duration_ms=self._elapsed_ms(),
            message=message,
        )

    def error(self, error: str) -> None:
        if self._finished:
            return
        self._finished = True
        self.logger.command_error(
            self.command,
            self.sequence,
            error,
            user=self.user,
            duration_ms=self._elapsed_ms(),
        )


def read_command_logs(
    logs_dir: str | Path = "workspace/logs", status: str | None = None
) -> list[dict[str, Any]]:
    """
    Read entries from the most recent command log.

    Args:
        logs_dir: Directory holding commands_*.jsonl files
        status: Optional status filter ("started", "completed", "error")

    Returns:
        List of log entries, or empty list if no logs found
    """
    logs_path = Path(logs_dir)
    if not logs_path.exists():
        return []

    log_files = sorted(logs_path.glob("commands_*.jsonl"), reverse=True)
    if not log_files:
        return []

    entries = []
    with open(log_files[0], encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if status is None or entry.get("status") == status:
                    entries.append(entry)
    return entries


# =============================================================================
# Standard Logging Bridge
# =============================================================================


class CommandLoggerHandler(logging.Handler):
    """
    A logging.Handler that forwards standard Python logging to CommandLogger.

    Warnings and errors from the registry and the git backend end up next to
    the command entries they belong to.
    """

    def __init__(self, command_logger: CommandLogger, min_level: int = logging.WARNING):
        super().__init__(level=min_level)
        self.command_logger = command_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.command_logger.log_record(record, self.format(record))
        except Exception:
            self.handleError(record)


def setup_logging_bridge(
    command_logger: CommandLogger,
    min_level: int = logging.WARNING,
    logger_names: list[str] | None = None,
) -> CommandLoggerHandler:
    """
    Set up a bridge from standard Python logging to CommandLogger.

    Args:
        command_logger: The CommandLogger to forward messages to
        min_level: Minimum level to forward (default: WARNING)
        logger_names: Specific logger names to bridge (default: "powertools")

    Returns:
        The handler (for later removal)
    """
    handler = CommandLoggerHandler(command_logger, min_level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    for name in logger_names or ["powertools"]:
        logging.getLogger(name).addHandler(handler)
    return handler


def teardown_logging_bridge(
    handler: CommandLoggerHandler, logger_names: list[str] | None = None
) -> None:
    """Remove a previously set up logging bridge."""
    for name in logger_names or ["powertools"]:
        logging.getLogger(name).removeHandler(handler)
