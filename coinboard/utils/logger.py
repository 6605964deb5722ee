"""Structured logging module with JSON output support."""

import json
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from coinboard.utils.config import config

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}


class StructuredLogger:
    """Logger that writes one JSON object per log entry."""

    def __init__(self, component: str, file_path: str | None = None, min_level: str = "DEBUG"):
        """
        Initialize the structured logger.

        Args:
            component: Name of the component using this logger
            file_path: Optional path to also append log lines to
            min_level: Entries below this level are dropped
        """
        self.component = component
        self.file_path = file_path
        self.min_level = min_level.upper() if min_level.upper() in LEVELS else "DEBUG"
        if file_path:
            Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, component: str) -> "StructuredLogger":
        """Build a logger honouring LOG_LEVEL and LOG_FILE."""
        return cls(component, file_path=config.logging.file_path, min_level=config.logging.level)

    def is_enabled_for(self, level: str) -> bool:
        """Return True if entries at ``level`` would be written."""
        return LEVELS.get(level.upper(), LEVELS["INFO"]) >= LEVELS[self.min_level]

    def _format_log_entry(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: dict[str, Any] | None = None,
    ) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level,
            "component": self.component,
            "message": message,
        }

        if context:
            entry["context"] = context

        if exception:
            entry["exception"] = exception

        # default=str keeps datetimes and plain enums in context from breaking a log line
        return json.dumps(entry, default=str)

    @staticmethod
    def _exception_details(exception: BaseException) -> dict[str, Any]:
        return {
            "type": type(exception).__name__,
            "message": str(exception),
            "stack_trace": "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            ),
        }

    def _write_log(self, log_entry: str) -> None:
        try:
            print(log_entry, file=sys.stdout)
            if self.file_path:
                with open(self.file_path, "a") as f:
                    f.write(log_entry + "\n")
        except OSError as e:
            print(f"Failed to write log: {e}", file=sys.stderr)

    def _emit(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None,
        exception: BaseException | None = None,
    ) -> None:
        if not self.is_enabled_for(level):
            return
        exc_dict = self._exception_details(exception) if exception else None
        self._write_log(self._format_log_entry(level, message, context, exc_dict))

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log a debug message."""
        self._emit("DEBUG", message, context)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Log an info message."""
        self._emit("INFO", message, context)

    def warning(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log a warning, optionally with the exception that caused it."""
        self._emit("WARNING", message, context, exception)

    def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log an error message with optional exception details."""
        self._emit("ERROR", message, context, exception)

    def critical(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log a critical message with optional exception details."""
        self._emit("CRITICAL", message, context, exception)

    def log(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """
        Log a message with specified level.

        Unknown levels are logged as INFO.
        """
        level = level.upper()
        if level not in LEVELS:
            level = "INFO"
        self._emit(level, message, context, exception)
