"""
Structured logging for the academy registry.

Module code logs through the standard ``logging`` loggers. This module adds
a JSON-lines logger for machine consumers, and an EventLog subscriber that
writes every registry event as one line.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, TextIO

from academy_registry.registrar.errors import RegistrarError
from academy_registry.registrar.events import EventRecord


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def numeric(self) -> int:
        """Get the matching ``logging`` level number."""
        return getattr(logging, self.name)


@dataclass
class LogRecord:
    """A structured log record.

    Attributes:
        level: Log level.
        event: Event name/type.
        message: Human-readable message.
        timestamp: Unix timestamp.
        data: Additional structured data.
    """

    level: str
    event: str
    message: str = ""
    timestamp: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)

    logger_name: str = ""
    thread_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d.update(d.pop("data", {}))
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class StructuredLogger:
    """Structured logging with JSON output.

    Example:
        logger = StructuredLogger("academy_registry")

        logger.info("school_created", message="School registered", school=handle)

        # Bound context is added to every record
        audit = logger.bind(registry="north")
        audit.warning("operation_rejected", caller=caller)
    """

    def __init__(
        self,
        name: str = "academy_registry",
        level: LogLevel = LogLevel.INFO,
        output: TextIO | None = None,
        json_format: bool = True,
    ):
        """Initialize the logger.

        Args:
            name: Logger name.
            level: Minimum log level.
            output: Output stream (default: stderr).
            json_format: Output as JSON (vs. human-readable).
        """
        self.name = name
        self._level = level
        self._output = output or sys.stderr
        self._json_format = json_format
        self._context: dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def level(self) -> LogLevel:
        return self._level

    def bind(self, **context: Any) -> StructuredLogger:
        """Create a new logger with bound context.

        Args:
            **context: Context to bind to all log records.

        Returns:
            New logger with bound context.
        """
        bound = StructuredLogger(
            name=self.name,
            level=self._level,
            output=self._output,
            json_format=self._json_format,
        )
        bound._context = {**self._context, **context}
        return bound

    def _log(self, level: LogLevel, event: str, message: str = "", **data: Any) -> None:
        if level.numeric < self._level.numeric:
            return

        record = LogRecord(
            level=level.value,
            event=event,
            message=message,
            data={**self._context, **data},
            logger_name=self.name,
            thread_name=threading.current_thread().name,
        )
        self._emit(record)

    def _emit(self, record: LogRecord) -> None:
        with self._lock:
            line = record.to_json() if self._json_format else self._format_human(record)
            print(line, file=self._output)

    def _format_human(self, record: LogRecord) -> str:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.timestamp))
        parts = [f"[{timestamp}]", f"[{record.level.upper()}]", f"[{record.event}]"]
        if record.message:
            parts.append(record.message)
        if record.data:
            parts.append("(" + " ".join(f"{k}={v}" for k, v in record.data.items()) + ")")
        return " ".join(parts)

    def debug(self, event: str, message: str = "", **data: Any) -> None:
        self._log(LogLevel.DEBUG, event, message, **data)

    def info(self, event: str, message: str = "", **data: Any) -> None:
        self._log(LogLevel.INFO, event, message, **data)

    def warning(self, event: str, message: str = "", **data: Any) -> None:
        self._log(LogLevel.WARNING, event, message, **data)

    def error(self, event: str, message: str = "", **data: Any) -> None:
        self._log(LogLevel.ERROR, event, message, **data)

    def critical(self, event: str, message: str = "", **data: Any) -> None:
        self._log(LogLevel.CRITICAL, event, message, **data)

    # Registry-specific helpers

    def event_emitted(self, record: EventRecord) -> None:
        """Log a registry event with its sequence number and arguments."""
        self.info(
            "registry_event",
            record.name,
            sequence=record.sequence,
            event_type=record.name,
            **asdict(record.event),
        )

    def operation_rejected(
        self,
        error: RegistrarError,
        operation: str = "",
        caller: str | None = None,
    ) -> None:
        """Log a rejected registry operation."""
        data = {
            **error.details,
            "error_type": type(error).__name__,
            "operation": operation,
            "caller": caller,
        }
        self.warning("operation_rejected", error.message, **data)


class EventLogSubscriber:
    """
    EventLog subscriber that forwards every record to a StructuredLogger.

    Example:
        log = EventLog()
        log.subscribe(EventLogSubscriber(get_logger()))
    """

    def __init__(self, logger: StructuredLogger):
        self.logger = logger
        self.forwarded = 0

    def __call__(self, record: EventRecord) -> None:
        self.logger.event_emitted(record)
        self.forwarded += 1


_global_logger: StructuredLogger | None = None


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    output: TextIO | None = None,
    json_format: bool = True,
) -> StructuredLogger:
    """Configure the shared structured logger.

    Also sets the ``academy_registry`` stdlib logger to the same level so
    module logs and JSON logs agree.

    Args:
        level: Log level.
        output: Output stream.
        json_format: Use JSON format.

    Returns:
        Configured logger.
    """
    global _global_logger

    if isinstance(level, str):
        level = LogLevel(level.lower())

    logging.getLogger("academy_registry").setLevel(level.numeric)
    _global_logger = StructuredLogger(
        name="academy_registry",
        level=level,
        output=output,
        json_format=json_format,
    )
    return _global_logger


def get_logger() -> StructuredLogger:
    """Get the shared structured logger, creating a default one if needed."""
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger()
    return _global_logger
