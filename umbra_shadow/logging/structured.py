"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

Wraps Python's logging module and emits one JSON object per event.

Example:
    >>> logger = StructuredLogger(component="session")
    >>> logger.info(
    ...     event=LogEvent.STABILITY_LOCKED,
    ...     message="Shadow locked",
    ...     metadata={'frame_index': 123, 'pixel_count': 512}
    ... )

Output:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "session",
        "event": "stability.locked",
        "message": "Shadow locked",
        "metadata": {"frame_index": 123, "pixel_count": 512}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "session", "tracker")
        logger: Underlying Python logger instance

    Thread Safety:
        Thread-safe via Python's logging module.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component identifier (e.g., "session")
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: umbra_shadow.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"umbra_shadow.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        """
        Internal log method with structured format.

        Args:
            level: Log level name (DEBUG, INFO, WARNING, ERROR)
            event: Typed log event
            message: Human-readable message
            metadata: Additional context (frame_index, pixel_count, etc.)
            exc_info: Exception for ERROR logs
        """
        log_level = getattr(logging, level)
        if not self.logger.isEnabledFor(log_level):
            return

        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            log_entry['metadata'] = metadata

        if exc_info:
            log_entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        self.logger.log(log_level, json.dumps(log_entry, default=str))

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log DEBUG level message (per-frame events)."""
        self._log('DEBUG', event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log INFO level message.

        Example:
            >>> logger.info(
            ...     event=LogEvent.SESSION_STARTED,
            ...     message="Sampling started",
            ...     metadata={'window': 25}
            ... )
        """
        self._log('INFO', event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log WARNING level message."""
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[Exception] = None
    ) -> None:
        """
        Log ERROR level message.

        Example:
            >>> try:
            ...     segmenter.segment(frame)
            ... except FrameShapeError as e:
            ...     logger.error(
            ...         event=LogEvent.FRAME_SHAPE_ERROR,
            ...         message="Rejected frame",
            ...         exc_info=e,
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        """Change logging level dynamically."""
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """Pass-through formatter: StructuredLogger messages are already JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Example:
        >>> logger = create_logger("session", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
