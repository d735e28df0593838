"""Structured logging configuration for payeecore."""

import json
import logging
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

# Thread-local storage for context
_context = threading.local()

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "getMessage", "exc_info", "exc_text",
    "stack_info", "taskName", "message",
}


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per log record."""

    SENSITIVE_FIELDS = {
        "api_key", "password", "token", "secret", "authorization",
        "api_token", "access_token", "refresh_token", "private_key",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if hasattr(_context, "data"):
            log_data.update(_context.data)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if self._is_sensitive_field(key):
                log_data[key] = "[REDACTED]"
            else:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)

    def _is_sensitive_field(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


def setup_logging(
    format: str = "json",
    level: str = "INFO",
    log_file: Optional[str] = None,
) -> None:
    """Configure logging for the application.

    Args:
        format: Log format ("json" or "text")
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if format == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # The LLM SDKs log every HTTP request at INFO
    for logger_name in ["httpx", "httpcore", "openai", "anthropic"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def log_event(logger_name: str, event: str, **kwargs) -> None:
    """Log a structured event with extra fields."""
    get_logger(logger_name).info(event, extra=kwargs)


def log_error(logger_name: str, event: str, error: Exception, **kwargs) -> None:
    """Log a structured error, including the traceback."""
    kwargs["error_type"] = type(error).__name__
    get_logger(logger_name).error(f"{event}: {error}", exc_info=True, extra=kwargs)


def log_performance(logger_name: str, operation: str, duration_ms: float, **kwargs) -> None:
    """Log how long an operation took."""
    kwargs["duration_ms"] = duration_ms
    get_logger(logger_name).info(
        f"{operation} completed in {duration_ms:.1f}ms", extra=kwargs
    )


@contextmanager
def log_context(**kwargs):
    """Add fields to all structured logs emitted within the block.

    Example:
        with log_context(run_id="abc"):
            logger.info("Scoring pairs")  # includes run_id
    """
    if not hasattr(_context, "data"):
        _context.data = {}

    old_context = _context.data.copy()
    _context.data.update(kwargs)
    try:
        yield
    finally:
        _context.data = old_context


class Timer:
    """Context manager for timing operations in milliseconds."""

    def __init__(self):
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.end_time = time.perf_counter()
        self.duration_ms = (self.end_time - self.start_time) * 1000

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time so far, usable inside the block."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000
