"""
Centralized logging configuration for the STT relay.

Provides:
- Unified logging for all relay components
- Structured JSON output for log aggregation
- Service tagging for filtering
- Log rotation and persistence
"""

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Attributes present on every LogRecord; anything else came in via ``extra=``.
_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "exc_info",
    "exc_text",
    "thread",
    "threadName",
    "taskName",
    "service",
    "message",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "main"),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in set(record.__dict__.keys()) - _RESERVED_RECORD_KEYS:
            if not key.startswith("_"):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(service)-10s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "service"):
            record.service = "main"
        return super().format(record)


class ServiceFilter(logging.Filter):
    """Filter that adds service name to all log records."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service_name
        return True


_logging_configured = False
_loggers: Dict[str, logging.Logger] = {}

DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    "level": "INFO",
    "directory": "logs",
    "file_output": True,
    "max_size_mb": 10,
    "backup_count": 5,
    "structured": True,
    "console_output": True,
}


def _build_file_handler(settings: Dict[str, Any]) -> logging.Handler:
    log_directory = Path(settings["directory"])
    log_directory.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_directory / "relay.log",
        maxBytes=int(settings["max_size_mb"]) * 1_000_000,
        backupCount=int(settings["backup_count"]),
        encoding="utf-8",
    )
    handler.setFormatter(
        StructuredFormatter() if settings["structured"] else HumanReadableFormatter()
    )
    return handler


def setup_logging(config: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Initialize unified logging for all relay components.

    Only the first call configures anything; later calls return the root
    logger untouched.

    Args:
        config: The ``logging`` section of config.yaml (or a dict holding one).
            Recognized keys are those of DEFAULT_LOGGING_CONFIG.

    Returns:
        Root logger instance
    """
    global _logging_configured

    root_logger = logging.getLogger()
    if _logging_configured:
        return root_logger

    settings = dict(DEFAULT_LOGGING_CONFIG)
    if config:
        settings.update(config.get("logging", config))

    level_name = str(settings["level"]).upper()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = []
    if settings["file_output"]:
        handlers.append(_build_file_handler(settings))
    if settings["console_output"]:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(HumanReadableFormatter())
        handlers.append(console_handler)

    for handler in handlers:
        handler.addFilter(ServiceFilter("main"))
        root_logger.addHandler(handler)

    logging.captureWarnings(True)
    _logging_configured = True

    log_files = [h.baseFilename for h in handlers if isinstance(h, logging.FileHandler)]
    root_logger.info(
        "Logging initialized",
        extra={"log_path": log_files[0] if log_files else None, "level": level_name},
    )

    return root_logger


def get_logger(service_name: str) -> logging.Logger:
    """
    Get a logger for a specific service.

    The service name is added to all log records for filtering.

    Args:
        service_name: Name of the service (e.g., "api", "relay", "speech")

    Returns:
        Logger instance with service filter
    """
    if service_name in _loggers:
        return _loggers[service_name]

    logger = logging.getLogger(f"sttrelay.{service_name}")
    logger.addFilter(ServiceFilter(service_name))
    _loggers[service_name] = logger

    return logger


def sanitize_for_log(value: str, max_length: int = 200) -> str:
    """
    Sanitize untrusted input before logging to prevent log injection.

    Escapes newlines and removes control characters that could interfere
    with log parsing or monitoring systems.

    Args:
        value: The string to sanitize
        max_length: Maximum length before truncation (default: 200)

    Returns:
        Sanitized string safe for logging
    """
    if not value:
        return value

    sanitized = value.replace("\n", "\\n").replace("\r", "\\r")
    sanitized = "".join(c for c in sanitized if c.isprintable() or c in " \t")

    if len(sanitized) > max_length:
        return sanitized[:max_length] + "..."
    return sanitized
