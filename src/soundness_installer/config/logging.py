"""Logging configuration using structlog for structured logging."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from structlog.types import FilteringBoundLogger

SENSITIVE_KEYS = {"password", "token", "secret", "mnemonic", "private_key", "authorization"}


def configure_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    json_logs: bool = False,
) -> FilteringBoundLogger:
    """Configure structured logging with structlog.

    Console output goes to stderr so that the installer's own messages on
    stdout stay readable.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path; file records are always JSON
        json_logs: Render console records as JSON instead of colored text

    Returns:
        Configured structlog logger
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    console_renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_soundness_installer", False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=console_renderer)
    )
    console_handler._soundness_installer = True
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Rotating file handler with 5MB max size
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer()
            )
        )
        file_handler._soundness_installer = True
        root_logger.addHandler(file_handler)

    root_logger.setLevel(numeric_level)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=False,
    )

    return structlog.get_logger()


def get_logger(name: str, **initial_context: Any) -> FilteringBoundLogger:
    """Get a logger instance with optional initial context.

    Args:
        name: Logger name (typically __name__)
        **initial_context: Initial context to bind to logger

    Returns:
        Logger with bound context
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Mask values whose keys look sensitive, recursing into dicts."""
    sanitized = data.copy()

    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

    return sanitized
