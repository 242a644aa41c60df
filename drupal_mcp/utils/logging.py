"""
Logging Configuration

Structured logging setup for the MCP server. Everything goes to stderr:
stdout is reserved for the MCP stdio transport.
"""

import datetime
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict, Processor

from drupal_mcp import __version__


def add_context_processor(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Processor that adds service context to structured logs
    """
    event_dict["service"] = "mcp-drupal-server"
    event_dict["version"] = __version__
    return event_dict


def add_timestamp_processor(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Processor that adds ISO timestamp
    """
    event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


SENSITIVE_KEYS = {"password", "token", "api_key", "secret", "auth", "credential"}


def filter_sensitive_data(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Processor that redacts Drupal credentials from logs
    """

    def _filter_dict(d: Dict[str, Any]) -> Dict[str, Any]:
        filtered = {}
        for key, value in d.items():
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                filtered[key] = "***REDACTED***"
            elif isinstance(value, dict):
                filtered[key] = _filter_dict(value)
            else:
                filtered[key] = value
        return filtered

    return _filter_dict(event_dict)


def setup_logging(
    level: str = "INFO",
    structured: bool = True,
    file_path: Optional[str] = None,
    max_file_size: str = "10MB",
    backup_count: int = 5,
) -> logging.Logger:
    """
    Set up logging for the server and CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Use structlog rendering (JSON when stderr is not a TTY)
        file_path: Path to log file (None for stderr only)
        max_file_size: Maximum size before rotation
        backup_count: Number of backup files to keep

    Returns:
        The package logger
    """
    root_logger = logging.getLogger()
    root_logger.handlers = []

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if structured:
        processors: list[Processor] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_context_processor,
            add_timestamp_processor,
            filter_sensitive_data,
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if sys.stderr.isatty():
            renderer: Processor = structlog.dev.ConsoleRenderer(colors=True)
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

        # Plain stdlib records (the bulk of the package) go through the same renderer
        formatter: logging.Formatter = structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                add_context_processor,
                add_timestamp_processor,
                filter_sensitive_data,
                structlog.contextvars.merge_contextvars,
            ],
        )
    else:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=file_path,
            maxBytes=_parse_size(max_file_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return logging.getLogger("drupal_mcp")


def get_logger(name: str = "drupal_mcp") -> logging.Logger:
    """
    Get a logger instance with the specified name
    """
    return logging.getLogger(name)


def _parse_size(size_str: str) -> int:
    """
    Parse size string (e.g., '10MB') to bytes
    """
    size_str = size_str.upper().strip()

    if size_str.endswith('KB'):
        return int(size_str[:-2]) * 1024
    elif size_str.endswith('MB'):
        return int(size_str[:-2]) * 1024 * 1024
    elif size_str.endswith('GB'):
        return int(size_str[:-2]) * 1024 * 1024 * 1024
    else:
        return int(size_str)


def configure_from_settings(level: Optional[str] = None):
    """
    Configure logging from application settings; `level` overrides LOG_LEVEL
    """
    from drupal_mcp.config.settings import get_settings

    settings = get_settings()

    return setup_logging(
        level=level or settings.log_level,
        structured=settings.log_structured,
        file_path=settings.log_file if settings.log_file_enabled else None,
    )


def log_context(**context):
    """
    Bind context to structured logs for the duration of a block

    Usage:
        with log_context(tool="get_node"):
            logger.info("dispatching")
    """
    return structlog.contextvars.bound_contextvars(**context)
