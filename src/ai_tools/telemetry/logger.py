"""Structured logging configuration using structlog.

This module configures structlog for structured logging with:
- JSON formatter for file output
- Pretty-printed console output for debugging
- UTC timestamps
- File rotation for log management
- Component tracking
"""

import logging
import logging.handlers
import pathlib
import sys
from datetime import datetime, timezone
from typing import Any

import structlog


def _get_log_level() -> str:
    """Get log level from configuration.

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    # Bootstrap from environment to avoid circular imports during startup
    from ai_tools.config.bootstrap import get_bootstrap_log_level  # noqa: PLC0415

    return get_bootstrap_log_level()


def _get_log_dir() -> pathlib.Path | None:
    """Get log directory path from settings.

    Returns:
        Log directory, or None when settings cannot be loaded yet (file
        logging is skipped in that case).
    """
    try:
        from ai_tools.config.settings import get_settings  # noqa: PLC0415

        return pathlib.Path(str(get_settings().log_dir))
    except Exception:
        return None


def _add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add UTC timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_component(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add component name (last part of the logger name) to stdlib log records."""
    if logger is None or not hasattr(logger, "name"):
        event_dict["component"] = "unknown"
        return event_dict

    event_dict["component"] = logger.name.split(".")[-1]
    return event_dict


def _add_component_from_event_dict(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add component name from the logger name that add_logger_name stored.

    Args:
        logger: The structlog logger instance.
        method_name: The log method name (info, error, etc.).
        event_dict: The event dictionary.

    Returns:
        Event dictionary with component added.
    """
    logger_name = event_dict.get("logger", "")
    event_dict["component"] = logger_name.split(".")[-1] if logger_name else "unknown"
    return event_dict


def _configure_file_handler(log_dir: pathlib.Path) -> logging.handlers.RotatingFileHandler:
    """Configure rotating file handler for JSON logs.

    Args:
        log_dir: Directory for log files.

    Returns:
        Configured RotatingFileHandler.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / "current.jsonl"),
        maxBytes=50 * 1024 * 1024,  # 50 MB
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                _add_timestamp,  # type: ignore[list-item]
                _add_component,  # type: ignore[list-item]
            ],
        )
    )
    return handler


def _configure_console_handler() -> logging.StreamHandler[Any]:
    """Configure console handler for pretty-printed logs."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            foreign_pre_chain=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                _add_timestamp,  # type: ignore[list-item]
                _add_component,  # type: ignore[list-item]
            ],
        )
    )
    return handler


def configure_logging(log_dir: pathlib.Path | None = None) -> None:
    """Configure structlog for structured logging.

    Call once at application startup. JSON lines go to
    ``<log_dir>/current.jsonl`` and a pretty-printed stream goes to stderr.

    Args:
        log_dir: Directory for the JSON log file. If None, uses settings.log_dir;
            file logging is skipped when neither is available.
    """
    log_level = _get_log_level()
    if log_dir is None:
        log_dir = _get_log_dir()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    configured_level = getattr(logging, log_level, logging.INFO)

    # File handler captures INFO+ regardless of the console level
    if log_dir is not None:
        file_handler = _configure_file_handler(log_dir)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    console_handler = _configure_console_handler()
    console_handler.setLevel(configured_level)
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component_from_event_dict,  # type: ignore[list-item]
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # Returns structlog.stdlib.BoundLogger
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Configured structlog logger instance.

    Example:
        >>> from ai_tools.telemetry import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("tool_call_started", tool_name="list_clients")
    """
    return structlog.get_logger(name)
