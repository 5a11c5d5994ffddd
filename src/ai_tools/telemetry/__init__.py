"""Telemetry module for structured logging.

This module provides:
- Structured logging via structlog
- Semantic event constants
"""

from ai_tools.telemetry.events import (
    API_ROUTE_FAILED,
    API_ROUTE_TIMEOUT,
    CATALOG_INVALID_SCHEMA_SKIPPED,
    CATALOG_LOADED,
    CATALOG_TOOL_CREATED,
    CATALOG_TOOL_DELETED,
    CATALOG_TOOL_UPDATED,
    EXECUTION_LOG_WRITE_FAILED,
    EXECUTION_LOGGED,
    EXTERNAL_URL_FAILED,
    FUNCTION_REGISTERED,
    SERVICE_STARTING,
    SERVICE_STOPPING,
    TOOL_CALL_COMPLETED,
    TOOL_CALL_FAILED,
    TOOL_CALL_STARTED,
    TOOL_DISPATCH,
    TOOL_HANDLER_MISSING,
    TOOL_INPUT_INVALID,
    TOOL_NOT_FOUND,
    TOOLS_CACHE_HIT,
    TOOLS_CACHE_INVALIDATED,
    TOOLS_CACHE_MISS,
    TOOLS_CACHE_POPULATE_DISCARDED,
)
from ai_tools.telemetry.logger import configure_logging, get_logger

__all__ = [
    # Core exports
    "get_logger",
    "configure_logging",
    # Event constants
    "TOOL_CALL_STARTED",
    "TOOL_CALL_COMPLETED",
    "TOOL_CALL_FAILED",
    "TOOL_NOT_FOUND",
    "TOOL_INPUT_INVALID",
    "TOOL_DISPATCH",
    "TOOL_HANDLER_MISSING",
    "API_ROUTE_TIMEOUT",
    "API_ROUTE_FAILED",
    "EXTERNAL_URL_FAILED",
    "TOOLS_CACHE_HIT",
    "TOOLS_CACHE_MISS",
    "TOOLS_CACHE_INVALIDATED",
    "TOOLS_CACHE_POPULATE_DISCARDED",
    "CATALOG_LOADED",
    "CATALOG_TOOL_CREATED",
    "CATALOG_TOOL_UPDATED",
    "CATALOG_TOOL_DELETED",
    "CATALOG_INVALID_SCHEMA_SKIPPED",
    "FUNCTION_REGISTERED",
    "EXECUTION_LOGGED",
    "EXECUTION_LOG_WRITE_FAILED",
    "SERVICE_STARTING",
    "SERVICE_STOPPING",
]
