"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying and analysis.
"""

# Tool execution events
TOOL_CALL_STARTED = "tool_call_started"
TOOL_CALL_COMPLETED = "tool_call_completed"
TOOL_CALL_FAILED = "tool_call_failed"
TOOL_NOT_FOUND = "tool_not_found"
TOOL_INPUT_INVALID = "tool_input_invalid"
TOOL_DISPATCH = "tool_dispatch"
TOOL_HANDLER_MISSING = "tool_handler_missing"
API_ROUTE_TIMEOUT = "api_route_timeout"
API_ROUTE_FAILED = "api_route_failed"
EXTERNAL_URL_FAILED = "external_url_failed"

# Registry events
TOOLS_CACHE_HIT = "tools_cache_hit"
TOOLS_CACHE_MISS = "tools_cache_miss"
TOOLS_CACHE_INVALIDATED = "tools_cache_invalidated"
TOOLS_CACHE_POPULATE_DISCARDED = "tools_cache_populate_discarded"

# Catalog events
CATALOG_LOADED = "catalog_loaded"
CATALOG_TOOL_CREATED = "catalog_tool_created"
CATALOG_TOOL_UPDATED = "catalog_tool_updated"
CATALOG_TOOL_DELETED = "catalog_tool_deleted"
CATALOG_INVALID_SCHEMA_SKIPPED = "catalog_invalid_schema_skipped"

# Function table events
FUNCTION_REGISTERED = "function_registered"

# Execution log events
EXECUTION_LOGGED = "execution_logged"
EXECUTION_LOG_WRITE_FAILED = "execution_log_write_failed"

# Service events
SERVICE_STARTING = "service_starting"
SERVICE_STOPPING = "service_stopping"
