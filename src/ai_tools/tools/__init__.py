"""Tool execution and orchestration layer.

This module provides:
- Tool registry with a TTL cache and tag-based invalidation
- Tool executor dispatching to internal actions, internal API routes and external URLs
- JSON Schema input validation
- Vendor tool-format adapters and the prompt-context summary
- Agent bindings and admin templates
"""

from ai_tools.tools.bindings import (
    ToolBinding,
    ToolBindings,
    ToolExecutionFailed,
    create_agent_context,
    create_api_context,
    create_chat_context,
    create_voice_context,
    filter_valid_tools,
)
from ai_tools.tools.execution_log import (
    ExecutionLogSink,
    ExecutionLogWriter,
    InMemoryExecutionLog,
    NullExecutionLog,
)
from ai_tools.tools.executor import ToolExecutor
from ai_tools.tools.formats import (
    format_tools,
    to_claude_tools,
    to_mcp_tools,
    to_openai_strict_tools,
    to_openai_tools,
    tools_to_prompt_context,
)
from ai_tools.tools.functions import (
    FunctionTable,
    ToolResponse,
    error_response,
    get_default_function_table,
    success_response,
)
from ai_tools.tools.invalidation import (
    TOOLS_CACHE_TAG,
    InvalidationBus,
    get_invalidation_bus,
    invalidate_tools_cache,
)
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.schema import ValidationResult, generate_default_value, validate_input
from ai_tools.tools.store import (
    CatalogError,
    DuplicateToolError,
    InMemoryToolStore,
    InvalidToolDefinitionError,
    ToolNotFoundError,
    ToolStore,
)
from ai_tools.tools.types import (
    EndpointType,
    ExecutionContext,
    ExecutionLogEntry,
    ExecutionResult,
    ExecutionSource,
    HttpMethod,
    Tool,
    ToolTemplate,
)

__all__ = [
    # Core types
    "Tool",
    "ToolTemplate",
    "EndpointType",
    "HttpMethod",
    "ExecutionContext",
    "ExecutionResult",
    "ExecutionSource",
    "ExecutionLogEntry",
    # Registry and store
    "ToolRegistry",
    "ToolStore",
    "InMemoryToolStore",
    "CatalogError",
    "ToolNotFoundError",
    "DuplicateToolError",
    "InvalidToolDefinitionError",
    "InvalidationBus",
    "TOOLS_CACHE_TAG",
    "get_invalidation_bus",
    "invalidate_tools_cache",
    # Execution
    "ToolExecutor",
    "FunctionTable",
    "ToolResponse",
    "success_response",
    "error_response",
    "get_default_function_table",
    "ExecutionLogSink",
    "ExecutionLogWriter",
    "InMemoryExecutionLog",
    "NullExecutionLog",
    # Validation
    "ValidationResult",
    "validate_input",
    "generate_default_value",
    # Formats
    "format_tools",
    "to_openai_tools",
    "to_openai_strict_tools",
    "to_claude_tools",
    "to_mcp_tools",
    "tools_to_prompt_context",
    # Bindings
    "ToolBinding",
    "ToolBindings",
    "ToolExecutionFailed",
    "filter_valid_tools",
    "create_chat_context",
    "create_voice_context",
    "create_api_context",
    "create_agent_context",
    # Setup helpers
    "build_catalog_registry",
]


def build_catalog_registry(
    catalog_path: str | None = None,
    cache_ttl_seconds: float | None = None,
    bus: InvalidationBus | None = None,
) -> tuple[InMemoryToolStore, ToolRegistry]:
    """Create an in-memory store seeded from the YAML catalog and its registry.

    Args:
        catalog_path: Catalog file. If None, uses ``settings.tool_catalog_path``.
        cache_ttl_seconds: Registry cache TTL. If None, uses settings.
        bus: Invalidation bus shared by the store and registry.

    Returns:
        (store, registry) pair.
    """
    from ai_tools.config import get_settings, load_tool_catalog  # noqa: PLC0415

    if cache_ttl_seconds is None:
        cache_ttl_seconds = get_settings().tools_cache_ttl_seconds
    bus = bus or get_invalidation_bus()
    store = InMemoryToolStore(load_tool_catalog(catalog_path), bus=bus)
    registry = ToolRegistry(store, cache_ttl_seconds=cache_ttl_seconds, bus=bus)
    return store, registry
