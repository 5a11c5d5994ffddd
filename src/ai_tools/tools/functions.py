"""Function table for INTERNAL_ACTION tools.

Application code registers one handler per tool name at startup. The
executor calls the handler with the validated input plus the execution
context under ``TOOL_CONTEXT_KEY``::

    functions = get_default_function_table()

    @functions.register("list_clients")
    async def list_clients(payload: dict[str, Any]) -> ToolResponse:
        context = extract_context(payload)
        if not validate_context(context):
            return missing_context_error()
        ...
        return success_response({"clients": clients})
"""

from typing import Any, Awaitable, Callable, Union

from pydantic import BaseModel, Field

from ai_tools.telemetry import FUNCTION_REGISTERED, get_logger
from ai_tools.tools.types import ExecutionContext

log = get_logger(__name__)

TOOL_CONTEXT_KEY = "_toolContext"

ToolHandler = Callable[[dict[str, Any]], Union[Any, Awaitable[Any]]]


class ToolResponse(BaseModel):
    """Standard result shape for internal tool handlers."""

    success: bool = Field(..., description="Whether the handler succeeded")
    data: Any = Field(None, description="Handler output")
    error: str | None = Field(None, description="Error message on failure")


def success_response(data: Any = None) -> ToolResponse:
    """Build a successful handler response."""
    return ToolResponse(success=True, data=data)


def error_response(error: str) -> ToolResponse:
    """Build a failed handler response."""
    return ToolResponse(success=False, error=error)


def missing_context_error() -> ToolResponse:
    """Response for handlers that need an organization and user but got none."""
    return error_response("Missing organization or user context")


def extract_context(payload: dict[str, Any]) -> ExecutionContext | None:
    """Pull the execution context out of a handler payload."""
    context = payload.get(TOOL_CONTEXT_KEY)
    if isinstance(context, ExecutionContext):
        return context
    if isinstance(context, dict):
        return ExecutionContext.model_validate(context)
    return None


def validate_context(context: ExecutionContext | None) -> bool:
    """True when the context identifies both an organization and a user."""
    return bool(context and context.organization_id and context.user_id)


def strip_context(payload: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``payload`` without the execution context entry."""
    return {key: value for key, value in payload.items() if key != TOOL_CONTEXT_KEY}


class FunctionTable:
    """Name → handler mapping consumed by the executor."""

    def __init__(self) -> None:
        """Initialize empty table."""
        self._handlers: dict[str, ToolHandler] = {}

    def add(self, name: str, handler: ToolHandler) -> None:
        """Register ``handler`` for tool ``name``.

        Raises:
            ValueError: If a handler is already registered under ``name``.
        """
        if name in self._handlers:
            raise ValueError(f"Handler for tool '{name}' is already registered")
        self._handlers[name] = handler
        log.debug(FUNCTION_REGISTERED, tool_name=name, handler=getattr(handler, "__name__", None))

    def register(self, name: str) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of :meth:`add`."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.add(name, handler)
            return handler

        return decorator

    def remove(self, name: str) -> None:
        """Unregister the handler for ``name`` if present."""
        self._handlers.pop(name, None)

    def lookup(self, name: str) -> ToolHandler | None:
        """Return the handler registered for ``name``, or None."""
        return self._handlers.get(name)

    def names(self) -> list[str]:
        """Registered tool names."""
        return list(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


_default_table: FunctionTable | None = None


def get_default_function_table() -> FunctionTable:
    """Get the process-wide function table populated at application startup."""
    global _default_table
    if _default_table is None:
        _default_table = FunctionTable()
    return _default_table
