"""Tool catalog store interface and in-memory implementation.

The registry reads the catalog through the :class:`ToolStore` protocol.
Mutations live on the concrete stores and always publish
``TOOLS_CACHE_TAG`` so cached registry snapshots are dropped.
"""

from typing import Any, Iterable, Protocol

from pydantic import ValidationError

from ai_tools.telemetry import (
    CATALOG_TOOL_CREATED,
    CATALOG_TOOL_DELETED,
    CATALOG_TOOL_UPDATED,
    get_logger,
)
from ai_tools.tools.invalidation import InvalidationBus, invalidate_tools_cache
from ai_tools.tools.schema import check_tool_schema
from ai_tools.tools.types import Tool

log = get_logger(__name__)


class CatalogError(Exception):
    """Base exception for catalog mutations."""

    pass


class ToolNotFoundError(CatalogError):
    """Raised when a mutation targets a tool that does not exist."""

    pass


class DuplicateToolError(CatalogError):
    """Raised when a tool name is already taken."""

    pass


class InvalidToolDefinitionError(CatalogError):
    """Raised when a tool definition fails validation."""

    pass


class ToolStore(Protocol):
    """Read interface of the tool catalog."""

    async def find_by_name(self, name: str) -> Tool | None:
        """Return the tool called ``name`` regardless of its enabled flag."""
        ...

    async def find_many(
        self, is_enabled: bool | None = None, category: str | None = None
    ) -> list[Tool]:
        """Return tools ordered by (category, display_name).

        Args:
            is_enabled: Filter on the enabled flag; None returns all tools.
            category: Optional category filter.
        """
        ...


def sort_key(tool: Tool) -> tuple[str, str]:
    """Catalog ordering: category, then display name."""
    return (tool.category, tool.display_name)


def ensure_valid_definition(tool: Tool) -> None:
    """Reject tools whose parameter schema is unusable.

    Raises:
        InvalidToolDefinitionError: If the schema check reports problems or an
            HTTP tool has no endpoint path.
    """
    errors = check_tool_schema(tool.parameters)
    if tool.endpoint_type.value != "INTERNAL_ACTION" and not tool.endpoint_path:
        errors.append("endpoint_path: required for API_ROUTE and EXTERNAL_URL tools")
    if errors:
        raise InvalidToolDefinitionError(
            f"Invalid definition for tool '{tool.name}': " + "; ".join(errors)
        )


def apply_tool_update(tool: Tool, changes: dict[str, Any]) -> Tool:
    """Build the updated version of ``tool``.

    Args:
        tool: Current definition.
        changes: Field values to replace.

    Returns:
        New, validated Tool.

    Raises:
        InvalidToolDefinitionError: If ``changes`` alter immutable fields or
            produce an invalid tool.
    """
    if "id" in changes and changes["id"] != tool.id:
        raise InvalidToolDefinitionError("Tool id cannot be changed")
    if "endpoint_type" in changes and str(
        getattr(changes["endpoint_type"], "value", changes["endpoint_type"])
    ) != tool.endpoint_type.value:
        raise InvalidToolDefinitionError(
            f"endpoint_type of tool '{tool.name}' is fixed at creation"
        )

    try:
        updated = Tool.model_validate({**tool.model_dump(), **changes})
    except ValidationError as e:
        raise InvalidToolDefinitionError(str(e)) from None
    ensure_valid_definition(updated)
    return updated


class InMemoryToolStore:
    """Dict-backed catalog used for YAML-seeded catalogs and tests."""

    def __init__(self, tools: Iterable[Tool] = (), bus: InvalidationBus | None = None) -> None:
        """Initialize store.

        Args:
            tools: Initial tools (names must be unique).
            bus: Invalidation bus to publish on. Defaults to the process-wide bus.

        Raises:
            DuplicateToolError: If two initial tools share a name.
        """
        self._bus = bus
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise DuplicateToolError(f"Tool '{tool.name}' is defined more than once")
            self._tools[tool.name] = tool.model_copy(deep=True)

    async def find_by_name(self, name: str) -> Tool | None:
        tool = self._tools.get(name)
        return tool.model_copy(deep=True) if tool is not None else None

    async def find_many(
        self, is_enabled: bool | None = None, category: str | None = None
    ) -> list[Tool]:
        tools = [
            tool
            for tool in self._tools.values()
            if (is_enabled is None or tool.is_enabled == is_enabled)
            and (category is None or tool.category == category)
        ]
        return [tool.model_copy(deep=True) for tool in sorted(tools, key=sort_key)]

    async def create(self, tool: Tool) -> Tool:
        """Add a tool to the catalog.

        Raises:
            DuplicateToolError: If the name is taken.
            InvalidToolDefinitionError: If the definition is invalid.
        """
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool '{tool.name}' already exists")
        ensure_valid_definition(tool)

        self._tools[tool.name] = tool.model_copy(deep=True)
        invalidate_tools_cache(self._bus)
        log.info(CATALOG_TOOL_CREATED, tool_name=tool.name, endpoint_type=tool.endpoint_type.value)
        return tool.model_copy(deep=True)

    async def update(self, name: str, **changes: Any) -> Tool:
        """Update fields of an existing tool.

        Raises:
            ToolNotFoundError: If no tool is called ``name``.
            DuplicateToolError: If a rename collides with another tool.
            InvalidToolDefinitionError: If the update is not allowed.
        """
        current = self._tools.get(name)
        if current is None:
            raise ToolNotFoundError(f"Tool '{name}' not found")

        updated = apply_tool_update(current, changes)
        if updated.name != name and updated.name in self._tools:
            raise DuplicateToolError(f"Tool '{updated.name}' already exists")

        del self._tools[name]
        self._tools[updated.name] = updated
        invalidate_tools_cache(self._bus)
        log.info(CATALOG_TOOL_UPDATED, tool_name=updated.name, fields=sorted(changes))
        return updated.model_copy(deep=True)

    async def set_enabled(self, name: str, enabled: bool) -> Tool:
        """Enable or disable a tool."""
        return await self.update(name, is_enabled=enabled)

    async def delete(self, name: str) -> None:
        """Remove a tool from the catalog.

        Raises:
            ToolNotFoundError: If no tool is called ``name``.
        """
        if name not in self._tools:
            raise ToolNotFoundError(f"Tool '{name}' not found")
        del self._tools[name]
        invalidate_tools_cache(self._bus)
        log.info(CATALOG_TOOL_DELETED, tool_name=name)
