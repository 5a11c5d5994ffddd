"""Executable tool bindings for agent loops.

A binding pairs a tool's provider-ready schema with a coroutine that runs
the tool through the executor. Agent frameworks expect a failing tool call
to raise, so bindings convert failed results into
:class:`ToolExecutionFailed`.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from ai_tools.telemetry import get_logger
from ai_tools.tools.executor import ToolExecutor
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.schema import describe_schema_problem, sanitize_schema
from ai_tools.tools.types import ExecutionContext, ExecutionSource, Tool

log = get_logger(__name__)


class ToolExecutionFailed(Exception):
    """Raised by a binding when the underlying tool call fails."""

    def __init__(self, tool_name: str, error: str, status_code: int) -> None:
        """Initialize error.

        Args:
            tool_name: Tool that failed.
            error: Error message from the execution result.
            status_code: Status code from the execution result.
        """
        super().__init__(error)
        self.tool_name = tool_name
        self.error = error
        self.status_code = status_code


@dataclass
class ToolBinding:
    """A tool ready to be handed to an agent framework."""

    name: str
    description: str
    parameters: dict[str, Any]
    executor: ToolExecutor = field(repr=False)
    context: ExecutionContext = field(repr=False)

    async def __call__(self, **kwargs: Any) -> Any:
        """Run the tool and return its data.

        Raises:
            ToolExecutionFailed: If execution did not succeed.
        """
        result = await self.executor.execute_tool(self.name, kwargs, self.context)
        if not result.success:
            log.warning(
                "tool_binding_call_failed",
                tool_name=self.name,
                status_code=result.status_code,
                error=result.error,
            )
            raise ToolExecutionFailed(
                self.name, result.error or "Tool execution failed", result.status_code
            )
        return result.data


def filter_valid_tools(tools: Iterable[Tool]) -> list[Tool]:
    """Drop tools whose parameter schema cannot be offered to a model."""
    tools = list(tools)
    valid: list[Tool] = []
    for tool in tools:
        problem = describe_schema_problem(tool.parameters)
        if problem is not None:
            log.warning("tool_binding_invalid_schema_skipped", tool_name=tool.name, reason=problem)
            continue
        valid.append(tool)
    log.debug("tool_bindings_validated", valid=len(valid), total=len(tools))
    return valid


class ToolBindings:
    """Builds binding sets from the registry for a given execution context."""

    def __init__(self, registry: ToolRegistry, executor: ToolExecutor) -> None:
        """Initialize builder.

        Args:
            registry: Registry to read tools from.
            executor: Executor the bindings call into.
        """
        self.registry = registry
        self.executor = executor

    def _bind(self, tools: Iterable[Tool], context: ExecutionContext) -> dict[str, ToolBinding]:
        return {
            tool.name: ToolBinding(
                name=tool.name,
                description=tool.description,
                parameters=sanitize_schema(tool.parameters, provider="openai"),
                executor=self.executor,
                context=context,
            )
            for tool in filter_valid_tools(tools)
        }

    async def get_database_tools(self, context: ExecutionContext) -> dict[str, ToolBinding]:
        """Bindings for every enabled tool."""
        return self._bind(await self.registry.get_enabled_tools(), context)

    async def get_tools_for_api_key(
        self, scopes: Iterable[str], context: ExecutionContext
    ) -> dict[str, ToolBinding]:
        """Bindings for the tools an API key's scopes cover."""
        return self._bind(await self.registry.get_tools_for_scopes(scopes), context)

    async def get_tools_by_category(
        self, categories: Iterable[str], context: ExecutionContext
    ) -> dict[str, ToolBinding]:
        """Bindings for enabled tools in any of ``categories``."""
        wanted = set(categories)
        tools = await self.registry.get_enabled_tools()
        return self._bind([tool for tool in tools if tool.category in wanted], context)

    async def get_tools_by_name(
        self, names: Iterable[str], context: ExecutionContext
    ) -> dict[str, ToolBinding]:
        """Bindings for the enabled tools called ``names`` (unknown names ignored)."""
        wanted = set(names)
        tools = await self.registry.get_enabled_tools()
        return self._bind([tool for tool in tools if tool.name in wanted], context)

    async def get_tool_categories(self) -> list[tuple[str, int]]:
        """(category, enabled tool count) pairs sorted by category."""
        counts: dict[str, int] = {}
        for tool in await self.registry.get_enabled_tools():
            counts[tool.category] = counts.get(tool.category, 0) + 1
        return sorted(counts.items())

    async def get_tool_names_by_category(self, category: str) -> list[str]:
        """Names of enabled tools in ``category``."""
        return [tool.name for tool in await self.registry.get_enabled_tools_by_category(category)]

    async def get_all_tool_names(self) -> list[str]:
        """Names of every enabled tool."""
        return [tool.name for tool in await self.registry.get_enabled_tools()]


def create_chat_context(
    user_id: str, organization_id: str, test_mode: bool = False
) -> ExecutionContext:
    """Context for the in-app chat assistant."""
    return ExecutionContext(
        user_id=user_id,
        organization_id=organization_id,
        source=ExecutionSource.CHAT_ASSISTANT,
        test_mode=test_mode,
    )


def create_voice_context(
    user_id: str, organization_id: str, test_mode: bool = False
) -> ExecutionContext:
    """Context for the voice assistant."""
    return ExecutionContext(
        user_id=user_id,
        organization_id=organization_id,
        source=ExecutionSource.VOICE_ASSISTANT,
        test_mode=test_mode,
    )


def create_api_context(api_key_id: str, organization_id: str) -> ExecutionContext:
    """Context for external API callers. Never runs in test mode."""
    return ExecutionContext(
        api_key_id=api_key_id,
        organization_id=organization_id,
        source=ExecutionSource.EXTERNAL_API,
        test_mode=False,
    )


def create_agent_context(
    user_id: str, organization_id: str, test_mode: bool = False
) -> ExecutionContext:
    """Context for user-defined custom agents."""
    return ExecutionContext(
        user_id=user_id,
        organization_id=organization_id,
        source=ExecutionSource.CUSTOM_AGENT,
        test_mode=test_mode,
    )
