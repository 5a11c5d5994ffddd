"""Shared fixtures for the tool layer tests."""

from typing import Any

import pytest

from ai_tools.tools.execution_log import ExecutionLogWriter, InMemoryExecutionLog
from ai_tools.tools.executor import ToolExecutor
from ai_tools.tools.functions import FunctionTable
from ai_tools.tools.invalidation import InvalidationBus
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.store import InMemoryToolStore
from ai_tools.tools.types import EndpointType, ExecutionContext, ExecutionSource, HttpMethod, Tool

INTERNAL_API_URL = "http://internal.test"


def make_tool(name: str, **overrides: Any) -> Tool:
    """Build a tool with sensible defaults for tests."""
    values: dict[str, Any] = {
        "name": name,
        "display_name": name.replace("_", " ").title(),
        "description": f"{name} description",
        "category": "crm",
        "endpoint_type": EndpointType.INTERNAL_ACTION,
        "parameters": {"type": "object", "properties": {}},
    }
    values.update(overrides)
    return Tool.model_validate(values)


@pytest.fixture
def echo_tool() -> Tool:
    """INTERNAL_ACTION tool with one required string parameter."""
    return make_tool(
        "echo",
        parameters={
            "type": "object",
            "properties": {"msg": {"type": "string"}},
            "required": ["msg"],
        },
    )


@pytest.fixture
def weather_tool() -> Tool:
    """API_ROUTE GET tool."""
    return make_tool(
        "fetch_weather",
        category="market_intel",
        endpoint_type=EndpointType.API_ROUTE,
        endpoint_path="/api/weather",
        http_method=HttpMethod.GET,
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string"}, "metric": {"type": "boolean"}},
        },
    )


@pytest.fixture
def disabled_tool() -> Tool:
    """Tool that exists but is switched off."""
    return make_tool("archived_report", is_enabled=False)


@pytest.fixture
def bus() -> InvalidationBus:
    """Fresh invalidation bus per test."""
    return InvalidationBus()


@pytest.fixture
def store(echo_tool, weather_tool, disabled_tool, bus) -> InMemoryToolStore:
    """In-memory catalog holding the sample tools."""
    return InMemoryToolStore([echo_tool, weather_tool, disabled_tool], bus=bus)


@pytest.fixture
def registry(store, bus) -> ToolRegistry:
    """Registry over the sample catalog."""
    reg = ToolRegistry(store, cache_ttl_seconds=60, bus=bus)
    yield reg
    reg.close()


@pytest.fixture
def functions() -> FunctionTable:
    """Function table with the echo handler registered."""
    table = FunctionTable()

    @table.register("echo")
    async def echo(payload: dict[str, Any]) -> dict[str, Any]:
        return {"success": True, "data": payload["msg"]}

    return table


@pytest.fixture
def execution_log() -> InMemoryExecutionLog:
    """Sink that keeps written entries."""
    return InMemoryExecutionLog()


@pytest.fixture
def log_writer(execution_log) -> ExecutionLogWriter:
    """Writer over the in-memory sink."""
    return ExecutionLogWriter(execution_log)


@pytest.fixture
def executor(registry, functions, log_writer) -> ToolExecutor:
    """Executor wired to the sample catalog (no shared HTTP client)."""
    return ToolExecutor(
        registry,
        functions=functions,
        log_writer=log_writer,
        internal_api_url=INTERNAL_API_URL,
        api_route_timeout_seconds=30.0,
    )


@pytest.fixture
def ctx() -> ExecutionContext:
    """Chat assistant context."""
    return ExecutionContext(
        organization_id="org_1",
        user_id="user_1",
        source=ExecutionSource.CHAT_ASSISTANT,
    )
