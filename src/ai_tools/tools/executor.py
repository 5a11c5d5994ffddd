"""Tool executor: resolve, validate, dispatch and record tool invocations.

:meth:`ToolExecutor.execute_tool` never raises. Every outcome, including
unexpected internal errors, is returned as an :class:`ExecutionResult`.
"""

import copy
import time
from typing import Any

import httpx

from ai_tools.config.settings import AppConfig, get_settings
from ai_tools.telemetry import (
    TOOL_CALL_COMPLETED,
    TOOL_CALL_FAILED,
    TOOL_CALL_STARTED,
    TOOL_DISPATCH,
    TOOL_INPUT_INVALID,
    TOOL_NOT_FOUND,
    get_logger,
)
from ai_tools.tools.execution_log import ExecutionLogWriter, NullExecutionLog, build_log_entry
from ai_tools.tools.functions import FunctionTable, get_default_function_table
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.schema import validate_input
from ai_tools.tools.strategies import (
    execute_api_route,
    execute_external_url,
    execute_internal_action,
    get_internal_api_base_url,
)
from ai_tools.tools.types import (
    EndpointType,
    ExecutionContext,
    ExecutionResult,
    ExecutionSource,
    Tool,
)

log = get_logger(__name__)


def _elapsed_ms(start_time: float) -> int:
    return int((time.perf_counter() - start_time) * 1000)


class ToolExecutor:
    """Executes catalog tools on behalf of agents, API clients and admins."""

    def __init__(
        self,
        registry: ToolRegistry,
        functions: FunctionTable | None = None,
        log_writer: ExecutionLogWriter | None = None,
        http_client: httpx.AsyncClient | None = None,
        internal_api_url: str | None = None,
        api_route_timeout_seconds: float | None = None,
        settings: AppConfig | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            registry: Tool registry used to resolve tools.
            functions: Handlers for INTERNAL_ACTION tools. Defaults to the
                process-wide function table.
            log_writer: Execution log writer. Defaults to a writer that discards entries.
            http_client: Shared HTTP client. When None a client is opened per call.
            internal_api_url: Base URL for API_ROUTE tools. Defaults to the
                value derived from settings.
            api_route_timeout_seconds: Deadline for API_ROUTE tools. Defaults to settings.
            settings: Application settings consulted for missing values.
        """
        self.registry = registry
        self.functions = functions if functions is not None else get_default_function_table()
        self.log_writer = log_writer or ExecutionLogWriter(NullExecutionLog())
        self.http_client = http_client

        if internal_api_url is None or api_route_timeout_seconds is None:
            settings = settings or get_settings()
            if internal_api_url is None:
                internal_api_url = get_internal_api_base_url(settings)
            if api_route_timeout_seconds is None:
                api_route_timeout_seconds = settings.api_route_timeout_seconds
        self.internal_api_url = internal_api_url
        self.api_route_timeout_seconds = api_route_timeout_seconds

        log.debug(
            "tool_executor_initialized",
            internal_api_url=self.internal_api_url,
            api_route_timeout_seconds=self.api_route_timeout_seconds,
            handlers=len(self.functions),
        )

    async def execute_tool(
        self,
        tool_name: str,
        input_data: dict[str, Any],
        context: ExecutionContext,
    ) -> ExecutionResult:
        """Execute a tool by name.

        Args:
            tool_name: Name of the tool to execute.
            input_data: Untrusted input supplied by the caller or model.
            context: Execution context (tenant, user, source, test mode).

        Returns:
            ExecutionResult; 404 for unknown or disabled tools, 400 for invalid
            input, otherwise the strategy outcome.
        """
        start_time = time.perf_counter()
        tool: Tool | None = None
        logged_input: dict[str, Any] = {}

        try:
            # Snapshot for the log; handlers and callers may mutate input_data
            logged_input = copy.deepcopy(input_data)

            # 1. Resolve (disabled tools are treated as missing)
            tool = await self.registry.get_enabled_tool_by_name(tool_name)
            if tool is None:
                log.warning(TOOL_NOT_FOUND, tool_name=tool_name, source=context.source.value)
                return ExecutionResult(
                    success=False,
                    error=f'Tool "{tool_name}" not found or is disabled',
                    status_code=404,
                    duration_ms=_elapsed_ms(start_time),
                )

            # 2. Validate input
            validation = validate_input(tool.parameters, input_data)
            if not validation.valid:
                error_msg = "; ".join(validation.errors)
                log.warning(TOOL_INPUT_INVALID, tool_name=tool_name, errors=validation.errors)
                return self._finish(
                    tool,
                    logged_input,
                    context,
                    ExecutionResult(success=False, error=error_msg, status_code=400),
                    start_time,
                )

            # 3. Dispatch
            log.info(
                TOOL_CALL_STARTED,
                tool_name=tool_name,
                endpoint_type=tool.endpoint_type.value,
                source=context.source.value,
                organization_id=context.organization_id,
                test_mode=context.test_mode,
            )
            result = await self._dispatch(tool, input_data, context)
            return self._finish(tool, logged_input, context, result, start_time)

        except Exception as e:
            # 4. Anything unexpected becomes a 500
            log.error(
                TOOL_CALL_FAILED,
                tool_name=tool_name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            result = ExecutionResult(
                success=False, error=str(e) or type(e).__name__, status_code=500
            )
            if tool is None:
                return result.model_copy(update={"duration_ms": _elapsed_ms(start_time)})
            return self._finish(tool, logged_input, context, result, start_time)

    async def execute_tool_for_testing(
        self,
        tool_name: str,
        input_data: dict[str, Any],
        admin_user_id: str,
        organization_id: str | None = None,
        test_mode: bool = True,
    ) -> ExecutionResult:
        """Execute a tool from the admin console.

        The invocation is tagged ``ADMIN_TEST``; with ``test_mode`` internal
        API routes return synthetic data instead of mutating state.
        """
        context = ExecutionContext(
            organization_id=organization_id,
            user_id=admin_user_id,
            source=ExecutionSource.ADMIN_TEST,
            test_mode=test_mode,
        )
        return await self.execute_tool(tool_name, input_data, context)

    async def _dispatch(
        self, tool: Tool, input_data: dict[str, Any], context: ExecutionContext
    ) -> ExecutionResult:
        log.debug(TOOL_DISPATCH, tool_name=tool.name, endpoint_type=tool.endpoint_type.value)

        if tool.endpoint_type == EndpointType.INTERNAL_ACTION:
            return await execute_internal_action(tool, input_data, context, self.functions)

        if tool.endpoint_type == EndpointType.API_ROUTE:
            if self.http_client is not None:
                return await execute_api_route(
                    tool,
                    input_data,
                    context,
                    self.http_client,
                    self.internal_api_url,
                    self.api_route_timeout_seconds,
                )
            async with httpx.AsyncClient(timeout=None) as client:
                return await execute_api_route(
                    tool,
                    input_data,
                    context,
                    client,
                    self.internal_api_url,
                    self.api_route_timeout_seconds,
                )

        if tool.endpoint_type == EndpointType.EXTERNAL_URL:
            if self.http_client is not None:
                return await execute_external_url(tool, input_data, self.http_client)
            async with httpx.AsyncClient(timeout=None) as client:
                return await execute_external_url(tool, input_data, client)

        return ExecutionResult(
            success=False,
            error=f"Unsupported endpoint type: {tool.endpoint_type}",
            status_code=500,
        )

    def _finish(
        self,
        tool: Tool,
        input_data: dict[str, Any],
        context: ExecutionContext,
        result: ExecutionResult,
        start_time: float,
    ) -> ExecutionResult:
        duration_ms = _elapsed_ms(start_time)
        result = result.model_copy(update={"duration_ms": duration_ms})

        if result.success:
            log.info(
                TOOL_CALL_COMPLETED,
                tool_name=tool.name,
                status_code=result.status_code,
                duration_ms=duration_ms,
            )
        elif result.status_code != 400:
            log.warning(
                TOOL_CALL_FAILED,
                tool_name=tool.name,
                status_code=result.status_code,
                error=result.error,
                duration_ms=duration_ms,
            )

        self.log_writer.record(
            build_log_entry(
                tool_id=tool.id,
                context=context,
                input_data=input_data,
                output=result.data if result.success else None,
                status_code=result.status_code,
                error_message=result.error,
                duration_ms=duration_ms,
            )
        )
        return result
