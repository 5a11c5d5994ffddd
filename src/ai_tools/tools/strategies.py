"""Execution strategies for the three tool endpoint types.

Each strategy returns an :class:`ExecutionResult` without a duration; the
executor stamps the duration once the strategy returns.
"""

import asyncio
import inspect
from typing import Any

import httpx
import orjson

from ai_tools.config.settings import AppConfig
from ai_tools.telemetry import (
    API_ROUTE_FAILED,
    API_ROUTE_TIMEOUT,
    EXTERNAL_URL_FAILED,
    TOOL_HANDLER_MISSING,
    get_logger,
)
from ai_tools.tools.functions import TOOL_CONTEXT_KEY, FunctionTable, ToolResponse
from ai_tools.tools.types import ExecutionContext, ExecutionResult, HttpMethod, Tool

log = get_logger(__name__)

API_ROUTE_TIMEOUT_MESSAGE = "Request timeout - API call took too long"


def get_internal_api_base_url(settings: AppConfig) -> str:
    """Base URL for server-to-server calls to internal API routes.

    ``internal_api_url`` wins; otherwise the local web application port is
    used. The public application URL is never used for internal calls.
    """
    if settings.internal_api_url:
        return settings.internal_api_url
    return f"http://localhost:{settings.port}"


def _to_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return orjson.dumps(value).decode()
    return str(value)


def build_query_params(input_data: dict[str, Any]) -> dict[str, str]:
    """Flatten tool input into GET query parameters (None values skipped)."""
    return {key: _to_query_value(value) for key, value in input_data.items() if value is not None}


def _request_kwargs(method: HttpMethod, input_data: dict[str, Any]) -> dict[str, Any]:
    if method == HttpMethod.GET:
        return {"params": build_query_params(input_data)}
    return {"content": orjson.dumps(input_data)}


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


# ============================================================================
# INTERNAL_ACTION
# ============================================================================


def _translate_handler_result(result: Any) -> ExecutionResult:
    if isinstance(result, ToolResponse):
        result = result.model_dump()
    if isinstance(result, dict) and isinstance(result.get("success"), bool):
        if result["success"]:
            return ExecutionResult(success=True, data=result.get("data"), status_code=200)
        return ExecutionResult(
            success=False,
            error=result.get("error") or "Tool execution failed",
            status_code=400,
        )
    return ExecutionResult(success=True, data=result, status_code=200)


async def execute_internal_action(
    tool: Tool,
    input_data: dict[str, Any],
    context: ExecutionContext,
    functions: FunctionTable,
) -> ExecutionResult:
    """Call the handler registered under the tool's name.

    Args:
        tool: Resolved tool definition.
        input_data: Validated input.
        context: Execution context, passed to the handler under ``_toolContext``.
        functions: Function table to look the handler up in.

    Returns:
        200 with the handler output, 400 when the handler reports failure,
        500 when no handler is registered or the handler raises.
    """
    handler = functions.lookup(tool.name)
    if handler is None:
        log.error(TOOL_HANDLER_MISSING, tool_name=tool.name)
        return ExecutionResult(
            success=False,
            error=f'No handler registered for internal action "{tool.name}"',
            status_code=500,
        )

    payload = {**input_data, TOOL_CONTEXT_KEY: context}
    try:
        if inspect.iscoroutinefunction(handler):
            result = await handler(payload)
        else:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, handler, payload)
            if inspect.isawaitable(result):
                result = await result
    except Exception as e:
        return ExecutionResult(
            success=False, error=str(e) or type(e).__name__, status_code=500
        )
    return _translate_handler_result(result)


# ============================================================================
# API_ROUTE
# ============================================================================


async def execute_api_route(
    tool: Tool,
    input_data: dict[str, Any],
    context: ExecutionContext,
    client: httpx.AsyncClient,
    base_url: str,
    timeout_seconds: float = 30.0,
) -> ExecutionResult:
    """Invoke an internal API route with the execution context in headers.

    The request is cancelled once ``timeout_seconds`` elapse.

    Args:
        tool: Resolved tool definition (``endpoint_path`` is relative).
        input_data: Validated input.
        context: Execution context forwarded as ``X-Tool-Context-*`` headers.
        client: HTTP client.
        base_url: Internal API base URL.
        timeout_seconds: Hard deadline for the whole request.

    Returns:
        Execution result carrying the response status.
    """
    url = f"{base_url.rstrip('/')}/{tool.endpoint_path.lstrip('/')}"
    headers = {
        "Content-Type": "application/json",
        "X-Tool-Context-Org": context.organization_id or "",
        "X-Tool-Context-User": context.user_id or "",
        "X-Tool-Context-Source": context.source.value,
        "X-Tool-Context-Test-Mode": "true" if context.test_mode else "false",
    }

    try:
        response = await asyncio.wait_for(
            client.request(
                tool.http_method.value,
                url,
                headers=headers,
                **_request_kwargs(tool.http_method, input_data),
            ),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        log.warning(API_ROUTE_TIMEOUT, tool_name=tool.name, url=url, timeout_seconds=timeout_seconds)
        return ExecutionResult(success=False, error=API_ROUTE_TIMEOUT_MESSAGE, status_code=500)
    except httpx.HTTPError as e:
        log.warning(API_ROUTE_FAILED, tool_name=tool.name, url=url, error=str(e))
        return ExecutionResult(
            success=False, error=f"API request failed: {e or type(e).__name__}", status_code=500
        )

    if _is_json(response):
        try:
            data: Any = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            data = {"message": response.text}
    else:
        data = {"message": response.text}

    if not response.is_success:
        error = data.get("error") if isinstance(data, dict) else None
        return ExecutionResult(
            success=False,
            error=str(error) if error else f"API request failed with status {response.status_code}",
            status_code=response.status_code,
        )
    return ExecutionResult(success=True, data=data, status_code=response.status_code)


# ============================================================================
# EXTERNAL_URL
# ============================================================================


async def execute_external_url(
    tool: Tool,
    input_data: dict[str, Any],
    client: httpx.AsyncClient,
) -> ExecutionResult:
    """Invoke an absolute third-party URL (webhook).

    No deadline is applied and no context headers are sent.
    """
    try:
        response = await client.request(
            tool.http_method.value,
            tool.endpoint_path,
            headers={"Content-Type": "application/json"},
            **_request_kwargs(tool.http_method, input_data),
        )
    except httpx.HTTPError as e:
        log.warning(EXTERNAL_URL_FAILED, tool_name=tool.name, url=tool.endpoint_path, error=str(e))
        return ExecutionResult(success=False, error=str(e) or type(e).__name__, status_code=500)

    if _is_json(response):
        try:
            data: Any = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            data = response.text
    else:
        data = response.text

    if not response.is_success:
        return ExecutionResult(
            success=False,
            error=f"External API request failed with status {response.status_code}",
            status_code=response.status_code,
        )
    return ExecutionResult(success=True, data=data, status_code=response.status_code)
