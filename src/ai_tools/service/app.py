"""FastAPI service application."""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from ai_tools.config import get_settings, load_tool_catalog
from ai_tools.service.models import ExecuteToolRequest, PromptContextResponse, TestToolRequest
from ai_tools.telemetry import (
    SERVICE_STARTING,
    SERVICE_STOPPING,
    TOOL_CALL_FAILED,
    configure_logging,
    get_logger,
)
from ai_tools.tools.bindings import create_api_context
from ai_tools.tools.execution_log import ExecutionLogWriter
from ai_tools.tools.executor import ToolExecutor
from ai_tools.tools.formats import format_tools, tools_to_prompt_context
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.types import CategoryCount, ExecutionResult

log = get_logger(__name__)


@dataclass
class ServiceState:
    """Long-lived objects shared by request handlers."""

    registry: ToolRegistry
    executor: ToolExecutor
    log_writer: ExecutionLogWriter
    http_client: httpx.AsyncClient | None = None
    # Cleanup callbacks run on shutdown (only for state built by the lifespan)
    closers: list[Any] = field(default_factory=list)


def parse_scopes(header: str | None) -> set[str]:
    """Split a comma-separated ``X-API-Scopes`` header."""
    if not header:
        return set()
    return {scope.strip() for scope in header.split(",") if scope.strip()}


async def build_service_state() -> ServiceState:
    """Wire the SQL-backed catalog, execution log and executor from settings."""
    from ai_tools.service.database import (  # noqa: PLC0415
        dispose_engine,
        get_session_factory,
        init_db,
    )
    from ai_tools.service.repositories.execution_repository import (  # noqa: PLC0415
        SqlExecutionLogSink,
    )
    from ai_tools.service.repositories.tool_repository import SqlToolStore  # noqa: PLC0415

    settings = get_settings()

    await init_db()
    log.info("database_initialized")

    session_factory = get_session_factory()
    store = SqlToolStore(session_factory)
    if settings.tool_catalog_path.exists():
        inserted = await store.seed(load_tool_catalog(settings.tool_catalog_path))
        log.info("catalog_seeded", inserted=inserted)

    registry = ToolRegistry(store, cache_ttl_seconds=settings.tools_cache_ttl_seconds)
    log_writer = ExecutionLogWriter(SqlExecutionLogSink(session_factory))
    http_client = httpx.AsyncClient(timeout=None)
    executor = ToolExecutor(
        registry, log_writer=log_writer, http_client=http_client, settings=settings
    )
    return ServiceState(
        registry=registry,
        executor=executor,
        log_writer=log_writer,
        http_client=http_client,
        closers=[registry.close, http_client.aclose, dispose_engine],
    )


def create_app(state: ServiceState | None = None) -> FastAPI:
    """Create the service application.

    Args:
        state: Pre-built state (tests). If None, the lifespan builds it from settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if state is None:
            configure_logging()
        log.info(SERVICE_STARTING)
        service_state = state or await build_service_state()
        app.state.tools = service_state
        log.info("service_ready", port=get_settings().service_port if state is None else None)

        yield

        log.info(SERVICE_STOPPING)
        await service_state.log_writer.drain()
        for close in service_state.closers:
            outcome = close()
            if hasattr(outcome, "__await__"):
                await outcome
        log.info("service_stopped")

    app = FastAPI(
        title="AI Tools Service",
        description="Tool registry and execution for AI agents",
        version="0.1.0",
        lifespan=lifespan,
    )
    _register_routes(app)
    return app


def get_state(request: Request) -> ServiceState:
    """Dependency returning the service state."""
    return request.app.state.tools


def _register_routes(app: FastAPI) -> None:
    # ========================================================================
    # Health Check
    # ========================================================================

    @app.get("/health")
    async def health_check(state: ServiceState = Depends(get_state)) -> dict[str, Any]:  # noqa: B008
        """Service health check endpoint."""
        return {
            "status": "healthy",
            "components": {
                "registry": "ready",
                "execution_log_pending": state.log_writer.pending_count,
            },
        }

    # ========================================================================
    # Tool Endpoints (API key callers)
    # ========================================================================

    @app.get("/v1/tools")
    async def list_tools(
        format: str | None = None,
        x_api_scopes: str | None = Header(default=None),
        state: ServiceState = Depends(get_state),  # noqa: B008
    ) -> list[dict[str, Any]]:
        """List tools available to the caller's scopes."""
        tools = await state.registry.get_tools_for_scopes(parse_scopes(x_api_scopes))
        if format is None:
            return [tool.model_dump(mode="json") for tool in tools]
        try:
            return format_tools(tools, format)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from None

    @app.get("/v1/tools/prompt-context", response_model=PromptContextResponse)
    async def get_prompt_context(
        x_api_scopes: str | None = Header(default=None),
        state: ServiceState = Depends(get_state),  # noqa: B008
    ) -> PromptContextResponse:
        """Prompt-context summary of the tools available to the caller."""
        tools = await state.registry.get_tools_for_scopes(parse_scopes(x_api_scopes))
        return PromptContextResponse(
            prompt_context=tools_to_prompt_context(tools), tools_count=len(tools)
        )

    @app.post("/v1/tools/{name}/execute")
    async def execute_tool(
        name: str,
        data: ExecuteToolRequest,
        x_api_scopes: str | None = Header(default=None),
        x_api_key_id: str | None = Header(default=None),
        state: ServiceState = Depends(get_state),  # noqa: B008
    ) -> JSONResponse:
        """Execute a tool on behalf of an API key."""
        try:
            tool = await state.registry.get_enabled_tool_by_name(name)
        except Exception as e:
            log.error(TOOL_CALL_FAILED, tool_name=name, error=str(e), exc_info=True)
            result = ExecutionResult(success=False, error=str(e) or type(e).__name__, status_code=500)
            return JSONResponse(status_code=500, content=result.model_dump(mode="json"))

        if tool is not None and not tool.has_scopes(parse_scopes(x_api_scopes)):
            missing = sorted(set(tool.required_scopes) - parse_scopes(x_api_scopes))
            log.warning("tool_scope_denied", tool_name=name, missing_scopes=missing)
            raise HTTPException(
                status_code=403, detail=f"Missing required scopes: {', '.join(missing)}"
            )

        context = create_api_context(x_api_key_id or "", data.organization_id or "")
        result = await state.executor.execute_tool(name, data.input, context)
        return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))

    # ========================================================================
    # Admin Endpoints
    # ========================================================================

    @app.post("/admin/tools/{name}/test")
    async def test_tool(
        name: str,
        data: TestToolRequest,
        state: ServiceState = Depends(get_state),  # noqa: B008
    ) -> JSONResponse:
        """Dry-run a tool from the admin console."""
        result = await state.executor.execute_tool_for_testing(
            name,
            data.input,
            admin_user_id=data.admin_user_id,
            organization_id=data.organization_id,
            test_mode=data.test_mode,
        )
        return JSONResponse(status_code=result.status_code, content=result.model_dump(mode="json"))

    @app.get("/admin/tools/categories", response_model=list[CategoryCount])
    async def list_categories(
        state: ServiceState = Depends(get_state),  # noqa: B008
    ) -> list[CategoryCount]:
        """Tool counts per category over the full catalog."""
        return await state.registry.get_tool_categories_with_counts()
