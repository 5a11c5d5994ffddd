"""Tool catalog storage using Postgres."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ai_tools.service.models import AiToolModel
from ai_tools.telemetry import (
    CATALOG_TOOL_CREATED,
    CATALOG_TOOL_DELETED,
    CATALOG_TOOL_UPDATED,
    get_logger,
)
from ai_tools.tools.invalidation import InvalidationBus, invalidate_tools_cache
from ai_tools.tools.store import (
    DuplicateToolError,
    ToolNotFoundError,
    apply_tool_update,
    ensure_valid_definition,
)
from ai_tools.tools.types import Tool

log = get_logger(__name__)

_TOOL_FIELDS = (
    "id",
    "name",
    "display_name",
    "description",
    "category",
    "is_enabled",
    "endpoint_type",
    "endpoint_path",
    "http_method",
    "parameters",
    "required_scopes",
)


def _to_tool(model: AiToolModel) -> Tool:
    return Tool.model_validate({field: getattr(model, field) for field in _TOOL_FIELDS})


def _column_values(tool: Tool) -> dict[str, Any]:
    return tool.model_dump(mode="json", include=set(_TOOL_FIELDS))


class SqlToolStore:
    """Tool catalog backed by the ``ai_tools`` table.

    The registry holds the store for the life of the process, so each
    operation opens its own session.

    Usage:
        store = SqlToolStore(get_session_factory())
        registry = ToolRegistry(store)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        bus: InvalidationBus | None = None,
    ) -> None:
        """Initialize store.

        Args:
            session_factory: Session factory for the catalog database.
            bus: Invalidation bus to publish on. Defaults to the process-wide bus.
        """
        self.session_factory = session_factory
        self._bus = bus

    async def find_by_name(self, name: str) -> Tool | None:
        """Get tool by name regardless of its enabled flag."""
        async with self.session_factory() as db:
            result = await db.execute(select(AiToolModel).where(AiToolModel.name == name))
            model = result.scalar_one_or_none()
            return _to_tool(model) if model is not None else None

    async def find_many(
        self, is_enabled: bool | None = None, category: str | None = None
    ) -> list[Tool]:
        """List tools ordered by category, then display name."""
        query = select(AiToolModel)
        if is_enabled is not None:
            query = query.where(AiToolModel.is_enabled == is_enabled)
        if category is not None:
            query = query.where(AiToolModel.category == category)
        query = query.order_by(AiToolModel.category, AiToolModel.display_name)

        async with self.session_factory() as db:
            result = await db.execute(query)
            return [_to_tool(model) for model in result.scalars().all()]

    async def create(self, tool: Tool) -> Tool:
        """Insert a new tool.

        Raises:
            DuplicateToolError: If the name is taken.
            InvalidToolDefinitionError: If the definition is invalid.
        """
        ensure_valid_definition(tool)
        now = datetime.now(timezone.utc)

        async with self.session_factory() as db:
            existing = await db.execute(
                select(AiToolModel.id).where(AiToolModel.name == tool.name)
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateToolError(f"Tool '{tool.name}' already exists")

            model = AiToolModel(**_column_values(tool), created_at=now, updated_at=now)
            db.add(model)
            await db.commit()
            await db.refresh(model)
            created = _to_tool(model)

        invalidate_tools_cache(self._bus)
        log.info(CATALOG_TOOL_CREATED, tool_name=created.name, endpoint_type=created.endpoint_type.value)
        return created

    async def update(self, name: str, **changes: Any) -> Tool:
        """Update fields of an existing tool.

        Raises:
            ToolNotFoundError: If no tool is called ``name``.
            DuplicateToolError: If a rename collides with another tool.
            InvalidToolDefinitionError: If the update is not allowed.
        """
        async with self.session_factory() as db:
            result = await db.execute(select(AiToolModel).where(AiToolModel.name == name))
            model = result.scalar_one_or_none()
            if model is None:
                raise ToolNotFoundError(f"Tool '{name}' not found")

            updated = apply_tool_update(_to_tool(model), changes)
            if updated.name != name:
                clash = await db.execute(
                    select(AiToolModel.id).where(AiToolModel.name == updated.name)
                )
                if clash.scalar_one_or_none() is not None:
                    raise DuplicateToolError(f"Tool '{updated.name}' already exists")

            for field, value in _column_values(updated).items():
                setattr(model, field, value)
            model.updated_at = datetime.now(timezone.utc)
            await db.commit()

        invalidate_tools_cache(self._bus)
        log.info(CATALOG_TOOL_UPDATED, tool_name=updated.name, fields=sorted(changes))
        return updated

    async def set_enabled(self, name: str, enabled: bool) -> Tool:
        """Enable or disable a tool."""
        return await self.update(name, is_enabled=enabled)

    async def delete(self, name: str) -> None:
        """Delete a tool.

        Raises:
            ToolNotFoundError: If no tool is called ``name``.
        """
        async with self.session_factory() as db:
            result = await db.execute(delete(AiToolModel).where(AiToolModel.name == name))
            await db.commit()
            if result.rowcount == 0:
                raise ToolNotFoundError(f"Tool '{name}' not found")

        invalidate_tools_cache(self._bus)
        log.info(CATALOG_TOOL_DELETED, tool_name=name)

    async def seed(self, tools: list[Tool]) -> int:
        """Insert catalog tools that are not in the table yet.

        Returns:
            Number of tools inserted.
        """
        inserted = 0
        for tool in tools:
            if await self.find_by_name(tool.name) is None:
                await self.create(tool)
                inserted += 1
        return inserted
