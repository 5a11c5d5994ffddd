"""Tool execution log storage using Postgres."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ai_tools.service.models import AiToolExecutionModel
from ai_tools.tools.types import ExecutionLogEntry


class SqlExecutionLogSink:
    """Execution log sink writing to the ``ai_tool_executions`` table.

    Usage:
        writer = ExecutionLogWriter(SqlExecutionLogSink(get_session_factory()))
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:  # noqa: D107
        """Initialize sink with a session factory."""
        self.session_factory = session_factory

    async def write(self, entry: ExecutionLogEntry) -> None:
        """Insert one execution record."""
        data = entry.model_dump(mode="json")
        data["created_at"] = entry.created_at
        async with self.session_factory() as db:
            db.add(AiToolExecutionModel(**data))
            await db.commit()

    async def list_recent(
        self, tool_id: str | None = None, limit: int = 50
    ) -> list[ExecutionLogEntry]:
        """List recent executions, newest first.

        Args:
            tool_id: Restrict to one tool.
            limit: Maximum number to return.
        """
        query = select(AiToolExecutionModel)
        if tool_id is not None:
            query = query.where(AiToolExecutionModel.tool_id == tool_id)
        query = query.order_by(
            AiToolExecutionModel.created_at.desc(), AiToolExecutionModel.id.desc()
        ).limit(limit)

        async with self.session_factory() as db:
            result = await db.execute(query)
            return [
                ExecutionLogEntry(
                    tool_id=model.tool_id,
                    organization_id=model.organization_id,
                    user_id=model.user_id,
                    api_key_id=model.api_key_id,
                    input=model.input,
                    output=model.output,
                    status_code=model.status_code,
                    error_message=model.error_message,
                    duration_ms=model.duration_ms,
                    source=model.source,
                    created_at=model.created_at,
                )
                for model in result.scalars().all()
            ]
