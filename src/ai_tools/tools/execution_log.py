"""Fire-and-forget execution logging.

The executor hands every finished invocation to :class:`ExecutionLogWriter`,
which writes it to the configured sink in a background task. A failing
write is logged and dropped; it never reaches the caller.
"""

import asyncio
from typing import Any, Protocol

from ai_tools.telemetry import EXECUTION_LOG_WRITE_FAILED, EXECUTION_LOGGED, get_logger
from ai_tools.tools.types import ExecutionContext, ExecutionLogEntry

log = get_logger(__name__)


class ExecutionLogSink(Protocol):
    """Write-only destination for execution log entries."""

    async def write(self, entry: ExecutionLogEntry) -> None:
        """Persist one entry."""
        ...


class InMemoryExecutionLog:
    """Sink that keeps entries in a list (CLI runs and tests)."""

    def __init__(self) -> None:
        """Initialize empty log."""
        self.entries: list[ExecutionLogEntry] = []

    async def write(self, entry: ExecutionLogEntry) -> None:
        self.entries.append(entry)


class NullExecutionLog:
    """Sink that discards entries."""

    async def write(self, entry: ExecutionLogEntry) -> None:
        return None


def build_log_entry(
    tool_id: str,
    context: ExecutionContext,
    input_data: Any,
    output: Any,
    status_code: int,
    error_message: str | None,
    duration_ms: int,
) -> ExecutionLogEntry:
    """Assemble a log entry from the pieces the executor has at hand."""
    return ExecutionLogEntry(
        tool_id=tool_id,
        organization_id=context.organization_id,
        user_id=context.user_id,
        api_key_id=context.api_key_id,
        input=input_data,
        output=output,
        status_code=status_code,
        error_message=error_message,
        duration_ms=duration_ms,
        source=context.source,
    )


class ExecutionLogWriter:
    """Schedules sink writes as background tasks the caller never awaits."""

    def __init__(self, sink: ExecutionLogSink) -> None:
        """Initialize writer.

        Args:
            sink: Destination for entries.
        """
        self.sink = sink
        # Strong references keep pending tasks from being garbage collected
        self._pending: set[asyncio.Task[None]] = set()

    def record(self, entry: ExecutionLogEntry) -> None:
        """Schedule ``entry`` for writing and return immediately.

        Must be called from within a running event loop.
        """
        task = asyncio.create_task(self._write(entry), name=f"execution-log:{entry.tool_id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: ExecutionLogEntry) -> None:
        try:
            await self.sink.write(entry)
        except Exception as e:
            log.warning(
                EXECUTION_LOG_WRITE_FAILED,
                tool_id=entry.tool_id,
                status_code=entry.status_code,
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        log.debug(EXECUTION_LOGGED, tool_id=entry.tool_id, status_code=entry.status_code)

    async def drain(self) -> None:
        """Wait for all scheduled writes (tests and graceful shutdown)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        """Number of writes still in flight."""
        return len(self._pending)
