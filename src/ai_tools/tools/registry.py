"""Tool registry: the cached read path over the tool catalog.

The registry is read-hot (every agent turn may list tools) and write-cold
(admins edit tools rarely), so the enabled-tool list is cached with a short
TTL and dropped wholesale whenever ``TOOLS_CACHE_TAG`` is published.
"""

import time
from dataclasses import dataclass
from typing import Callable, Iterable

from ai_tools.telemetry import (
    TOOLS_CACHE_HIT,
    TOOLS_CACHE_INVALIDATED,
    TOOLS_CACHE_MISS,
    TOOLS_CACHE_POPULATE_DISCARDED,
    get_logger,
)
from ai_tools.tools.invalidation import TOOLS_CACHE_TAG, InvalidationBus, get_invalidation_bus
from ai_tools.tools.store import ToolStore
from ai_tools.tools.types import CategoryCount, Tool

log = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class _CacheEntry:
    tools: tuple[Tool, ...]
    expires_at: float


class ToolRegistry:
    """Central read access to the tool catalog.

    Disabled tools are invisible to every query except
    :meth:`get_tool_by_name`, which admin tooling uses.
    """

    def __init__(
        self,
        store: ToolStore,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        bus: InvalidationBus | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize registry.

        Args:
            store: Catalog data store.
            cache_ttl_seconds: Lifetime of the enabled-tools snapshot. 0 disables caching.
            bus: Invalidation bus to subscribe to. Defaults to the process-wide bus.
            clock: Monotonic time source (seconds).
        """
        self.store = store
        self.cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: _CacheEntry | None = None
        # Bumped on every invalidation so an in-flight populate cannot store stale data
        self._generation = 0
        self._bus = bus or get_invalidation_bus()
        self._unsubscribe = self._bus.subscribe(TOOLS_CACHE_TAG, self.invalidate_tools_cache)
        log.debug("tool_registry_initialized", cache_ttl_seconds=cache_ttl_seconds)

    def close(self) -> None:
        """Stop listening for invalidation broadcasts."""
        self._unsubscribe()

    def invalidate_tools_cache(self) -> None:
        """Drop the cached snapshot; the next read goes to the store."""
        self._generation += 1
        had_entry = self._cache is not None
        self._cache = None
        log.debug(TOOLS_CACHE_INVALIDATED, had_entry=had_entry)

    async def get_enabled_tools(self) -> list[Tool]:
        """All enabled tools, ordered by category then display name.

        Returns:
            A new list on every call; cached within the TTL window.
        """
        entry = self._cache
        now = self._clock()
        if entry is not None and now < entry.expires_at:
            log.debug(TOOLS_CACHE_HIT, tools_count=len(entry.tools))
            return list(entry.tools)

        generation = self._generation
        log.debug(TOOLS_CACHE_MISS)
        tools = await self.store.find_many(is_enabled=True)

        if self.cache_ttl_seconds > 0:
            if generation == self._generation:
                self._cache = _CacheEntry(
                    tools=tuple(tools), expires_at=self._clock() + self.cache_ttl_seconds
                )
            else:
                log.debug(TOOLS_CACHE_POPULATE_DISCARDED)
        return list(tools)

    async def get_enabled_tools_by_category(self, category: str) -> list[Tool]:
        """Enabled tools in ``category``, in registry order."""
        return [tool for tool in await self.get_enabled_tools() if tool.category == category]

    async def get_tool_by_name(self, name: str) -> Tool | None:
        """Uncached lookup that ignores the enabled flag (admin use).

        Args:
            name: Tool name.

        Returns:
            Tool or None if no tool has that name.
        """
        return await self.store.find_by_name(name)

    async def get_enabled_tool_by_name(self, name: str) -> Tool | None:
        """Lookup used by the execution path: disabled tools are not returned."""
        tool = await self.store.find_by_name(name)
        if tool is None or not tool.is_enabled:
            return None
        return tool

    async def get_tools_for_scopes(self, scopes: Iterable[str]) -> list[Tool]:
        """Enabled tools whose required scopes are all held by the caller.

        Args:
            scopes: Scopes the caller holds.

        Returns:
            Tools with ``required_scopes ⊆ scopes``. Tools without requirements
            are always included.
        """
        held = set(scopes)
        return [tool for tool in await self.get_enabled_tools() if tool.has_scopes(held)]

    async def is_tool_available_for_scopes(self, name: str, scopes: Iterable[str]) -> bool:
        """Whether ``name`` exists, is enabled and is covered by ``scopes``."""
        tool = await self.get_enabled_tool_by_name(name)
        if tool is None:
            return False
        return tool.has_scopes(set(scopes))

    async def get_tool_categories_with_counts(self) -> list[CategoryCount]:
        """Per-category totals over the full catalog, sorted by category."""
        counts: dict[str, list[int]] = {}
        for tool in await self.store.find_many(is_enabled=None):
            bucket = counts.setdefault(tool.category, [0, 0])
            bucket[0] += 1
            if tool.is_enabled:
                bucket[1] += 1

        return [
            CategoryCount(category=category, count=total, enabled_count=enabled)
            for category, (total, enabled) in sorted(counts.items())
        ]
