"""Tests for ToolRegistry."""

import asyncio

import pytest
from conftest import make_tool

from ai_tools.tools.invalidation import TOOLS_CACHE_TAG, InvalidationBus
from ai_tools.tools.registry import ToolRegistry
from ai_tools.tools.store import InMemoryToolStore


class CountingStore(InMemoryToolStore):
    """In-memory store that counts find_many calls."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.find_many_calls = 0

    async def find_many(self, is_enabled=None, category=None):
        self.find_many_calls += 1
        return await super().find_many(is_enabled=is_enabled, category=category)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def catalog_tools():
    """Catalog spanning several categories and scope requirements."""
    return [
        make_tool("search_properties", display_name="Search Properties", category="mls",
                  required_scopes=["mls:read"]),
        make_tool("list_clients", display_name="List Clients", category="crm",
                  required_scopes=["crm:read"]),
        make_tool("create_client", display_name="Create Client", category="crm",
                  required_scopes=["crm:read", "crm:write"]),
        make_tool("send_notification", display_name="Send Notification",
                  category="notifications"),
        make_tool("old_import", display_name="Old Import", category="crm", is_enabled=False),
    ]


@pytest.fixture
def counting_store(catalog_tools, bus) -> CountingStore:
    """Counting store over the catalog."""
    return CountingStore(catalog_tools, bus=bus)


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock."""
    return FakeClock()


@pytest.fixture
def cached_registry(counting_store, bus, clock) -> ToolRegistry:
    """Registry with a 30 second TTL and a fake clock."""
    reg = ToolRegistry(counting_store, cache_ttl_seconds=30, bus=bus, clock=clock)
    yield reg
    reg.close()


@pytest.mark.asyncio
async def test_enabled_tools_ordered_by_category_then_display_name(cached_registry) -> None:
    """Test enabled tools are sorted and disabled ones excluded."""
    tools = await cached_registry.get_enabled_tools()
    assert [tool.name for tool in tools] == [
        "create_client",
        "list_clients",
        "search_properties",
        "send_notification",
    ]


@pytest.mark.asyncio
async def test_enabled_tools_cached_within_ttl(cached_registry, counting_store) -> None:
    """Test a second read within the TTL does not hit the store."""
    first = await cached_registry.get_enabled_tools()
    second = await cached_registry.get_enabled_tools()

    assert first == second
    assert first is not second
    assert counting_store.find_many_calls == 1


@pytest.mark.asyncio
async def test_cache_expires_after_ttl(cached_registry, counting_store, clock) -> None:
    """Test the store is read again once the TTL has passed."""
    await cached_registry.get_enabled_tools()
    clock.now += 31
    await cached_registry.get_enabled_tools()
    assert counting_store.find_many_calls == 2


@pytest.mark.asyncio
async def test_invalidate_forces_reread(cached_registry, counting_store) -> None:
    """Test explicit invalidation drops the snapshot within the TTL."""
    await cached_registry.get_enabled_tools()
    cached_registry.invalidate_tools_cache()
    await cached_registry.get_enabled_tools()
    assert counting_store.find_many_calls == 2


@pytest.mark.asyncio
async def test_store_mutation_invalidates_via_bus(cached_registry, counting_store) -> None:
    """Test catalog mutations broadcast the tag and the registry re-reads."""
    before = await cached_registry.get_enabled_tools()
    assert "new_tool" not in [tool.name for tool in before]

    await counting_store.create(make_tool("new_tool", category="tasks"))
    after = await cached_registry.get_enabled_tools()

    assert "new_tool" in [tool.name for tool in after]
    assert counting_store.find_many_calls == 2


@pytest.mark.asyncio
async def test_disable_hides_tool_immediately(cached_registry, counting_store) -> None:
    """Test disabling a tool is visible on the next read."""
    await cached_registry.get_enabled_tools()
    await counting_store.set_enabled("list_clients", False)

    names = [tool.name for tool in await cached_registry.get_enabled_tools()]
    assert "list_clients" not in names
    assert await cached_registry.get_enabled_tool_by_name("list_clients") is None


@pytest.mark.asyncio
async def test_populate_racing_invalidation_is_not_stored(catalog_tools, bus, clock) -> None:
    """Test a read that overlaps an invalidation does not cache stale data."""
    gate = asyncio.Event()

    class SlowStore(CountingStore):
        async def find_many(self, is_enabled=None, category=None):
            tools = await super().find_many(is_enabled=is_enabled, category=category)
            await gate.wait()
            return tools

    store = SlowStore(catalog_tools, bus=bus)
    reg = ToolRegistry(store, cache_ttl_seconds=30, bus=bus, clock=clock)
    try:
        pending = asyncio.create_task(reg.get_enabled_tools())
        await asyncio.sleep(0)
        reg.invalidate_tools_cache()
        gate.set()
        await pending

        await reg.get_enabled_tools()
        assert store.find_many_calls == 2
    finally:
        reg.close()


@pytest.mark.asyncio
async def test_zero_ttl_disables_cache(counting_store, bus) -> None:
    """Test a TTL of zero reads the store on every call."""
    reg = ToolRegistry(counting_store, cache_ttl_seconds=0, bus=bus)
    try:
        await reg.get_enabled_tools()
        await reg.get_enabled_tools()
        assert counting_store.find_many_calls == 2
    finally:
        reg.close()


@pytest.mark.asyncio
async def test_enabled_tools_by_category(cached_registry) -> None:
    """Test category filtering keeps registry order."""
    tools = await cached_registry.get_enabled_tools_by_category("crm")
    assert [tool.name for tool in tools] == ["create_client", "list_clients"]


@pytest.mark.asyncio
async def test_get_tool_by_name_ignores_enabled_flag(cached_registry) -> None:
    """Test admin lookup returns disabled tools."""
    tool = await cached_registry.get_tool_by_name("old_import")
    assert tool is not None
    assert tool.is_enabled is False
    assert await cached_registry.get_enabled_tool_by_name("old_import") is None


@pytest.mark.asyncio
async def test_lookup_unknown_tool(cached_registry) -> None:
    """Test unknown names return None."""
    assert await cached_registry.get_tool_by_name("nope") is None
    assert await cached_registry.get_enabled_tool_by_name("nope") is None


@pytest.mark.asyncio
async def test_tools_for_empty_scopes(cached_registry) -> None:
    """Test no scopes yields only unrestricted tools."""
    tools = await cached_registry.get_tools_for_scopes([])
    assert [tool.name for tool in tools] == ["send_notification"]


@pytest.mark.asyncio
async def test_tools_for_scopes_subset(cached_registry) -> None:
    """Test tools are returned when their requirements are a subset of the scopes."""
    tools = await cached_registry.get_tools_for_scopes(["crm:read", "mls:read"])
    assert [tool.name for tool in tools] == [
        "list_clients",
        "search_properties",
        "send_notification",
    ]

    tools = await cached_registry.get_tools_for_scopes({"crm:read", "crm:write"})
    assert [tool.name for tool in tools] == [
        "create_client",
        "list_clients",
        "send_notification",
    ]


@pytest.mark.asyncio
async def test_is_tool_available_for_scopes(cached_registry) -> None:
    """Test availability requires existence, enabled flag and scopes."""
    assert await cached_registry.is_tool_available_for_scopes("list_clients", ["crm:read"])
    assert not await cached_registry.is_tool_available_for_scopes("create_client", ["crm:read"])
    assert not await cached_registry.is_tool_available_for_scopes("old_import", ["crm:read"])
    assert not await cached_registry.is_tool_available_for_scopes("missing", ["crm:read"])
    assert await cached_registry.is_tool_available_for_scopes("send_notification", [])


@pytest.mark.asyncio
async def test_categories_with_counts_cover_full_catalog(cached_registry) -> None:
    """Test counts include disabled tools."""
    counts = await cached_registry.get_tool_categories_with_counts()
    assert [(c.category, c.count, c.enabled_count) for c in counts] == [
        ("crm", 3, 2),
        ("mls", 1, 1),
        ("notifications", 1, 1),
    ]


def test_close_unsubscribes(counting_store) -> None:
    """Test closing a registry removes its bus subscription."""
    bus = InvalidationBus()
    reg = ToolRegistry(counting_store, bus=bus)
    assert bus.subscriber_count(TOOLS_CACHE_TAG) == 1
    reg.close()
    assert bus.subscriber_count(TOOLS_CACHE_TAG) == 0
