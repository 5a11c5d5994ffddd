"""Tag-based cache invalidation broadcast.

Code that mutates the tool catalog publishes ``TOOLS_CACHE_TAG``; every
registry subscribed to the bus drops its cached snapshot.
"""

from typing import Callable

from ai_tools.telemetry import get_logger

log = get_logger(__name__)

TOOLS_CACHE_TAG = "ai-tools"

Callback = Callable[[], None]


class InvalidationBus:
    """Synchronous publish/subscribe channel keyed by cache tag."""

    def __init__(self) -> None:
        """Initialize bus with no subscribers."""
        self._subscribers: dict[str, list[Callback]] = {}

    def subscribe(self, tag: str, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` for ``tag``.

        Args:
            tag: Cache tag to listen on.
            callback: Called with no arguments on every publish of ``tag``.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.setdefault(tag, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(tag, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def publish(self, tag: str) -> int:
        """Notify all subscribers of ``tag``.

        A failing subscriber is logged and does not stop the others.

        Returns:
            Number of subscribers notified.
        """
        callbacks = list(self._subscribers.get(tag, []))
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                log.warning("invalidation_subscriber_failed", tag=tag, error=str(e))
        return len(callbacks)

    def subscriber_count(self, tag: str) -> int:
        """Number of callbacks registered for ``tag``."""
        return len(self._subscribers.get(tag, []))


_default_bus: InvalidationBus | None = None


def get_invalidation_bus() -> InvalidationBus:
    """Get the process-wide invalidation bus."""
    global _default_bus
    if _default_bus is None:
        _default_bus = InvalidationBus()
    return _default_bus


def invalidate_tools_cache(bus: InvalidationBus | None = None) -> None:
    """Broadcast ``TOOLS_CACHE_TAG`` so every registry re-reads the catalog.

    Must be called by any code path that creates, updates or deletes a tool.

    Args:
        bus: Bus to publish on. Defaults to the process-wide bus.
    """
    (bus or get_invalidation_bus()).publish(TOOLS_CACHE_TAG)
