"""Bounded per-event history of delivered payloads."""

from __future__ import annotations

from collections import deque
from typing import Any

from bufferbus.events.types import DEFAULT_CACHE_CAPACITY


class EventCache:
    """Keeps the last *capacity* deliveries for each event name.

    Buffered deliveries are stored as the delivered batch, unbuffered ones as
    the raw payload.  Oldest entries are evicted first.  When *enabled* is
    false every write is a no-op.
    """

    def __init__(self, enabled: bool = False, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"cache capacity must be at least 1, got {capacity}")
        self.enabled = enabled
        self.capacity = capacity
        self._entries: dict[str, deque[Any]] = {}

    def add(self, event_name: str, data: Any) -> None:
        if not self.enabled:
            return
        if event_name not in self._entries:
            self._entries[event_name] = deque(maxlen=self.capacity)
        self._entries[event_name].append(data)

    def get(self, event_name: str) -> list[Any]:
        return list(self._entries.get(event_name, ()))

    def discard(self, event_name: str) -> None:
        self._entries.pop(event_name, None)

    def clear(self) -> None:
        self._entries.clear()
