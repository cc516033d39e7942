"""
Pull consumer.

Keeps the latest events in memory until an API client pulls them.
"""

import copy
from collections import deque
from threading import Lock
from typing import Any, Deque, Dict, List, Optional

import structlog

from ..models.event import Context

logger = structlog.get_logger(__name__)

DEFAULT_MAX_EVENTS = 10


class PullStore:
    """Bounded per-consumer event buffers."""

    def __init__(self) -> None:
        self._buffers: Dict[str, Deque[Dict[str, Any]]] = {}
        self._lock = Lock()

    def push(self, name: str, event_type: str, data: Any, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        with self._lock:
            buffer = self._buffers.get(name)
            if buffer is None or buffer.maxlen != max_events:
                buffer = deque(buffer or (), maxlen=max_events)
                self._buffers[name] = buffer
            buffer.append({"type": event_type, "data": data})

    def get(self, name: str) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._buffers.get(name, ()))

    def clear(self, name: Optional[str] = None) -> None:
        with self._lock:
            if name is None:
                self._buffers.clear()
            else:
                self._buffers.pop(name, None)


# Global pull store instance
_pull_store: Optional[PullStore] = None


def get_pull_store() -> PullStore:
    """Get or create global pull store instance."""
    global _pull_store

    if _pull_store is None:
        _pull_store = PullStore()

    return _pull_store


async def deliver(context: Context) -> None:
    """Buffer the event under the consumer id (traceName outside the forwarder)."""
    max_events = int(context.config.get("maxEvents") or DEFAULT_MAX_EVENTS)
    # contexts are not retained past delivery, keep a copy
    data = copy.deepcopy(context.event.data)
    name = context.consumer_id or context.config.trace_name
    get_pull_store().push(name, context.event.type, data, max_events)

    log = context.logger or logger
    log.debug("Event buffered for pull", event_type=context.event.type)

    if context.tracer is not None:
        await context.tracer.write(context.event.data)
