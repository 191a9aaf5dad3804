"""Event log — queryable, thread-safe event store.

Stores a bounded ring buffer of ``SyncEvent`` objects for inspection.
Supports querying by event type, time range, and record class name.

Thread Safety:
    All methods are protected by a ``threading.Lock``. The engine itself is
    single-threaded, but logs may be read from a different thread.

"""

import threading
from collections import Counter, deque
from typing import Any

from tandem.observability.events import SyncEvent


class EventLog:
    """Bounded event store with query support.

    Events are stored in a ring buffer (deque with maxlen). When the
    buffer is full, the oldest events are discarded automatically.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[SyncEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: SyncEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        record: str | None = None,
        limit: int = 100,
    ) -> list[SyncEvent]:
        """Query events with optional filters.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events after this timestamp (nanoseconds).
            record: Only return events for this record class name (exact).
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        with self._lock:
            results: list[SyncEvent] = []
            for event in reversed(self._events):
                if len(results) >= limit:
                    break
                if event_type is not None and not isinstance(event, event_type):
                    continue
                if since_ns and event.timestamp_ns < since_ns:
                    continue
                if record is not None and event.record != record:
                    continue
                results.append(event)
            return results

    def recent(self, n: int = 20) -> list[SyncEvent]:
        """The last ``n`` events, oldest first."""
        with self._lock:
            skip = max(len(self._events) - n, 0)
            return [event for index, event in enumerate(self._events) if index >= skip]

    def clear(self) -> int:
        """Drop every event; returns how many were dropped."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Counts of stored events per event type and per record class."""
        with self._lock:
            events = tuple(self._events)
        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(Counter(type(event).__name__ for event in events)),
            "by_record": dict(Counter(event.record for event in events)),
        }
