"""Canonical cache — one canonical record per (record class, id).

Records live here for as long as they have subscribers. When the last
subscriber leaves, the record asks to be removed; the cache keeps it for a
grace period so that a subscriber arriving shortly after (a list re-rendering,
a detail view reopening) finds the same record instead of a blank one.

There are no timers. Pending removals carry a deadline on a monotonic clock
and are evicted by ``sweep()``, which ``get_or_insert`` and ``remove`` also
run before doing their own work.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from tandem._errors import CacheError
from tandem.canonical.record import CanonicalRecord
from tandem.config import get_config

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from tandem._types import RecordId
    from tandem.observability.collector import SyncCollector

type RecordClass = type[CanonicalRecord[Any]]
type CacheKey = tuple[RecordClass, RecordId]


class CanonicalCache:
    """Map of record class -> {id -> canonical record}.

    Args:
        collector: Observability sink, also handed to every record the cache
            creates.
        clock: Monotonic clock in seconds, injectable for tests.

    """

    def __init__(
        self,
        *,
        collector: SyncCollector | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._records: dict[RecordClass, dict[RecordId, CanonicalRecord[Any]]] = {}
        self._pending: dict[CacheKey, float] = {}
        self._collector = collector
        self._clock = clock

    @property
    def collector(self) -> SyncCollector | None:
        return self._collector

    def __len__(self) -> int:
        return sum(len(by_id) for by_id in self._records.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        record_class, record_id = key
        return record_id in self._records.get(record_class, {})

    def __iter__(self) -> Iterator[CacheKey]:
        for record_class, by_id in self._records.items():
            for record_id in by_id:
                yield record_class, record_id

    def get(self, record_class: RecordClass, record_id: RecordId) -> CanonicalRecord[Any] | None:
        """Return the cached record, or None. Never creates one."""
        return self._records.get(record_class, {}).get(record_id)

    def get_or_insert(self, record_class: RecordClass, record_id: RecordId) -> CanonicalRecord[Any]:
        """Return the record for ``(record_class, record_id)``, creating it if needed.

        Cancels a pending removal of that record.

        Raises:
            CacheError: If ``record_class`` is not a CanonicalRecord subclass.

        """
        if not (isinstance(record_class, type) and issubclass(record_class, CanonicalRecord)):
            msg = f"{record_class!r} is not a CanonicalRecord subclass"
            raise CacheError(msg)

        self._pending.pop((record_class, record_id), None)
        self.sweep()

        existing = self.get(record_class, record_id)
        if existing is not None:
            return existing

        record = record_class(cache=self, collector=self._collector)
        self.set(record_class, record_id, record)
        return record

    def set(
        self,
        record_class: RecordClass,
        record_id: RecordId,
        record: CanonicalRecord[Any],
    ) -> None:
        """Store ``record`` under its class and id, replacing any previous one."""
        self._records.setdefault(record_class, {})[record_id] = record
        self._pending.pop((record_class, record_id), None)

    def remove(
        self,
        record_class: RecordClass,
        record_id: RecordId,
        *,
        record: CanonicalRecord[Any] | None = None,
    ) -> None:
        """Schedule a record for eviction after its grace period.

        Called by a record when its last subscriber leaves, passing itself as
        ``record``. The grace period is ``record_class.cache_timeout`` when
        set, otherwise the configured ``cache_grace_period``; zero evicts
        right away.

        The request is ignored when ``record`` is no longer the cached one
        (it was evicted and replaced) or when the cached record still has
        subscribers.
        """
        self.sweep()
        current = self.get(record_class, record_id)
        if current is None or current.subscriber_count:
            return
        if record is not None and current is not record:
            return

        grace = record_class.cache_timeout
        if grace is None:
            grace = get_config().cache_grace_period

        if grace <= 0:
            self._evict(record_class, record_id, reason="immediate")
        else:
            self._pending[(record_class, record_id)] = self._clock() + grace

    def is_pending(self, record_class: RecordClass, record_id: RecordId) -> bool:
        """True if the record is waiting out its grace period."""
        return (record_class, record_id) in self._pending

    def sweep(self, now: float | None = None) -> int:
        """Evict pending records whose grace period has passed.

        A record that gained a subscriber while pending is kept.

        Returns:
            Number of records evicted.

        """
        if not self._pending:
            return 0
        now = self._clock() if now is None else now

        evicted = 0
        for key, deadline in list(self._pending.items()):
            if deadline > now:
                continue
            del self._pending[key]
            record = self.get(*key)
            if record is not None and not record.subscriber_count:
                self._evict(*key, reason="expired")
                evicted += 1
        return evicted

    def evict(self, record_class: RecordClass, record_id: RecordId) -> bool:
        """Remove a record immediately, bypassing the grace period.

        Should be used sparingly: subscribers still holding the record keep
        a detached copy that no longer receives updates from new writers.

        """
        if (record_class, record_id) not in self:
            return False
        self._evict(record_class, record_id, reason="manual")
        return True

    def invalidate(self, record_class: RecordClass) -> int:
        """Evict every record of ``record_class``. Returns how many."""
        ids = list(self._records.get(record_class, {}))
        for record_id in ids:
            self._evict(record_class, record_id, reason="manual")
        return len(ids)

    def invalidate_all_except(self, *record_classes: RecordClass) -> int:
        """Evict every record whose class is not listed. Returns how many."""
        count = 0
        for record_class in list(self._records):
            if record_class not in record_classes:
                count += self.invalidate(record_class)
        return count

    def clear(self) -> None:
        """Drop everything, including pending removals. No events are recorded."""
        self._records.clear()
        self._pending.clear()

    def _evict(self, record_class: RecordClass, record_id: RecordId, *, reason: str) -> None:
        self._pending.pop((record_class, record_id), None)
        by_id = self._records.get(record_class)
        if by_id is None:
            return
        by_id.pop(record_id, None)
        if not by_id:
            del self._records[record_class]
        if self._collector is not None:
            self._collector.record_eviction(record_class.__name__, record_id, reason=reason)


canonical_cache = CanonicalCache()
"""Process-wide default cache used by records and models created without one."""
