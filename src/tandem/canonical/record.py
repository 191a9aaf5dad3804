"""Canonical record — the single shared copy of one logical entity.

A canonical record has one responsibility: broadcast when its attributes
change through ``set``. Models subscribe to it; when one of them writes,
every other subscriber receives the new snapshot, which is how unrelated
copies of "user #5" stay in sync across an application.

The record does not know its own id. The cache stores it under
``(record class, id)`` and the id is handed back in ``remove_subscription``
when the last subscriber leaves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from tandem._errors import CascadeError
from tandem.canonical.broadcast import UpdateBroadcaster
from tandem.canonical.equality import deep_equal
from tandem.config import get_config

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tandem._types import RecordId, SubscriberIdentity, UpdateCallback
    from tandem.canonical.broadcast import BroadcastResult, Subscription
    from tandem.observability.collector import SyncCollector


class EvictionTarget(Protocol):
    """What a record needs from its cache: somewhere to report it is unused."""

    def remove(
        self,
        record_class: type[CanonicalRecord[Any]],
        record_id: RecordId,
        *,
        record: CanonicalRecord[Any] | None = None,
    ) -> None: ...


class CanonicalRecord[V]:
    """Attribute mapping with change detection and selective broadcast.

    Subclass once per entity type (``class UserRecord(CanonicalRecord): ...``);
    the subclass is half of the cache key.

    Args:
        cache: Cache notified when the last subscriber leaves. Defaults to
            the module-level ``canonical_cache``.
        collector: Optional observability sink.

    """

    cache_timeout: ClassVar[float | None] = None
    """Per-class grace period in seconds. ``None`` uses the configured default."""

    def __init__(
        self,
        *,
        cache: EvictionTarget | None = None,
        collector: SyncCollector | None = None,
    ) -> None:
        self.attributes: dict[str, V] = {}
        self._events = UpdateBroadcaster(self)
        self._cache = cache
        self._collector = collector
        self._depth = 0

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} keys={sorted(self.attributes)!r} "
            f"subscribers={self.subscriber_count}>"
        )

    @property
    def cache(self) -> EvictionTarget:
        """The cache this record reports to."""
        if self._cache is None:
            from tandem.canonical.cache import canonical_cache

            return canonical_cache
        return self._cache

    @property
    def subscriber_count(self) -> int:
        return self._events.subscriber_count

    def get_subscribers(self) -> tuple[Subscription, ...]:
        return self._events.get_subscribers()

    def get(self, name: str) -> V | None:
        """Return the current value for ``name``, or None if absent."""
        return self.attributes.get(name)

    def set(
        self,
        partial: Mapping[str, V],
        origin: SubscriberIdentity = None,
        *,
        unset: bool = False,
    ) -> bool:
        """Apply a batch of attribute changes and broadcast if anything changed.

        Every key in ``partial`` is applied, whether or not its own value
        changed. With ``unset=True`` the keys are deleted and the values are
        ignored; a key counts as changed when it was present.

        The broadcast carries a full snapshot and skips ``origin``.

        Returns:
            True if a broadcast happened.

        Raises:
            CascadeError: When called from inside this record's broadcasts
                more than ``max_cascade_depth`` levels deep. Nothing is
                applied in that case.

        """
        limit = get_config().max_cascade_depth
        if self._depth >= limit:
            msg = f"{type(self).__name__}: update cascade exceeded {limit} nested sets"
            raise CascadeError(msg)

        changed: list[str] = []
        for key, value in partial.items():
            if unset:
                if key in self.attributes:
                    changed.append(key)
                    del self.attributes[key]
            else:
                if key not in self.attributes or not deep_equal(self.attributes[key], value):
                    changed.append(key)
                self.attributes[key] = value

        if not changed:
            return False

        self._depth += 1
        try:
            result = self._events.trigger_update(self.to_json(), origin)
        finally:
            self._depth -= 1

        self._report(result, changed)
        return True

    def to_json(self) -> dict[str, V]:
        """Shallow copy of the attributes, safe for subscribers to mutate."""
        return dict(self.attributes)

    def on_update(self, identity: SubscriberIdentity, callback: UpdateCallback) -> Subscription:
        """Subscribe ``callback(snapshot, record)`` to changes not made by ``identity``."""
        subscription = self._events.on_update(identity, callback)
        if self._collector is not None:
            self._collector.record_subscription(
                type(self).__name__, action="added", subscribers=self.subscriber_count
            )
        return subscription

    def off_update(self, identity: SubscriberIdentity) -> int:
        return self._events.off_update(identity)

    def remove_subscription(self, identity: SubscriberIdentity, record_id: RecordId) -> None:
        """Detach ``identity``; tell the cache once nobody is left.

        Subscribers unsubscribe when they are destroyed, removed from a
        collection, or when their collection is dropped.
        """
        removed = self.off_update(identity)
        if removed and self._collector is not None:
            self._collector.record_subscription(
                type(self).__name__, action="removed", subscribers=self.subscriber_count
            )

        if not self.subscriber_count:
            self.cache.remove(type(self), record_id, record=self)

    def _report(self, result: BroadcastResult, changed: list[str]) -> None:
        name = type(self).__name__
        if self._collector is not None:
            self._collector.record_update(
                name, changed_keys=changed, subscribers_notified=result.delivered
            )

        if not result.failures:
            return
        log = get_config().log
        for failure in result.failures:
            log(f"{name}: subscriber callback failed", failure.error)
            if self._collector is not None:
                self._collector.record_failure(name, failure.error)
