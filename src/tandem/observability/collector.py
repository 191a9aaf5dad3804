"""Sync collector — records engine events into an EventLog.

Canonical records and the canonical cache call the ``record_*`` methods;
every event is also forwarded to the configured ``track`` hook.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tandem.config import get_config
from tandem.observability.events import (
    CallbackFailed,
    RecordEvicted,
    RecordUpdated,
    SubscriptionChanged,
    now_ns,
)
from tandem.observability.log import EventLog

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

    from tandem.observability.events import SyncEvent


class SyncCollector:
    """Event collector for canonical records and their cache.

    Args:
        log: The EventLog to store events in. Defaults to a new log sized
            by ``event_log_size`` from the active configuration.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog(get_config().event_log_size)

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def _emit(self, event: SyncEvent) -> None:
        self._log.append(event)
        get_config().track(event)

    def record_subscription(self, record: str, *, action: str, subscribers: int) -> None:
        """Record a subscriber attaching or detaching."""
        self._emit(
            SubscriptionChanged(
                record=record,
                action=action,  # type: ignore[arg-type]
                subscribers=subscribers,
                timestamp_ns=now_ns(),
            )
        )

    def record_update(
        self,
        record: str,
        *,
        changed_keys: Iterable[str] = (),
        subscribers_notified: int = 0,
    ) -> None:
        """Record a broadcast caused by a changing ``set``."""
        self._emit(
            RecordUpdated(
                record=record,
                changed_keys=tuple(changed_keys),
                subscribers_notified=subscribers_notified,
                timestamp_ns=now_ns(),
            )
        )

    def record_failure(self, record: str, error: BaseException) -> None:
        """Record a subscriber callback failure."""
        self._emit(CallbackFailed(record=record, error=repr(error), timestamp_ns=now_ns()))

    def record_eviction(self, record: str, record_id: Hashable, *, reason: str) -> None:
        """Record a canonical record leaving the cache."""
        self._emit(
            RecordEvicted(
                record=record,
                record_id=repr(record_id),
                reason=reason,  # type: ignore[arg-type]
                timestamp_ns=now_ns(),
            )
        )
