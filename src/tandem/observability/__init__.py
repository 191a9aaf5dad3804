"""Synchronization observability — what the engine did, and when.

Records subscriptions, broadcasts, callback failures and cache evictions
as frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from tandem.canonical import CanonicalCache
    >>> from tandem.observability import EventLog, SyncCollector
    >>> log = EventLog()
    >>> cache = CanonicalCache(collector=SyncCollector(log))
    >>> # records created through ``cache`` now report into ``log``

"""

from tandem.observability.collector import SyncCollector
from tandem.observability.events import (
    CallbackFailed,
    RecordEvicted,
    RecordUpdated,
    SubscriptionChanged,
    SyncEvent,
    now_ns,
)
from tandem.observability.log import EventLog

__all__ = [
    "CallbackFailed",
    "EventLog",
    "RecordEvicted",
    "RecordUpdated",
    "SubscriptionChanged",
    "SyncCollector",
    "SyncEvent",
    "now_ns",
]
