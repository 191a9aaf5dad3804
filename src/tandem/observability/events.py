"""Event model for synchronization observability.

Defines the events emitted by canonical records and the canonical cache.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- ``record``: Name of the canonical record class involved

"""

import time
from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class SubscriptionChanged:
    """A subscriber attached to or detached from a canonical record.

    Attributes:
        record: Canonical record class name.
        action: Whether the subscriber was added or removed.
        subscribers: Subscriber count after the change.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    record: str
    action: Literal["added", "removed"]
    subscribers: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RecordUpdated:
    """A ``set`` call changed a record and its snapshot was broadcast.

    Attributes:
        record: Canonical record class name.
        changed_keys: Keys whose values actually changed.
        subscribers_notified: Callbacks that ran without raising.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    record: str
    changed_keys: tuple[str, ...]
    subscribers_notified: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class CallbackFailed:
    """A subscriber callback raised during a broadcast.

    Attributes:
        record: Canonical record class name.
        error: ``repr`` of the raised exception.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    record: str
    error: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RecordEvicted:
    """A canonical record left the cache.

    Attributes:
        record: Canonical record class name.
        record_id: ``repr`` of the record's id.
        reason: ``expired`` after a grace period, ``immediate`` when the
            grace period is zero, ``manual`` for explicit eviction.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    record: str
    record_id: str
    reason: Literal["expired", "immediate", "manual"]
    timestamp_ns: int


type SyncEvent = SubscriptionChanged | RecordUpdated | CallbackFailed | RecordEvicted


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
