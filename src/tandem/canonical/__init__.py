"""Canonical layer — shared records and the broadcast they are built on.

A record is created by the cache on first reference to a (class, id),
mutated by ``set`` calls from any subscriber, and evicted by the cache once
its subscriber set stays empty past the grace period.
"""

from tandem.canonical.broadcast import (
    BroadcastResult,
    CallbackFailure,
    Subscription,
    UpdateBroadcaster,
)
from tandem.canonical.cache import CanonicalCache, canonical_cache
from tandem.canonical.equality import deep_equal
from tandem.canonical.record import CanonicalRecord, EvictionTarget

__all__ = [
    "BroadcastResult",
    "CallbackFailure",
    "CanonicalCache",
    "CanonicalRecord",
    "EvictionTarget",
    "Subscription",
    "UpdateBroadcaster",
    "canonical_cache",
    "deep_equal",
]
