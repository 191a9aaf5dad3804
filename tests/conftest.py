"""Shared test fixtures for tandem."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tandem.canonical.cache import CanonicalCache, canonical_cache
from tandem.config import reset_config
from tandem.observability import EventLog, SyncCollector


@pytest.fixture(autouse=True)
def _isolate_globals() -> Iterator[None]:
    """Every test starts with the default config and an empty default cache."""
    reset_config()
    canonical_cache.clear()
    yield
    reset_config()
    canonical_cache.clear()


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def cache(event_log: EventLog) -> CanonicalCache:
    """A private cache reporting into ``event_log``."""
    return CanonicalCache(collector=SyncCollector(event_log))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
