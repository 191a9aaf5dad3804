"""Tests for tandem.observability — sync event log and collector."""

import threading
from unittest.mock import MagicMock

import pytest

from tandem.config import configure
from tandem.observability.collector import SyncCollector
from tandem.observability.events import (
    CallbackFailed,
    RecordEvicted,
    RecordUpdated,
    SubscriptionChanged,
    now_ns,
)
from tandem.observability.log import EventLog


def _update(record: str = "UserRecord", keys: tuple[str, ...] = ("name",)) -> RecordUpdated:
    return RecordUpdated(
        record=record, changed_keys=keys, subscribers_notified=1, timestamp_ns=now_ns(),
    )


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """Tests for the event log store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0

        log.append(_update())
        assert len(log) == 1

    def test_max_events_enforced(self) -> None:
        log = EventLog(max_events=5)
        for i in range(10):
            log.append(_update(keys=(f"k{i}",)))
        assert len(log) == 5
        assert log.recent(1)[0].changed_keys == ("k9",)

    def test_recent(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(_update(keys=(f"k{i}",)))
        recent = log.recent(3)
        assert len(recent) == 3
        assert recent[-1].changed_keys == ("k4",)

    def test_query_by_type(self) -> None:
        log = EventLog()
        log.append(_update())
        log.append(SubscriptionChanged(
            record="UserRecord", action="added", subscribers=1, timestamp_ns=now_ns(),
        ))
        log.append(_update())

        results = log.query(event_type=RecordUpdated)
        assert len(results) == 2
        assert all(isinstance(r, RecordUpdated) for r in results)

    def test_query_by_record(self) -> None:
        log = EventLog()
        log.append(_update(record="UserRecord"))
        log.append(_update(record="TeamRecord"))

        results = log.query(record="TeamRecord")
        assert len(results) == 1
        assert results[0].record == "TeamRecord"

    def test_query_newest_first_and_limit(self) -> None:
        log = EventLog()
        for i in range(5):
            log.append(_update(keys=(f"k{i}",)))

        results = log.query(limit=2)
        assert [r.changed_keys for r in results] == [("k4",), ("k3",)]

    def test_query_since(self) -> None:
        log = EventLog()
        log.append(RecordUpdated(
            record="UserRecord", changed_keys=(), subscribers_notified=0, timestamp_ns=10,
        ))
        log.append(RecordUpdated(
            record="UserRecord", changed_keys=(), subscribers_notified=0, timestamp_ns=20,
        ))

        assert [e.timestamp_ns for e in log.query(since_ns=15)] == [20]

    def test_recent_more_than_stored(self) -> None:
        log = EventLog()
        log.append(_update())
        assert len(log.recent(10)) == 1
        assert log.recent(0) == []

    def test_clear(self) -> None:
        log = EventLog()
        for _ in range(3):
            log.append(_update())
        cleared = log.clear()
        assert cleared == 3
        assert len(log) == 0

    def test_stats(self) -> None:
        log = EventLog(max_events=50)
        log.append(_update())
        log.append(CallbackFailed(record="UserRecord", error="x", timestamp_ns=now_ns()))

        stats = log.stats()
        assert stats["total"] == 2
        assert stats["max_events"] == 50
        assert stats["by_type"] == {"RecordUpdated": 1, "CallbackFailed": 1}
        assert stats["by_record"] == {"UserRecord": 2}

    def test_thread_safety(self) -> None:
        """Concurrent appends should not lose events."""
        log = EventLog(max_events=50_000)
        errors: list[Exception] = []

        def worker() -> None:
            try:
                for _ in range(1000):
                    log.append(_update())
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(log) == 10_000


# ---------------------------------------------------------------------------
# SyncCollector
# ---------------------------------------------------------------------------


class TestSyncCollector:
    def test_record_subscription(self) -> None:
        collector = SyncCollector()
        collector.record_subscription("UserRecord", action="added", subscribers=2)

        events = collector.log.query(event_type=SubscriptionChanged)
        assert len(events) == 1
        assert events[0].action == "added"
        assert events[0].subscribers == 2

    def test_record_update(self) -> None:
        collector = SyncCollector()
        collector.record_update("UserRecord", changed_keys=["a", "b"], subscribers_notified=3)

        events = collector.log.query(event_type=RecordUpdated)
        assert events[0].changed_keys == ("a", "b")
        assert events[0].subscribers_notified == 3

    def test_record_failure_stores_repr(self) -> None:
        collector = SyncCollector()
        collector.record_failure("UserRecord", ValueError("boom"))

        events = collector.log.query(event_type=CallbackFailed)
        assert events[0].error == "ValueError('boom')"

    def test_record_eviction_stores_id_repr(self) -> None:
        collector = SyncCollector()
        collector.record_eviction("UserRecord", "1234", reason="manual")

        events = collector.log.query(event_type=RecordEvicted)
        assert events[0].record_id == "'1234'"
        assert events[0].reason == "manual"

    def test_collector_with_custom_log(self) -> None:
        log = EventLog(max_events=50)
        collector = SyncCollector(log)

        collector.record_update("UserRecord")
        assert len(log) == 1
        assert collector.log is log

    def test_default_log_sized_by_config(self) -> None:
        configure(event_log_size=3)
        collector = SyncCollector()
        for _ in range(5):
            collector.record_update("UserRecord")

        assert collector.log.stats()["max_events"] == 3
        assert len(collector.log) == 3

    def test_events_forwarded_to_track_hook(self) -> None:
        track = MagicMock()
        configure(track=track)
        collector = SyncCollector()

        collector.record_subscription("UserRecord", action="removed", subscribers=0)

        track.assert_called_once()
        (event,) = track.call_args.args
        assert isinstance(event, SubscriptionChanged)
        assert event.action == "removed"


# ---------------------------------------------------------------------------
# Event dataclasses
# ---------------------------------------------------------------------------


class TestEventDataclasses:
    def test_events_are_frozen(self) -> None:
        event = _update()
        with pytest.raises(AttributeError):
            event.record = "TeamRecord"  # type: ignore[misc]

    def test_now_ns_monotonic(self) -> None:
        t1 = now_ns()
        t2 = now_ns()
        assert t2 >= t1
