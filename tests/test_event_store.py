"""
test_event_store.py — Unit tests for the in-memory journey event store.

Covers:
  1. FIFO cap on the global list (oldest dropped first).
  2. Session buckets keep their own events independent of the cap.
  3. Session retention (start-time basis by default, last-activity opt-in).
  4. Time-range queries and copy-on-read semantics.
"""

from datetime import timedelta

import pytest

from bridge_api.core.config import Settings
from bridge_api.models.journey import JourneyEvent
from bridge_api.services.event_store import EventStore, build_event_store


def _event(clock, event_type="prayer_offered", session_id="s1", user_type="visitor", **kw):
    return JourneyEvent(
        event_type=event_type,
        user_type=user_type,
        session_id=session_id,
        timestamp=kw.pop("timestamp", None) or clock.utcnow(),
        **kw,
    )


class TestGlobalCap:
    def test_never_exceeds_max_events(self, clock):
        store = EventStore(max_events=1000, clock=clock.utcnow)
        for i in range(1005):
            store.add_event(_event(clock, event_type=f"e{i}"))
        events = store.get_all_events()
        assert len(events) == 1000
        assert len(store) == 1000

    def test_oldest_events_dropped_first(self, clock):
        store = EventStore(max_events=3, clock=clock.utcnow)
        for i in range(5):
            store.add_event(_event(clock, event_type=f"e{i}"))
        assert [e.event_type for e in store.get_all_events()] == ["e2", "e3", "e4"]

    def test_session_buckets_ignore_global_cap(self, clock):
        store = EventStore(max_events=3, clock=clock.utcnow)
        for i in range(5):
            store.add_event(_event(clock, event_type=f"e{i}", session_id="s1"))
        bucket = store.get_session("s1")
        assert len(bucket.events) == 5
        assert len(store.get_all_events()) == 3

    def test_max_events_must_be_positive(self):
        with pytest.raises(ValueError):
            EventStore(max_events=0)


class TestSessions:
    def test_bucket_created_on_first_event(self, store, clock):
        store.add_event(_event(clock, session_id="s1"))
        bucket = store.get_session("s1")
        assert bucket.start_time == clock.utcnow()
        assert bucket.last_activity == clock.utcnow()
        assert len(bucket.events) == 1

    def test_last_activity_updates(self, store, clock):
        store.add_event(_event(clock, session_id="s1"))
        start = clock.utcnow()
        clock.advance(minutes=5)
        store.add_event(_event(clock, session_id="s1"))
        bucket = store.get_session("s1")
        assert bucket.start_time == start
        assert bucket.last_activity == clock.utcnow()

    def test_old_session_pruned_on_next_add(self, store, clock):
        store.add_event(_event(clock, session_id="old"))
        clock.advance(hours=24, seconds=1)
        store.add_event(_event(clock, session_id="new"))
        sessions = store.get_active_sessions()
        assert "old" not in sessions
        assert "new" in sessions

    def test_session_kept_until_add_event(self, store, clock):
        store.add_event(_event(clock, session_id="old"))
        clock.advance(hours=25)
        # Reads never prune.
        assert "old" in store.get_active_sessions()

    def test_session_exactly_at_retention_boundary_kept(self, store, clock):
        store.add_event(_event(clock, session_id="edge"))
        clock.advance(hours=24)
        store.add_event(_event(clock, session_id="other"))
        assert "edge" in store.get_active_sessions()

    def test_active_long_session_evicted_by_start_time(self, store, clock):
        for _ in range(26):
            store.add_event(_event(clock, session_id="long"))
            clock.advance(hours=1)
        # Evicted on the add 25 h in, then re-created by that same event.
        bucket = store.get_session("long")
        assert len(bucket.events) == 1
        assert bucket.start_time == clock.utcnow() - timedelta(hours=1)

    def test_last_activity_basis_keeps_active_session(self, clock):
        store = EventStore(retention_basis="last_activity", clock=clock.utcnow)
        for _ in range(30):
            store.add_event(_event(clock, session_id="long"))
            clock.advance(hours=1)
        assert len(store.get_session("long").events) == 30

    def test_global_list_untouched_by_session_prune(self, store, clock):
        store.add_event(_event(clock, session_id="old"))
        clock.advance(hours=30)
        store.add_event(_event(clock, session_id="new"))
        assert [e.session_id for e in store.get_all_events()] == ["old", "new"]


class TestReads:
    def test_time_range_filters_by_timestamp(self, store, clock):
        store.add_event(_event(clock, event_type="stale", timestamp=clock.utcnow() - timedelta(hours=2)))
        store.add_event(_event(clock, event_type="fresh"))
        events = store.get_events_by_time_range(timedelta(hours=1))
        assert [e.event_type for e in events] == ["fresh"]

    def test_returned_lists_are_copies(self, store, clock):
        store.add_event(_event(clock))
        store.get_all_events().clear()
        store.get_active_sessions()["s1"].events.clear()
        assert len(store.get_all_events()) == 1
        assert len(store.get_session("s1").events) == 1

    def test_unknown_session_is_none(self, store):
        assert store.get_session("missing") is None

    def test_clear(self, store, clock):
        store.add_event(_event(clock))
        store.clear()
        assert len(store) == 0
        assert store.get_active_sessions() == {}


class TestBuild:
    def test_build_from_settings(self, clock):
        cfg = Settings(event_store_max_events=10, session_retention_hours=2, session_retention_basis="last_activity")
        store = build_event_store(cfg, clock=clock.utcnow)
        assert store.max_events == 10
        assert store.session_retention == timedelta(hours=2)
        assert store.retention_basis == "last_activity"
