"""
test_analytics.py — Tests for the user-journey analytics routes.

  POST /api/analytics/user-journey
  GET  /api/analytics/user-journey[/dashboard]
  GET  /api/analytics/user-journey/events
  POST /api/analytics/user-journey/batch

Each test gets a fresh EventStore via the `client` fixture (conftest.py).
"""

from datetime import timedelta

import pytest

from bridge_api.core.config import settings

_URL = "/api/analytics/user-journey"


def _payload(**overrides):
    body = {"eventType": "prayer_offered", "userType": "visitor", "sessionId": "s1"}
    body.update(overrides)
    return body


# ── Single-event ingestion ────────────────────────────────────────────────────

class TestTrackEvent:
    async def test_valid_event_returns_200(self, client):
        r = await client.post(_URL, json=_payload())
        assert r.status_code == 200
        data = r.json()
        assert data["success"] is True
        assert data["eventId"].startswith("evt_")
        assert data["message"]

    async def test_event_is_stored(self, client, store):
        r = await client.post(_URL, json=_payload(metadata={"intention": "peace"}))
        stored = store.get_all_events()
        assert len(stored) == 1
        assert stored[0].event_id == r.json()["eventId"]
        assert stored[0].metadata == {"intention": "peace"}

    async def test_timestamp_defaults_to_receipt_time(self, client, store, clock):
        await client.post(_URL, json=_payload())
        assert store.get_all_events()[0].timestamp == clock.utcnow()

    async def test_explicit_timestamp_kept(self, client, store, clock):
        ts = clock.utcnow() - timedelta(minutes=5)
        await client.post(_URL, json=_payload(timestamp=ts.isoformat()))
        assert store.get_all_events()[0].timestamp == ts

    @pytest.mark.parametrize("missing", ["eventType", "userType", "sessionId"])
    async def test_missing_field_returns_400_naming_it(self, client, missing):
        body = _payload()
        del body[missing]
        r = await client.post(_URL, json=body)
        assert r.status_code == 400
        data = r.json()
        assert data["success"] is False
        assert missing in data["error"]
        assert any(d["field"] == missing for d in data["details"])

    async def test_all_missing_fields_named(self, client):
        r = await client.post(_URL, json={"sessionId": "s1"})
        assert r.status_code == 400
        assert "eventType" in r.json()["error"]
        assert "userType" in r.json()["error"]

    async def test_empty_string_rejected(self, client):
        r = await client.post(_URL, json=_payload(eventType=""))
        assert r.status_code == 400

    async def test_malformed_json_returns_generic_500(self, client, store):
        r = await client.post(_URL, content=b"{not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 500
        assert r.json() == {"success": False, "error": "Internal server error"}
        assert len(store) == 0

    async def test_null_metadata_accepted(self, client, store):
        r = await client.post(_URL, json=_payload(metadata=None))
        assert r.status_code == 200
        assert store.get_all_events()[0].metadata == {}

    async def test_rejected_event_not_stored(self, client, store):
        await client.post(_URL, json={"eventType": "x"})
        assert len(store) == 0


# ── Dashboard ─────────────────────────────────────────────────────────────────

class TestDashboard:
    async def test_prayer_offered_shows_up(self, client):
        await client.post(_URL, json=_payload())
        data = (await client.get(f"{_URL}/dashboard")).json()
        assert data["metrics"]["eventTypes"]["prayer_offered"] >= 1
        assert data["metrics"]["userTypes"]["visitor"] >= 1
        assert data["summary"]["activeSessions"] >= 1

    async def test_both_urls_return_same_shape(self, client):
        a = (await client.get(_URL)).json()
        b = (await client.get(f"{_URL}/dashboard")).json()
        assert a.keys() == b.keys() == {"summary", "metrics", "recentEvents"}

    async def test_no_cache_header(self, client):
        r = await client.get(f"{_URL}/dashboard")
        assert r.status_code == 200
        assert "no-cache" in r.headers["cache-control"]

    async def test_summary_keys(self, client):
        summary = (await client.get(_URL)).json()["summary"]
        for key in ("totalEvents", "activeSessions", "totalSessions", "divineEvents", "windowMinutes", "generatedAt"):
            assert key in summary

    async def test_breakdown_keys(self, client):
        metrics = (await client.get(_URL)).json()["metrics"]
        for key in (
            "eventTypes", "userTypes", "conversionFunnel", "pathDistribution", "deviceBreakdown",
            "modalViewRate", "pathSelectionRate", "averageSessionDuration", "engagementMetrics",
        ):
            assert key in metrics

    async def test_recent_events_camel_case(self, client):
        await client.post(_URL, json=_payload())
        event = (await client.get(_URL)).json()["recentEvents"][0]
        for key in ("eventId", "eventType", "userType", "sessionId", "timestamp"):
            assert key in event

    async def test_odd_device_type_does_not_break_dashboard(self, client):
        await client.post(_URL, json=_payload(metadata={"deviceType": ["mobile"]}))
        await client.post(_URL, json=_payload(metadata={"deviceType": {"kind": "tablet"}}))
        await client.post(_URL, json=_payload(metadata={"deviceType": "mobile"}))

        r = await client.get(f"{_URL}/dashboard")
        assert r.status_code == 200
        data = r.json()
        assert data["summary"]["totalEvents"] == 3
        assert data["metrics"]["deviceBreakdown"] == {"desktop": 0.0, "mobile": 1.0, "tablet": 0.0}

    async def test_engagement_metrics_exposed(self, client):
        await client.post(_URL, json=_payload(eventType="modal_viewed", metadata={"sessionDuration": 40}))
        await client.post(_URL, json=_payload(eventType="card_hovered", metadata={"hoverTime": 1200}))
        await client.post(_URL, json=_payload(eventType="path_selected", metadata={"selectionTime": 3000}))

        metrics = (await client.get(f"{_URL}/dashboard")).json()["metrics"]
        assert metrics["modalViewRate"] == 1.0
        assert metrics["pathSelectionRate"] == 1.0
        assert metrics["averageSessionDuration"] == 40.0
        assert metrics["engagementMetrics"] == {"averageHoverTime": 1200.0, "selectionSpeed": 3000.0}


# ── Time-range query ──────────────────────────────────────────────────────────

class TestRecentEvents:
    async def test_events_within_window(self, client, clock):
        old = clock.utcnow() - timedelta(minutes=90)
        await client.post(_URL, json=_payload(eventType="old", timestamp=old.isoformat()))
        await client.post(_URL, json=_payload(eventType="new"))

        data = (await client.get(f"{_URL}/events", params={"minutes": 60})).json()
        assert data["count"] == 1
        assert data["windowMinutes"] == 60
        assert data["events"][0]["eventType"] == "new"

        wide = (await client.get(f"{_URL}/events", params={"minutes": 120})).json()
        assert wide["count"] == 2

    async def test_invalid_minutes_returns_400(self, client):
        r = await client.get(f"{_URL}/events", params={"minutes": 0})
        assert r.status_code == 400
        assert "minutes" in r.json()["error"]


# ── Batch ingestion ───────────────────────────────────────────────────────────

class TestBatch:
    def _batch(self, clock, events):
        return {"sessionId": "s1", "events": events, "metrics": {"timeOnPage": 12}}

    async def test_invalid_events_filtered(self, client, clock):
        ts = clock.utcnow().isoformat()
        events = [
            {"eventType": "modal_viewed", "userType": "visitor", "sessionId": "s1", "timestamp": ts},
            {"eventType": "card_hovered", "sessionId": "s1", "timestamp": ts},
            {"eventType": "no_timestamp", "userType": "visitor", "sessionId": "s1"},
            {"userType": "visitor", "sessionId": "s1", "timestamp": ts},
            {"eventType": "no_session", "userType": "visitor", "timestamp": ts},
        ]
        r = await client.post(f"{_URL}/batch", json=self._batch(clock, events))
        assert r.status_code == 200
        assert r.json() == {"success": True, "processed": 2, "sessionId": "s1"}

    async def test_non_object_entries_filtered(self, client, store, clock):
        ts = clock.utcnow().isoformat()
        events = [
            {"eventType": "modal_viewed", "userType": "visitor", "sessionId": "s1", "timestamp": ts},
            "junk",
            None,
            42,
            ["modal_viewed"],
        ]
        r = await client.post(f"{_URL}/batch", json=self._batch(clock, events))
        assert r.status_code == 200
        assert r.json() == {"success": True, "processed": 1, "sessionId": "s1"}
        assert len(store) == 1

    @pytest.mark.parametrize("persist", [True, False])
    async def test_processed_count_same_with_or_without_persistence(self, client, clock, monkeypatch, persist):
        monkeypatch.setattr(settings, "batch_persist_events", persist)
        ts = clock.utcnow().isoformat()
        events = [
            {"eventType": "x", "userType": "visitor", "sessionId": "s1", "timestamp": ts},
            {"eventType": "y", "userType": "visitor", "sessionId": "s1", "timestamp": "yesterday-ish"},
        ]
        r = await client.post(f"{_URL}/batch", json=self._batch(clock, events))
        assert r.json()["processed"] == 1

    async def test_valid_events_persisted(self, client, store, clock):
        ts = clock.utcnow().isoformat()
        events = [
            {"eventType": "modal_viewed", "userType": "visitor", "sessionId": "s1", "timestamp": ts},
            {"eventType": "path_selected", "sessionId": "s1", "timestamp": ts},
        ]
        await client.post(f"{_URL}/batch", json=self._batch(clock, events))
        stored = store.get_all_events()
        assert [e.event_type for e in stored] == ["modal_viewed", "path_selected"]
        assert stored[1].user_type == "unknown"

    async def test_unparseable_timestamp_dropped(self, client, store, clock):
        events = [{"eventType": "x", "userType": "visitor", "sessionId": "s1", "timestamp": "yesterday-ish"}]
        r = await client.post(f"{_URL}/batch", json=self._batch(clock, events))
        assert r.json()["processed"] == 0
        assert len(store) == 0

    async def test_persistence_can_be_disabled(self, client, store, clock, monkeypatch):
        monkeypatch.setattr(settings, "batch_persist_events", False)
        ts = clock.utcnow().isoformat()
        events = [{"eventType": "x", "userType": "visitor", "sessionId": "s1", "timestamp": ts}]
        r = await client.post(f"{_URL}/batch", json=self._batch(clock, events))
        assert r.json()["processed"] == 1
        assert len(store) == 0

    async def test_empty_batch(self, client, clock):
        r = await client.post(f"{_URL}/batch", json={"sessionId": "s1", "events": []})
        assert r.json()["processed"] == 0

    async def test_missing_session_id_returns_400(self, client):
        r = await client.post(f"{_URL}/batch", json={"events": []})
        assert r.status_code == 400
        assert "sessionId" in r.json()["error"]
