"""
metrics.py — Dashboard aggregation over the journey event store.

Everything is recomputed from scratch on each call. That is fine for a
store capped at a thousand events; past a few thousand it would need
incremental counters or an index by timestamp.

Event metadata is whatever the client sent, so every metadata read here
tolerates missing keys and values of the wrong type: an odd event is
counted as a default, never allowed to break the dashboard.

    from bridge_api.services.metrics import get_session_metrics

    snapshot = get_session_metrics(store)
    snapshot.metrics.event_types["prayer_offered"]
    snapshot.summary.active_sessions
"""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from typing import Any

from bridge_api.models.journey import (
    EngagementMetrics,
    JourneyEvent,
    MetricsBreakdown,
    MetricsSummary,
    SessionMetrics,
)
from bridge_api.services.event_store import EventStore

_PATHS = ("coach", "judge", "activist")
_DEVICES = ("desktop", "mobile", "tablet")


def _share(counts: Counter, keys: tuple[str, ...]) -> dict[str, float]:
    total = sum(counts[k] for k in keys)
    return {k: (counts[k] / total if total else 0.0) for k in keys}


def _number(value: Any) -> float:
    # bool is an int subclass; a flag is not a duration.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return 0.0


def _mean_metadata(events: list[JourneyEvent], event_type: str, key: str) -> float:
    matching = [e for e in events if e.event_type == event_type]
    if not matching:
        return 0.0
    return sum(_number(e.metadata.get(key)) for e in matching) / len(matching)


def conversion_funnel(events: list[JourneyEvent]) -> dict[str, float]:
    """Percentages: hovers and selections per modal view, completions per selection."""
    counts = Counter(e.event_type for e in events)
    views = counts["modal_viewed"]
    selections = counts["path_selected"]
    return {
        "modalViewed": 100.0 if views else 0.0,
        "cardHovered": counts["card_hovered"] / views * 100 if views else 0.0,
        "pathSelected": selections / views * 100 if views else 0.0,
        "journeyCompleted": counts["journey_completed"] / selections * 100 if selections else 0.0,
    }


def path_distribution(events: list[JourneyEvent]) -> dict[str, float]:
    counts = Counter(e.user_type for e in events if e.event_type == "path_selected")
    return _share(counts, _PATHS)


def device_breakdown(events: list[JourneyEvent]) -> dict[str, float]:
    """Share of events per device; unset devices count as desktop, unknown ones are skipped."""
    counts: Counter = Counter()
    for event in events:
        device = event.metadata.get("deviceType") or "desktop"
        if isinstance(device, str) and device in _DEVICES:
            counts[device] += 1
    return _share(counts, _DEVICES)


def modal_view_rate(events: list[JourneyEvent]) -> float:
    sessions = {e.session_id for e in events}
    views = sum(1 for e in events if e.event_type == "modal_viewed")
    return views / len(sessions) if sessions else 0.0


def path_selection_rate(events: list[JourneyEvent]) -> float:
    views = sum(1 for e in events if e.event_type == "modal_viewed")
    selections = sum(1 for e in events if e.event_type == "path_selected")
    return selections / views if views else 0.0


def average_session_duration(events: list[JourneyEvent]) -> float:
    """Mean over sessions of the last non-zero sessionDuration each one reported."""
    durations: dict[str, float] = {}
    for event in events:
        duration = _number(event.metadata.get("sessionDuration"))
        if duration:
            durations[event.session_id] = duration
    return sum(durations.values()) / len(durations) if durations else 0.0


def engagement_metrics(events: list[JourneyEvent]) -> EngagementMetrics:
    return EngagementMetrics(
        average_hover_time=_mean_metadata(events, "card_hovered", "hoverTime"),
        selection_speed=_mean_metadata(events, "path_selected", "selectionTime"),
    )


def get_session_metrics(
    store: EventStore,
    window: timedelta = timedelta(hours=1),
    recent: int = 10,
) -> SessionMetrics:
    """
    Aggregate the last `window` of events into a dashboard snapshot.

    Pure read: the store is not modified.
    """
    now = store.now()
    cutoff = now - window
    events, sessions = store.snapshot()

    in_window = [e for e in events if e.timestamp > cutoff]
    active_sessions = sum(
        1 for bucket in sessions.values() if any(e.timestamp > cutoff for e in bucket.events)
    )

    summary = MetricsSummary(
        total_events=len(in_window),
        active_sessions=active_sessions,
        total_sessions=len(sessions),
        divine_events=sum(1 for e in in_window if e.is_divine),
        window_minutes=int(window.total_seconds() // 60),
        generated_at=now,
    )
    breakdown = MetricsBreakdown(
        event_types=dict(Counter(e.event_type for e in in_window)),
        user_types=dict(Counter(e.user_type for e in in_window)),
        conversion_funnel=conversion_funnel(in_window),
        path_distribution=path_distribution(in_window),
        device_breakdown=device_breakdown(in_window),
        modal_view_rate=modal_view_rate(in_window),
        path_selection_rate=path_selection_rate(in_window),
        average_session_duration=average_session_duration(in_window),
        engagement_metrics=engagement_metrics(in_window),
    )

    # Live feed: the latest `recent` events in the window, newest timestamp
    # first. Reversing before the stable sort keeps later arrivals first on ties.
    tail = in_window[-recent:] if recent > 0 else []
    recent_events = sorted(reversed(tail), key=lambda e: e.timestamp, reverse=True)

    return SessionMetrics(summary=summary, metrics=breakdown, recent_events=recent_events)
