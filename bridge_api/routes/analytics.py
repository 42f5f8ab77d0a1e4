"""
analytics.py — User-journey analytics routes.

Routes:
  POST /api/analytics/user-journey            — record one journey event
  GET  /api/analytics/user-journey            — dashboard metrics snapshot
  GET  /api/analytics/user-journey/dashboard  — same snapshot (dashboard page URL)
  GET  /api/analytics/user-journey/events     — raw events from the last N minutes
  POST /api/analytics/user-journey/batch      — flush of buffered browser events

HOW THE DATA FLOWS
──────────────────
1. The browser tracker POSTs single events as they happen and flushes a
   batch on page hide / unload.
2. Both paths land in the process-wide EventStore (batch persistence can
   be switched off with BATCH_PERSIST_EVENTS=false).
3. The analytics dashboard polls GET /dashboard; metrics are recomputed
   from the store on every call.

Ingestion is throttled per client with slowapi (ANALYTICS_THROTTLE).

TESTING
───────
  pytest tests/test_analytics.py -v

  curl -X POST http://localhost:8000/api/analytics/user-journey \\
    -H 'Content-Type: application/json' \\
    -d '{"eventType": "prayer_offered", "userType": "visitor", "sessionId": "s1"}'
  curl http://localhost:8000/api/analytics/user-journey/dashboard
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError

from bridge_api.core.config import settings
from bridge_api.core.throttle import limiter
from bridge_api.models.journey import (
    BatchIngestRequest,
    BatchIngestResponse,
    EventsResponse,
    JourneyEventIn,
    SessionMetrics,
    TrackEventResponse,
)
from bridge_api.services.event_store import EventStore, get_event_store
from bridge_api.services.metrics import get_session_metrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics/user-journey", tags=["analytics"])

# A batch event is kept only if all of these are present and non-empty.
_BATCH_REQUIRED_FIELDS = ("eventType", "timestamp", "sessionId")


@router.post("", response_model=TrackEventResponse)
@limiter.limit(settings.analytics_throttle)
async def track_event(
    request: Request,
    event: JourneyEventIn,
    store: EventStore = Depends(get_event_store),
):
    """
    Record a single journey event.

    eventType, userType and sessionId are required (400 names whichever
    are missing). timestamp defaults to the time of receipt.
    """
    stored = store.add_event(event.to_event(received_at=store.now()))
    return TrackEventResponse(
        success=True,
        event_id=stored.event_id,
        message="Event tracked successfully",
    )


@router.get("", response_model=SessionMetrics)
@router.get("/dashboard", response_model=SessionMetrics)
async def get_dashboard_metrics(
    response: Response,
    store: EventStore = Depends(get_event_store),
):
    """Aggregate metrics over the last METRICS_WINDOW_MINUTES plus a live feed."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return get_session_metrics(
        store,
        window=timedelta(minutes=settings.metrics_window_minutes),
        recent=settings.metrics_recent_events,
    )


@router.get("/events", response_model=EventsResponse)
async def get_recent_events(
    minutes: int = Query(default=60, ge=1, le=24 * 60, description="Lookback window in minutes"),
    store: EventStore = Depends(get_event_store),
):
    events = store.get_events_by_time_range(timedelta(minutes=minutes))
    return EventsResponse(events=events, count=len(events), window_minutes=minutes)


@router.post("/batch", response_model=BatchIngestResponse)
@limiter.limit(settings.analytics_throttle)
async def ingest_batch(
    request: Request,
    batch: BatchIngestRequest,
    store: EventStore = Depends(get_event_store),
):
    """
    Accept a buffered batch of events from the browser tracker.

    Each event is checked on its own; non-objects and ones missing
    eventType, timestamp or sessionId (or with an unparseable timestamp)
    are dropped rather than failing the batch. `processed` counts the
    events that passed, whether or not BATCH_PERSIST_EVENTS stores them.
    """
    valid = []
    for raw in batch.events:
        if not isinstance(raw, dict) or not all(raw.get(f) for f in _BATCH_REQUIRED_FIELDS):
            continue
        try:
            # Browser batches don't always carry a userType.
            valid.append(JourneyEventIn.model_validate({"userType": "unknown", **raw}))
        except ValidationError as exc:
            logger.debug("Dropping batch event for session %s: %s", batch.session_id, exc)

    if settings.is_development:
        logger.info(
            "Journey batch for session %s: %d/%d valid events, metrics=%s",
            batch.session_id, len(valid), len(batch.events), batch.metrics,
        )

    if settings.batch_persist_events:
        received_at = store.now()
        for event in valid:
            store.add_event(event.to_event(received_at=received_at))

    return BatchIngestResponse(success=True, processed=len(valid), session_id=batch.session_id)
