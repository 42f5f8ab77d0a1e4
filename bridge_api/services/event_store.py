"""
event_store.py — In-process store for user-journey events.

Keeps two views over the same events:

  • a global list capped at the most recent `max_events` (FIFO by
    insertion, not by timestamp)
  • per-session buckets, pruned wholesale once they fall outside the
    retention window

The two views prune independently, so a session bucket can still hold
events that have already dropped off the global list.

Session retention is keyed off the bucket's start time by default, which
means a session that stays active for more than 24 h is still evicted at
its 24 h mark. Set SESSION_RETENTION_BASIS=last_activity to key it off
the most recent event instead.

Nothing here is persisted; a restart (or a second instance) starts empty.

USAGE
─────
    from bridge_api.services.event_store import get_event_store

    @router.post(...)
    async def track(event: JourneyEventIn, store: EventStore = Depends(get_event_store)):
        store.add_event(event.to_event(received_at=store.now()))
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Literal

from bridge_api.core.config import Settings, settings
from bridge_api.models.journey import JourneyEvent

logger = logging.getLogger(__name__)

RetentionBasis = Literal["start", "last_activity"]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class SessionBucket:
    """Events recorded for one session id, in arrival order."""

    session_id: str
    start_time: datetime
    last_activity: datetime
    events: list[JourneyEvent] = field(default_factory=list)

    def copy(self) -> SessionBucket:
        return replace(self, events=list(self.events))


class EventStore:
    """
    Owner of every journey event held by this process.

    All mutations happen under one lock; readers get copies so callers
    never see a list change underneath them.
    """

    def __init__(
        self,
        max_events: int = 1000,
        session_retention: timedelta = timedelta(hours=24),
        retention_basis: RetentionBasis = "start",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_events < 1:
            raise ValueError(f"max_events must be >= 1 (got {max_events})")
        self.max_events = max_events
        self.session_retention = session_retention
        self.retention_basis = retention_basis
        self._clock = clock
        self._events: deque[JourneyEvent] = deque(maxlen=max_events)
        self._sessions: dict[str, SessionBucket] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._clock()

    # ── Writes ────────────────────────────────────────────────────────────────

    def add_event(self, event: JourneyEvent) -> JourneyEvent:
        """Append `event` to the global list and to its session bucket."""
        with self._lock:
            now = self._clock()
            self._prune_sessions(now)

            self._events.append(event)  # deque drops the oldest past max_events

            bucket = self._sessions.get(event.session_id)
            if bucket is None:
                bucket = SessionBucket(session_id=event.session_id, start_time=now, last_activity=now)
                self._sessions[event.session_id] = bucket
            bucket.events.append(event)
            bucket.last_activity = now

        logger.debug(
            "Stored journey event %s (type=%s, session=%s)",
            event.event_id, event.event_type, event.session_id,
        )
        return event

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._sessions.clear()

    def _prune_sessions(self, now: datetime) -> None:
        cutoff = now - self.session_retention
        expired = [
            session_id
            for session_id, bucket in self._sessions.items()
            if self._retention_reference(bucket) < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug("Pruned %d expired session(s)", len(expired))

    def _retention_reference(self, bucket: SessionBucket) -> datetime:
        if self.retention_basis == "last_activity":
            return bucket.last_activity
        return bucket.start_time

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_all_events(self) -> list[JourneyEvent]:
        with self._lock:
            return list(self._events)

    def get_session(self, session_id: str) -> SessionBucket | None:
        with self._lock:
            bucket = self._sessions.get(session_id)
            return bucket.copy() if bucket is not None else None

    def get_active_sessions(self) -> dict[str, SessionBucket]:
        """Every session bucket still inside the retention window."""
        with self._lock:
            return {session_id: bucket.copy() for session_id, bucket in self._sessions.items()}

    def get_events_by_time_range(self, window: timedelta) -> list[JourneyEvent]:
        """Events whose timestamp falls within the last `window`. Always a fresh list."""
        with self._lock:
            cutoff = self._clock() - window
            return [event for event in self._events if event.timestamp > cutoff]

    def snapshot(self) -> tuple[list[JourneyEvent], dict[str, SessionBucket]]:
        """Consistent copy of both views, taken under a single lock acquisition."""
        with self._lock:
            return (
                list(self._events),
                {session_id: bucket.copy() for session_id, bucket in self._sessions.items()},
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def build_event_store(cfg: Settings = settings, **kwargs) -> EventStore:
    kwargs.setdefault("max_events", cfg.event_store_max_events)
    kwargs.setdefault("session_retention", timedelta(hours=cfg.session_retention_hours))
    kwargs.setdefault("retention_basis", cfg.session_retention_basis)
    return EventStore(**kwargs)


# Module-level singleton — routes reach it through get_event_store()
event_store = build_event_store()


def get_event_store() -> EventStore:
    """FastAPI dependency. Tests override this with a fresh EventStore."""
    return event_store
