"""
tracking.py — Record a journey event for a server-side campaign action.

Form routes call record_action() after a submission is accepted so the
dashboard sees prayers, witness statements and letters alongside the
events the browser sends itself.
"""

from typing import Any, Optional

from fastapi import Request

from bridge_api.models.journey import JourneyEvent
from bridge_api.services.event_store import EventStore


def record_action(
    store: EventStore,
    request: Request,
    *,
    event_type: str,
    user_type: str,
    fallback_session_id: str,
    metadata: Optional[dict[str, Any]] = None,
) -> JourneyEvent:
    # The site sends its analytics session id along with form posts.
    session_id = request.headers.get("x-session-id") or fallback_session_id
    event = JourneyEvent(
        event_type=event_type,
        user_type=user_type,
        session_id=session_id,
        timestamp=store.now(),
        path=request.url.path,
        user_agent=request.headers.get("user-agent"),
        metadata=metadata or {},
    )
    return store.add_event(event)
