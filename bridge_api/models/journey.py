"""
journey.py — Pydantic models for user-journey analytics.

The Next.js front end speaks camelCase JSON (eventType, sessionId, ...),
so every model here uses a camelCase alias generator while Python code
keeps snake_case attributes. FastAPI serialises responses by alias.

JourneyEventIn is what clients POST; JourneyEvent is what the store keeps.
A stored event is frozen; nothing mutates it after it is appended.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Browsers sometimes drop the offset; treat naive timestamps as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_event_id() -> str:
    return f"evt_{uuid.uuid4().hex[:16]}"


class JourneyEventIn(CamelModel):
    """Body of POST /api/analytics/user-journey."""

    event_type: str = Field(..., min_length=1, max_length=100)
    user_type: str = Field(..., min_length=1, max_length=100)
    session_id: str = Field(..., min_length=1, max_length=200)
    timestamp: Optional[datetime] = None   # defaults to "now" on receipt
    user_id: Optional[str] = None
    path: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def normalise_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_event(self, received_at: datetime) -> "JourneyEvent":
        return JourneyEvent(
            event_id=new_event_id(),
            event_type=self.event_type,
            user_type=self.user_type,
            session_id=self.session_id,
            timestamp=self.timestamp or received_at,
            user_id=self.user_id,
            path=self.path,
            user_agent=self.user_agent,
            metadata=self.metadata,
        )


class JourneyEvent(CamelModel):
    """A recorded user interaction, owned by the EventStore once appended."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event_id: str = Field(default_factory=new_event_id)
    event_type: str
    user_type: str
    session_id: str
    timestamp: datetime
    user_id: Optional[str] = None
    path: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def normalise_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_divine(self) -> bool:
        return bool(self.metadata.get("isDivine")) or self.user_type == "divine-warrior"


class TrackEventResponse(CamelModel):
    success: bool
    event_id: str
    message: str


class EventsResponse(CamelModel):
    events: list[JourneyEvent]
    count: int
    window_minutes: int


# ── Batch ingestion ───────────────────────────────────────────────────────────

class BatchIngestRequest(CamelModel):
    """
    Body of POST /api/analytics/user-journey/batch.

    Events are left untyped: each one is validated on its own and invalid
    ones (non-objects included) are dropped instead of failing the batch.
    """

    session_id: str = Field(..., min_length=1, max_length=200)
    events: list[Any] = Field(default_factory=list)
    metrics: Optional[dict[str, Any]] = None


class BatchIngestResponse(CamelModel):
    success: bool
    processed: int
    session_id: str


# ── Dashboard metrics ─────────────────────────────────────────────────────────

class MetricsSummary(CamelModel):
    total_events: int        # events inside the metrics window
    active_sessions: int     # sessions with >= 1 event inside the window
    total_sessions: int      # sessions still retained by the store
    divine_events: int       # isDivine-flagged or divine-warrior events
    window_minutes: int
    generated_at: datetime


class EngagementMetrics(CamelModel):
    average_hover_time: float   # mean metadata.hoverTime over card_hovered events
    selection_speed: float      # mean metadata.selectionTime over path_selected events


class MetricsBreakdown(CamelModel):
    event_types: dict[str, int]
    user_types: dict[str, int]
    conversion_funnel: dict[str, float]   # percentages, modal_viewed = 100
    path_distribution: dict[str, float]   # share of path_selected by userType
    device_breakdown: dict[str, float]    # share of events by metadata.deviceType
    modal_view_rate: float                # modal_viewed events per session in the window
    path_selection_rate: float            # path_selected events per modal_viewed event
    average_session_duration: float       # mean of each session's latest metadata.sessionDuration
    engagement_metrics: EngagementMetrics


class SessionMetrics(CamelModel):
    """Snapshot returned by GET /api/analytics/user-journey/dashboard."""

    summary: MetricsSummary
    metrics: MetricsBreakdown
    recent_events: list[JourneyEvent]
