"""
Health check endpoint.

Used by:
  - Docker HEALTHCHECK instruction
  - Load balancers / orchestrators
  - Front-end to check API connectivity

Also reports how much the in-memory event store is holding, which is the
quickest way to tell whether an instance has been restarted recently.
"""

import logging

from fastapi import APIRouter, Depends

from bridge_api.core.config import API_VERSION, settings
from bridge_api.models.journey import CamelModel
from bridge_api.services.event_store import EventStore, get_event_store

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(CamelModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    environment: str
    tracked_events: int
    active_sessions: int


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check(store: EventStore = Depends(get_event_store)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        environment=settings.environment,
        tracked_events=len(store),
        active_sessions=len(store.get_active_sessions()),
    )
