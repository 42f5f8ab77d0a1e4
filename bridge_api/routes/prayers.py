"""
prayers.py — Prayer wall routes.

  POST /api/v1/prayers   submit a prayer (rate limited: "prayer" category)
  GET  /api/v1/prayers   recent prayers + per-intention counts

Every accepted prayer gets a divine number (its 1-based position in the
running total) and is recorded as a `prayer_submitted` journey event so
it shows up on the analytics dashboard.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from bridge_api.core.config import settings
from bridge_api.core.rate_limit import RateLimitResult, enforce_rate_limit
from bridge_api.core.throttle import limiter
from bridge_api.models.submissions import (
    PrayerIntention,
    PrayerListResponse,
    PrayerRecord,
    PrayerRequest,
    PrayerResponse,
)
from bridge_api.services.event_store import EventStore, get_event_store
from bridge_api.services.submissions import (
    Submissions,
    get_submissions,
    new_submission_id,
    prayer_response_message,
    prayer_stats,
)
from bridge_api.services.tracking import record_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/prayers", tags=["prayers"])


@router.post("", response_model=PrayerResponse, status_code=status.HTTP_201_CREATED)
async def submit_prayer(
    request: Request,
    payload: PrayerRequest,
    quota: RateLimitResult = Depends(enforce_rate_limit("prayer")),
    store: EventStore = Depends(get_event_store),
    subs: Submissions = Depends(get_submissions),
):
    now = store.now()
    intention = payload.intention or "other"
    prayer_id = new_submission_id("prayer")

    record = subs.prayers.append(lambda n: PrayerRecord(
        id=prayer_id,
        name=payload.name,
        location=payload.location,
        message=payload.message,
        intention=intention,
        is_anonymous=payload.is_anonymous,
        divine_number=n,
        created_at=now,
    ))

    record_action(
        store,
        request,
        event_type="prayer_submitted",
        user_type="divine-warrior",
        fallback_session_id=prayer_id,
        metadata={
            "isDivine": True,
            "intention": intention,
            "divineNumber": record.divine_number,
            "isAnonymous": payload.is_anonymous,
        },
    )
    logger.info("Prayer #%d received (%s), %d left in window", record.divine_number, intention, quota.remaining_requests)

    return PrayerResponse(
        success=True,
        id=record.id,
        message=prayer_response_message(record.divine_number, intention),
        divine_number=record.divine_number,
        intention=intention,
        timestamp=now,
    )


@router.get("", response_model=PrayerListResponse)
@limiter.limit(settings.standard_throttle)
async def list_prayers(
    request: Request,
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    intention: Optional[PrayerIntention] = Query(default=None),
    store: EventStore = Depends(get_event_store),
    subs: Submissions = Depends(get_submissions),
):
    """Newest first. Anonymous prayers are returned without name or location."""
    predicate = (lambda p: p.intention == intention) if intention else None
    recent = subs.prayers.recent(limit=limit, offset=offset, predicate=predicate)
    return PrayerListResponse(
        success=True,
        total_prayers=subs.prayers.total,
        recent_prayers=[p.public() for p in recent],
        stats=prayer_stats(subs.prayers.all()),
        last_updated=store.now(),
    )
