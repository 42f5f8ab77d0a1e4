"""
witnesses.py — Character witness statements.

  POST /api/v1/witnesses   rate limited: "witness" category (1 per day per client)

One statement per email address; a repeat from a different client is
rejected with 409.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from bridge_api.core.rate_limit import RateLimitResult, enforce_rate_limit
from bridge_api.models.submissions import WitnessRecord, WitnessRequest, WitnessResponse
from bridge_api.services.event_store import EventStore, get_event_store
from bridge_api.services.submissions import (
    Submissions,
    get_submissions,
    new_submission_id,
    witness_impact_score,
)
from bridge_api.services.tracking import record_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/witnesses", tags=["witnesses"])


@router.post("", response_model=WitnessResponse, status_code=status.HTTP_201_CREATED)
async def submit_witness(
    request: Request,
    payload: WitnessRequest,
    quota: RateLimitResult = Depends(enforce_rate_limit("witness")),
    store: EventStore = Depends(get_event_store),
    subs: Submissions = Depends(get_submissions),
):
    email = payload.email.lower()
    if subs.witnesses.find(lambda w: w.email == email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A witness statement has already been submitted with this email address",
        )

    score = witness_impact_score(payload)
    witness_id = new_submission_id("witness")
    record = subs.witnesses.append(lambda _: WitnessRecord(
        id=witness_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=email,
        relationship=payload.relationship,
        impact_score=score,
        willing_to_testify=payload.willing_to_testify,
        can_be_contacted=payload.can_be_contacted,
        created_at=store.now(),
    ))

    record_action(
        store,
        request,
        event_type="witness_submitted",
        user_type="witness",
        fallback_session_id=witness_id,
        metadata={"relationship": payload.relationship, "impactScore": score},
    )
    logger.info("Witness statement %s accepted (impact %d)", record.id, score)

    return WitnessResponse(
        success=True,
        id=record.id,
        impact_score=score,
        message="Thank you. Your statement has been received and will be reviewed by the legal team.",
    )
