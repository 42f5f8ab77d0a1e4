"""
contact.py — Contact form.

  POST /api/v1/contact   rate limited: "contact" category
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from bridge_api.core.rate_limit import RateLimitResult, enforce_rate_limit
from bridge_api.models.submissions import ContactRecord, ContactRequest, ContactResponse
from bridge_api.services.event_store import EventStore, get_event_store
from bridge_api.services.submissions import Submissions, get_submissions, new_submission_id
from bridge_api.services.tracking import record_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/contact", tags=["contact"])


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def submit_contact(
    request: Request,
    payload: ContactRequest,
    quota: RateLimitResult = Depends(enforce_rate_limit("contact")),
    store: EventStore = Depends(get_event_store),
    subs: Submissions = Depends(get_submissions),
):
    contact_id = new_submission_id("contact")
    record = subs.contacts.append(lambda _: ContactRecord(
        id=contact_id,
        name=payload.name,
        email=payload.email.lower(),
        subject=payload.subject,
        message=payload.message,
        created_at=store.now(),
    ))

    record_action(
        store,
        request,
        event_type="contact_submitted",
        user_type="visitor",
        fallback_session_id=contact_id,
        metadata={"hasSubject": bool(payload.subject)},
    )
    logger.info("Contact message %s received", record.id)

    return ContactResponse(
        success=True,
        id=record.id,
        message="Thanks for reaching out. We'll get back to you soon.",
    )
