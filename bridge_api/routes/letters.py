"""
letters.py — AI character letter drafting.

Route:
  POST /api/v1/letters/generate   rate limited: "letter" category (5 per hour)

The draft comes from GeminiClient (canned text in AI_MOCK_MODE) and is
scored and annotated with suggestions before being returned. The remaining
quota is echoed back in `rateLimit` so the UI can show it.

TESTING
───────
  curl -X POST http://localhost:8000/api/v1/letters/generate \\
    -H 'Content-Type: application/json' \\
    -d '{"authorName": "Jane Doe", "relationship": "Mentor", "context": "I have known him for ten years."}'
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from bridge_api.ai.gemini_client import GeminiModel, gemini_client
from bridge_api.core.rate_limit import RateLimitResult, enforce_rate_limit
from bridge_api.models.letters import LetterGenerationRequest, LetterGenerationResponse
from bridge_api.services.event_store import EventStore, get_event_store
from bridge_api.services.letters import (
    build_letter_prompt,
    letter_impact_score,
    letter_suggestions,
)
from bridge_api.services.submissions import new_submission_id
from bridge_api.services.tracking import record_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/letters", tags=["letters"])


@router.post("/generate", response_model=LetterGenerationResponse)
async def generate_letter(
    request: Request,
    payload: LetterGenerationRequest,
    quota: RateLimitResult = Depends(enforce_rate_limit("letter")),
    store: EventStore = Depends(get_event_store),
):
    prompt = build_letter_prompt(payload)
    try:
        letter = await gemini_client.generate(
            prompt,
            model=GeminiModel.FLASH,
            response_key="character_letter",
        )
    except Exception:
        logger.exception("Letter generation failed for %s", payload.author_name)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate letter. Please try again.",
        )

    score = letter_impact_score(letter, payload)
    record_action(
        store,
        request,
        event_type="letter_generated",
        user_type="witness",
        fallback_session_id=new_submission_id("letter"),
        metadata={"impactScore": score, "relationship": payload.relationship},
    )

    return LetterGenerationResponse(
        success=True,
        letter=letter,
        impact_score=score,
        suggestions=letter_suggestions(letter, payload),
        rate_limit=quota.as_window(),
    )
