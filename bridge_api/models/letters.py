"""
letters.py — Models for AI character-letter generation.

POST /api/v1/letters/generate
"""

from typing import Optional

from pydantic import Field

from bridge_api.models.journey import CamelModel


class CaseDetails(CamelModel):
    defendant_name: str
    court_date: str
    judge_name: str
    case_type: str


class LetterGenerationRequest(CamelModel):
    author_name: str = Field(..., min_length=2, max_length=100)
    relationship: str = Field(..., min_length=2, max_length=100)
    context: str = Field(..., min_length=10, max_length=1000)
    specific_examples: Optional[str] = Field(default=None, max_length=1000)
    impact_statement: Optional[str] = Field(default=None, max_length=1000)
    case_details: Optional[CaseDetails] = None


class RateLimitWindow(CamelModel):
    success: bool
    limit: int
    remaining: int
    reset: float   # epoch seconds


class LetterGenerationResponse(CamelModel):
    success: bool
    letter: str
    impact_score: int
    suggestions: list[str]
    rate_limit: RateLimitWindow
