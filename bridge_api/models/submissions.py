"""
submissions.py — Pydantic models for the public campaign forms.

  POST /api/v1/prayers    PrayerRequest    → PrayerResponse
  GET  /api/v1/prayers                     → PrayerListResponse
  POST /api/v1/witnesses  WitnessRequest   → WitnessResponse
  POST /api/v1/contact    ContactRequest   → ContactResponse

Field names are camelCase on the wire (see CamelModel).
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from bridge_api.models.journey import CamelModel

PrayerIntention = Literal["healing", "guidance", "protection", "freedom", "peace", "other"]

WitnessRelationship = Literal[
    "youth_helped",
    "employer",
    "mentor",
    "community_leader",
    "family",
    "friend",
]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ── Prayers ───────────────────────────────────────────────────────────────────

class PrayerRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    location: Optional[str] = Field(default=None, min_length=1, max_length=100)
    message: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    intention: Optional[PrayerIntention] = None
    is_anonymous: bool = False


class PrayerRecord(CamelModel):
    id: str
    name: Optional[str] = None
    location: Optional[str] = None
    message: Optional[str] = None
    intention: PrayerIntention
    is_anonymous: bool
    divine_number: int
    created_at: datetime

    def public(self) -> "PrayerRecord":
        """Copy safe to show on the prayer wall."""
        if self.is_anonymous:
            return self.model_copy(update={"name": None, "location": None})
        return self


class PrayerResponse(CamelModel):
    success: bool
    id: str
    status: Literal["received", "blessed", "answered"] = "received"
    message: str
    divine_number: int
    intention: PrayerIntention
    timestamp: datetime


class PrayerListResponse(CamelModel):
    success: bool
    total_prayers: int
    recent_prayers: list[PrayerRecord]
    stats: dict[str, int]     # count per intention among retained prayers
    last_updated: datetime


# ── Character witnesses ───────────────────────────────────────────────────────

class WitnessRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=_EMAIL_PATTERN, max_length=254)
    relationship: WitnessRelationship
    connection_strength: Literal["close", "moderate", "casual"] = "moderate"
    time_known: str = Field(..., min_length=1, max_length=100)
    statement: str = Field(..., min_length=50, max_length=5000)
    specific_examples: list[str] = Field(default_factory=list, max_length=20)
    willing_to_testify: bool = False
    can_be_contacted: bool = False


class WitnessRecord(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    relationship: WitnessRelationship
    impact_score: int
    willing_to_testify: bool
    can_be_contacted: bool
    created_at: datetime


class WitnessResponse(CamelModel):
    success: bool
    id: str
    impact_score: int
    message: str


# ── Contact form ──────────────────────────────────────────────────────────────

class ContactRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=_EMAIL_PATTERN, max_length=254)
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)


class ContactRecord(CamelModel):
    id: str
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    created_at: datetime


class ContactResponse(CamelModel):
    success: bool
    id: str
    message: str
