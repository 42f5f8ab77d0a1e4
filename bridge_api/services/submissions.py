"""
submissions.py — In-memory logs for prayer, witness and contact submissions.

Each log keeps the newest `max_records` entries and a running total of
everything ever accepted, so the prayer counter keeps climbing even after
old prayers fall off the wall. Like the event store, nothing survives a
restart.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from typing import Callable, Generic, Iterable, Optional, TypeVar

from bridge_api.core.config import settings
from bridge_api.models.submissions import (
    ContactRecord,
    PrayerRecord,
    WitnessRecord,
    WitnessRequest,
)

T = TypeVar("T")

SACRED_NUMBERS = frozenset({7, 28, 77, 777, 1337})

_PRAYER_RESPONSES = {
    "freedom": "Prayer #{n} for freedom received. Justice is on its way.",
    "healing": "Healing prayer #{n} is ascending. Restoration is coming.",
    "protection": "Protection prayer #{n} received. You and your loved ones are covered.",
    "guidance": "Guidance prayer #{n} received. May your path be made clear.",
    "peace": "Peace prayer #{n} received. May calm settle over every concern.",
    "other": "Prayer #{n} received with love. Your request has been heard.",
}

# Character witness weighting (max 100).
_RELATIONSHIP_SCORES = {
    "youth_helped": 20,
    "employer": 18,
    "mentor": 17,
    "community_leader": 16,
    "family": 14,
    "friend": 12,
}
_CONNECTION_SCORES = {"close": 15, "moderate": 10, "casual": 5}


def new_submission_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class SubmissionLog(Generic[T]):
    """Bounded, thread-safe, newest-last list of records."""

    def __init__(self, max_records: int) -> None:
        self._records: deque[T] = deque(maxlen=max_records)
        self._total = 0
        self._lock = threading.Lock()

    def append(self, make_record: Callable[[int], T]) -> T:
        """
        Append the record built by `make_record(sequence)`.

        The sequence number (1-based running total) is allocated under the
        same lock as the append so two concurrent submissions never share one.
        """
        with self._lock:
            self._total += 1
            record = make_record(self._total)
            self._records.append(record)
            return record

    def recent(
        self,
        limit: int = 10,
        offset: int = 0,
        predicate: Optional[Callable[[T], bool]] = None,
    ) -> list[T]:
        with self._lock:
            newest_first: Iterable[T] = reversed(self._records)
            matching = [r for r in newest_first if predicate is None or predicate(r)]
        return matching[offset:offset + limit]

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        with self._lock:
            return next((r for r in self._records if predicate(r)), None)

    def all(self) -> list[T]:
        with self._lock:
            return list(self._records)

    @property
    def total(self) -> int:
        return self._total

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._total = 0


class Submissions:
    def __init__(self, max_records: int = 500) -> None:
        self.prayers: SubmissionLog[PrayerRecord] = SubmissionLog(max_records)
        self.witnesses: SubmissionLog[WitnessRecord] = SubmissionLog(max_records)
        self.contacts: SubmissionLog[ContactRecord] = SubmissionLog(max_records)


# ── Prayer helpers ────────────────────────────────────────────────────────────

def prayer_response_message(divine_number: int, intention: str) -> str:
    template = _PRAYER_RESPONSES.get(intention, _PRAYER_RESPONSES["other"])
    message = template.format(n=divine_number)
    if divine_number in SACRED_NUMBERS:
        return f"Sacred number {divine_number}! {message}"
    return message


def prayer_stats(prayers: list[PrayerRecord]) -> dict[str, int]:
    stats = {intention: 0 for intention in _PRAYER_RESPONSES}
    for prayer in prayers:
        stats[prayer.intention] += 1
    return stats


# ── Witness helpers ───────────────────────────────────────────────────────────

def witness_impact_score(request: WitnessRequest) -> int:
    score = _RELATIONSHIP_SCORES.get(request.relationship, 10)
    score += _CONNECTION_SCORES.get(request.connection_strength, 5)
    score += min(30, len(request.specific_examples) * 10)
    score += 20 if request.willing_to_testify else 0
    score += 15 if request.can_be_contacted else 0
    return min(score, 100)


submissions = Submissions(settings.submissions_max_records)


def get_submissions() -> Submissions:
    """FastAPI dependency. Tests override this with a fresh Submissions()."""
    return submissions
