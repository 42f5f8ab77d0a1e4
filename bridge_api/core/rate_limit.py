"""
rate_limit.py — Fixed-window rate limiting for campaign actions.

Every costly or abusable action (AI letter generation, prayer submission,
character witness statements, the contact form) gets its own limiter.
A limiter counts requests per client identifier inside a fixed window:

  first request / window expired → count = 1, reset = now + window   (allowed)
  count < max                    → count += 1                        (allowed)
  otherwise                      → denied, reset unchanged

Limiters never raise. Routes opt in with a dependency:

    from fastapi import Depends
    from bridge_api.core.rate_limit import enforce_rate_limit

    @router.post("/api/v1/prayers")
    async def submit_prayer(
        payload: PrayerRequest,
        quota: RateLimitResult = Depends(enforce_rate_limit("prayer")),
    ):
        ...

A denied check raises RateLimitDenied, which core/errors.py turns into a
429 with X-RateLimit-* headers and a human-readable wait.

LIMITATIONS
───────────
State lives in this process only. It is lost on restart, and every
instance behind a load balancer enforces its own independent limit.
A multi-instance deployment needs a shared counter store with atomic
increment + TTL (e.g. Redis INCR / EXPIRE) to keep "N per window per IP"
true cluster-wide.
"""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from fastapi import Depends, Request, Response

from bridge_api.core.client_ip import get_client_identifier
from bridge_api.core.config import Settings, settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


# ── Data model ────────────────────────────────────────────────────────────────

@dataclass
class RateLimitEntry:
    """Requests seen in the current window for one (category, identifier)."""

    count: int
    reset_time: float  # epoch seconds when the window closes


@dataclass(frozen=True)
class RateLimitConfig:
    category: str
    max_requests: int
    window_seconds: float

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError(f"max_requests must be >= 1 (got {self.max_requests})")
        if self.window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0 (got {self.window_seconds})")


@dataclass(frozen=True)
class RateLimitResult:
    """
    Outcome of a single limit() call.

    Two equivalent views are exposed: the attribute view
    (allowed / remaining_requests / reset_time) and as_window(), the
    {success, limit, remaining, reset} shape the letter generator uses.
    """

    allowed: bool
    remaining_requests: int
    reset_time: float
    limit: int
    category: str = ""

    def as_window(self) -> dict:
        return {
            "success": self.allowed,
            "limit": self.limit,
            "remaining": self.remaining_requests,
            "reset": self.reset_time,
        }

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets (0 once it has)."""
        return max(0, math.ceil(self.reset_time - now))

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining_requests),
            "X-RateLimit-Reset": str(math.ceil(self.reset_time)),
        }


# ── Store ─────────────────────────────────────────────────────────────────────

class RateLimitStore:
    """
    Process-wide map of (category, identifier) → RateLimitEntry.

    FastAPI runs sync dependencies in a worker thread pool, so every
    read-modify-write happens under `lock`. The lock is re-entrant so a
    limiter can sweep while it already holds it.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], RateLimitEntry] = {}
        self.lock = threading.RLock()

    def get(self, category: str, identifier: str) -> RateLimitEntry | None:
        with self.lock:
            return self._entries.get((category, identifier))

    def put(self, category: str, identifier: str, entry: RateLimitEntry) -> None:
        with self.lock:
            self._entries[(category, identifier)] = entry

    def sweep(self, now: float) -> int:
        """Delete every entry whose window has closed. Returns the number removed."""
        with self.lock:
            expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Rate-limit sweep removed %d expired entries", len(expired))
        return len(expired)

    def reset(self) -> None:
        with self.lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)

    def __contains__(self, key: tuple[str, str]) -> bool:
        with self.lock:
            return key in self._entries


# ── Limiter ───────────────────────────────────────────────────────────────────

class FixedWindowRateLimiter:
    """
    Fixed-window counter for one category.

    `clock` returns epoch seconds and `rng` returns floats in [0, 1); both
    are injectable so tests can move time and force the cleanup sweep.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        store: RateLimitStore,
        clock: Clock = time.time,
        rng: Callable[[], float] = random.random,
        cleanup_probability: float = 0.01,
    ) -> None:
        self.config = config
        self.store = store
        self._clock = clock
        self._rng = rng
        self._cleanup_probability = cleanup_probability

    @property
    def category(self) -> str:
        return self.config.category

    def limit(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        max_requests = self.config.max_requests

        with self.store.lock:
            # Opportunistic sweep keeps abandoned identifiers from piling up.
            if self._rng() < self._cleanup_probability:
                self.store.sweep(now)

            entry = self.store.get(self.category, identifier)

            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + self.config.window_seconds)
                self.store.put(self.category, identifier, entry)
                return self._result(True, max_requests - 1, entry.reset_time)

            if entry.count < max_requests:
                entry.count += 1
                return self._result(True, max_requests - entry.count, entry.reset_time)

            reset_time = entry.reset_time

        logger.warning(
            "Rate limit exceeded (category=%s, identifier=%s, retry_after=%ds)",
            self.category, identifier, math.ceil(reset_time - now),
        )
        return self._result(False, 0, reset_time)

    def _result(self, allowed: bool, remaining: int, reset_time: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=allowed,
            remaining_requests=remaining,
            reset_time=reset_time,
            limit=self.config.max_requests,
            category=self.category,
        )


class ActionRateLimiters:
    """One FixedWindowRateLimiter per campaign action, sharing a single store."""

    def __init__(
        self,
        configs: Iterable[RateLimitConfig],
        store: RateLimitStore | None = None,
        clock: Clock = time.time,
        rng: Callable[[], float] = random.random,
        cleanup_probability: float = 0.01,
    ) -> None:
        self.store = store if store is not None else RateLimitStore()
        self.clock = clock
        self._limiters = {
            config.category: FixedWindowRateLimiter(
                config,
                self.store,
                clock=clock,
                rng=rng,
                cleanup_probability=cleanup_probability,
            )
            for config in configs
        }

    @property
    def categories(self) -> list[str]:
        return list(self._limiters)

    def __getitem__(self, category: str) -> FixedWindowRateLimiter:
        return self._limiters[category]

    def limit(self, category: str, identifier: str) -> RateLimitResult:
        return self._limiters[category].limit(identifier)

    def reset(self) -> None:
        self.store.reset()


def default_rate_limit_configs(cfg: Settings = settings) -> list[RateLimitConfig]:
    return [
        RateLimitConfig("letter", cfg.rate_limit_letter_max, cfg.rate_limit_letter_window_seconds),
        RateLimitConfig("prayer", cfg.rate_limit_prayer_max, cfg.rate_limit_prayer_window_seconds),
        RateLimitConfig("witness", cfg.rate_limit_witness_max, cfg.rate_limit_witness_window_seconds),
        RateLimitConfig("contact", cfg.rate_limit_contact_max, cfg.rate_limit_contact_window_seconds),
    ]


def build_action_limiters(cfg: Settings = settings, **kwargs) -> ActionRateLimiters:
    kwargs.setdefault("cleanup_probability", cfg.rate_limit_cleanup_probability)
    return ActionRateLimiters(default_rate_limit_configs(cfg), **kwargs)


# Module-level singleton — routes reach it through get_action_limiters()
action_limiters = build_action_limiters()


def get_action_limiters() -> ActionRateLimiters:
    """FastAPI dependency. Tests override this with a fresh instance."""
    return action_limiters


# ── Messages ──────────────────────────────────────────────────────────────────

def format_retry_after(seconds: float) -> str:
    """Human-readable wait, rounded up: '45 seconds', '12 minutes', '1 hour'."""
    seconds = max(1, math.ceil(seconds))
    if seconds < 60:
        value, unit = seconds, "second"
    elif seconds < 60 * 60:
        value, unit = math.ceil(seconds / 60), "minute"
    else:
        value, unit = math.ceil(seconds / 3600), "hour"
    return f"{value} {unit}{'' if value == 1 else 's'}"


def rate_limit_error_message(result: RateLimitResult, now: float) -> str:
    return (
        "Rate limit exceeded. Please try again in "
        f"{format_retry_after(result.reset_time - now)}."
    )


# ── FastAPI integration ───────────────────────────────────────────────────────

class RateLimitDenied(Exception):
    """Raised by enforce_rate_limit(); rendered as HTTP 429 by core/errors.py."""

    def __init__(self, result: RateLimitResult, now: float) -> None:
        self.result = result
        self.retry_after = result.retry_after(now)
        self.message = rate_limit_error_message(result, now)
        super().__init__(self.message)


def enforce_rate_limit(category: str):
    """Build a dependency that charges one request against `category`."""

    def dependency(
        request: Request,
        response: Response,
        limiters: ActionRateLimiters = Depends(get_action_limiters),
    ) -> RateLimitResult:
        identifier = get_client_identifier(request)
        result = limiters.limit(category, identifier)
        if not result.allowed:
            raise RateLimitDenied(result, now=limiters.clock())
        response.headers.update(result.headers())
        return result

    return dependency
