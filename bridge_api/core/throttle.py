"""
throttle.py — Generic per-IP endpoint throttling.

Uses slowapi (a Starlette-compatible wrapper around the `limits` library)
for blanket abuse protection on cheap endpoints such as analytics
ingestion and public reads. Campaign actions with their own quotas use
core/rate_limit.py instead.

Requests are keyed by the same proxy-aware identifier as the action
limiter, so both agree on who the caller is.

Usage in routes:
    from fastapi import Request
    from bridge_api.core.throttle import limiter

    @router.post("/api/analytics/user-journey")
    @limiter.limit(settings.analytics_throttle)
    async def track_event(request: Request, event: JourneyEventIn):
        ...
"""

from slowapi import Limiter

from bridge_api.core.client_ip import get_client_identifier

limiter = Limiter(key_func=get_client_identifier, storage_uri="memory://")
