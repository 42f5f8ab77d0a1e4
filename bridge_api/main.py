"""
Bridge API — Application entry point.

Bootstraps FastAPI, wires up middleware and error handlers, and registers
the analytics and campaign-action route groups.

Extension points:
  - Add new route groups with app.include_router() below
  - Add new per-action quotas in core/rate_limit.default_rate_limit_configs()
  - Change startup behaviour in the lifespan context manager

Run locally:
  uvicorn bridge_api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bridge_api.core.config import API_VERSION, settings
from bridge_api.core.errors import register_exception_handlers
from bridge_api.core.rate_limit import action_limiters
from bridge_api.core.throttle import limiter
from bridge_api.routes.analytics import router as analytics_router
from bridge_api.routes.contact import router as contact_router
from bridge_api.routes.health import router as health_router
from bridge_api.routes.letters import router as letters_router
from bridge_api.routes.prayers import router as prayers_router
from bridge_api.routes.witnesses import router as witnesses_router
from bridge_api.services.event_store import event_store

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Log startup configuration and what the in-memory stores held at shutdown.

    There is nothing to connect to: events, submissions and rate-limit
    counters all live in this process.
    """
    logger.info(
        "Starting Bridge API (env: %s, rate limits: %s)",
        settings.environment,
        ", ".join(action_limiters.categories),
    )
    yield
    logger.info(
        "Shutting down Bridge API (%d events, %d sessions in memory)",
        len(event_store),
        len(event_store.get_active_sessions()),
    )


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Bridge API",
    description=(
        "User-journey analytics and rate-limited campaign actions "
        "(prayers, witness statements, contact, AI letter drafts)."
    ),
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting + errors ────────────────────────────────────────────────────
# slowapi handles the generic per-minute throttles; routes opt in with
# @limiter.limit(...) + a request: Request parameter. Per-action quotas use
# Depends(enforce_rate_limit(category)) instead.
app.state.limiter = limiter
register_exception_handlers(app)

# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])

# Analytics
app.include_router(analytics_router)

# Campaign actions
app.include_router(prayers_router)
app.include_router(witnesses_router)
app.include_router(contact_router)
app.include_router(letters_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "Bridge API",
        "version": API_VERSION,
        "status": "running",
        "environment": settings.environment,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bridge_api.main:app", host="0.0.0.0", port=8000, reload=settings.is_development)
