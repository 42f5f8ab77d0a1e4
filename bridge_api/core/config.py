"""
Application configuration loaded from environment variables.

Uses pydantic-settings for type-safe env var parsing with automatic
.env file loading. All secrets are injected via environment — never
hard-coded.

To extend: add new fields here and document them in .env.example.
See https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

API_VERSION = "0.1.0"


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False

    # ─── CORS ──────────────────────────────────────────────────────
    # Comma-separated allowed origins for the Next.js site.
    cors_origins_str: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    # ─── Campaign action rate limits ───────────────────────────────
    # Fixed windows, one counter space per action.
    rate_limit_letter_max: int = 5
    rate_limit_letter_window_seconds: int = 60 * 60
    rate_limit_prayer_max: int = 5
    rate_limit_prayer_window_seconds: int = 15 * 60
    rate_limit_witness_max: int = 1
    rate_limit_witness_window_seconds: int = 24 * 60 * 60
    rate_limit_contact_max: int = 3
    rate_limit_contact_window_seconds: int = 60 * 60

    # Chance per limit() call of sweeping expired entries.
    rate_limit_cleanup_probability: float = 0.01

    # ─── Generic endpoint throttles (slowapi limit strings) ────────
    analytics_throttle: str = "30/minute"
    standard_throttle: str = "100/minute"

    # ─── Journey event store ───────────────────────────────────────
    event_store_max_events: int = 1000
    session_retention_hours: int = 24
    # "start" evicts a session 24 h after its first event even if it is
    # still active; "last_activity" evicts after 24 h of silence.
    session_retention_basis: Literal["start", "last_activity"] = "start"
    metrics_window_minutes: int = 60
    metrics_recent_events: int = 10
    batch_persist_events: bool = True

    # ─── Form submissions ──────────────────────────────────────────
    submissions_max_records: int = 500

    # ─── AI ────────────────────────────────────────────────────────
    # Get from https://aistudio.google.com/
    gemini_api_key: str = ""

    # When True, letter generation returns a canned draft.
    # Always True in tests; set False in production with a real key.
    ai_mock_mode: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


# Module-level singleton — import this everywhere instead of instantiating Settings()
settings = Settings()
