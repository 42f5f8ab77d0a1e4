"""
GeminiClient — Async wrapper around the Google Generative AI SDK.

Used for drafting character witness letters.

Supports two runtime modes (set via AI_MOCK_MODE env var):
  - MOCK mode (default): returns a deterministic canned draft.
    Use for tests and local dev without API keys.
  - REAL mode: makes actual Gemini API calls.
    Requires GEMINI_API_KEY to be set.

Extension pattern: add new mock response keys to _MOCK_RESPONSES and
reference them in generate() calls via the response_key parameter.
"""

import logging
from enum import Enum
from typing import Any

import google.generativeai as genai

from bridge_api.core.config import settings

logger = logging.getLogger(__name__)


class GeminiModel(str, Enum):
    PRO = "gemini-2.5-pro"
    FLASH = "gemini-2.5-flash"


# Canned responses for mock mode.
# Keys map to response_key arguments in generate() calls.
_MOCK_RESPONSES: dict[str, str] = {
    "default": (
        "[MOCK] This is a placeholder Gemini response. "
        "Set AI_MOCK_MODE=false and provide GEMINI_API_KEY for real responses."
    ),
    "character_letter": (
        "The Honorable Judge\n"
        "Superior Court\n\n"
        "Dear Honorable Judge,\n\n"
        "[MOCK] I am writing to offer my support as a character witness. I have "
        "watched him mentor young people in our community, show up early to every "
        "program he committed to, and speak honestly about the mistakes of his past. "
        "His growth is real, and his commitment to rehabilitation has been steady "
        "and visible to everyone around him.\n\n"
        "I respectfully ask the Court to consider the positive impact he continues "
        "to have on our community when making its decision.\n\n"
        "Sincerely,\n"
        "[Author]"
    ),
}


class GeminiClient:
    """
    Central Gemini interface for the backend.

    Don't instantiate per-request; use the module-level `gemini_client`
    singleton.
    """

    def __init__(self) -> None:
        self.mock_mode = settings.ai_mock_mode

        if not self.mock_mode:
            if not settings.gemini_api_key:
                logger.warning(
                    "GEMINI_API_KEY not set — falling back to mock mode. "
                    "Set AI_MOCK_MODE=true to silence this warning."
                )
                self.mock_mode = True
            else:
                genai.configure(api_key=settings.gemini_api_key)

        if self.mock_mode:
            logger.info("GeminiClient initialised in MOCK mode")
        else:
            logger.info("GeminiClient initialised in REAL mode")

    async def generate(
        self,
        prompt: str,
        model: GeminiModel = GeminiModel.FLASH,
        response_key: str = "default",
        **generation_kwargs: Any,
    ) -> str:
        """
        Generate text from a Gemini model.

        Args:
            prompt:             The full prompt string.
            model:              Which Gemini model to use.
            response_key:       Mock response key (ignored in real mode).
            **generation_kwargs: Passed through to GenerativeModel.generate_content_async().

        Raises:
            Exception: Propagates Gemini SDK errors in real mode.
        """
        if self.mock_mode:
            return _MOCK_RESPONSES.get(response_key, _MOCK_RESPONSES["default"])

        try:
            gemini_model = genai.GenerativeModel(model.value)
            response = await gemini_model.generate_content_async(prompt, **generation_kwargs)
            return response.text
        except Exception as exc:
            logger.error("Gemini API error (model=%s): %s", model.value, exc)
            raise


# Module-level singleton — import and use this everywhere
gemini_client = GeminiClient()
