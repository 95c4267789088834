import logging
from typing import TYPE_CHECKING, Any

from .base_model_provider import (
    CONTEXT_CRITIQUE,
    DEBATE_SYSTEM_PROMPT,
    BaseModelProvider,
    base_url,
    frame_prompt,
)
from .exceptions import ProviderResponseError

if TYPE_CHECKING:
    from debate_engine.models import Agent

logger = logging.getLogger(__name__)

GOOGLE_API_HOST = "generativelanguage.googleapis.com"


class GoogleProvider(BaseModelProvider):
    """Gemini generateContent provider (system instruction + content parts)."""

    @property
    def provider_name(self) -> str:
        return "google"

    def auth_headers(self, token: str) -> dict[str, str]:
        return {"x-goog-api-key": token}

    def generate_endpoint(self, agent: "Agent") -> str:
        base = base_url(agent)
        if GOOGLE_API_HOST in base:
            return f"{base}/models/{agent.model_name}:generateContent"
        return f"{base}/v1beta/generateContent"

    async def generate(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        system_text = f"{DEBATE_SYSTEM_PROMPT} Please provide thoughtful responses."
        if context:
            system_text += CONTEXT_CRITIQUE

        payload = {
            "contents": [
                {"parts": [{"text": frame_prompt(prompt, context)}], "role": "user"}
            ],
            "systemInstruction": {"parts": [{"text": system_text}]},
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": 4000},
        }
        data = await self._post_json(
            self.generate_endpoint(agent), agent, payload, timeout=timeout
        )
        return self.parse_candidates(data)

    def parse_candidates(self, data: Any) -> str:
        """Return the first text part of the first candidate."""
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates:
            raise ProviderResponseError(
                self.provider_name, "No candidates returned from Gemini API"
            )

        candidate = candidates[0] if isinstance(candidates[0], dict) else {}
        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts:
            raise ProviderResponseError(
                self.provider_name, "No content parts returned from Gemini API"
            )

        text = parts[0].get("text") if isinstance(parts[0], dict) else None
        if not isinstance(text, str):
            raise ProviderResponseError(
                self.provider_name, "First content part carries no text"
            )
        return text

    async def ping(self, agent: "Agent", *, timeout: float) -> None:
        base = base_url(agent)
        endpoint = f"{base}/models" if GOOGLE_API_HOST in base else f"{base}/v1beta/models"
        await self._expect_ok("GET", endpoint, agent, timeout=timeout)
