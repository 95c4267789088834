"""Anthropic Messages API provider."""

from __future__ import annotations

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

ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 4000
TEMPERATURE = 0.7

# 400 means the API was reached but rejected the probe payload.
PING_ACCEPTED_STATUSES = frozenset({200, 400})


def messages_endpoint(agent: Agent) -> str:
    base = base_url(agent)
    return f"{base}/messages" if "/v1" in base else f"{base}/v1/messages"


class AnthropicProvider(BaseModelProvider):
    """Anthropic model provider speaking the native Messages API."""

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def auth_headers(self, token: str) -> dict[str, str]:
        return {"x-api-key": token, "anthropic-version": ANTHROPIC_VERSION}

    async def generate(
        self, agent: Agent, prompt: str, context: str, *, timeout: float
    ) -> str:
        system = f"{DEBATE_SYSTEM_PROMPT} Please provide thoughtful responses to the given topic."
        if context:
            system += CONTEXT_CRITIQUE

        payload = {
            "model": agent.model_name,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "messages": [{"role": "user", "content": frame_prompt(prompt, context)}],
            "system": system,
        }
        data = await self._post_json(messages_endpoint(agent), agent, payload, timeout=timeout)
        return self.parse_message(data)

    def parse_message(self, data: Any) -> str:
        """Return the first text block of the reply."""
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list) or not blocks:
            raise ProviderResponseError(
                self.provider_name, "No content returned from Claude API"
            )

        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str) and text:
                    return text
                break

        raise ProviderResponseError(
            self.provider_name, "No text content found in Claude response"
        )

    async def ping(self, agent: Agent, *, timeout: float) -> None:
        payload = {
            "model": agent.model_name,
            "max_tokens": 1,
            "messages": [{"role": "user", "content": "test"}],
        }
        await self._expect_ok(
            "POST",
            messages_endpoint(agent),
            agent,
            timeout=timeout,
            payload=payload,
            accepted=PING_ACCEPTED_STATUSES,
        )
