import logging
from typing import TYPE_CHECKING, Any

import httpx

from .base_model_provider import (
    DEBATE_SYSTEM_PROMPT,
    BaseModelProvider,
    base_url,
    chat_endpoints,
)
from .exceptions import ProviderError, ProviderResponseError
from .extraction import first_choice_message

if TYPE_CHECKING:
    from debate_engine.models import Agent

logger = logging.getLogger(__name__)


def build_chat_messages(prompt: str, context: str) -> list[dict[str, str]]:
    """Role-tagged message list; prior turns travel in the system message."""
    if context:
        system = (
            f"{DEBATE_SYSTEM_PROMPT} Here's the context from previous agents:\n"
            f"{context}\n\nPlease respond to the following:"
        )
    else:
        system = f"{DEBATE_SYSTEM_PROMPT} Please provide your response to the following:"
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": prompt},
    ]


class OpenAIProvider(BaseModelProvider):
    """OpenAI-compatible chat completions provider."""

    @property
    def provider_name(self) -> str:
        return "openai"

    def parse_chat_completion(self, data: Any) -> str:
        if not isinstance(data, dict) or not data.get("choices"):
            raise ProviderResponseError(self.provider_name, "no choices in response")
        content = first_choice_message(data)
        if content is None:
            raise ProviderResponseError(
                self.provider_name, "first choice carries no message content"
            )
        return content

    async def generate_chat(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        """Probe the chat endpoints in priority order; the first parseable 2xx wins."""
        payload = {
            "model": agent.model_name,
            "messages": build_chat_messages(prompt, context),
            "stream": False,
        }

        last_error: Exception | None = None
        for endpoint in chat_endpoints(agent.provider_url):
            try:
                data = await self._post_json(endpoint, agent, payload, timeout=timeout)
                content = self.parse_chat_completion(data)
            except httpx.TimeoutException:
                raise
            except (ProviderError, httpx.HTTPError, httpx.InvalidURL) as e:
                logger.debug(f"{self.provider_name} endpoint {endpoint} failed for {agent.name}: {e}")
                last_error = e
                continue

            logger.debug(
                f"Generated {len(content)} chars from {agent.model_name} via {endpoint}"
            )
            return content

        raise ProviderError(
            self.provider_name, f"Failed to call OpenAI-compatible API: {last_error}"
        )

    async def generate(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        return await self.generate_chat(agent, prompt, context, timeout=timeout)

    async def ping(self, agent: "Agent", *, timeout: float) -> None:
        base = base_url(agent)
        endpoint = f"{base}/models" if "/v1" in base else f"{base}/v1/models"
        await self._expect_ok("GET", endpoint, agent, timeout=timeout)
