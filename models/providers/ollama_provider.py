import logging
from typing import TYPE_CHECKING

from .base_model_provider import BaseModelProvider, base_url, frame_prompt
from .exceptions import ProviderResponseError

if TYPE_CHECKING:
    from debate_engine.models import Agent

logger = logging.getLogger(__name__)


class OllamaProvider(BaseModelProvider):
    """Ollama model provider using the native single-prompt generate API."""

    @property
    def provider_name(self) -> str:
        return "ollama"

    async def generate(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        """Generate a response using Ollama."""
        payload = {
            "model": agent.model_name,
            "prompt": frame_prompt(prompt, context),
            "stream": False,
        }
        data = await self._post_json(
            f"{base_url(agent)}/api/generate", agent, payload, timeout=timeout
        )

        content = data.get("response") if isinstance(data, dict) else None
        if not isinstance(content, str):
            raise ProviderResponseError(
                self.provider_name, "No response field in Ollama reply"
            )

        logger.debug(f"Generated {len(content)} chars from Ollama model {agent.model_name}")
        return content

    async def ping(self, agent: "Agent", *, timeout: float) -> None:
        """Fast health check against the model listing endpoint."""
        await self._expect_ok("GET", f"{base_url(agent)}/api/tags", agent, timeout=timeout)
