import logging
from typing import TYPE_CHECKING

import httpx

from .base_model_provider import base_url, chat_endpoints, frame_prompt
from .exceptions import ProviderError, ProviderResponseError
from .extraction import DEFAULT_RULES, ExtractionRule, extract_content
from .openai_provider import OpenAIProvider

if TYPE_CHECKING:
    from debate_engine.models import Agent

logger = logging.getLogger(__name__)


class CustomProvider(OpenAIProvider):
    """Self-hosted or unknown endpoints.

    Tries the OpenAI chat shape first, then falls back to a generic
    ``{prompt, model}`` completion whose reply is parsed with the ordered
    extraction rules.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rules: tuple[ExtractionRule, ...] = DEFAULT_RULES,
    ):
        super().__init__(client)
        self._rules = rules

    @property
    def provider_name(self) -> str:
        return "custom"

    def completion_endpoint(self, agent: "Agent") -> str:
        base = base_url(agent)
        if base.endswith("/v1"):
            base = base[: -len("/v1")]
        return f"{base}/v1/chat/completions"

    async def generate(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        try:
            return await self.generate_chat(agent, prompt, context, timeout=timeout)
        except ProviderError as e:
            logger.debug(f"Chat format failed for {agent.name}, trying generic completion: {e}")

        return await self.generate_completion(agent, prompt, context, timeout=timeout)

    async def generate_completion(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        payload = {
            "prompt": frame_prompt(prompt, context),
            "model": agent.model_name,
            "stream": False,
        }
        endpoint = self.completion_endpoint(agent)
        try:
            data = await self._post_json(endpoint, agent, payload, timeout=timeout)
        except httpx.TimeoutException:
            raise
        except (ProviderError, httpx.HTTPError, httpx.InvalidURL) as e:
            raise ProviderError(
                self.provider_name, f"All endpoints failed for custom provider: {e}"
            ) from e

        content = extract_content(data, self._rules)
        if content is None:
            raise ProviderResponseError(
                self.provider_name, "could not extract content from response"
            )
        return content

    async def ping(self, agent: "Agent", *, timeout: float) -> None:
        """POST a tiny prompt to each chat endpoint; any 2xx counts as reachable."""
        payload = {"prompt": "hi", "model": agent.model_name}
        endpoints = chat_endpoints(agent.provider_url)

        for endpoint in endpoints:
            try:
                response = await self._request(
                    "POST", endpoint, agent, timeout=timeout, payload=payload
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.debug(f"Ping failed on endpoint {endpoint}: {e}")
                continue

            if response.is_success:
                logger.debug(f"Ping successful on endpoint: {endpoint}")
                return
            logger.debug(f"Ping on {endpoint} returned status {response.status_code}")

        raise ProviderError(
            self.provider_name, "custom provider ping failed - no endpoints responded"
        )
