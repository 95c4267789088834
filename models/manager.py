"""Model manager with multi-provider support."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from debate_engine.exceptions import PingError
from debate_engine.models import Agent, AgentReply
from debate_engine.types import ProviderType

from .providers.base_model_provider import BaseModelProvider
from .providers.exceptions import ProviderError
from .providers.providers import ProviderFactory, resolve_provider_type

logger = logging.getLogger(__name__)

# Added to every agent's configured deadline.
CALL_TIMEOUT_BUFFER_SECONDS = 10
PING_TIMEOUT_SECONDS = 5.0


def call_deadline(agent: Agent) -> float:
    return float(agent.timeout_seconds + CALL_TIMEOUT_BUFFER_SECONDS)


class ModelManager:
    """Routes agent calls to the matching provider over one shared HTTP client."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient()
        self._providers: dict[ProviderType, BaseModelProvider] = {}

    def _get_provider(self, provider_type: ProviderType) -> BaseModelProvider:
        """Return (and cache) the provider instance for a provider type."""
        if provider_type not in self._providers:
            self._providers[provider_type] = ProviderFactory.create_provider(
                provider_type, self._client
            )
        return self._providers[provider_type]

    def provider_for(self, agent: Agent) -> BaseModelProvider:
        return self._get_provider(resolve_provider_type(agent))

    async def call_agent(self, agent: Agent, prompt: str, context: str) -> AgentReply:
        """Ask an agent for a reply. Never raises for call-level failures.

        The call is bounded by the agent's deadline plus a fixed buffer.
        Latency is measured around the whole exchange and reported for
        failures as well as successes.
        """
        provider = self.provider_for(agent)
        deadline = call_deadline(agent)
        logger.debug(
            f"Calling agent {agent.name} ({provider.provider_name}) with timeout {deadline}s"
        )

        start = time.perf_counter()
        try:
            content = await asyncio.wait_for(
                provider.generate(agent, prompt, context, timeout=deadline),
                timeout=deadline,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            elapsed = _elapsed_ms(start)
            logger.warning(f"Agent {agent.name} timed out after {elapsed}ms")
            return AgentReply(
                success=False,
                error_message=f"Request timed out after {deadline:g}s",
                response_time=elapsed,
                timed_out=True,
            )
        except (ProviderError, httpx.HTTPError, httpx.InvalidURL) as exc:
            elapsed = _elapsed_ms(start)
            logger.warning(f"Agent {agent.name} call failed: {exc}")
            return AgentReply(
                success=False,
                error_message=str(exc) or exc.__class__.__name__,
                response_time=elapsed,
            )

        elapsed = _elapsed_ms(start)
        logger.debug(f"Generated {len(content)} chars from {agent.name} in {elapsed}ms")
        return AgentReply(success=True, content=content, response_time=elapsed)

    async def ping(self, agent: Agent) -> None:
        """Check reachability with a short fixed timeout. Raises PingError."""
        provider = self.provider_for(agent)
        try:
            await asyncio.wait_for(
                provider.ping(agent, timeout=PING_TIMEOUT_SECONDS),
                timeout=PING_TIMEOUT_SECONDS,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise PingError(f"ping timed out after {PING_TIMEOUT_SECONDS:g}s") from exc
        except (ProviderError, httpx.HTTPError, httpx.InvalidURL) as exc:
            raise PingError(str(exc) or exc.__class__.__name__) from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
