import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from .exceptions import ProviderHTTPError, ProviderResponseError

if TYPE_CHECKING:
    from debate_engine.models import Agent

logger = logging.getLogger(__name__)

CONTEXT_FRAMING = "Previous context from other agents:\n{context}\n\nYour task:\n{prompt}"
DEBATE_SYSTEM_PROMPT = "You are participating in a multi-agent debate."
CONTEXT_CRITIQUE = (
    " Consider the context from previous agents and provide your perspective or critique."
)


def frame_prompt(prompt: str, context: str) -> str:
    """Prepend prior turns to the instruction so the agent can tell them apart."""
    if not context:
        return prompt
    return CONTEXT_FRAMING.format(context=context, prompt=prompt)


def base_url(agent: "Agent") -> str:
    return agent.provider_url.strip().rstrip("/")


def chat_endpoints(provider_url: str) -> list[str]:
    """Return chat-completion endpoints to probe, highest priority first."""
    base = provider_url.strip().rstrip("/")

    if "/chat/completions" in base or "/generate" in base:
        return [base]

    if base.endswith("/v1"):
        return [f"{base}/chat/completions"]

    return [
        f"{base}/chat/completions",
        f"{base}/v1/chat/completions",
        base,
    ]


class BaseModelProvider(ABC):
    """Abstract base class for agent endpoint providers.

    Subclasses turn the canonical "prompt plus prior context" request into
    their vendor's wire shape and pull a single text payload back out.
    ``generate`` and ``ping`` raise on failure; ``ModelManager`` converts
    those exceptions into structured replies.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        pass

    @abstractmethod
    async def generate(
        self, agent: "Agent", prompt: str, context: str, *, timeout: float
    ) -> str:
        """Ask the agent and return its text payload."""
        pass

    @abstractmethod
    async def ping(self, agent: "Agent", *, timeout: float) -> None:
        """Issue a minimal reachability probe. Raise if the agent is unreachable."""
        pass

    def auth_headers(self, token: str) -> dict[str, str]:
        """Bearer token by default; vendors with their own key header override this."""
        return {"Authorization": f"Bearer {token}"}

    def build_headers(self, agent: "Agent") -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = (agent.api_token or "").strip()
        if token:
            headers.update(self.auth_headers(token))
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        agent: "Agent",
        *,
        timeout: float,
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request with the agent's auth headers and return the raw response."""
        return await self._client.request(
            method,
            url,
            json=payload,
            headers=self.build_headers(agent),
            timeout=timeout,
        )

    async def _post_json(
        self, url: str, agent: "Agent", payload: dict[str, Any], *, timeout: float
    ) -> Any:
        """POST a JSON body and decode the JSON reply. Non-2xx raises ProviderHTTPError."""
        response = await self._request("POST", url, agent, timeout=timeout, payload=payload)
        if not response.is_success:
            raise ProviderHTTPError(
                self.provider_name, response.status_code, response.text, endpoint=url
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(
                self.provider_name, f"Failed to parse response from {url}: {e}"
            ) from e

    async def _expect_ok(
        self,
        method: str,
        url: str,
        agent: "Agent",
        *,
        timeout: float,
        payload: dict[str, Any] | None = None,
        accepted: frozenset[int] = frozenset({200}),
    ) -> None:
        """Probe helper: raise unless the status is in ``accepted``."""
        response = await self._request(method, url, agent, timeout=timeout, payload=payload)
        if response.status_code not in accepted:
            raise ProviderHTTPError(
                self.provider_name, response.status_code, response.text, endpoint=url
            )
        logger.debug(f"{self.provider_name} ping ok for {agent.name} via {url}")
