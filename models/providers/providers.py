from typing import List, TYPE_CHECKING

import httpx

from debate_engine.types import ProviderType

from .anthropic_provider import AnthropicProvider
from .base_model_provider import BaseModelProvider
from .custom_provider import CustomProvider
from .google_provider import GoogleProvider
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider

if TYPE_CHECKING:
    from debate_engine.models import Agent


def detect_provider_type(url: str) -> ProviderType:
    """Guess the provider family from URL text. Only used for records without a type."""
    if "ollama" in url or "localhost:11434" in url:
        return ProviderType.OLLAMA
    if "openai.com" in url:
        return ProviderType.OPENAI
    if "anthropic.com" in url:
        return ProviderType.ANTHROPIC
    if "googleapis.com" in url:
        return ProviderType.GOOGLE
    return ProviderType.CUSTOM


def resolve_provider_type(agent: "Agent") -> ProviderType:
    """Configured type wins; URL sniffing is the fallback for older records."""
    if agent.provider_type is not None:
        return agent.provider_type
    return detect_provider_type(agent.provider_url)


class ProviderFactory:
    """Factory for creating model providers."""

    _providers: dict[ProviderType, type[BaseModelProvider]] = {
        ProviderType.OLLAMA: OllamaProvider,
        ProviderType.OPENAI: OpenAIProvider,
        ProviderType.ANTHROPIC: AnthropicProvider,
        ProviderType.GOOGLE: GoogleProvider,
        ProviderType.CUSTOM: CustomProvider,
    }

    @classmethod
    def create_provider(
        cls, provider_type: ProviderType | str, client: httpx.AsyncClient
    ) -> BaseModelProvider:
        """Create a provider instance by type."""
        try:
            key = ProviderType(provider_type)
        except ValueError:
            raise ValueError(
                f"Unknown provider: {provider_type}. Available: {cls.get_available_providers()}"
            ) from None

        provider_class = cls._providers[key]
        return provider_class(client)

    @classmethod
    def get_available_providers(cls) -> List[str]:
        """Get list of available provider names."""
        return [provider.value for provider in cls._providers]
