"""Model providers package."""

from .providers import ProviderFactory, detect_provider_type, resolve_provider_type
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider
from .anthropic_provider import AnthropicProvider
from .google_provider import GoogleProvider
from .custom_provider import CustomProvider
from .base_model_provider import BaseModelProvider, chat_endpoints, frame_prompt
from .exceptions import ProviderError, ProviderHTTPError, ProviderResponseError

__all__ = [
    "ProviderFactory",
    "detect_provider_type",
    "resolve_provider_type",
    "OllamaProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
    "CustomProvider",
    "BaseModelProvider",
    "chat_endpoints",
    "frame_prompt",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderResponseError",
]
