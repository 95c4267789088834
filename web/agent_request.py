from pydantic import BaseModel, field_validator

from debate_engine.types import ProviderType


class AgentRequest(BaseModel):
    """Request model for creating or updating an agent."""

    name: str
    provider_url: str
    model_name: str
    provider_type: ProviderType | None = None
    api_token: str | None = None
    timeout_seconds: int | str | None = None

    @field_validator("name", "provider_url", "model_name")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name, provider_url, and model_name are required")
        return v

    @field_validator("provider_type", mode="before")
    @classmethod
    def validate_provider_type(cls, v):
        """Blank strings from form posts mean "detect from URL"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v):
        """Accept ints or numeric strings; anything unparseable falls back to the default."""
        if v is None:
            return None
        if isinstance(v, str):
            try:
                v = int(v.strip())
            except ValueError:
                return None
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v
