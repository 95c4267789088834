from pydantic import BaseModel

from debate_engine.models import Agent


class AgentResponse(BaseModel):
    """Response model for a stored agent. The token itself is never echoed."""

    id: int
    name: str
    provider_type: str | None
    provider_url: str
    model_name: str
    timeout_seconds: int
    has_api_token: bool
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentResponse":
        data = agent.to_dict()
        data["has_api_token"] = bool(data.pop("api_token"))
        return cls(**data)
