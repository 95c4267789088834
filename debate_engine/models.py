"""Data models for the debate engine."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .types import DiscussionStatus, LogStatus, ProviderType


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class Agent:
    """A configured responder behind an HTTP endpoint."""

    name: str
    provider_url: str
    model_name: str
    api_token: str = ""
    provider_type: ProviderType | None = None
    timeout_seconds: int = 30
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "provider_type": self.provider_type.value if self.provider_type else None,
            "provider_url": self.provider_url,
            "api_token": self.api_token,
            "model_name": self.model_name,
            "timeout_seconds": self.timeout_seconds,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Discussion:
    """A debate session and its parameters."""

    topic: str
    agent_ids: list[int]
    moderator_id: int | None = None
    status: DiscussionStatus = DiscussionStatus.RUNNING
    max_rounds: int = 3
    language: str = "English"
    max_char_limit: int = 2000
    final_summary: str = ""
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.status == DiscussionStatus.RUNNING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "final_summary": self.final_summary,
            "status": self.status.value,
            "agent_ids": list(self.agent_ids),
            "moderator_id": self.moderator_id,
            "max_rounds": self.max_rounds,
            "language": self.language,
            "max_char_limit": self.max_char_limit,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class DiscussionLog:
    """One turn of a discussion, as persisted."""

    discussion_id: int
    agent_id: int
    content: str
    status: LogStatus
    response_time: int = 0
    is_moderator: bool = False
    id: int | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "discussion_id": self.discussion_id,
            "agent_id": self.agent_id,
            "content": self.content,
            "status": self.status.value,
            "response_time": self.response_time,
            "is_moderator": self.is_moderator,
            "created_at": _iso(self.created_at),
        }


@dataclass
class AgentReply:
    """Structured result of asking an agent. Failures are data, not exceptions."""

    success: bool
    content: str = ""
    error_message: str = ""
    response_time: int = 0
    timed_out: bool = False
