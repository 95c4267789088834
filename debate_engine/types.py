"""Shared types and enums for the debate engine."""

from enum import Enum
from typing import Any, Literal, TypedDict


class ProviderType(str, Enum):
    """Wire protocol families an agent endpoint can speak."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    CUSTOM = "custom"


class DiscussionStatus(str, Enum):
    """Lifecycle of a discussion. Moves forward only."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class LogStatus(str, Enum):
    """Outcome of a single turn."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


class ModeratorTurn(str, Enum):
    """The four moderator interjection kinds."""

    OPENING = "opening"
    INTERIM = "interim"
    ROUND_SUMMARY = "round_summary"
    CLOSING = "closing"

    @property
    def role_label(self) -> str:
        """Human-readable role embedded in stored moderator content."""
        return _MODERATOR_ROLES.get(self, "Moderation")


_MODERATOR_ROLES: dict[ModeratorTurn, str] = {
    ModeratorTurn.OPENING: "Opening Remarks",
    ModeratorTurn.INTERIM: "Interim Moderation",
    ModeratorTurn.ROUND_SUMMARY: "Round Summary",
    ModeratorTurn.CLOSING: "Closing Remarks",
}


class DiscussionEvent(TypedDict):
    """Payload fanned out to live listeners of a discussion."""

    type: Literal["log", "discussion"]
    data: dict[str, Any]
