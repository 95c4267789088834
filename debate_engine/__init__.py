"""Debate orchestration and flow management."""

from .types import DiscussionStatus, LogStatus, ModeratorTurn, ProviderType
from .models import Agent, AgentReply, Discussion, DiscussionLog
from .exceptions import (
    AgentNotFoundError,
    DebateEngineError,
    DebateStateError,
    DebateValidationError,
    DiscussionNotFoundError,
    PingError,
)

__all__ = [
    "DiscussionStatus",
    "LogStatus",
    "ModeratorTurn",
    "ProviderType",
    "Agent",
    "AgentReply",
    "Discussion",
    "DiscussionLog",
    "AgentNotFoundError",
    "DebateEngineError",
    "DebateStateError",
    "DebateValidationError",
    "DiscussionNotFoundError",
    "PingError",
]
