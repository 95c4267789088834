"""Exceptions raised by the debate engine and its persistence layer."""


class DebateEngineError(Exception):
    """Base class for debate engine errors."""


class AgentNotFoundError(DebateEngineError):
    """Raised when an agent id does not resolve to a stored agent."""

    def __init__(self, agent_id: int):
        self.agent_id = agent_id
        super().__init__(f"agent {agent_id} not found")


class DiscussionNotFoundError(DebateEngineError):
    """Raised when a discussion id does not resolve to a stored discussion."""

    def __init__(self, discussion_id: int):
        self.discussion_id = discussion_id
        super().__init__(f"discussion {discussion_id} not found")


class DebateValidationError(DebateEngineError):
    """Raised when a debate request is rejected before anything is persisted."""


class DebateStateError(DebateEngineError):
    """Raised when an operation is not allowed in the discussion's current status."""


class PingError(DebateEngineError):
    """Raised when an agent endpoint cannot be reached."""
