from pydantic import BaseModel

from debate_engine.models import Discussion, DiscussionLog


class DiscussionResponse(BaseModel):
    """Response model for discussion information."""

    id: int
    topic: str
    final_summary: str
    status: str
    agent_ids: list[int]
    moderator_id: int | None
    max_rounds: int
    language: str
    max_char_limit: int
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_discussion(cls, discussion: Discussion) -> "DiscussionResponse":
        return cls(**discussion.to_dict())


class DiscussionLogResponse(BaseModel):
    """Response model for one turn log entry."""

    id: int
    discussion_id: int
    agent_id: int
    content: str
    status: str
    response_time: int
    is_moderator: bool
    created_at: str | None = None

    @classmethod
    def from_log(cls, log: DiscussionLog) -> "DiscussionLogResponse":
        return cls(**log.to_dict())


class DiscussionStatusResponse(BaseModel):
    """A discussion together with its ordered log."""

    discussion: DiscussionResponse
    logs: list[DiscussionLogResponse]
