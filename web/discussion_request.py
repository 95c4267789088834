from pydantic import BaseModel, Field, field_validator


class DiscussionRequest(BaseModel):
    """Request model for starting a discussion."""

    topic: str
    agent_ids: list[int] = Field(..., min_length=1)
    moderator_id: int | None = None
    max_rounds: int | None = None
    language: str | None = None
    max_char_limit: int | None = Field(default=None, gt=0)

    @field_validator("topic")
    @classmethod
    def validate_topic(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("topic is required")
        return v
