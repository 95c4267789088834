from pydantic import BaseModel

from web.discussion_response import DiscussionLogResponse


class StatusResponse(BaseModel):
    """Plain acknowledgement for action endpoints."""

    status: str


class RetryResponse(StatusResponse):
    """Acknowledgement for a retry, carrying the appended log entry."""

    log: DiscussionLogResponse
