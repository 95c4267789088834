"""Persistence gateway the engine depends on."""

from typing import Protocol

from .models import Agent, Discussion, DiscussionLog
from .types import DiscussionStatus


class DebateStore(Protocol):
    """Durable, order-preserving storage for agents, discussions and turn logs.

    Lookups raise AgentNotFoundError / DiscussionNotFoundError for unknown
    ids. Inserts assign ``id`` and timestamps on the passed entity and
    return it.
    """

    def get_agent(self, agent_id: int) -> Agent: ...

    def list_agents(self) -> list[Agent]: ...

    def insert_agent(self, agent: Agent) -> Agent: ...

    def update_agent(self, agent: Agent) -> Agent: ...

    def delete_agent(self, agent_id: int) -> None: ...

    def insert_discussion(self, discussion: Discussion) -> Discussion: ...

    def update_discussion(self, discussion: Discussion) -> Discussion: ...

    def close_discussion(self, discussion_id: int, status: DiscussionStatus) -> bool:
        """Running to ``status`` only; False when the discussion had already ended."""
        ...

    def finalize_discussion(
        self, discussion_id: int, status: DiscussionStatus, final_summary: str
    ) -> Discussion:
        """Write the summary, taking ``status`` only if still running."""
        ...

    def get_discussion(self, discussion_id: int) -> Discussion: ...

    def list_discussions(self) -> list[Discussion]: ...

    def delete_discussion(self, discussion_id: int) -> None: ...

    def insert_discussion_log(self, log: DiscussionLog) -> DiscussionLog: ...

    def list_discussion_logs(self, discussion_id: int) -> list[DiscussionLog]: ...
