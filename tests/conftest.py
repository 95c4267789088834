"""Pytest configuration and shared fixtures.

Provides an in-memory store and a scripted model manager so the engine
can be exercised without a database file or any network access.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from types import SimpleNamespace

import pytest

from debate_engine.exceptions import AgentNotFoundError, DiscussionNotFoundError, PingError
from debate_engine.models import Agent, AgentReply, Discussion, DiscussionLog
from debate_engine.types import DiscussionStatus

ReplyScript = Callable[[Agent, str, str], AgentReply]


class FakeStore:
    """Dict-backed stand-in for DatabaseManager with the same contract."""

    def __init__(self) -> None:
        self.agents: dict[int, Agent] = {}
        self.discussions: dict[int, Discussion] = {}
        self.logs: list[DiscussionLog] = []
        self._ids = {"agent": 0, "discussion": 0, "log": 0}
        self._lock = threading.Lock()

    def _next_id(self, kind: str) -> int:
        with self._lock:
            self._ids[kind] += 1
            return self._ids[kind]

    def get_agent(self, agent_id: int) -> Agent:
        if agent_id not in self.agents:
            raise AgentNotFoundError(agent_id)
        return replace(self.agents[agent_id])

    def list_agents(self) -> list[Agent]:
        return sorted((replace(a) for a in self.agents.values()), key=lambda a: a.name)

    def insert_agent(self, agent: Agent) -> Agent:
        agent.id = self._next_id("agent")
        agent.created_at = agent.updated_at = datetime.now()
        self.agents[agent.id] = replace(agent)
        return agent

    def update_agent(self, agent: Agent) -> Agent:
        if agent.id not in self.agents:
            raise AgentNotFoundError(agent.id)
        agent.updated_at = datetime.now()
        self.agents[agent.id] = replace(agent)
        return agent

    def delete_agent(self, agent_id: int) -> None:
        if self.agents.pop(agent_id, None) is None:
            raise AgentNotFoundError(agent_id)

    def insert_discussion(self, discussion: Discussion) -> Discussion:
        discussion.id = self._next_id("discussion")
        discussion.created_at = discussion.updated_at = datetime.now()
        self.discussions[discussion.id] = replace(discussion, agent_ids=list(discussion.agent_ids))
        return discussion

    def update_discussion(self, discussion: Discussion) -> Discussion:
        if discussion.id not in self.discussions:
            raise DiscussionNotFoundError(discussion.id)
        discussion.updated_at = datetime.now()
        self.discussions[discussion.id] = replace(discussion, agent_ids=list(discussion.agent_ids))
        return discussion

    def close_discussion(self, discussion_id: int, status: DiscussionStatus) -> bool:
        with self._lock:
            current = self.get_discussion(discussion_id)
            if not current.is_running:
                return False
            self.discussions[discussion_id] = replace(
                current, status=status, updated_at=datetime.now()
            )
            return True

    def finalize_discussion(
        self, discussion_id: int, status: DiscussionStatus, final_summary: str
    ) -> Discussion:
        with self._lock:
            current = self.get_discussion(discussion_id)
            current.final_summary = final_summary
            if current.is_running:
                current.status = status
            current.updated_at = datetime.now()
            self.discussions[discussion_id] = replace(current)
            return current

    def get_discussion(self, discussion_id: int) -> Discussion:
        if discussion_id not in self.discussions:
            raise DiscussionNotFoundError(discussion_id)
        return replace(self.discussions[discussion_id])

    def list_discussions(self) -> list[Discussion]:
        return [replace(d) for d in reversed(list(self.discussions.values()))]

    def delete_discussion(self, discussion_id: int) -> None:
        if self.discussions.pop(discussion_id, None) is None:
            raise DiscussionNotFoundError(discussion_id)
        self.logs = [log for log in self.logs if log.discussion_id != discussion_id]

    def insert_discussion_log(self, log: DiscussionLog) -> DiscussionLog:
        log.id = self._next_id("log")
        log.created_at = datetime.now()
        self.logs.append(replace(log))
        return log

    def list_discussion_logs(self, discussion_id: int) -> list[DiscussionLog]:
        return [replace(log) for log in self.logs if log.discussion_id == discussion_id]


class FakeModelManager:
    """Scripted replacement for ModelManager.

    Every call is recorded as a SimpleNamespace(agent, prompt, context) and
    answered by ``script``; the default script echoes the agent's name.
    """

    def __init__(self, script: ReplyScript | None = None) -> None:
        self.script = script or (lambda agent, prompt, context: ok(agent.name))
        self.calls: list[SimpleNamespace] = []
        self.pinged: list[int | None] = []
        self.ping_error: str | None = None
        self.closed = False

    async def call_agent(self, agent: Agent, prompt: str, context: str) -> AgentReply:
        self.calls.append(SimpleNamespace(agent=agent, prompt=prompt, context=context))
        return self.script(agent, prompt, context)

    async def ping(self, agent: Agent) -> None:
        self.pinged.append(agent.id)
        if self.ping_error:
            raise PingError(self.ping_error)

    async def aclose(self) -> None:
        self.closed = True

    def calls_for(self, agent_id: int | None) -> list[SimpleNamespace]:
        return [call for call in self.calls if call.agent.id == agent_id]


def ok(content: str, response_time: int = 5) -> AgentReply:
    return AgentReply(success=True, content=content, response_time=response_time)


def failed(message: str = "boom", *, timed_out: bool = False) -> AgentReply:
    return AgentReply(
        success=False, error_message=message, response_time=7, timed_out=timed_out
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def add_agent(store: FakeStore) -> Callable[..., Agent]:
    """Insert an agent into the fake store and return it."""

    def _add(name: str, **overrides) -> Agent:
        fields = {
            "provider_url": f"http://{name.lower()}.local",
            "model_name": f"{name.lower()}-model",
        }
        fields.update(overrides)
        return store.insert_agent(Agent(name=name, **fields))

    return _add


@pytest.fixture
def sample_topic() -> str:
    return "Should artificial intelligence be regulated by governments?"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
