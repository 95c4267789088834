"""Core debate engine for orchestrating multi-agent discussions."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from config.settings import DebateDefaults
from models.manager import ModelManager

from .broadcaster import EventBroadcaster
from .exceptions import AgentNotFoundError, DebateStateError, DebateValidationError
from .models import Agent, AgentReply, Discussion, DiscussionLog
from .prompt_builder import PromptBuilder
from .store import DebateStore
from .transcript import Transcript, generate_summary
from .types import DiscussionStatus, LogStatus, ModeratorTurn

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ROUNDS = 3


class _DebateStopped(Exception):
    """Internal signal: the discussion left RUNNING while the task was between turns."""


def truncate_content(content: str, limit: int) -> str:
    """Hard cap on stored length. No ellipsis is added."""
    return content[:limit] if len(content) > limit else content


def _failure_status(reply: AgentReply) -> LogStatus:
    return LogStatus.TIMEOUT if reply.timed_out else LogStatus.ERROR


class DebateEngine:
    """Runs discussions round-robin on one background task per discussion.

    The engine talks to the outside world only through the store (every
    turn is made durable before it is broadcast) and the broadcaster.
    """

    def __init__(
        self,
        store: DebateStore,
        model_manager: ModelManager,
        broadcaster: EventBroadcaster,
        defaults: DebateDefaults | None = None,
        prompt_builder: PromptBuilder | None = None,
    ):
        self.store = store
        self.model_manager = model_manager
        self.broadcaster = broadcaster
        self.defaults = defaults or DebateDefaults()
        self.prompts = prompt_builder or PromptBuilder()
        self._tasks: dict[int, asyncio.Task[None]] = {}

    async def _store_call(self, fn: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(fn, *args)

    # Entry points

    async def start_debate(
        self,
        topic: str,
        agent_ids: list[int],
        moderator_id: int | None = None,
        max_rounds: int | None = None,
        language: str | None = None,
        max_char_limit: int | None = None,
    ) -> Discussion:
        """Validate participants, persist a RUNNING discussion and run it in the background.

        Returns as soon as the discussion record exists; the debate itself
        outlives the caller.
        """
        topic = (topic or "").strip()
        if not topic:
            raise DebateValidationError("topic is required")
        if not agent_ids:
            raise DebateValidationError("at least one agent is required")

        limit = max_char_limit if max_char_limit is not None else self.defaults.max_char_limit
        if limit <= 0:
            raise DebateValidationError("max_char_limit must be positive")

        agents = await self._resolve_agents(agent_ids)
        moderator: Agent | None = None
        if moderator_id is not None:
            try:
                moderator = await self._store_call(self.store.get_agent, moderator_id)
            except AgentNotFoundError as e:
                raise DebateValidationError(f"failed to verify moderator: {e}") from e

        discussion = Discussion(
            topic=topic,
            agent_ids=list(agent_ids),
            moderator_id=moderator_id,
            status=DiscussionStatus.RUNNING,
            max_rounds=max_rounds if max_rounds is not None else self.defaults.max_rounds,
            language=language or self.defaults.language,
            max_char_limit=limit,
        )
        discussion = await self._store_call(self.store.insert_discussion, discussion)
        self._spawn(discussion, agents, moderator)
        return discussion

    async def stop_debate(self, discussion_id: int) -> Discussion:
        """Mark a running discussion completed. In-flight turns still finish and persist."""
        closed = await self._store_call(
            self.store.close_discussion, discussion_id, DiscussionStatus.COMPLETED
        )
        if not closed:
            raise DebateStateError("discussion is not running")

        discussion = await self._store_call(self.store.get_discussion, discussion_id)
        self.broadcaster.publish_discussion(discussion)
        logger.info(f"Discussion {discussion_id} stopped on request")
        return discussion

    async def retry_participant(self, discussion_id: int, agent_id: int) -> DiscussionLog:
        """Ask one agent again with every successful entry so far as context.

        The result is appended as a new log entry; earlier entries are left
        untouched.
        """
        discussion = await self._store_call(self.store.get_discussion, discussion_id)
        if not discussion.is_running:
            raise DebateStateError("discussion is not running")

        agent = await self._store_call(self.store.get_agent, agent_id)
        logs = await self._store_call(self.store.list_discussion_logs, discussion_id)
        context = "\n\n".join(log.content for log in logs if log.status == LogStatus.SUCCESS)

        reply = await self.model_manager.call_agent(
            agent, self.prompts.initial_prompt(discussion), context
        )

        log = DiscussionLog(
            discussion_id=discussion_id,
            agent_id=agent_id,
            content="",
            status=LogStatus.SUCCESS,
            response_time=reply.response_time,
        )
        if reply.success:
            log.content = truncate_content(reply.content, discussion.max_char_limit)
        else:
            log.status = _failure_status(reply)
            log.content = f"Retry failed: {reply.error_message}"

        logger.info(f"Retried agent {agent.name} in discussion {discussion_id}: {log.status.value}")
        return await self._record(log)

    async def ping_participant(self, agent_id: int) -> None:
        """Raise PingError if the agent's endpoint is unreachable."""
        agent = await self._store_call(self.store.get_agent, agent_id)
        await self.model_manager.ping(agent)

    async def get_status(self, discussion_id: int) -> tuple[Discussion, list[DiscussionLog]]:
        discussion = await self._store_call(self.store.get_discussion, discussion_id)
        logs = await self._store_call(self.store.list_discussion_logs, discussion_id)
        return discussion, logs

    def is_executing(self, discussion_id: int) -> bool:
        task = self._tasks.get(discussion_id)
        return task is not None and not task.done()

    def running_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def wait_for(self, discussion_id: int) -> None:
        """Wait until the background task of a discussion has finished."""
        task = self._tasks.get(discussion_id)
        if task is not None:
            await task

    async def shutdown(self) -> None:
        """Cancel every outstanding debate task."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} running debate task(s)")

    # Background execution

    async def _resolve_agents(self, agent_ids: list[int]) -> list[Agent]:
        """Look up every participant concurrently; any unknown id fails the request."""
        results = await asyncio.gather(
            *(self._store_call(self.store.get_agent, agent_id) for agent_id in agent_ids),
            return_exceptions=True,
        )
        agents: list[Agent] = []
        for result in results:
            if isinstance(result, AgentNotFoundError):
                raise DebateValidationError(f"failed to verify agents: {result}") from result
            if isinstance(result, BaseException):
                raise result
            agents.append(result)
        return agents

    def _spawn(self, discussion: Discussion, agents: list[Agent], moderator: Agent | None) -> None:
        assert discussion.id is not None
        discussion_id = discussion.id
        if self.is_executing(discussion_id):
            raise DebateStateError(f"discussion {discussion_id} is already executing")

        task = asyncio.create_task(
            self._execute(discussion, agents, moderator), name=f"discussion-{discussion_id}"
        )
        self._tasks[discussion_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(discussion_id, None))

    async def _execute(
        self, discussion: Discussion, agents: list[Agent], moderator: Agent | None
    ) -> None:
        logger.info(
            f"Starting debate for discussion {discussion.id} with {len(agents)} agents"
            + (f" and moderator: {moderator.name}" if moderator else "")
            + f" (Max Rounds: {discussion.max_rounds}, Language: {discussion.language},"
            f" Max Chars: {discussion.max_char_limit})"
        )
        transcript = Transcript()

        try:
            try:
                await self._run_rounds(discussion, agents, moderator, transcript)
            except _DebateStopped:
                logger.info(f"Discussion {discussion.id} no longer running, not scheduling more turns")
            await self._finish(discussion, transcript, DiscussionStatus.COMPLETED)
            logger.info(f"Debate completed for discussion {discussion.id}")
        except asyncio.CancelledError:
            logger.warning(f"Debate task for discussion {discussion.id} cancelled")
            self._mark_failed_sync(discussion, transcript)
            raise
        except Exception:
            logger.exception(f"Debate task for discussion {discussion.id} failed")
            await self._finish(discussion, transcript, DiscussionStatus.FAILED)

    async def _run_rounds(
        self,
        discussion: Discussion,
        agents: list[Agent],
        moderator: Agent | None,
        transcript: Transcript,
    ) -> None:
        max_rounds = discussion.max_rounds if discussion.max_rounds > 0 else DEFAULT_MAX_ROUNDS

        if moderator:
            await self._moderate(discussion, moderator, ModeratorTurn.OPENING, 1, transcript)

        round_number = 1
        for round_number in range(1, max_rounds + 1):
            logger.info(f"Starting round {round_number} for discussion {discussion.id}")
            round_active = False

            for index, agent in enumerate(agents):
                await self._ensure_running(discussion)
                prompt = self.prompts.prompt_for_turn(
                    discussion, round_number, index + 1, len(agents)
                )
                reply = await self.model_manager.call_agent(agent, prompt, transcript.text)
                if await self._participant_turn(discussion, agent, reply, round_number, transcript):
                    round_active = True

                if moderator and index < len(agents) - 1:
                    await self._moderate(
                        discussion,
                        moderator,
                        ModeratorTurn.INTERIM,
                        round_number,
                        transcript,
                        context=reply.content,
                    )

            if moderator:
                await self._moderate(
                    discussion,
                    moderator,
                    ModeratorTurn.ROUND_SUMMARY,
                    round_number,
                    transcript,
                    context=f"Round {round_number} completed",
                )

            if not round_active:
                logger.info(
                    f"No active responses in round {round_number}, ending discussion {discussion.id}"
                )
                break

        if moderator:
            await self._moderate(
                discussion, moderator, ModeratorTurn.CLOSING, round_number, transcript
            )

    async def _participant_turn(
        self,
        discussion: Discussion,
        agent: Agent,
        reply: AgentReply,
        round_number: int,
        transcript: Transcript,
    ) -> bool:
        assert discussion.id is not None and agent.id is not None
        log = DiscussionLog(
            discussion_id=discussion.id,
            agent_id=agent.id,
            content="",
            status=LogStatus.SUCCESS,
            response_time=reply.response_time,
        )

        if reply.success:
            logger.info(f"Agent {agent.name} responded successfully ({reply.response_time} ms)")
            log.content = truncate_content(reply.content, discussion.max_char_limit)
            transcript.add(round_number, agent, log.content)
        else:
            logger.warning(f"Agent {agent.name} returned error: {reply.error_message}")
            log.status = _failure_status(reply)
            log.content = f"Error: {reply.error_message}"

        await self._record(log)
        return reply.success

    async def _moderate(
        self,
        discussion: Discussion,
        moderator: Agent,
        turn: ModeratorTurn,
        round_number: int,
        transcript: Transcript,
        context: str = "",
    ) -> bool:
        """One moderator interjection. Failures are logged as entries, never raised."""
        assert discussion.id is not None and moderator.id is not None
        await self._ensure_running(discussion)

        prompt = self.prompts.moderator_prompt(discussion, turn, context)
        reply = await self.model_manager.call_agent(moderator, prompt, "")

        log = DiscussionLog(
            discussion_id=discussion.id,
            agent_id=moderator.id,
            content="",
            status=LogStatus.SUCCESS,
            response_time=reply.response_time,
            is_moderator=True,
        )
        if reply.success:
            logger.info(f"Moderator {moderator.name} responded successfully ({reply.response_time} ms)")
            log.content = truncate_content(
                f"[Moderator - {turn.role_label}]\n{reply.content}", discussion.max_char_limit
            )
            transcript.add(round_number, moderator, log.content)
        else:
            logger.warning(
                f"Moderator {moderator.name} failed to give {turn.value}: {reply.error_message}"
            )
            log.status = _failure_status(reply)
            log.content = f"Moderator Error: {reply.error_message}"

        await self._record(log)
        return reply.success

    async def _record(self, log: DiscussionLog) -> DiscussionLog:
        """Persist first, then broadcast, so listeners never see an entry that is not durable."""
        log = await self._store_call(self.store.insert_discussion_log, log)
        self.broadcaster.publish_log(log)
        return log

    async def _ensure_running(self, discussion: Discussion) -> None:
        assert discussion.id is not None
        current = await self._store_call(self.store.get_discussion, discussion.id)
        if not current.is_running:
            raise _DebateStopped()

    async def _finish(
        self, discussion: Discussion, transcript: Transcript, status: DiscussionStatus
    ) -> None:
        """Write the summary and terminal status. A terminal status is never overwritten."""
        assert discussion.id is not None
        summary = generate_summary(discussion.topic, transcript.text)
        try:
            discussion = await self._store_call(
                self.store.finalize_discussion, discussion.id, status, summary
            )
        except Exception:
            logger.exception(f"Failed to finalize discussion {discussion.id}")
            return
        self.broadcaster.publish_discussion(discussion)

    def _mark_failed_sync(self, discussion: Discussion, transcript: Transcript) -> None:
        """Cancellation path: no further awaits, so talk to the store directly."""
        assert discussion.id is not None
        summary = generate_summary(discussion.topic, transcript.text)
        try:
            discussion = self.store.finalize_discussion(
                discussion.id, DiscussionStatus.FAILED, summary
            )
        except Exception:
            logger.exception(f"Failed to mark cancelled discussion {discussion.id} as failed")
            return
        self.broadcaster.publish_discussion(discussion)
