"""SQLite database manager for agents, discussions and their turn logs."""

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from ..exceptions import AgentNotFoundError, DiscussionNotFoundError
from ..models import Agent, Discussion, DiscussionLog
from ..types import DiscussionStatus, LogStatus, ProviderType
from .schema import SchemaManager

logger = logging.getLogger(__name__)


def parse_agent_ids(raw: str | None) -> list[int]:
    """Decode the stored participant list.

    Current rows hold a JSON array; older rows may hold comma-separated ids.
    """
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, list):
        return [int(item) for item in value]
    if isinstance(value, int):
        return [value]
    return [int(part) for part in raw.strip("[]").split(",") if part.strip()]


def _parse_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class DatabaseManager:
    """SQLite implementation of the debate store.

    Every operation opens its own short-lived connection, so one manager
    can be shared by the event loop and worker threads.
    """

    def __init__(self, db_path: str | Path = "court_table.db"):
        self.db_path = Path(db_path)
        self.schema_manager = SchemaManager()
        self._init_database()

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            self.schema_manager.initialize_database_schema(conn.cursor())
            conn.commit()
        logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    # Agents

    @staticmethod
    def _row_to_agent(row: sqlite3.Row) -> Agent:
        return Agent(
            id=row["id"],
            name=row["name"],
            provider_type=ProviderType(row["provider_type"]) if row["provider_type"] else None,
            provider_url=row["provider_url"],
            api_token=row["api_token"] or "",
            model_name=row["model_name"],
            timeout_seconds=row["timeout_seconds"],
            created_at=_parse_time(row["created_at"]),
            updated_at=_parse_time(row["updated_at"]),
        )

    def get_agent(self, agent_id: int) -> Agent:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM agents WHERE id = ?", (agent_id,)).fetchone()
        if row is None:
            raise AgentNotFoundError(agent_id)
        return self._row_to_agent(row)

    def list_agents(self) -> list[Agent]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM agents ORDER BY name").fetchall()
        return [self._row_to_agent(row) for row in rows]

    def insert_agent(self, agent: Agent) -> Agent:
        now = datetime.now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO agents (
                    name, provider_type, provider_url, api_token, model_name,
                    timeout_seconds, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    agent.name,
                    agent.provider_type.value if agent.provider_type else None,
                    agent.provider_url,
                    agent.api_token,
                    agent.model_name,
                    agent.timeout_seconds,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            conn.commit()
            agent.id = cursor.lastrowid
        agent.created_at = now
        agent.updated_at = now
        return agent

    def update_agent(self, agent: Agent) -> Agent:
        if agent.id is None:
            raise ValueError("Cannot update an agent without an id")
        now = datetime.now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE agents
                SET name = ?, provider_type = ?, provider_url = ?, api_token = ?,
                    model_name = ?, timeout_seconds = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    agent.name,
                    agent.provider_type.value if agent.provider_type else None,
                    agent.provider_url,
                    agent.api_token,
                    agent.model_name,
                    agent.timeout_seconds,
                    now.isoformat(),
                    agent.id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise AgentNotFoundError(agent.id)
        agent.updated_at = now
        return agent

    def delete_agent(self, agent_id: int) -> None:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise AgentNotFoundError(agent_id)

    # Discussions

    @staticmethod
    def _row_to_discussion(row: sqlite3.Row) -> Discussion:
        return Discussion(
            id=row["id"],
            topic=row["topic"],
            final_summary=row["final_summary"] or "",
            status=DiscussionStatus(row["status"]),
            agent_ids=parse_agent_ids(row["agent_ids"]),
            moderator_id=row["moderator_id"],
            max_rounds=row["max_rounds"],
            language=row["language"],
            max_char_limit=row["max_char_limit"],
            created_at=_parse_time(row["created_at"]),
            updated_at=_parse_time(row["updated_at"]),
        )

    def insert_discussion(self, discussion: Discussion) -> Discussion:
        now = datetime.now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO discussions (
                    topic, final_summary, status, agent_ids, moderator_id,
                    max_rounds, language, max_char_limit, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    discussion.topic,
                    discussion.final_summary,
                    discussion.status.value,
                    json.dumps(discussion.agent_ids),
                    discussion.moderator_id,
                    discussion.max_rounds,
                    discussion.language,
                    discussion.max_char_limit,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            conn.commit()
            discussion.id = cursor.lastrowid
        discussion.created_at = now
        discussion.updated_at = now
        return discussion

    def update_discussion(self, discussion: Discussion) -> Discussion:
        if discussion.id is None:
            raise ValueError("Cannot update a discussion without an id")
        now = datetime.now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE discussions
                SET topic = ?, final_summary = ?, status = ?, agent_ids = ?,
                    moderator_id = ?, max_rounds = ?, language = ?,
                    max_char_limit = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    discussion.topic,
                    discussion.final_summary,
                    discussion.status.value,
                    json.dumps(discussion.agent_ids),
                    discussion.moderator_id,
                    discussion.max_rounds,
                    discussion.language,
                    discussion.max_char_limit,
                    now.isoformat(),
                    discussion.id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise DiscussionNotFoundError(discussion.id)
        discussion.updated_at = now
        return discussion

    def close_discussion(self, discussion_id: int, status: DiscussionStatus) -> bool:
        """Move a running discussion to ``status``. Returns False if it was no longer running."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE discussions SET status = ?, updated_at = ?
                WHERE id = ? AND status = ?
                """,
                (
                    status.value,
                    datetime.now().isoformat(),
                    discussion_id,
                    DiscussionStatus.RUNNING.value,
                ),
            )
            conn.commit()
            if cursor.rowcount:
                return True
            exists = conn.execute(
                "SELECT 1 FROM discussions WHERE id = ?", (discussion_id,)
            ).fetchone()
        if exists is None:
            raise DiscussionNotFoundError(discussion_id)
        return False

    def finalize_discussion(
        self, discussion_id: int, status: DiscussionStatus, final_summary: str
    ) -> Discussion:
        """Store the summary; the status only changes while the discussion is still running."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE discussions
                SET final_summary = ?,
                    status = CASE WHEN status = ? THEN ? ELSE status END,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    final_summary,
                    DiscussionStatus.RUNNING.value,
                    status.value,
                    datetime.now().isoformat(),
                    discussion_id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise DiscussionNotFoundError(discussion_id)
            row = conn.execute(
                "SELECT * FROM discussions WHERE id = ?", (discussion_id,)
            ).fetchone()
        return self._row_to_discussion(row)

    def get_discussion(self, discussion_id: int) -> Discussion:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM discussions WHERE id = ?", (discussion_id,)
            ).fetchone()
        if row is None:
            raise DiscussionNotFoundError(discussion_id)
        return self._row_to_discussion(row)

    def list_discussions(self) -> list[Discussion]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM discussions ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [self._row_to_discussion(row) for row in rows]

    def delete_discussion(self, discussion_id: int) -> None:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM discussions WHERE id = ?", (discussion_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise DiscussionNotFoundError(discussion_id)

    # Turn logs

    @staticmethod
    def _row_to_log(row: sqlite3.Row) -> DiscussionLog:
        return DiscussionLog(
            id=row["id"],
            discussion_id=row["discussion_id"],
            agent_id=row["agent_id"],
            content=row["content"] or "",
            status=LogStatus(row["status"]),
            response_time=row["response_time"],
            is_moderator=bool(row["is_moderator"]),
            created_at=_parse_time(row["created_at"]),
        )

    def insert_discussion_log(self, log: DiscussionLog) -> DiscussionLog:
        now = datetime.now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO discussion_logs (
                    discussion_id, agent_id, content, status, response_time,
                    is_moderator, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    log.discussion_id,
                    log.agent_id,
                    log.content,
                    log.status.value,
                    log.response_time,
                    int(log.is_moderator),
                    now.isoformat(),
                ),
            )
            conn.commit()
            log.id = cursor.lastrowid
        log.created_at = now
        return log

    def list_discussion_logs(self, discussion_id: int) -> list[DiscussionLog]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM discussion_logs
                WHERE discussion_id = ?
                ORDER BY id ASC
                """,
                (discussion_id,),
            ).fetchall()
        return [self._row_to_log(row) for row in rows]
