"""Accessors for the long-lived objects the lifespan stores on ``app.state``."""

from starlette.requests import HTTPConnection

from config.settings import AppConfig
from debate_engine.broadcaster import EventBroadcaster
from debate_engine.core import DebateEngine
from debate_engine.store import DebateStore


def get_engine(conn: HTTPConnection) -> DebateEngine:
    return conn.app.state.engine


def get_store(conn: HTTPConnection) -> DebateStore:
    return conn.app.state.store


def get_broadcaster(conn: HTTPConnection) -> EventBroadcaster:
    return conn.app.state.broadcaster


def get_config(conn: HTTPConnection) -> AppConfig:
    return conn.app.state.config
