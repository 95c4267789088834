"""Database management module."""

from .database import DatabaseManager, parse_agent_ids

__all__ = ["DatabaseManager", "parse_agent_ids"]
