"""Applies the ordered SQL files that make up the storage schema."""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

# Tables referenced by foreign keys come first; indexes last.
TABLE_CREATION_ORDER: tuple[str, ...] = (
    "agents.sql",
    "discussions.sql",
    "discussion_logs.sql",
    "indexes.sql",
)


class SchemaManager:
    """Creates tables and indexes from ``tables/*.sql``."""

    def __init__(self, schema_dir: Path | None = None):
        self.schema_dir = schema_dir or Path(__file__).parent
        self.tables_dir = self.schema_dir / "tables"
        self.table_creation_order = TABLE_CREATION_ORDER

    def load_schema_file(self, filename: str) -> str:
        file_path = self.tables_dir / filename
        if not file_path.exists():
            raise FileNotFoundError(f"Schema file not found: {file_path}")
        return file_path.read_text(encoding="utf-8")

    def execute_schema_file(self, cursor: sqlite3.Cursor, filename: str) -> None:
        """Run every statement in one schema file."""
        statements = [
            stmt.strip() for stmt in self.load_schema_file(filename).split(";") if stmt.strip()
        ]
        try:
            for statement in statements:
                cursor.execute(statement)
        except sqlite3.Error as e:
            logger.error(f"Failed to execute schema file {filename}: {e}")
            raise
        logger.debug(f"Executed schema file: {filename}")

    def missing_schema_files(self) -> list[str]:
        return [
            filename
            for filename in self.table_creation_order
            if not (self.tables_dir / filename).exists()
        ]

    def initialize_database_schema(self, cursor: sqlite3.Cursor) -> None:
        missing = self.missing_schema_files()
        if missing:
            raise RuntimeError(f"Database schema validation failed - missing {missing}")

        for filename in self.table_creation_order:
            self.execute_schema_file(cursor, filename)
        logger.info("Database schema initialization completed successfully")
