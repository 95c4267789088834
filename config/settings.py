"""Configuration settings and data models."""

import json
import os
from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "court_table_config.json"


class DatabaseConfig(BaseModel):
    """SQLite storage configuration."""

    path: str = Field(default="court_table.db", description="Path to the SQLite database file")


class DebateDefaults(BaseModel):
    """Defaults applied when a discussion request omits a parameter."""

    max_rounds: int = Field(default=3, description="Rounds per discussion")
    language: str = Field(default="English", description="Language agents must respond in")
    max_char_limit: int = Field(default=2000, description="Hard cap on stored response length")
    agent_timeout_seconds: int = Field(
        default=30, description="Response deadline for newly created agents"
    )

    @field_validator("max_char_limit", "agent_timeout_seconds")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8880, description="Bind port")
    allowed_origins: List[str] = Field(
        default_factory=list,
        description="CORS origins; empty means allow any localhost origin",
    )


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class AppConfig(BaseModel):
    """Complete application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    debate: DebateDefaults = Field(default_factory=DebateDefaults)
    server: ServerConfig = Field(default_factory=ServerConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from a JSON file, or YAML when the suffix says so."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain an object: {config_path}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )

    def apply_environment(self) -> "AppConfig":
        """Override file values with PORT, ALLOWED_ORIGINS and COURT_TABLE_DB."""
        port = os.environ.get("PORT")
        if port:
            self.server.port = int(port)

        env_origins = os.environ.get("ALLOWED_ORIGINS")
        if env_origins:
            self.server.allowed_origins = [
                origin.strip() for origin in env_origins.split(",") if origin.strip()
            ]

        db_path = os.environ.get("COURT_TABLE_DB")
        if db_path:
            self.database.path = db_path

        return self


def get_default_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from court_table_config.json, falling back to defaults."""
    path = config_path or Path(CONFIG_FILENAME)
    if path.exists():
        config = AppConfig.load_from_file(path)
    else:
        config = AppConfig()
    return config.apply_environment()
