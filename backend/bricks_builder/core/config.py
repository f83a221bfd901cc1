"""
Configuration management using Pydantic Settings
"""
import shlex
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
# config.py is at: backend/bricks_builder/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "bricks-builder"
    app_env: str = Field(default="development", description="Application environment")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"bricks_builder.agents": "DEBUG"})'
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/bricks_builder.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(
        default=14,
        ge=1,
        description="Number of days to keep log files"
    )
    log_sensitive_data: bool = Field(
        default=False,
        description="Disable masking of tokens and keys in logs - NOT RECOMMENDED"
    )
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")

    # Database
    database_url: str = Field(
        default="sqlite:///./bricks_builder.db",
        description="SQLAlchemy database URL"
    )

    # Agent execution
    agent_max_execution_time_ms: int = Field(
        default=30000,
        ge=1,
        le=600000,
        description="Default upper bound for a single agent run (milliseconds)"
    )
    agent_min_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Confidence below which a run is flagged for review"
    )
    agent_enable_logging: bool = Field(default=True, description="Log every agent execution")

    # Features
    structure_agent_use_ai: bool = Field(
        default=False,
        description="Generate structures with the text generation CLI instead of the template"
    )

    # Text generation CLI
    text_generation_command: str = Field(
        default="claude -p",
        description="Command used to call the text generation CLI (prompt is sent on stdin)"
    )
    text_generation_timeout_seconds: int = Field(
        default=25,
        ge=1,
        le=600,
        description="Maximum time to wait for the text generation CLI (seconds)"
    )
    text_generation_cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="How long identical prompts are served from cache (0 disables caching)"
    )
    text_generation_cache_max_entries: int = Field(
        default=256,
        ge=1,
        description="Maximum number of cached text generation responses"
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, description="Apply rate limits to agent executions")

    @field_validator("text_generation_command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        if not shlex.split(v):
            raise ValueError("text_generation_command must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def text_generation_argv(self) -> List[str]:
        """Split the text generation command into argv"""
        return shlex.split(self.text_generation_command)

    @property
    def project_root(self) -> Path:
        return _project_root

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
