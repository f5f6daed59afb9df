"""
Configuration management for the application.
Loads settings from environment variables and the project .env file.
"""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from loguru import logger

# This file is at src/config/settings.py, so project root is 3 levels up
_project_root = Path(__file__).resolve().parent.parent.parent

PROJECT_ROOT = _project_root

_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file, override=False)
    logger.debug(f"Loaded .env from: {_env_file}")
else:
    load_dotenv(override=False)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Service
    service_name: str = Field(default="contractor-agent-router")
    service_version: str = Field(default="1.0.0")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://127.0.0.1:3000"])

    # Logging
    log_level: str = Field(default="INFO")
    log_to_file: bool = Field(default=True)
    log_dir: str = Field(default="data/logs")

    # Intent scoring
    exact_match_score: float = Field(default=0.8)  # Added per exact phrase match
    partial_match_score: float = Field(default=0.3)  # Scaled by fraction of phrase words matched
    intent_confidence_floor: float = Field(default=0.3)  # Max score must exceed this to name a primary intent
    high_confidence_threshold: float = Field(default=0.6)  # Confidence must exceed this to route on intent

    # Routing
    routing_history_limit: int = Field(default=20)  # Turns passed into a routing request
    conversation_history_max_turns: int = Field(default=50)  # Turns kept per user in memory

    # Concurrent execution
    max_concurrent_executions: int = Field(default=2)  # Per user, any tier
    execution_timeout_seconds: float = Field(default=600.0)
    execution_sweep_interval_seconds: float = Field(default=30.0)
    completion_grace_seconds: float = Field(default=3.0)
    execution_manager_prune_interval_seconds: float = Field(default=300.0)  # Idle per-user managers are stopped this often
    default_estimated_duration_ms: int = Field(default=120000)

    class Config:
        env_file = str(_project_root / ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
