"""
Configuration module for the Constituency Strategy Engine.
Supports both local development and hosted environments.
"""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path
import logging

# Load .env file explicitly using python-dotenv
# This ensures environment variables are loaded before Settings class is instantiated
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Try to find .env file in multiple locations
_env_paths = [
    Path(__file__).parent.parent / ".env",  # backend/.env
    Path(__file__).parent.parent.parent / ".env",  # project root/.env
    Path.cwd() / ".env",  # current working directory
]

for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path, override=False)
        logger.debug("Loaded environment from %s", _env_path)
        break


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Runtime Environment
    app_env: str = Field(default="local", description="local | hosted")
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)

    # LLM Configuration (narrative generation only)
    llm_provider: str = Field(default="openai", description="openai | gemini")

    # OpenAI Settings
    openai_api_key: Optional[str] = Field(default=None)
    openai_model: str = Field(default="gpt-4o")
    openai_temperature: float = Field(default=0.2)

    # Gemini Settings (fallback)
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_model: str = Field(default="gemini-1.5-pro")

    # Local data (registry CSV, per-constituency records, regional profiles)
    data_dir: str = Field(default=str(Path(__file__).parent / "data"))

    # Hosted record store (PostgREST-style REST table)
    record_store_url: Optional[str] = Field(default=None)
    record_store_key: Optional[str] = Field(default=None)
    record_store_table: str = Field(default="constituency_records")

    # Collaborator boundary: timeout and bounded retry
    collaborator_timeout: float = Field(default=10.0)
    collaborator_max_attempts: int = Field(default=3, ge=1, le=5)

    # Calling-layer concerns
    narrative_cache_ttl: int = Field(default=900, description="Seconds")
    max_workers: int = Field(default=8, ge=1)

    # Campaign perspective
    focus_party: str = Field(default="BJP")
    ruling_party: str = Field(default="AITC")

    # Optional JSON file overriding StrategyWeights
    weights_file: Optional[str] = Field(default=None)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra fields in .env
    }

    @property
    def is_local(self) -> bool:
        return self.app_env.lower() == "local"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


# Global settings instance
settings = Settings()

if settings.debug:
    logger.info(
        "APP_ENV=%s LLM_PROVIDER=%s RECORD_STORE=%s",
        settings.app_env,
        settings.llm_provider,
        settings.record_store_url or "local files",
    )
