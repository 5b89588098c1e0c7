"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated defaults for logging, storage, tokenizers and HTTP timeouts
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    DEBUG: bool = False

    # Persisted model configurations (nickname -> config record)
    DATABASE_URL: str = "sqlite:///./data/models.db"

    # Tokenizer downloads
    TOKENIZER_CACHE_DIR: str = "./data/tokenizers"
    TOKENIZER_DOWNLOAD_TIMEOUT: float = 60.0  # seconds

    # HTTP request configuration
    HTTP_CONNECT_TIMEOUT: float = 5.0  # seconds
    HTTP_READ_TIMEOUT: float = 30.0  # seconds
    PROBE_TIMEOUT: float = 15.0  # seconds, connectivity tests during configure

    # Completion defaults
    DEFAULT_MAX_TOKENS: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/infill.log"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names from the environment."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def tokenizer_cache_path(self) -> Path:
        return Path(self.TOKENIZER_CACHE_DIR)


# Singleton instance
settings = Settings()
