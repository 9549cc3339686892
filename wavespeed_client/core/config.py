"""Process settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from ``WAVESPEED_*`` environment variables.

    API keys are deliberately not settings; the model resolver reads them
    from the environment variable named by each model entry.
    """

    model_config = SettingsConfigDict(
        env_prefix="WAVESPEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Model cache
    cache_dir: Path | None = None

    # HTTP
    request_timeout: float = 30.0

    # Polling
    poll_interval: float = 2.0
    poll_timeout: float = 600.0
    poll_max_retries: int = 3
    poll_retry_delay: float = 2.0
    poll_max_retry_delay: float = 10.0

    @field_validator("poll_interval", "poll_timeout", "request_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("poll_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("poll_max_retries cannot be negative")
        return v

    def resolved_cache_dir(self) -> Path:
        """Directory holding the persisted model cache."""
        if self.cache_dir is not None:
            return self.cache_dir
        return Path.home() / ".wavespeed" / "cache"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Cached Settings instance.
    """
    return Settings()
