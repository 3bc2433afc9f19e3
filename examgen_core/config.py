"""Runtime configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for extraction, generation and storage.

    Every field can be overridden with an ``EXAMGEN_`` prefixed environment
    variable, e.g. ``EXAMGEN_PROVIDER=openai``.
    """

    # LLM Configuration
    provider: str = "google"
    google_api_key: str | None = None
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    google_model: str = "gemini-2.5-flash"
    openai_model: str = "gpt-4o"
    request_timeout: float = 120.0
    max_retries: int = 3
    output_language: str = "Vietnamese"

    # Extraction
    render_scale: float = 1.5
    jpeg_quality: int = 80

    # Progress estimate
    progress_tick_interval: float = 0.5
    progress_max_increment: float = 10.0
    progress_cap: float = 95.0

    # Local storage
    storage_dir: Path = Path.home() / ".examgen"
    storage_quota_bytes: int = 5 * 1024 * 1024
    storage_key: str = "saved_exams"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="EXAMGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
