"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_WPM = 100
MAX_WPM = 500
WPM_STEP = 10


class Settings(BaseSettings):
    """Reader settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BOOK_READER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "book-reader"
    debug: bool = False

    # Autoscroll
    autoscroll_wpm: int = Field(default=200, ge=MIN_WPM, le=MAX_WPM, multiple_of=WPM_STEP)
    pause_at_end: bool = False  # Turn autoscroll off once the last word is reached

    # Speech
    speech_backend: Literal["http", "local", "mock"] = "http"
    speech_endpoint: str = "http://localhost:8880"  # Kokoro-FastAPI server
    speech_model: str = "kokoro"
    speech_timeout_seconds: float = 30.0
    voice: str = "af_heart"
    tts_device: str = "cpu"  # Only used by the local backend

    # Segmentation
    keep_empty_paragraphs: bool = False
    segment_cache_size: int = Field(default=256, ge=0)

    # Progress persistence
    progress_dir: str = "./data/progress"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
