"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = "Lexideck"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = Field(
        "sqlite:///./lexideck.db",
        description="SQLAlchemy database URL for the primary deck document store",
    )

    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    FALLBACK_CACHE_DIR: Path = Field(
        Path("./.lexideck-cache"), description="Directory holding local fallback deck blobs"
    )
    DECK_CACHE_KEY: str = Field("srs_deck", description="Fallback cache key for the deck blob")

    DECK_SAVE_DEBOUNCE_SECONDS: float = Field(
        0.5, ge=0, description="Window in which deck mutations coalesce into one write"
    )
    REVIEW_TICK_SECONDS: float = Field(
        1.0, gt=0, description="Countdown tick while a review session waits for a learning card"
    )

    ENRICHMENT_BASE_URL: Optional[AnyUrl] = Field(
        None, description="Base URL of the dictionary/example service; enrichment is off when unset"
    )
    ENRICHMENT_TIMEOUT_SECONDS: float = Field(30.0, description="Timeout for enrichment HTTP calls")
    ENRICHMENT_MAX_RETRIES: int = Field(2, ge=1, description="Attempts per enrichment request")
    DICTIONARY_BATCH_SIZE: int = Field(500, ge=1, description="Max words per dictionary lookup")
    EXAMPLE_BATCH_SIZE: int = Field(50, ge=1, le=50, description="Max words per example request")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
