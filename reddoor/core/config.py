from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Red Door settings from environment variables, with optional .env override.

    Engine tunables here feed MessagingConfig.from_settings; persistence picks
    the JSON file store when CHAT_STATE_FILE is set and the database otherwise.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Selects the console renderer in development and JSON lines elsewhere."""

    DEBUG: bool = True
    """Log at DEBUG level instead of INFO."""

    HOST: str = "0.0.0.0"
    """Bind address for `python -m reddoor`."""

    PORT: int = 8000
    """Bind port for `python -m reddoor`."""

    # DB
    DATABASE_URL: Optional[str] = None
    """SQLAlchemy async URL; falls back to the SQLite file ./reddoor.db."""

    CHAT_STATE_FILE: Optional[str] = None
    """JSON snapshot file used instead of the database when set."""

    PERSISTENCE_ENABLED: bool = True
    """Write engine snapshots to durable storage after each change."""

    # Messaging
    CRUISE_RETENTION_HOURS: int = 72
    """How long Cruise chat messages stay readable."""

    RATE_LIMIT_PER_MINUTE: int = 20
    """Maximum sends per sender within any trailing 60 seconds."""

    RETENTION_SWEEP_MINUTES: int = 60
    """Interval between background sweeps of expired Cruise messages."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or "sqlite+aiosqlite:///./reddoor.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
