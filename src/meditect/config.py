"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    credential_store_path: Path = Path("~/.meditect/credentials")
    credential_store_key: str
    session_key: str = "session"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "medium"
    openai_store: bool = False
    profile_fetch_attempts: int = 3
    profile_fetch_backoff_seconds: float = 0.5
    expiry_warning_days: int = 90
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def resolved_store_path(self) -> Path:
        """Return the credential store directory with `~` expanded."""
        return self.credential_store_path.expanduser()
