from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    """Application runtime configuration."""

    app_name: str = "TaskTrack"
    host: str = os.getenv("TT_HOST", "127.0.0.1")
    port: int = int(os.getenv("TT_PORT", "5001"))

    sqlite_path: Path = Path(os.getenv("TT_SQLITE_PATH", "./data/tasktrack.db"))
    database_url_override: Optional[str] = os.getenv("TT_DATABASE_URL")

    token_secret: str = os.getenv("TT_TOKEN_SECRET", "change-me")
    token_ttl_minutes: Optional[int] = (
        int(os.getenv("TT_TOKEN_TTL_MINUTES")) if os.getenv("TT_TOKEN_TTL_MINUTES") else 1440
    )
    password_iterations: int = int(os.getenv("TT_PASSWORD_ITERATIONS", "240000"))

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("TT_CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]
    )

    log_level: str = os.getenv("TT_LOG_LEVEL", "INFO")
    log_file: Optional[Path] = Path(os.getenv("TT_LOG_FILE")) if os.getenv("TT_LOG_FILE") else None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if not value:
            return []
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @computed_field
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return f"sqlite:///{self.sqlite_path}"


settings = Settings()

# Ensure essential directories exist
if not settings.database_url_override:
    settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
