"""Configuration helpers for the TaskTrack client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_BASE_URL = "http://127.0.0.1:5001"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_TIMEOUT = 15


@dataclass(slots=True)
class ClientConfig:
    """Settings for talking to the API."""

    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    timeout_seconds: int = DEFAULT_TIMEOUT


def load_config(env_path: Optional[Path] = None) -> ClientConfig:
    """Load the configuration from the environment and an optional `.env` file."""

    env_path = env_path or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return ClientConfig(
        api_base_url=os.getenv("TASKTRACK_API_BASE_URL", DEFAULT_API_BASE_URL),
        api_token=os.getenv("TASKTRACK_API_TOKEN"),
        timezone=os.getenv("TASKTRACK_TIMEZONE", os.getenv("TZ", DEFAULT_TIMEZONE)),
        timeout_seconds=int(os.getenv("TASKTRACK_TIMEOUT", DEFAULT_TIMEOUT)),
    )


__all__ = ["ClientConfig", "load_config"]
