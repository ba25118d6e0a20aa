from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al directorio de trabajo del proceso anfitrión.
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    insight_enabled: bool
    insight_url: str
    insight_api_key: str
    insight_timeout_s: float


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("PERF_TELEMETRY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    insight_enabled = os.getenv("PERF_INSIGHT_ENABLED", "0").strip().lower() in ("1", "true", "yes")
    insight_url = os.getenv("PERF_INSIGHT_URL", "http://localhost:8003")
    insight_api_key = os.getenv("PERF_INSIGHT_API_KEY", "")

    try:
        insight_timeout_s = float(os.getenv("PERF_INSIGHT_TIMEOUT", "5.0"))
    except ValueError:
        insight_timeout_s = 5.0

    return Settings(
        insight_enabled=insight_enabled,
        insight_url=insight_url,
        insight_api_key=insight_api_key,
        insight_timeout_s=insight_timeout_s,
    )
