"""Centralised settings for the URL extractor service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from urlextractor import __version__

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    host: str = field(default_factory=lambda: os.environ.get("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    app_version: str = field(
        default_factory=lambda: os.environ.get("APP_VERSION", __version__)
    )
    cors_origins: list[str] = field(
        default_factory=lambda: [
            o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
        ]
    )

    # ------------------------------------------------------------------
    # Fetch executor
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "15.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("MAX_RETRIES", "3"))
    )
    request_deadline: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_DEADLINE", "90.0"))
    )

    # ------------------------------------------------------------------
    # Backoff between attempts (milliseconds)
    # ------------------------------------------------------------------
    backoff_base_ms: float = field(
        default_factory=lambda: float(os.environ.get("BACKOFF_BASE_MS", "1000"))
    )
    backoff_max_ms: float = field(
        default_factory=lambda: float(os.environ.get("BACKOFF_MAX_MS", "10000"))
    )
    backoff_jitter_ms: float = field(
        default_factory=lambda: float(os.environ.get("BACKOFF_JITTER_MS", "1000"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", "true"))


# Module-level singleton - import this everywhere:
#   from urlextractor.config import settings
settings = Settings()
