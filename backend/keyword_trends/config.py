"""Environment-driven configuration.

Every setting is read lazily from the environment with a safe default, so
tests can override values with ``monkeypatch.setenv`` without reloading
modules.  ``.env`` files are loaded once by ``main.py``.
"""

from __future__ import annotations

import os
from typing import List


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).strip().lower() == "true"


# ---------------------------------------------------------------------------
# OpenAI-compatible prediction service
# ---------------------------------------------------------------------------

def get_openai_key() -> str:
    """Read OPENAI_API_KEY from the environment. Raises EnvironmentError if missing."""
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        print("⚠️  [OPENAI] API key missing (OPENAI_API_KEY)")
        raise EnvironmentError("OPENAI_API_KEY environment variable not set")
    return key


def get_openai_model() -> str:
    return os.getenv("OPENAI_MODEL", "gpt-4.1").strip()


def get_openai_url() -> str:
    return os.getenv(
        "OPENAI_API_URL", "https://api.openai.com/v1/chat/completions"
    ).strip()


def get_openai_temperature() -> float:
    return _env_float("OPENAI_TEMPERATURE", 0.2)


def get_openai_timeout() -> float:
    return _env_float("OPENAI_REQUEST_TIMEOUT", 40.0)


def get_openai_max_tokens() -> int:
    return _env_int("OPENAI_MAX_COMPLETION_TOKENS", 800)


# ---------------------------------------------------------------------------
# WordStat search-volume provider
# ---------------------------------------------------------------------------

def get_wordstat_url() -> str:
    return os.getenv("WORDSTAT_API_URL", "http://xmlriver.com/wordstat/json").strip()


def get_wordstat_credentials() -> tuple[str, str]:
    """Return (user, key). Raises EnvironmentError if either is missing."""
    user = os.getenv("WORDSTAT_USER", "").strip()
    key = os.getenv("WORDSTAT_KEY", "").strip()
    if not user or not key:
        print("❌ [WORDSTAT] Credentials missing (WORDSTAT_USER / WORDSTAT_KEY)")
        raise EnvironmentError("WORDSTAT_USER and WORDSTAT_KEY must be set")
    return user, key


def get_wordstat_timeout() -> float:
    return _env_float("WORDSTAT_TIMEOUT", 10.0)


# ---------------------------------------------------------------------------
# Directus backend
# ---------------------------------------------------------------------------

def get_directus_url() -> str:
    return os.getenv(
        "DIRECTUS_API_URL", "https://directus-production-44d1.up.railway.app"
    ).rstrip("/")


def get_directus_timeout() -> float:
    return _env_float("DIRECTUS_TIMEOUT", 10.0)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

def is_debug() -> bool:
    return _env_bool("DEBUG", False)


def get_cors_origins() -> List[str]:
    raw = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
    )
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
