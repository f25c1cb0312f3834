from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    max_upload_bytes: int
    extraction_timeout_s: float
    analysis_db_enabled: bool
    analysis_db_path: str
    recent_analyses_default_limit: int
    recent_analyses_max_limit: int
    log_text_preview_chars: int
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
    extraction_timeout_s=_get_env_float("EXTRACTION_TIMEOUT_S", 30.0),
    analysis_db_enabled=_get_env_bool("ANALYSIS_DB_ENABLED", True),
    analysis_db_path=_get_env("ANALYSIS_DB_PATH", "data/resume_analyses.db") or "data/resume_analyses.db",
    recent_analyses_default_limit=_get_env_int("RECENT_ANALYSES_DEFAULT_LIMIT", 5),
    recent_analyses_max_limit=_get_env_int("RECENT_ANALYSES_MAX_LIMIT", 50),
    log_text_preview_chars=_get_env_int("LOG_TEXT_PREVIEW_CHARS", 500),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5000",
            "http://127.0.0.1:5000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
)

if settings.max_upload_bytes <= 0:
    raise RuntimeError("MAX_UPLOAD_BYTES must be a positive number of bytes.")

if settings.recent_analyses_default_limit <= 0 or settings.recent_analyses_max_limit <= 0:
    raise RuntimeError("RECENT_ANALYSES_DEFAULT_LIMIT and RECENT_ANALYSES_MAX_LIMIT must be positive.")
