"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from studykit.utils.env import load_env_file

load_env_file()

STORAGE_BACKENDS = frozenset({"memory", "postgres"})
CACHE_BACKENDS = frozenset({"memory", "redis"})
AI_PROVIDERS = frozenset({"openai", "gemini"})

_DEFAULT_MODELS = {"openai": "gpt-3.5-turbo", "gemini": "gemini-2.0-flash"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the studykit service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  storage: str
  pg_dsn: str | None
  cache: str
  redis_url: str | None
  cache_sweep_interval_seconds: float
  ai_provider: str
  ai_base_url: str | None
  ai_api_key: str | None
  ai_model: str
  generation_timeout_seconds: float
  summary_cache_ttl_seconds: int
  log_level: str
  log_dir: str
  log_max_bytes: int
  log_backup_count: int


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ()

  origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())

  if "*" in origins:
    raise ValueError("STUDYKIT_ALLOWED_ORIGINS must not include wildcard origins.")

  return origins


def _parse_choice(name: str, raw: str | None, default: str, choices: frozenset[str]) -> str:
  value = (raw or default).strip().lower()
  if value not in choices:
    raise ValueError(f"{name} must be one of: {', '.join(sorted(choices))}.")
  return value


def _positive_float(name: str, raw: str | None, default: str) -> float:
  value = float(raw or default)
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("STUDYKIT_ENV", "development").lower()
  debug = _parse_bool(os.getenv("STUDYKIT_DEBUG"))

  storage = _parse_choice("STUDYKIT_STORAGE", os.getenv("STUDYKIT_STORAGE"), "memory", STORAGE_BACKENDS)
  pg_dsn = _optional_str(os.getenv("STUDYKIT_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))
  if storage == "postgres" and not pg_dsn:
    raise ValueError("STUDYKIT_PG_DSN must be set when STUDYKIT_STORAGE=postgres.")

  cache = _parse_choice("STUDYKIT_CACHE", os.getenv("STUDYKIT_CACHE"), "memory", CACHE_BACKENDS)
  redis_url = _optional_str(os.getenv("STUDYKIT_REDIS_URL")) or _optional_str(os.getenv("REDIS_URL"))
  if cache == "redis" and not redis_url:
    raise ValueError("STUDYKIT_REDIS_URL must be set when STUDYKIT_CACHE=redis.")
  cache_sweep_interval_seconds = _positive_float("STUDYKIT_CACHE_SWEEP_INTERVAL_SECONDS", os.getenv("STUDYKIT_CACHE_SWEEP_INTERVAL_SECONDS"), "60")

  ai_provider = _parse_choice("STUDYKIT_AI_PROVIDER", os.getenv("STUDYKIT_AI_PROVIDER"), "openai", AI_PROVIDERS)
  ai_model = _optional_str(os.getenv("STUDYKIT_AI_MODEL")) or _DEFAULT_MODELS[ai_provider]
  generation_timeout_seconds = _positive_float("STUDYKIT_GENERATION_TIMEOUT_SECONDS", os.getenv("STUDYKIT_GENERATION_TIMEOUT_SECONDS"), "10")

  summary_cache_ttl_seconds = int(os.getenv("STUDYKIT_SUMMARY_CACHE_TTL_SECONDS", str(7 * 24 * 3600)))
  if summary_cache_ttl_seconds < 0:
    raise ValueError("STUDYKIT_SUMMARY_CACHE_TTL_SECONDS must be zero or a positive integer.")

  log_max_bytes = int(os.getenv("STUDYKIT_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("STUDYKIT_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("STUDYKIT_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("STUDYKIT_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("STUDYKIT_ALLOWED_ORIGINS")),
    storage=storage,
    pg_dsn=pg_dsn,
    cache=cache,
    redis_url=redis_url,
    cache_sweep_interval_seconds=cache_sweep_interval_seconds,
    ai_provider=ai_provider,
    ai_base_url=_optional_str(os.getenv("STUDYKIT_AI_BASE_URL")),
    ai_api_key=_optional_str(os.getenv("STUDYKIT_AI_API_KEY")),
    ai_model=ai_model,
    generation_timeout_seconds=generation_timeout_seconds,
    summary_cache_ttl_seconds=summary_cache_ttl_seconds,
    log_level=(os.getenv("STUDYKIT_LOG_LEVEL") or "INFO").strip().upper(),
    log_dir=(os.getenv("STUDYKIT_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
  )
