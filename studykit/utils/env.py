"""Seed os.environ from a local .env file without clobbering real environment variables."""

from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def _parse_line(line: str) -> tuple[str, str] | None:
  line = line.strip().removeprefix("export ").strip()
  if not line or line.startswith("#"):
    return None
  key, sep, value = line.partition("=")
  if not sep or not key.strip():
    return None
  value = value.strip()
  if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
    value = value[1:-1]
  return key.strip(), value


def load_env_file(path: Path | None = None) -> dict[str, str]:
  """Apply unset keys from `path` (default: STUDYKIT_ENV_FILE or the repo .env) and return them."""
  env_path = path or Path(os.getenv("STUDYKIT_ENV_FILE") or _DEFAULT_ENV_FILE)
  if not env_path.is_file():
    return {}

  applied: dict[str, str] = {}
  for raw_line in env_path.read_text(encoding="utf-8").splitlines():
    parsed = _parse_line(raw_line)
    if parsed is None or parsed[0] in os.environ:
      continue
    os.environ[parsed[0]] = parsed[1]
    applied[parsed[0]] = parsed[1]
  return applied
