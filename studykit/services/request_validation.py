from __future__ import annotations

from studykit.core.errors import InvalidArgumentError
from studykit.schema.content import GenerationRequest, Level, Mode

_MODES = frozenset(mode.value for mode in Mode)
_LEVELS = frozenset(level.value for level in Level)
DEFAULT_LANGUAGE = "en"


def _blank_to_none(value: str | None) -> str | None:
  """Treat empty and whitespace-only strings as absent."""
  if value is None:
    return None
  stripped = value.strip()
  return stripped or None


def normalize_request(request: GenerationRequest) -> GenerationRequest:
  """Validate a request and return a copy with defaults applied.

  Raises InvalidArgumentError before any upstream call is made.
  """
  if not request.text or not request.text.strip():
    raise InvalidArgumentError("text is required")

  mode = _blank_to_none(request.mode)
  if mode is not None and mode not in _MODES:
    raise InvalidArgumentError(f"invalid mode: {mode} (must be one of: {', '.join(sorted(_MODES))})")

  level = _blank_to_none(request.level)
  if level is not None and level not in _LEVELS:
    raise InvalidArgumentError(f"invalid level: {level} (must be one of: {', '.join(sorted(_LEVELS))})")

  return request.model_copy(
    update={
      "mode": mode or Mode.LESSON.value,
      "level": level,
      "topic": _blank_to_none(request.topic),
      "language": _blank_to_none(request.language) or DEFAULT_LANGUAGE,
      "idempotency_key": _blank_to_none(request.idempotency_key),
    }
  )
