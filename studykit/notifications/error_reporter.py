"""Contracts for reporting failed generation requests to operators."""

from __future__ import annotations

import logging
from typing import Protocol

from studykit.core.errors import StudykitError


class ErrorReporter(Protocol):
  """Delivery contract for operator-facing error reports."""

  def report(self, error: BaseException, context: dict[str, str]) -> None:
    """Report an error with string context (endpoint, request id, ...)."""


class LoggingErrorReporter:
  """Report errors to the application log."""

  def __init__(self, logger: logging.Logger | None = None) -> None:
    self._logger = logger or logging.getLogger(__name__)

  def report(self, error: BaseException, context: dict[str, str]) -> None:
    code = error.code.value if isinstance(error, StudykitError) else "internal"
    details = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
    self._logger.error("Reported error code=%s %s: %s", code, details, error)


def safe_report(reporter: ErrorReporter, error: BaseException, context: dict[str, str]) -> None:
  """Call the reporter without letting its own failures escape."""
  try:
    reporter.report(error, context)
  except Exception:  # noqa: BLE001
    logging.getLogger(__name__).warning("Error reporter failed", exc_info=True)
