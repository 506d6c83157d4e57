"""Deadline-bounded retry for upstream generation calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
import openai

T = TypeVar("T")
logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 0.5

# Transport-level failures worth a second attempt. HTTP status errors and
# malformed replies are deliberately absent.
_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (TimeoutError, ConnectionError, httpx.TimeoutException, httpx.TransportError, openai.APITimeoutError, openai.APIConnectionError)
_TIMEOUT_ERRORS: tuple[type[BaseException], ...] = (TimeoutError, httpx.TimeoutException, openai.APITimeoutError)


def is_retryable_error(exc: BaseException) -> bool:
  """Return True when the failure is a timeout or connection-level error."""
  return isinstance(exc, _RETRYABLE_ERRORS)


def is_timeout_error(exc: BaseException) -> bool:
  """Return True when the failure means the call ran out of time."""
  return isinstance(exc, _TIMEOUT_ERRORS)


async def call_with_retry(func: Callable[[], Awaitable[T]], *, timeout: float, attempts: int = MAX_ATTEMPTS, delay: float = RETRY_DELAY_SECONDS) -> T:
  """
  Run func under a shared deadline, retrying retryable failures.

  Every attempt and every sleep between attempts draws from the same
  `timeout` budget. The sleep is clamped to what is left of it.
  """
  loop = asyncio.get_running_loop()
  deadline = loop.time() + timeout
  last_error: BaseException | None = None

  for attempt in range(1, attempts + 1):
    remaining = deadline - loop.time()
    if remaining <= 0:
      break

    try:
      async with asyncio.timeout(remaining):
        return await func()
    except Exception as exc:
      last_error = exc
      if not is_retryable_error(exc) or attempt == attempts:
        raise

      remaining = deadline - loop.time()
      if remaining <= 0:
        raise

      pause = min(delay, remaining)
      logger.warning("Retry attempt %s/%s after %s: %s. Retrying in %.3fs", attempt + 1, attempts, type(exc).__name__, exc, pause)
      await asyncio.sleep(pause)

  if last_error is not None:
    raise last_error
  raise TimeoutError("Deadline exhausted before the first attempt.")
