"""Error kinds shared by the generation pipeline and its callers."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
  """Stable error kinds surfaced to callers."""

  INVALID_ARGUMENT = "invalid_argument"
  NOT_FOUND = "not_found"
  UPSTREAM_TIMEOUT = "upstream_timeout"
  UPSTREAM_ERROR = "upstream_error"
  INTERNAL = "internal"


class StudykitError(Exception):
  """Base class for all classified failures."""

  code: ErrorCode = ErrorCode.INTERNAL

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message

  def __str__(self) -> str:
    cause = self.__cause__
    if cause is not None:
      return f"{self.code.value}: {self.message} ({cause})"
    return f"{self.code.value}: {self.message}"


class InvalidArgumentError(StudykitError):
  """Raised when a request fails validation."""

  code = ErrorCode.INVALID_ARGUMENT


class NotFoundError(StudykitError):
  """Raised when an identifier has no stored record."""

  code = ErrorCode.NOT_FOUND


class UpstreamError(StudykitError):
  """Raised when the generation provider fails after retries or with a non-retryable error."""

  code = ErrorCode.UPSTREAM_ERROR


class UpstreamTimeoutError(UpstreamError):
  """Raised when the generation provider runs out of its deadline."""

  code = ErrorCode.UPSTREAM_TIMEOUT


class InternalError(StudykitError):
  """Raised for unexpected local failures such as undecodable stored payloads."""

  code = ErrorCode.INTERNAL
