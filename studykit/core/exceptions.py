import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studykit.core.errors import ErrorCode, StudykitError

_STATUS_BY_CODE: dict[ErrorCode, int] = {
  ErrorCode.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
  ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
  ErrorCode.UPSTREAM_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
  ErrorCode.UPSTREAM_ERROR: status.HTTP_502_BAD_GATEWAY,
  ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_PUBLIC_MESSAGES: dict[ErrorCode, str] = {ErrorCode.UPSTREAM_TIMEOUT: "Content generation timed out.", ErrorCode.UPSTREAM_ERROR: "Content generation failed.", ErrorCode.INTERNAL: "Internal Server Error"}


def status_for(code: ErrorCode) -> int:
  return _STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _coerce_json_safe(value: Any) -> Any:
  """Convert unsupported values into JSON-safe primitives for error responses."""
  if value is None or isinstance(value, bool | int | float | str):
    return value
  if isinstance(value, dict):
    return {str(key): _coerce_json_safe(item) for key, item in value.items()}
  if isinstance(value, list | tuple | set):
    return [_coerce_json_safe(item) for item in value]
  if isinstance(value, BaseException):
    error_message = str(value)
    if error_message:
      return f"{type(value).__name__}: {error_message}"
    return type(value).__name__
  return str(value)


def _error_payload(code: ErrorCode, message: str, *, details: Any = None) -> dict[str, Any]:
  """Build the `{"error": {"code", "message"}}` envelope."""
  error: dict[str, Any] = {"code": code.value, "message": message}
  if details is not None:
    error["details"] = details
  return {"error": error}


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed_ctx = dict(scrubbed["ctx"])
      scrubbed_ctx.pop("input", None)
      scrubbed["ctx"] = scrubbed_ctx

    sanitized.append(_coerce_json_safe(scrubbed))

  return sanitized


async def studykit_exception_handler(request: Request, exc: StudykitError) -> JSONResponse:
  """Map classified failures onto HTTP statuses without leaking internals."""
  logger = logging.getLogger("uvicorn.error")
  status_code = status_for(exc.code)
  if status_code >= 500:
    logger.error("Request failed path=%s code=%s error=%s", request.url.path, exc.code.value, exc, exc_info=exc)
  else:
    logger.info("Request rejected path=%s code=%s message=%s", request.url.path, exc.code.value, exc.message)
  message = _PUBLIC_MESSAGES.get(exc.code, exc.message)
  return JSONResponse(status_code=status_code, content=_error_payload(exc.code, message))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Report malformed bodies and query parameters as invalid_argument."""
  sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
  logger = logging.getLogger("uvicorn.error")
  logger.warning("Request validation failed path=%s method=%s errors=%s", request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(ErrorCode.INVALID_ARGUMENT, "Malformed request.", details=sanitized_errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
  """Wrap framework HTTP errors (unknown routes, wrong methods) in the error envelope."""
  if exc.status_code == status.HTTP_404_NOT_FOUND:
    code = ErrorCode.NOT_FOUND
  elif exc.status_code >= 500:
    code = ErrorCode.INTERNAL
  else:
    code = ErrorCode.INVALID_ARGUMENT
  message = str(exc.detail) if exc.status_code < 500 else "Internal Server Error"
  return JSONResponse(status_code=exc.status_code, content=_error_payload(code, message), headers=getattr(exc, "headers", None))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  logger = logging.getLogger("uvicorn.error")
  logger.error("Global exception path=%s error_type=%s", request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload(ErrorCode.INTERNAL, "Internal Server Error"))
