from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from studykit.api.deps import get_error_reporter, get_generation_service
from studykit.core.errors import ErrorCode, StudykitError
from studykit.notifications.error_reporter import ErrorReporter, safe_report
from studykit.schema.content import GenerationRequest, GenerationResult
from studykit.services.generation import GenerationService

router = APIRouter()
logger = logging.getLogger(__name__)

# Client mistakes are not operator-facing.
_UNREPORTED_CODES = frozenset({ErrorCode.INVALID_ARGUMENT, ErrorCode.NOT_FOUND})


@router.post("", response_model=GenerationResult)
async def process_text(request: GenerationRequest, service: GenerationService = Depends(get_generation_service), reporter: ErrorReporter = Depends(get_error_reporter)) -> GenerationResult:  # noqa: B008
  """Generate learning content for a block of text."""
  try:
    return await service.generate(request)
  except StudykitError as exc:
    if exc.code not in _UNREPORTED_CODES:
      safe_report(reporter, exc, {"endpoint": "POST /v1/process", "mode": request.mode or "lesson"})
    raise


@router.get("/{result_id}", response_model=GenerationResult)
async def get_result(result_id: str, service: GenerationService = Depends(get_generation_service), reporter: ErrorReporter = Depends(get_error_reporter)) -> GenerationResult:  # noqa: B008
  """Return a previously generated result."""
  try:
    return await service.get_result(result_id)
  except StudykitError as exc:
    if exc.code not in _UNREPORTED_CODES:
      safe_report(reporter, exc, {"endpoint": "GET /v1/process/{id}", "result_id": result_id})
    raise
