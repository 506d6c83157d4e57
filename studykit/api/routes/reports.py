from __future__ import annotations

from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query

from studykit.api.deps import get_summary_service
from studykit.schema.content import DailySummary, GenerationResult
from studykit.services.summary import DailySummaryService

router = APIRouter()


@router.get("/daily", response_model=DailySummary)
async def daily_report(day: date | None = Query(default=None, alias="date"), service: DailySummaryService = Depends(get_summary_service)) -> DailySummary:  # noqa: B008
  """Return per-topic request counts for one UTC day (today by default)."""
  return await service.daily_summary(day or datetime.now(UTC).date())


@router.get("/topics/{topic}", response_model=list[GenerationResult])
async def topic_report(topic: str, limit: int = Query(default=20, ge=1, le=100), service: DailySummaryService = Depends(get_summary_service)) -> list[GenerationResult]:  # noqa: B008
  """Return the newest results stored under a topic."""
  return await service.results_for_topic(topic, limit)
