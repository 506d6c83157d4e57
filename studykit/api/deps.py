"""Shared FastAPI dependencies resolved from application state."""

from __future__ import annotations

from fastapi import Request

from studykit.notifications.error_reporter import ErrorReporter
from studykit.services.generation import GenerationService
from studykit.services.summary import DailySummaryService
from studykit.telemetry.metrics import MetricsCollector


def get_generation_service(request: Request) -> GenerationService:
  return request.app.state.generation_service


def get_summary_service(request: Request) -> DailySummaryService:
  return request.app.state.summary_service


def get_metrics(request: Request) -> MetricsCollector:
  return request.app.state.metrics


def get_error_reporter(request: Request) -> ErrorReporter:
  return request.app.state.error_reporter
