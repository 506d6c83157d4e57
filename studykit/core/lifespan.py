import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI

from studykit.ai.providers import build_provider
from studykit.cache.factory import build_cache
from studykit.core.logging import _initialize_logging
from studykit.notifications.error_reporter import LoggingErrorReporter
from studykit.services.generation import GenerationService
from studykit.services.summary import DailySummaryService
from studykit.storage.factory import build_results_repository
from studykit.telemetry.metrics import MetricsCollector


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Build the service graph on startup and tear it down in reverse order."""
  from studykit.config import get_settings

  # Load settings for startup initialization.
  settings = get_settings()
  # Create a module logger for lifespan events.
  logger = logging.getLogger("studykit.core.lifespan")
  # Initialize logging with configured settings.
  _initialize_logging(settings)

  app.state.ready = False
  async with AsyncExitStack() as stack:
    # Storage first so migrations fail fast before anything else starts.
    repository = await build_results_repository(settings)
    stack.push_async_callback(repository.close)

    # Start the cache sweeper; it is cancelled when the stack unwinds.
    cache = build_cache(settings)
    await cache.start()
    stack.push_async_callback(cache.close)

    provider = build_provider(settings)
    stack.push_async_callback(provider.close)

    metrics = MetricsCollector()
    app.state.metrics = metrics
    app.state.error_reporter = LoggingErrorReporter()
    app.state.generation_service = GenerationService(provider=provider, repository=repository, metrics=metrics, timeout_seconds=settings.generation_timeout_seconds)
    app.state.summary_service = DailySummaryService(repository=repository, cache=cache, ttl_seconds=settings.summary_cache_ttl_seconds)
    app.state.ready = True
    # Emit a startup confirmation log for operators.
    logger.info("Startup complete storage=%s cache=%s provider=%s model=%s", settings.storage, settings.cache, provider.name, provider.model)

    try:
      yield
    finally:
      app.state.ready = False
      logger.info("Shutting down")
