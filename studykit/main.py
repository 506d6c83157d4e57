from __future__ import annotations

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from studykit.api.deps import get_metrics
from studykit.api.routes import process, reports
from studykit.config import get_settings
from studykit.core.errors import StudykitError
from studykit.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler, studykit_exception_handler
from studykit.core.lifespan import lifespan
from studykit.telemetry.metrics import MetricsCollector

settings = get_settings()

app = FastAPI(title="studykit-engine", lifespan=lifespan)

if settings.allowed_origins:
  app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=False, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type"])


# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(StudykitError, studykit_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)


@app.get("/healthz", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple liveness status."""
  return {"status": "ok"}


@app.get("/readyz", include_in_schema=False)
async def readiness_check(request: Request) -> JSONResponse:
  """Report whether startup finished building the service graph."""
  if getattr(request.app.state, "ready", False):
    return JSONResponse({"status": "ready"})
  return JSONResponse({"status": "starting"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(metrics: MetricsCollector = Depends(get_metrics)) -> Response:  # noqa: B008
  """Expose the collector registry for Prometheus scraping."""
  return Response(content=metrics.render(), media_type=metrics.content_type)


app.include_router(process.router, prefix="/v1/process", tags=["process"])
app.include_router(reports.router, prefix="/v1/reports", tags=["reports"])
