"""End-to-end HTTP tests for the process, report and operational routes."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from studykit.main import app


@pytest.mark.anyio
async def test_flashcards_request_end_to_end(async_client, provider, repository) -> None:
  """A flashcards request with an explicit topic returns a user-attributed, stored result."""
  payload = {"text": "Photosynthesis converts light energy into chemical energy stored in glucose.", "mode": "flashcards", "topic": "Photosynthesis", "idempotency_key": "photo-1"}

  response = await async_client.post("/v1/process", json=payload)

  assert response.status_code == 200
  body = response.json()
  assert body["topic"] == "Photosynthesis"
  assert body["topic_source"] == "user"
  assert body["topic_confidence"] == 1.0
  assert body["flashcards"] == [{"q": "What pigment absorbs light?", "a": "Chlorophyll"}]
  assert body["meta"]["provider"] == "scripted"
  assert len(body["id"]) == 16
  assert "Generate flashcards (question-answer pairs) from this text.\n" in provider.prompts[0]

  fetched = await async_client.get(f"/v1/process/{body['id']}")
  assert fetched.status_code == 200
  assert fetched.json() == body

  repeat = await async_client.post("/v1/process", json=payload)
  assert repeat.json()["id"] == body["id"]
  assert provider.calls == 1
  assert len(repository) == 1


@pytest.mark.anyio
@pytest.mark.parametrize("payload", [{"text": ""}, {"text": "ok", "mode": "essay"}, {"text": "ok", "level": "guru"}, {"mode": "quiz"}])
async def test_invalid_requests_return_400(async_client, provider, payload) -> None:
  response = await async_client.post("/v1/process", json=payload)
  assert response.status_code == 400
  assert response.json()["error"]["code"] == "invalid_argument"
  assert provider.calls == 0


@pytest.mark.anyio
async def test_malformed_json_body_returns_400(async_client) -> None:
  response = await async_client.post("/v1/process", content=b"{not json", headers={"content-type": "application/json"})
  assert response.status_code == 400
  assert response.json()["error"]["code"] == "invalid_argument"


@pytest.mark.anyio
async def test_unknown_result_returns_404(async_client, reporter) -> None:
  response = await async_client.get("/v1/process/does-not-exist")
  assert response.status_code == 404
  assert response.json() == {"error": {"code": "not_found", "message": "Result 'does-not-exist' not found."}}
  assert reporter.reports == []


@pytest.mark.anyio
async def test_upstream_failures_map_to_gateway_statuses(async_client, service, make_provider, reporter) -> None:
  """Timeouts become 504 and other upstream failures 502; both are reported."""
  service._provider = make_provider([TimeoutError("slow")])
  timeout = await async_client.post("/v1/process", json={"text": "abc"})
  assert timeout.status_code == 504
  assert timeout.json()["error"] == {"code": "upstream_timeout", "message": "Content generation timed out."}

  service._provider = make_provider(["definitely not json"])
  failure = await async_client.post("/v1/process", json={"text": "abc"})
  assert failure.status_code == 502
  assert failure.json()["error"]["code"] == "upstream_error"

  assert [context["endpoint"] for _, context in reporter.reports] == ["POST /v1/process", "POST /v1/process"]


@pytest.mark.anyio
async def test_daily_report_and_topic_listing(async_client, reply_payload) -> None:
  created = await async_client.post("/v1/process", json={"text": "Leaves are green.", "topic": "Botany"})
  assert created.status_code == 200
  today = datetime.fromisoformat(created.json()["created_at"]).astimezone(UTC).date().isoformat()

  report = await async_client.get("/v1/reports/daily", params={"date": today})
  assert report.status_code == 200
  assert report.json() == {"date": today, "total_requests": 1, "topics": [{"topic": "Botany", "count": 1}]}

  listing = await async_client.get("/v1/reports/topics/Botany", params={"limit": 5})
  assert [item["id"] for item in listing.json()] == [created.json()["id"]]

  too_many = await async_client.get("/v1/reports/topics/Botany", params={"limit": 500})
  assert too_many.status_code == 400

  bad_date = await async_client.get("/v1/reports/daily", params={"date": "yesterday"})
  assert bad_date.status_code == 400


@pytest.mark.anyio
async def test_operational_endpoints(async_client, metrics) -> None:
  assert (await async_client.get("/healthz")).json() == {"status": "ok"}

  app.state.ready = False
  assert (await async_client.get("/readyz")).status_code == 503
  app.state.ready = True
  assert (await async_client.get("/readyz")).json() == {"status": "ready"}

  await async_client.post("/v1/process", json={"text": "abc"})
  exposition = await async_client.get("/metrics")
  assert exposition.headers["content-type"].startswith("text/plain")
  assert "studykit_generation_requests_total 1.0" in exposition.text
  assert "studykit_generation_processing_ms_count 1.0" in exposition.text


@pytest.mark.anyio
async def test_unknown_route_uses_error_envelope(async_client) -> None:
  response = await async_client.get("/v2/nothing")
  assert response.status_code == 404
  assert response.json()["error"]["code"] == "not_found"
  assert json.loads(response.content)["error"]["message"] == "Not Found"
