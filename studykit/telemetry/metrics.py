"""Prometheus metrics for the generation pipeline, bound to an injected registry."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

# Dotted names used by services, mapped to exported metric names and help text.
_COUNTERS: dict[str, tuple[str, str]] = {
  "generation.requests": ("studykit_generation_requests", "Generation requests received"),
  "generation.idempotent_hits": ("studykit_generation_idempotent_hits", "Requests answered from a stored idempotent result"),
  "generation.failures": ("studykit_generation_failures", "Generation requests that failed upstream"),
  "generation.persist_failures": ("studykit_generation_persist_failures", "Results that could not be persisted"),
}
_HISTOGRAMS: dict[str, tuple[str, str]] = {
  "generation.processing_ms": ("studykit_generation_processing_ms", "Milliseconds spent in the generation step"),
}
PROCESSING_MS_BUCKETS = (50.0, 100.0, 250.0, 500.0, 1000.0, 2500.0, 5000.0, 10000.0, 30000.0)


class MetricsCollector:
  """Counters and histograms registered on a private CollectorRegistry."""

  content_type = CONTENT_TYPE_LATEST

  def __init__(self, registry: CollectorRegistry | None = None) -> None:
    self.registry = registry or CollectorRegistry()
    self._counters = {key: Counter(name, help_text, registry=self.registry) for key, (name, help_text) in _COUNTERS.items()}
    self._histograms = {key: Histogram(name, help_text, buckets=PROCESSING_MS_BUCKETS, registry=self.registry) for key, (name, help_text) in _HISTOGRAMS.items()}

  def increment(self, name: str, amount: int = 1) -> None:
    self._counters[name].inc(amount)

  def observe(self, name: str, value: float) -> None:
    self._histograms[name].observe(value)

  def counter(self, name: str) -> float:
    """Return the current value of a counter by its dotted name."""
    metric_name, _ = _COUNTERS[name]
    return self.registry.get_sample_value(f"{metric_name}_total") or 0.0

  def observations(self, name: str) -> tuple[float, float]:
    """Return `(count, sum)` for a histogram by its dotted name."""
    metric_name, _ = _HISTOGRAMS[name]
    count = self.registry.get_sample_value(f"{metric_name}_count") or 0.0
    total = self.registry.get_sample_value(f"{metric_name}_sum") or 0.0
    return count, total

  def render(self) -> bytes:
    """Serialize the registry in the Prometheus text exposition format."""
    return generate_latest(self.registry)
