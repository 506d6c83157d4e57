"""Identifier utilities."""

from __future__ import annotations

import hashlib
import uuid


def generate_result_id() -> str:
  """Return a new random result identifier."""
  return str(uuid.uuid4())


def idempotency_result_id(key: str) -> str:
  """Return the stable result identifier for an idempotency key."""
  # First 16 hex characters of the SHA-256 digest.
  return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
