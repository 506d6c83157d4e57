from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, Integer, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from studykit.core.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class ProcessedResult(Base):
  __tablename__ = "processed_results"
  __table_args__ = (Index("idx_processed_results_created_at", "created_at"), Index("idx_processed_results_topic", "topic"))

  id: Mapped[str] = mapped_column(Text, primary_key=True)
  request_json: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
  response_json: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
  topic: Mapped[str] = mapped_column(Text, nullable=False, default="")
  topic_source: Mapped[str] = mapped_column(Text, nullable=False)
  topic_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SchemaMigration(Base):
  __tablename__ = "schema_migrations"

  version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
  applied_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
