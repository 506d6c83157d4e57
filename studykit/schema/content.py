"""Request and result models for learning-content generation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Mode(str, Enum):
  """Kind of learning material to generate."""

  LESSON = "lesson"
  FLASHCARDS = "flashcards"
  QUIZ = "quiz"


class Level(str, Enum):
  """Target difficulty for generated material."""

  BEGINNER = "beginner"
  INTERMEDIATE = "intermediate"
  ADVANCED = "advanced"


class TopicSource(str, Enum):
  """Provenance of the topic attached to a result."""

  USER = "user"
  INFERRED = "inferred"


class GenerationRequest(BaseModel):
  """Inputs for a content generation request.

  Mode and level stay plain strings so that unknown values reach the service
  validator and surface as invalid_argument errors rather than schema errors.
  """

  model_config = ConfigDict(extra="ignore")

  text: str
  mode: str | None = None
  topic: str | None = None
  level: str | None = None
  language: str | None = None
  idempotency_key: str | None = None


class Flashcard(BaseModel):
  q: str
  a: str


class QuizItem(BaseModel):
  q: str
  choices: list[str] = Field(default_factory=list)
  answer: str


class ResultMeta(BaseModel):
  """Provenance of a generated result."""

  model: str
  provider: str
  processing_ms: int = 0


class GenerationResult(BaseModel):
  """Structured learning content returned to callers."""

  id: str = ""
  topic: str
  topic_source: TopicSource
  topic_confidence: float = Field(ge=0.0, le=1.0)
  summary: str
  key_points: list[str] = Field(default_factory=list)
  flashcards: list[Flashcard] = Field(default_factory=list)
  quiz: list[QuizItem] = Field(default_factory=list)
  meta: ResultMeta
  created_at: datetime


class TopicCount(BaseModel):
  topic: str
  count: int


class DailySummary(BaseModel):
  """Per-day aggregate of processed requests grouped by topic."""

  date: str
  total_requests: int
  topics: list[TopicCount] = Field(default_factory=list)
