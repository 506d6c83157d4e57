"""Prompt construction for learning-content generation."""

from __future__ import annotations

from studykit.schema.content import GenerationRequest, Mode

_FRAMING = "You are an educational content generator. Process the following text and create structured learning content.\n\n"

_MODE_INSTRUCTIONS: dict[str, str] = {
  Mode.FLASHCARDS.value: "Generate flashcards (question-answer pairs) from this text.\n",
  Mode.QUIZ.value: "Generate quiz questions with multiple choice answers from this text.\n",
}

_LESSON_INSTRUCTION = "Generate a comprehensive lesson with summary, key points, flashcards, and quiz questions.\n"

_SCHEMA_DIRECTIVE = """
IMPORTANT: Respond ONLY with valid JSON matching this exact schema:
{
  "topic": "string (the main topic)",
  "topic_source": "user" or "inferred",
  "topic_confidence": number (0.0-1.0),
  "summary": "string (concise summary)",
  "key_points": ["string", "string", ...],
  "flashcards": [{"q": "question", "a": "answer"}, ...],
  "quiz": [{"q": "question", "choices": ["A", "B", "C", "D"], "answer": "correct choice"}, ...]
}

Do not include any text outside the JSON. Return only the JSON object."""


def build_prompt(request: GenerationRequest) -> str:
  """Render the generation prompt for a normalized request."""
  parts = [_FRAMING, f"Text to process:\n{request.text}\n\n"]
  parts.append(_MODE_INSTRUCTIONS.get(request.mode or "", _LESSON_INSTRUCTION))

  if request.topic:
    parts.append(f"Topic: {request.topic}\n")
  else:
    parts.append("Infer the topic from the text and provide your confidence (0.0-1.0).\n")

  if request.level:
    parts.append(f"Difficulty level: {request.level}\n")

  if request.language and request.language != "en":
    parts.append(f"Language: {request.language}\n")

  parts.append(_SCHEMA_DIRECTIVE)
  return "".join(parts)
