"""Quiz & question schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, field_validator, model_validator

from quizmaster.config import settings


class QuizGenerateRequest(BaseModel):
    """POST /api/quizzes/generate

    ``title`` and ``prompt`` are optional at the schema level so that
    missing values reach the pipeline and fail as ``InvalidInput``.
    """

    title: str | None = None
    description: str | None = None
    prompt: str | None = None


class QuizRead(BaseModel):
    id: uuid.UUID
    professor_id: uuid.UUID
    title: str
    description: str | None = None
    ai_prompt: str
    created_at: datetime

    model_config = {"from_attributes": True}


class QuizGenerateResponse(BaseModel):
    quiz: QuizRead


class QuestionRead(BaseModel):
    """A question as shown to the quiz owner (includes the answer)."""

    id: uuid.UUID
    quiz_id: uuid.UUID
    question_text: str
    options: list[str]
    correct_answer: str
    order_number: int

    model_config = {"from_attributes": True}


class QuestionPublic(BaseModel):
    """A question as shown to a student taking the quiz."""

    id: uuid.UUID
    quiz_id: uuid.UUID
    question_text: str
    options: list[str]
    order_number: int

    model_config = {"from_attributes": True}


class QuestionUpdate(BaseModel):
    """PATCH /api/questions/{id}: any subset of the editable fields."""

    question_text: str | None = None
    options: list[str] | None = None
    correct_answer: str | None = None

    @field_validator("question_text")
    @classmethod
    def _text_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Question text cannot be empty")
        return v


# ── AI provider payload ──────────────────────────────────────────────────────


class GeneratedQuestion(BaseModel):
    """One question as returned by the AI provider."""

    question: str
    options: list[str]
    correct_answer: str

    @model_validator(mode="after")
    def _check_shape(self) -> "GeneratedQuestion":
        check_question_shape(self.question, self.options, self.correct_answer)
        return self


class GeneratedQuiz(BaseModel):
    questions: list[GeneratedQuestion]

    @field_validator("questions")
    @classmethod
    def _exact_count(cls, v: list[GeneratedQuestion]) -> list[GeneratedQuestion]:
        if len(v) != settings.QUESTIONS_PER_QUIZ:
            raise ValueError(
                f"expected {settings.QUESTIONS_PER_QUIZ} questions, got {len(v)}"
            )
        return v


def check_question_shape(text: str, options: list[str], correct_answer: str) -> None:
    """Raise ValueError unless the question can be stored."""
    if not text or not text.strip():
        raise ValueError("question text is empty")
    if len(options) != settings.OPTIONS_PER_QUESTION:
        raise ValueError(
            f"expected {settings.OPTIONS_PER_QUESTION} options, got {len(options)}"
        )
    if any(not opt.strip() for opt in options):
        raise ValueError("options must be non-empty")
    if len(set(options)) != len(options):
        raise ValueError("options must be distinct")
    if correct_answer not in options:
        raise ValueError("correct_answer must exactly match one of the options")
