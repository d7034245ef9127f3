"""Attempt schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel


class AnswerSelection(BaseModel):
    question_id: uuid.UUID
    selected_answer: str


class AttemptSubmit(BaseModel):
    """POST /api/quizzes/{quiz_id}/attempts: one selection per question."""

    answers: list[AnswerSelection]


class AnswerRecord(BaseModel):
    """Snapshot of one graded answer, as stored on the attempt."""

    question_id: uuid.UUID
    selected_answer: str
    correct: bool


class AttemptRead(BaseModel):
    id: uuid.UUID
    quiz_id: uuid.UUID
    student_id: uuid.UUID
    score: int
    total_questions: int
    answers: list[AnswerRecord]
    completed_at: datetime
    student_name: str
    student_email: str

    model_config = {"from_attributes": True}


class ReviewItem(BaseModel):
    """One question on the review page."""

    question_id: uuid.UUID
    order_number: int | None = None
    question_text: str
    options: list[str] = []
    correct_answer: str | None = None
    selected_answer: str
    correct: bool


class AttemptReview(BaseModel):
    """GET /api/quizzes/{quiz_id}/review"""

    quiz_id: uuid.UUID
    quiz_title: str
    attempt: AttemptRead
    items: list[ReviewItem]
