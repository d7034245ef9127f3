"""Quiz generation and management routes."""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizmaster.api.deps import (
    ensure_owner,
    get_current_user,
    get_optional_user,
    get_quiz_or_404,
    require_professor,
)
from quizmaster.db.models import Question, Quiz, QuizAttempt, RoleEnum, User
from quizmaster.db.session import get_db
from quizmaster.schemas.common import MessageResponse
from quizmaster.schemas.quiz import (
    QuestionPublic,
    QuestionRead,
    QuizGenerateRequest,
    QuizGenerateResponse,
    QuizRead,
)
from quizmaster.services.ai_client import QuizAIClient, get_ai_client
from quizmaster.services.quiz_generation import generate_quiz

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[QuizRead])
def list_quizzes(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Professors see their own quizzes; students see every quiz. Newest first."""
    query = db.query(Quiz)
    if current_user.role == RoleEnum.PROFESSOR:
        query = query.filter(Quiz.professor_id == current_user.id)
    return query.order_by(Quiz.created_at.desc()).all()


@router.post("/generate", response_model=QuizGenerateResponse)
def generate(
    body: QuizGenerateRequest,
    caller: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    ai: QuizAIClient = Depends(get_ai_client),
):
    """Generate a quiz with the AI provider and store it.

    Input is checked before the session so a bad form fails with 400 even
    when the caller is also unauthenticated.
    """
    quiz = generate_quiz(db, caller, body, ai)
    return QuizGenerateResponse(quiz=QuizRead.model_validate(quiz))


@router.get("/{quiz_id}", response_model=QuizRead)
def get_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_quiz_or_404(db, quiz_id)


@router.get("/{quiz_id}/questions", response_model=None)
def list_questions(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[QuestionRead] | list[QuestionPublic]:
    """Questions in ``order_number`` order.

    The owning professor gets the correct answers; students get the options only.
    """
    quiz = get_quiz_or_404(db, quiz_id)
    questions = (
        db.query(Question)
        .filter(Question.quiz_id == quiz.id)
        .order_by(Question.order_number)
        .all()
    )
    if current_user.role == RoleEnum.PROFESSOR:
        ensure_owner(quiz, current_user)
        return [QuestionRead.model_validate(q) for q in questions]
    return [QuestionPublic.model_validate(q) for q in questions]


@router.delete("/{quiz_id}", response_model=MessageResponse)
def delete_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(require_professor),
    db: Session = Depends(get_db),
):
    """Delete a quiz with its attempts and questions, children first."""
    quiz = get_quiz_or_404(db, quiz_id)
    ensure_owner(quiz, current_user)

    attempts = (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz.id)
        .delete(synchronize_session=False)
    )
    questions = (
        db.query(Question)
        .filter(Question.quiz_id == quiz.id)
        .delete(synchronize_session=False)
    )
    db.query(Quiz).filter(Quiz.id == quiz.id).delete(synchronize_session=False)
    db.commit()
    logger.info(
        "Deleted quiz %s (%d questions, %d attempts)", quiz_id, questions, attempts
    )
    return MessageResponse(message="Quiz deleted")

