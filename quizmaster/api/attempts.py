"""Attempt submission, lookup and review routes."""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizmaster.api.deps import get_current_user, get_quiz_or_404, require_student
from quizmaster.core.errors import (
    AlreadyAttempted,
    InvalidInput,
    NotFound,
    SubmissionFailed,
)
from quizmaster.db.models import Question, QuizAttempt, User
from quizmaster.db.session import get_db
from quizmaster.schemas.attempt import AttemptRead, AttemptReview, AttemptSubmit, ReviewItem
from quizmaster.services.grading import grade_answers

logger = logging.getLogger(__name__)
router = APIRouter()


def _find_attempt(db: Session, quiz_id: uuid.UUID, student_id: uuid.UUID) -> QuizAttempt | None:
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student_id)
        .first()
    )


def _ordered_questions(db: Session, quiz_id: uuid.UUID) -> list[Question]:
    return (
        db.query(Question)
        .filter(Question.quiz_id == quiz_id)
        .order_by(Question.order_number)
        .all()
    )


@router.post(
    "/quizzes/{quiz_id}/attempts",
    response_model=AttemptRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_attempt(
    quiz_id: uuid.UUID,
    body: AttemptSubmit,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    """Grade and store the caller's one attempt at a quiz.

    A second submission is refused with 409 and the id of the attempt
    already on record; the client routes to its review.
    """
    quiz = get_quiz_or_404(db, quiz_id)

    existing = _find_attempt(db, quiz.id, current_user.id)
    if existing is not None:
        logger.info("Student %s already attempted quiz %s", current_user.id, quiz.id)
        raise AlreadyAttempted("You have already taken this quiz!", details=str(existing.id))

    questions = _ordered_questions(db, quiz.id)
    if not questions:
        raise InvalidInput("This quiz has no questions")

    selections = {a.question_id: a.selected_answer for a in body.answers}
    unknown = set(selections) - {q.id for q in questions}
    if unknown:
        raise InvalidInput(
            "Answers reference questions outside this quiz",
            details=", ".join(sorted(str(u) for u in unknown)),
        )

    graded = grade_answers(questions, selections)

    attempt = QuizAttempt(
        quiz_id=quiz.id,
        student_id=current_user.id,
        score=graded.score,
        total_questions=graded.total_questions,
        answers=graded.answers,
        student_name=current_user.full_name or "Student",
        student_email=current_user.email or "N/A",
    )
    try:
        db.add(attempt)
        db.commit()
    except SQLAlchemyError as exc:
        # includes the (quiz_id, student_id) uniqueness race
        db.rollback()
        logger.warning("Attempt insert failed for quiz %s: %s", quiz.id, exc)
        raise SubmissionFailed("Failed to submit quiz") from exc

    db.refresh(attempt)
    logger.info(
        "Student %s scored %d/%d on quiz %s",
        current_user.id,
        attempt.score,
        attempt.total_questions,
        quiz.id,
    )
    return attempt


@router.get("/quizzes/{quiz_id}/attempts/me", response_model=AttemptRead)
def get_my_attempt(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's attempt at this quiz, or 404 when they have not taken it."""
    attempt = _find_attempt(db, quiz_id, current_user.id)
    if attempt is None:
        raise NotFound("No attempt for this quiz")
    return attempt


@router.get("/quizzes/{quiz_id}/review", response_model=AttemptReview)
def review_attempt(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's attempt next to each question and its correct answer.

    Selected answers and correctness come from the attempt's snapshot, not
    from re-grading against the current questions.
    """
    quiz = get_quiz_or_404(db, quiz_id)
    attempt = _find_attempt(db, quiz.id, current_user.id)
    if attempt is None:
        raise NotFound("You have not taken this quiz yet")

    by_id = {q.id: q for q in _ordered_questions(db, quiz.id)}
    items: list[ReviewItem] = []
    for record in attempt.answers:
        qid = uuid.UUID(record["question_id"])
        question = by_id.get(qid)
        items.append(
            ReviewItem(
                question_id=qid,
                order_number=question.order_number if question else None,
                question_text=question.question_text if question else "(question removed)",
                options=list(question.options) if question else [],
                correct_answer=question.correct_answer if question else None,
                selected_answer=record["selected_answer"],
                correct=record["correct"],
            )
        )

    return AttemptReview(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        attempt=AttemptRead.model_validate(attempt),
        items=items,
    )


@router.get("/attempts/", response_model=list[AttemptRead])
def list_my_attempts(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All of the caller's attempts, newest first."""
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.student_id == current_user.id)
        .order_by(QuizAttempt.completed_at.desc())
        .all()
    )
