"""Editing and deleting single questions of an owned quiz."""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizmaster.api.deps import require_professor
from quizmaster.core.errors import Forbidden, InvalidInput, NotFound
from quizmaster.db.models import Question, Quiz, User
from quizmaster.db.session import get_db
from quizmaster.schemas.common import MessageResponse
from quizmaster.schemas.quiz import QuestionRead, QuestionUpdate, check_question_shape

logger = logging.getLogger(__name__)
router = APIRouter()


def _owned_question(db: Session, question_id: uuid.UUID, user: User) -> Question:
    question = db.query(Question).filter(Question.id == question_id).first()
    if question is None:
        raise NotFound("Question not found")
    quiz = db.query(Quiz).filter(Quiz.id == question.quiz_id).first()
    if quiz is None or quiz.professor_id != user.id:
        raise Forbidden("You do not own this quiz")
    return question


@router.patch("/{question_id}", response_model=QuestionRead)
def update_question(
    question_id: uuid.UUID,
    body: QuestionUpdate,
    current_user: User = Depends(require_professor),
    db: Session = Depends(get_db),
):
    """Update text, options and/or correct answer.

    The merged result must still have four distinct options with the
    correct answer among them.
    """
    question = _owned_question(db, question_id, current_user)

    text = body.question_text if body.question_text is not None else question.question_text
    options = list(body.options) if body.options is not None else list(question.options)
    correct = body.correct_answer if body.correct_answer is not None else question.correct_answer
    try:
        check_question_shape(text, options, correct)
    except ValueError as exc:
        raise InvalidInput("Invalid question", details=str(exc)) from exc

    question.question_text = text
    question.options = options
    question.correct_answer = correct
    db.commit()
    db.refresh(question)
    logger.info("Updated question %s", question.id)
    return question


@router.delete("/{question_id}", response_model=MessageResponse)
def delete_question(
    question_id: uuid.UUID,
    current_user: User = Depends(require_professor),
    db: Session = Depends(get_db),
):
    """Delete a question and close the gap in ``order_number``."""
    question = _owned_question(db, question_id, current_user)
    quiz_id, removed_position = question.quiz_id, question.order_number

    db.delete(question)
    later = (
        db.query(Question)
        .filter(Question.quiz_id == quiz_id, Question.order_number > removed_position)
        .order_by(Question.order_number)
        .all()
    )
    for q in later:
        q.order_number -= 1
    db.commit()
    logger.info(
        "Deleted question %s from quiz %s (%d renumbered)", question_id, quiz_id, len(later)
    )
    return MessageResponse(message="Question deleted")
